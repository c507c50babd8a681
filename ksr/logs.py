from __future__ import annotations

import logging

from .db import EventStore

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


class EventStoreHandler(logging.Handler):
    """Mirror log records into the event store.

    Store failures go through Handler.handleError, so they never reach the
    code that emitted the record.
    """

    def __init__(self, store: EventStore, level: int = logging.INFO):
        super().__init__(level)
        self.store = store

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.store.log_event(record.levelname, record.getMessage(), logger=record.name)
        except Exception:
            self.handleError(record)


def setup_logging(run_mode: str, verbose: bool = False) -> None:
    level = logging.DEBUG if verbose or run_mode == "dev" else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)


def attach_event_store(store: EventStore, logger_name: str = "ksr") -> EventStoreHandler:
    logger = logging.getLogger(logger_name)
    for h in list(logger.handlers):
        if isinstance(h, EventStoreHandler):
            logger.removeHandler(h)
    handler = EventStoreHandler(store)
    logger.addHandler(handler)
    return handler
