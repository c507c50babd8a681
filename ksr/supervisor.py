"""Process lifecycle: initialize, serve, wait for one signal, exit."""
from __future__ import annotations

import enum
import logging
import queue
import signal
import sqlite3
from threading import Thread
from typing import Any, Callable, Iterable, Mapping

import uvicorn
from fastapi import FastAPI

from .api import create_app
from .db import EventStore
from .errors import ConfigError
from .kube_ops import ClusterResourceClient, build_core_api
from .logs import attach_event_store, setup_logging
from .services import ServiceReconciler
from .settings import Settings, load_settings

LOG = logging.getLogger(__name__)

TERMINATION_SIGNALS = (signal.SIGHUP, signal.SIGINT, signal.SIGTERM, signal.SIGQUIT)

EXIT_CLEAN = 0
EXIT_SIGNAL = 1
EXIT_CONFIG = 2


class State(str, enum.Enum):
    INITIALIZING = "initializing"
    SERVING = "serving"
    DRAINING = "draining"
    TERMINATED = "terminated"


def exit_code_for(signum: int) -> int:
    return EXIT_CLEAN if signum == signal.SIGTERM else EXIT_SIGNAL


class SignalChannel:
    """Single-consumer channel fed by OS signal handlers.

    SimpleQueue.put is reentrant, so handlers may run while the consumer is
    blocked in wait(). Only the first event is ever consumed.
    """

    def __init__(self, signals: Iterable[int] = TERMINATION_SIGNALS):
        self.signals = tuple(signals)
        self._events: queue.SimpleQueue[int] = queue.SimpleQueue()
        self._previous: dict[int, Any] = {}

    def notify(self, signum: int, frame: Any = None) -> None:
        self._events.put_nowait(signum)

    def subscribe(self) -> None:
        for sig in self.signals:
            self._previous[sig] = signal.signal(sig, self.notify)

    def close(self) -> None:
        for sig, handler in self._previous.items():
            signal.signal(sig, handler)
        self._previous.clear()

    def wait(self) -> int:
        return self._events.get()


def default_server_factory(app: FastAPI, settings: Settings) -> uvicorn.Server:
    # log_config=None keeps uvicorn on the root logging configuration.
    return uvicorn.Server(uvicorn.Config(app, host=settings.api_host, port=settings.api_port, log_config=None))


class ProcessSupervisor:
    """Owns startup order and the signal-driven shutdown protocol."""

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        *,
        verbose: bool = False,
        core_api_factory: Callable[[Settings], Any] = build_core_api,
        server_factory: Callable[[FastAPI, Settings], Any] = default_server_factory,
        signals: SignalChannel | None = None,
    ):
        self.environ = environ
        self.verbose = verbose
        self.core_api_factory = core_api_factory
        self.server_factory = server_factory
        self.signals = signals or SignalChannel()
        self.state = State.INITIALIZING

        self.settings: Settings | None = None
        self.store: EventStore | None = None
        self.reconciler: ServiceReconciler | None = None
        self.app: FastAPI | None = None
        self.server: Any = None
        self._thr: Thread | None = None

    def initialize(self) -> None:
        self.state = State.INITIALIZING
        self.settings = load_settings(self.environ)
        setup_logging(self.settings.run_mode, verbose=self.verbose)

        try:
            self.store = EventStore(self.settings.db_path)
            self.store.init()
        except (OSError, sqlite3.Error) as e:
            raise ConfigError(f"Event store unavailable at {self.settings.db_path!r}: {e}") from e
        attach_event_store(self.store)

        core_api = self.core_api_factory(self.settings)
        cluster = ClusterResourceClient(core_api, self.settings.namespace)
        self.reconciler = ServiceReconciler(cluster)
        self.app = create_app(self.reconciler, store=self.store, settings=self.settings)
        LOG.info(
            "Initialized (namespace=%s, run_mode=%s)",
            self.settings.namespace,
            self.settings.run_mode,
        )

    def serve(self) -> None:
        """Start the API server in a daemon thread and return immediately."""
        if self.app is None or self.settings is None:
            raise RuntimeError("initialize() must run before serve()")
        self.server = self.server_factory(self.app, self.settings)
        self._thr = Thread(target=self.server.run, name="ksr-api", daemon=True)
        self._thr.start()
        self.state = State.SERVING
        LOG.info("API server listening on %s:%s", self.settings.api_host, self.settings.api_port)

    def wait_for_signal(self) -> int:
        self.signals.subscribe()
        try:
            signum = self.signals.wait()
        finally:
            self.signals.close()
        self.state = State.DRAINING
        LOG.info("Got signal [%s] to exit.", signal.Signals(signum).name)
        return exit_code_for(signum)

    def drain(self) -> None:
        if self.server is not None:
            self.server.should_exit = True
        if self._thr is not None and self.settings is not None:
            self._thr.join(timeout=self.settings.shutdown_grace_s)
            if self._thr.is_alive():
                LOG.warning("API server still running after %ss, exiting anyway", self.settings.shutdown_grace_s)

    def run(self) -> int:
        try:
            self.initialize()
        except ConfigError as e:
            LOG.critical("Startup failed: %s", e)
            self.state = State.TERMINATED
            return EXIT_CONFIG

        self.serve()
        code = self.wait_for_signal()
        self.drain()
        self.state = State.TERMINATED
        LOG.info("Exiting with status %d", code)
        return code
