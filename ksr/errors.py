from __future__ import annotations

# Control-plane error categories.
NOT_FOUND = "not_found"
CONFLICT = "conflict"
INVALID = "invalid"
FORBIDDEN = "forbidden"
SERVER = "server"
TRANSPORT = "transport"
UNKNOWN = "unknown"


def category_for_status(status: int | None) -> str:
    if not status:
        return TRANSPORT
    if status == 404:
        return NOT_FOUND
    if status == 409:
        return CONFLICT
    if status in (400, 422):
        return INVALID
    if status in (401, 403):
        return FORBIDDEN
    if status >= 500:
        return SERVER
    return UNKNOWN


class KsrError(Exception):
    pass


class ConfigError(KsrError):
    """Invalid configuration or unreachable startup dependency. Fatal."""


class DecodeError(KsrError):
    """Payload is not a valid Service manifest."""


class ResourceError(KsrError):
    """The control plane rejected an operation on a Service."""

    action = "operate on"

    def __init__(self, name: str, category: str, detail: str, status: int | None = None):
        self.name = name
        self.category = category
        self.detail = detail
        self.status = status
        super().__init__(f"Failed to {self.action} service {name!r} ({category}): {detail}")


class ResourceCreateError(ResourceError):
    action = "create"


class ResourceDeleteError(ResourceError):
    action = "delete"
