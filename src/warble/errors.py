"""Warble exception hierarchy.

Shared across Router, App, the hook pipeline, and the server lifecycle
so every module raises and catches the same types.

Per-request errors derive from ``HTTPError`` and are converted to a
response at the request boundary. ``BindError``, ``StartupError`` and
``ShutdownError`` are process-level and end the server.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from warble.validation.result import Violation


class WarbleError(Exception):
    """Base for all warble-specific errors."""


class ConfigurationError(WarbleError):
    """Raised when app configuration is invalid.

    Typically caught during ``App._freeze()`` at startup.
    """


class DuplicateRoute(ConfigurationError):  # noqa: N818 — mirrors DuplicateSchema
    """A (method, path) pair was registered twice."""

    def __init__(self, method: str, path: str) -> None:
        self.method = method
        self.path = path
        super().__init__(f"Route {method} {path!r} is already registered")


class DuplicateSchema(ConfigurationError):  # noqa: N818
    """A schema id was registered twice."""

    def __init__(self, schema_id: str) -> None:
        self.schema_id = schema_id
        super().__init__(f"Schema {schema_id!r} is already registered")


class SchemaError(ConfigurationError):
    """A schema shape is malformed or a schema id is unknown."""


@dataclass(frozen=True, slots=True)
class HTTPError(WarbleError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, hooks, or handlers. The ASGI handler
    catches these and dispatches to the matching ``@app.error()`` handler.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class ValidationError(HTTPError):
    """400 — a value does not satisfy its schema.

    ``violations`` holds one ``Violation`` (path, rule, message) per
    failed rule, in document order.
    """

    def __init__(
        self,
        violations: Iterable[Violation],
        detail: str = "",
        *,
        status: int = 400,
    ) -> None:
        items = tuple(violations)
        if not detail:
            detail = "; ".join(f"{v.path or '/'} {v.message}" for v in items)
        super().__init__(status=status, detail=detail)
        object.__setattr__(self, "violations", items)


class PayloadTooLarge(HTTPError):  # noqa: N818
    """413 — the request body exceeds ``max_content_length``."""

    def __init__(self, limit: int) -> None:
        super().__init__(status=413, detail=f"Request body exceeds {limit} bytes")


class ServiceUnavailable(HTTPError):  # noqa: N818
    """503 — the server is draining and no longer admits requests."""

    def __init__(self, detail: str = "Server is shutting down") -> None:
        super().__init__(status=503, detail=detail, headers=(("Connection", "close"),))


class HookError(HTTPError):
    """500 — a lifecycle hook raised.

    Clients only see "Internal Server Error". ``phase`` and ``hook`` name
    the failing hook for logs; the hook's exception is ``__cause__``.
    """

    def __init__(self, phase: str, hook: str) -> None:
        super().__init__(status=500, detail="Internal Server Error")
        object.__setattr__(self, "phase", phase)
        object.__setattr__(self, "hook", hook)

    def __str__(self) -> str:
        return f"{self.phase} hook {self.hook!r} failed"


class ClientDisconnected(WarbleError):  # noqa: N818
    """The client went away before its request was answered."""

    def __init__(self, method: str, path: str) -> None:
        self.method = method
        self.path = path
        super().__init__(f"Client disconnected during {method} {path}")


class BindError(WarbleError):
    """The listening socket could not be acquired."""

    def __init__(self, host: str, port: int, reason: OSError) -> None:
        self.host = host
        self.port = port
        super().__init__(f"Cannot bind {host}:{port}: {reason.strerror or reason}")


class StartupError(WarbleError):
    """A startup hook or the database connector failed."""


class ShutdownError(WarbleError):
    """Closing the server failed."""
