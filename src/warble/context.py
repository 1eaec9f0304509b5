"""Per-request context.

A ``RequestContext`` is built with default values when a request
arrives, handed to every hook and (on request) to the handler, and
dropped once the response is sent. It is never shared between requests,
so it needs no locking.

Usage::

    @app.hook(Phase.PRE_HANDLER)
    def load_user(context: RequestContext) -> None:
        context.user = User(name="John Doe", age=30)
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from warble.http.request import Request
    from warble.routing.route import Route


@dataclass(frozen=True, slots=True)
class User:
    """The user a request acts as. Replace it wholesale, don't mutate it."""

    name: str = ""
    age: int | float = 0

    def as_dict(self) -> dict[str, Any]:
        return {"name": self.name, "age": self.age}


@dataclass(slots=True)
class RequestContext:
    """Mutable per-request bag populated by hooks.

    ``route`` is ``None`` when no route matched. ``body`` holds the parsed,
    validated JSON body (``None`` without one). ``status`` and ``elapsed``
    are filled in once the response is final, for ``onResponse`` hooks.
    """

    request: Request
    user: User = field(default_factory=User)
    route: Route | None = None
    body: Any = None
    status: int | None = None
    elapsed: float | None = None
    started: float = field(default_factory=time.monotonic)

    @property
    def group(self) -> str | None:
        """Route group of the matched route (``None`` for ungrouped routes)."""
        return self.route.group if self.route is not None else None

    def finish(self, status: int) -> None:
        """Record the final status and the time spent since arrival."""
        self.status = status
        self.elapsed = time.monotonic() - self.started
