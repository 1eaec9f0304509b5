"""In-flight request tracking for graceful shutdown.

The tracker counts requests currently inside the pipeline. Once
``begin_drain()`` is called it stops admitting new ones, and ``drain()``
waits (bounded) until the count reaches zero.

Thread safety:
    All calls happen on the event loop thread; the counter is only
    touched between suspension points.
"""

from collections.abc import Iterator
from contextlib import contextmanager

import anyio


class RequestTracker:
    """Counts in-flight requests and signals when the last one finishes."""

    __slots__ = ("_active", "_draining", "_idle")

    def __init__(self) -> None:
        self._active = 0
        self._draining = False
        self._idle: anyio.Event | None = None

    @property
    def active(self) -> int:
        return self._active

    @property
    def draining(self) -> bool:
        return self._draining

    def admits(self) -> bool:
        """True while new requests may start."""
        return not self._draining

    @contextmanager
    def track(self) -> Iterator[None]:
        """Count the enclosed block as one in-flight request."""
        self._active += 1
        try:
            yield
        finally:
            self._active -= 1
            if self._active == 0 and self._idle is not None:
                self._idle.set()

    def begin_drain(self) -> None:
        """Stop admitting requests. Requests already admitted keep running."""
        self._draining = True

    async def drain(self, timeout: float | None) -> bool:
        """Stop admitting requests and wait for in-flight ones.

        Returns ``True`` if every in-flight request finished, ``False`` if
        *timeout* seconds passed first.
        """
        self.begin_drain()
        if self._active == 0:
            return True
        self._idle = anyio.Event()
        with anyio.move_on_after(timeout) as scope:
            await self._idle.wait()
        return not scope.cancelled_caught
