"""Database connector protocol and the no-op default."""

import logging
from typing import Protocol, runtime_checkable
from urllib.parse import urlsplit

logger = logging.getLogger("warble.data")


@runtime_checkable
class Connector(Protocol):
    """Anything the app can connect at startup and disconnect at shutdown."""

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...


class NullConnector:
    """Placeholder connector. Opens no connection; logs instead.

    ``connected`` tracks the lifecycle so tests can assert the app called
    ``connect()`` and ``disconnect()`` at the right time. Both calls are
    idempotent.
    """

    __slots__ = ("_connected", "url")

    def __init__(self, url: str = "mongodb://localhost:27017/test") -> None:
        self.url = url
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def display_url(self) -> str:
        """The URL with any password masked, safe to log."""
        parts = urlsplit(self.url)
        if parts.password is None:
            return self.url
        netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
        return parts._replace(netloc=netloc).geturl()

    async def connect(self) -> None:
        if self._connected:
            return
        self._connected = True
        logger.info("Connected to database at %s", self.display_url)

    async def disconnect(self) -> None:
        if not self._connected:
            return
        self._connected = False
        logger.info("Disconnected from database")

    def __repr__(self) -> str:
        return f"NullConnector({self.display_url!r})"
