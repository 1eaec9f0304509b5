"""Incoming HTTP request.

Metadata is frozen when the request arrives. The body is read from the
ASGI ``receive`` channel once, by ``body()``; after that the channel
only carries the disconnect notice, which ``wait_disconnect()`` waits
for. Per-request mutable state lives in ``RequestContext``.
"""

from __future__ import annotations

import json as json_module
from dataclasses import dataclass, field
from typing import Any

from warble._internal.asgi import Receive, Scope
from warble.errors import ClientDisconnected, PayloadTooLarge
from warble.http.headers import Headers


@dataclass(frozen=True, slots=True)
class Request:
    """Method, path and headers, plus one-shot access to the body."""

    method: str
    path: str
    headers: Headers
    _receive: Receive = field(repr=False, compare=False)
    query_string: bytes = b""
    client: tuple[str, int] | None = None

    # Holds "body" once read, or "error" if reading it failed
    _state: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            _receive=receive,
            query_string=scope.get("query_string", b""),
            client=tuple(client) if client else None,
        )

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int | None:
        """Declared body size, or ``None`` if absent or malformed."""
        value = self.headers.get("content-length")
        return int(value) if value is not None and value.isdigit() else None

    @property
    def is_json(self) -> bool:
        return "json" in (self.content_type or "")

    async def body(self, limit: int | None = None) -> bytes:
        """The complete body. Only the first call touches the channel.

        Raises:
            PayloadTooLarge: The declared or received size exceeds *limit*.
            ClientDisconnected: The client went away before the body ended.

        A failure is remembered and raised again by later calls.
        """
        if "error" in self._state:
            raise self._state["error"]
        if "body" not in self._state:
            try:
                self._state["body"] = await self._read_body(limit)
            except (PayloadTooLarge, ClientDisconnected) as exc:
                self._state["error"] = exc
                raise
        return self._state["body"]

    async def _read_body(self, limit: int | None) -> bytes:
        declared = self.content_length
        if limit is not None and declared is not None and declared > limit:
            raise PayloadTooLarge(limit)

        received = bytearray()
        more_body = True
        while more_body:
            message = await self._receive()
            if message["type"] == "http.disconnect":
                raise ClientDisconnected(self.method, self.path)
            received += message.get("body", b"")
            if limit is not None and len(received) > limit:
                raise PayloadTooLarge(limit)
            more_body = message.get("more_body", False)
        return bytes(received)

    async def json(self, limit: int | None = None) -> Any:
        """The body parsed as JSON. Raises ``ValueError`` if malformed."""
        return json_module.loads(await self.body(limit))

    async def wait_disconnect(self) -> None:
        """Return once the client disconnects. Only valid after ``body()``."""
        while (await self._receive())["type"] != "http.disconnect":
            pass
