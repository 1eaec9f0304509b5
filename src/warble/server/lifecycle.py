"""Process lifecycle — bind, serve, drain on signal, stop.

States::

    unstarted -> listening -> draining -> stopped

``Lifecycle.run()`` returns the process exit code:

- ``1`` when the port cannot be bound or startup fails (never retried)
- ``0`` after SIGINT/SIGTERM once in-flight requests have finished and
  shutdown hooks ran cleanly
- ``1`` when closing fails

The HTTP protocol work is done by uvicorn. Signals are handled here
rather than by uvicorn so the app can start refusing new requests (503)
the moment draining begins.
"""

from __future__ import annotations

import contextlib
import logging
import signal
import socket
from collections.abc import Iterator
from enum import StrEnum
from typing import TYPE_CHECKING

import anyio
import uvicorn

from warble.errors import BindError, ShutdownError, StartupError

if TYPE_CHECKING:
    from warble.app import App

logger = logging.getLogger("warble.server")

_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ServerState(StrEnum):
    UNSTARTED = "unstarted"
    LISTENING = "listening"
    DRAINING = "draining"
    STOPPED = "stopped"


def bind_socket(host: str, port: int) -> socket.socket:
    """Create a listening TCP socket bound to *host*:*port*.

    Raises:
        BindError: If the address is in use, not available, or not
            permitted.
    """
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
    except OSError as exc:
        sock.close()
        raise BindError(host, port, exc) from exc
    sock.set_inheritable(True)
    return sock


class _Server(uvicorn.Server):
    """uvicorn server that leaves signal handling to ``Lifecycle``."""

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


class Lifecycle:
    """Single-shot serving lifecycle for one app on one address.

    Usage::

        exit_code = Lifecycle(app, "0.0.0.0", 3000).run()
        raise SystemExit(exit_code)
    """

    __slots__ = ("_app", "_server", "drain_timeout", "host", "port", "state")

    def __init__(self, app: App, host: str, port: int, *, drain_timeout: float = 30.0) -> None:
        self._app = app
        self._server: _Server | None = None
        self.host = host
        self.port = port
        self.drain_timeout = drain_timeout
        self.state = ServerState.UNSTARTED

    def run(self) -> int:
        """Serve until signalled and return the exit code."""
        return anyio.run(self.serve)

    async def serve(self) -> int:
        if self.state is not ServerState.UNSTARTED:
            msg = f"Lifecycle already {self.state}; it runs only once"
            raise RuntimeError(msg)

        try:
            sock = bind_socket(self.host, self.port)
        except BindError as exc:
            logger.error("%s", exc)
            self.state = ServerState.STOPPED
            return 1

        with sock:
            try:
                await self._app.startup()
            except StartupError:
                logger.exception("Startup failed")
                await self._release()
                self.state = ServerState.STOPPED
                return 1

            config = uvicorn.Config(
                self._app,
                lifespan="off",
                log_config=None,
                access_log=False,
                ws="none",
                interface="asgi3",
                timeout_graceful_shutdown=self.drain_timeout,
            )
            self._server = _Server(config)

            # Port 0 binds an ephemeral port; record the real one.
            self.port = sock.getsockname()[1]
            self.state = ServerState.LISTENING
            logger.info(
                "Listening on port %d at address http://%s:%d", self.port, self.host, self.port
            )

            async with anyio.create_task_group() as tg:
                tg.start_soon(self._watch_signals)
                exit_code = await self._serve_and_close(sock)
                tg.cancel_scope.cancel()

        self.state = ServerState.STOPPED
        logger.info("Server stopped (exit code %d)", exit_code)
        return exit_code

    async def _serve_and_close(self, sock: socket.socket) -> int:
        assert self._server is not None
        await self._server.serve(sockets=[sock])

        # uvicorn returns on its own if it failed to start serving
        if self.state is ServerState.LISTENING:
            self.state = ServerState.DRAINING
            self._app.begin_drain()

        if not await self._app.drain(self.drain_timeout):
            logger.warning(
                "%d request(s) still in flight after %.1fs, closing anyway",
                self._app.in_flight,
                self.drain_timeout,
            )

        try:
            await self._app.shutdown()
        except ShutdownError:
            logger.exception("Error while closing the server")
            return 1
        return 0 if self._server.started else 1

    async def _release(self) -> None:
        """Undo a partial startup: shutdown hooks and connector disconnect."""
        try:
            await self._app.shutdown()
        except ShutdownError:
            logger.exception("Error while releasing resources after failed startup")

    async def _watch_signals(self) -> None:
        with anyio.open_signal_receiver(*_SIGNALS) as signals:
            async for signum in signals:
                self.handle_signal(signum)

    def handle_signal(self, signum: int) -> None:
        """Begin draining; a second signal forces connections closed."""
        name = signal.Signals(signum).name
        if self.state is ServerState.DRAINING:
            logger.warning("Received signal %s again, forcing exit", name)
            if self._server is not None:
                self._server.force_exit = True
            return

        logger.info("Received signal %s, shutting down...", name)
        self.state = ServerState.DRAINING
        self._app.begin_drain()
        if self._server is not None:
            self._server.should_exit = True
