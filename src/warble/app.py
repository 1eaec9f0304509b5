"""Warble application class.

Mutable during setup (routes, schemas, hooks, route groups).
Frozen at runtime when app.run() or __call__() is first invoked.
"""

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from warble._internal.asgi import Receive, Scope, Send
from warble._internal.invoke import callable_name, invoke
from warble._internal.types import ErrorHandler, Handler, Hook, Plugin
from warble.config import AppConfig
from warble.data.connector import Connector, NullConnector
from warble.errors import ShutdownError, StartupError
from warble.hooks import HookPipeline, Phase
from warble.routing.group import RouteGroup
from warble.routing.route import Route
from warble.routing.router import Router
from warble.server.handler import handle_request
from warble.server.tracker import RequestTracker
from warble.validation.registry import SchemaRegistry
from warble.validation.schema import SchemaDef

logger = logging.getLogger("warble.server")


@dataclass(slots=True)
class _PendingRoute:
    """A route waiting to be compiled."""

    path: str
    handler: Handler
    methods: list[str] | None
    name: str | None
    group: str | None = None
    body: SchemaDef | str | None = None
    response: Mapping[int, SchemaDef | str] = field(default_factory=dict)
    pre_handlers: tuple[Hook, ...] = ()


class App:
    """The warble application.

    Mutable during setup (route registration, schemas, hooks, plugins).
    Frozen at runtime when ``app.run()`` or ``__call__()`` is first invoked.

    Route-group plugins registered with :meth:`register` run at freeze
    time, so every global hook registered during setup is in place before
    any group adds its own.

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check to ensure exactly
        one thread compiles the app, even if several server threads call
        ``__call__()`` concurrently on first request.
    """

    __slots__ = (
        "_connector",
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_hooks",
        "_pending_routes",
        "_plugins",
        # Service injection via providers
        "_providers",
        # Compiled state (populated by _freeze)
        "_router",
        "_schemas",
        "_shutdown_hooks",
        "_startup_hooks",
        "_tracker",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        connector: Connector | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._pending_routes: list[_PendingRoute] = []
        self._plugins: list[tuple[Plugin, str]] = []
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._providers: dict[type, Callable[..., Any]] = {}
        self._hooks: HookPipeline = HookPipeline()
        self._schemas: SchemaRegistry = SchemaRegistry()
        self._tracker: RequestTracker = RequestTracker()
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Connected at startup, disconnected at shutdown.
        self._connector: Connector = connector or NullConnector(self.config.database_url)

        # Compiled state — set during _freeze()
        self._router: Router | None = None

    # -- Route registration --

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
        name: str | None = None,
        body: SchemaDef | str | None = None,
        response: Mapping[int, SchemaDef | str] | None = None,
        pre_handlers: Iterable[Hook] = (),
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            path: Exact URL path, e.g. ``"/"`` or ``"/health"``.
            methods: HTTP methods. Defaults to ``["GET"]``.
            name: Optional route name.
            body: Schema (or registered schema id) the JSON request body
                must satisfy. Invalid bodies are answered with 400 before
                any ``preHandler`` hook runs.
            response: Schemas (or ids) keyed by status code, checked when
                ``AppConfig.enforce_response_schema`` is on.
            pre_handlers: Route-level hooks run after every pipeline
                ``preHandler`` hook.
        """

        def decorator(func: Handler) -> Handler:
            self._add_route(
                path,
                func,
                methods=methods,
                name=name,
                body=body,
                response=response,
                pre_handlers=pre_handlers,
            )
            return func

        return decorator

    def _add_route(
        self,
        path: str,
        func: Handler,
        *,
        methods: list[str] | None = None,
        name: str | None = None,
        body: SchemaDef | str | None = None,
        response: Mapping[int, SchemaDef | str] | None = None,
        pre_handlers: Iterable[Hook] = (),
        group: str | None = None,
    ) -> None:
        self._check_not_frozen()
        self._pending_routes.append(
            _PendingRoute(
                path,
                func,
                methods,
                name,
                group=group,
                body=body,
                response=dict(response or {}),
                pre_handlers=tuple(pre_handlers),
            )
        )

    # -- Route groups --

    def register(self, plugin: Plugin, *, prefix: str) -> None:
        """Register a route-group plugin under *prefix*.

        The plugin is called with a :class:`RouteGroup` when the app
        freezes. Routes it declares live under *prefix*, and hooks it adds
        apply only to those routes::

            def user_routes(group: RouteGroup) -> None:
                @group.route("/", methods=["POST"], body="userSchema")
                def create_user(body): ...

            app.register(user_routes, prefix="/api/users")
        """
        self._check_not_frozen()
        RouteGroup(self, prefix)  # validate the prefix now, not at freeze
        self._plugins.append((plugin, prefix))

    # -- Schemas --

    def add_schema(self, schema: SchemaDef | Mapping[str, Any]) -> SchemaDef:
        """Register a shared schema. A plain mapping needs an ``$id`` key.

        Routes refer to registered schemas by id::

            app.add_schema({"$id": "userSchema", "type": "object", ...})

            @app.route("/users", methods=["POST"], body="userSchema")
            def create(body): ...
        """
        self._check_not_frozen()
        if not isinstance(schema, SchemaDef):
            schema = SchemaDef.from_mapping(schema)
        return self._schemas.register(schema)

    @property
    def schemas(self) -> SchemaRegistry:
        return self._schemas

    # -- Request hooks --

    def add_hook(self, phase: Phase | str, func: Hook) -> Hook:
        """Register a global hook for *phase*."""
        self._check_not_frozen()
        self._hooks.register(phase, func)
        return func

    def hook(self, phase: Phase | str) -> Callable[[Hook], Hook]:
        """Register a global hook via decorator.

        Usage::

            @app.hook(Phase.ON_REQUEST)
            def log_request(context: RequestContext) -> None: ...
        """

        def decorator(func: Hook) -> Hook:
            return self.add_hook(phase, func)

        return decorator

    # -- Service injection --

    def provide(self, annotation: type, factory: Callable[..., Any]) -> None:
        """Register a provider factory for dependency injection.

        When a handler parameter's type annotation matches *annotation*,
        warble calls *factory* (with no arguments) and injects the result::

            app.provide(TokenSigner, lambda: signer)

            def create_user(body, signer: TokenSigner): ...
        """
        self._check_not_frozen()
        self._providers[annotation] = factory

    # -- Error handlers --

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator."""

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order after the database connector has
        connected, before the server accepts HTTP requests.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator.

        Hooks run in registration order once in-flight requests have
        drained, before the database connector disconnects.
        """
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    async def startup(self) -> None:
        """Connect the database connector, then run startup hooks.

        Raises:
            StartupError: If the connector or any hook fails.
        """
        self._ensure_frozen()
        try:
            await self._connector.connect()
            for hook in self._startup_hooks:
                await invoke(hook)
        except Exception as exc:
            msg = f"Startup failed: {exc}"
            raise StartupError(msg) from exc

    async def shutdown(self) -> None:
        """Run shutdown hooks, then disconnect the database connector.

        Every step runs even if an earlier one fails.

        Raises:
            ShutdownError: Wrapping the first failure.
        """
        first: BaseException | None = None
        for hook in self._shutdown_hooks:
            try:
                await invoke(hook)
            except Exception as exc:
                first = first or exc
                logger.exception("Shutdown hook %s failed", callable_name(hook))
        try:
            await self._connector.disconnect()
        except Exception as exc:
            first = first or exc
            logger.exception("Disconnecting the database failed")
        if first is not None:
            msg = f"Shutdown failed: {first}"
            raise ShutdownError(msg) from first

    # -- Draining --

    @property
    def in_flight(self) -> int:
        """Requests currently inside the pipeline."""
        return self._tracker.active

    def begin_drain(self) -> None:
        """Answer new requests with 503 from now on."""
        self._tracker.begin_drain()

    async def drain(self, timeout: float | None) -> bool:
        """Stop admitting requests and wait up to *timeout* for in-flight ones."""
        return await self._tracker.drain(timeout)

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> int:
        """Serve until SIGINT/SIGTERM and return the process exit code.

        Compiles the app (freezing routes, schemas, hooks), binds the
        listening socket and serves requests. ``0`` means a clean close;
        ``1`` means the port could not be bound, startup failed, or
        closing failed.

        Args:
            host: Override bind host.
            port: Override bind port.
        """
        from warble.server.lifecycle import Lifecycle

        self._ensure_frozen()

        _host = host or self.config.host
        _port = self.config.port if port is None else port

        return Lifecycle(self, _host, _port, drain_timeout=self.config.drain_timeout).run()

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles lifespan scopes directly, then delegates HTTP scopes to
        the request handler pipeline.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()

        assert self._router is not None

        await handle_request(
            scope,
            receive,
            send,
            router=self._router,
            hooks=self._hooks,
            tracker=self._tracker,
            error_handlers=self._error_handlers,
            providers=self._providers or None,
            enforce_response_schema=self.config.enforce_response_schema,
            max_content_length=self.config.max_content_length,
            debug=self.config.debug,
        )

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol.

        Used when another ASGI server drives the app; ``app.run()``
        calls :meth:`startup` and :meth:`shutdown` itself.
        """
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.startup()
                except StartupError as exc:
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                try:
                    await self.shutdown()
                except ShutdownError as exc:
                    await send({"type": "lifespan.shutdown.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    @property
    def routes(self) -> list[Route]:
        """Compiled routes, in registration order (freezes the app)."""
        self._ensure_frozen()
        assert self._router is not None
        return self._router.routes

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        # 1. Run route-group plugins; they add routes, hooks and schemas
        #    exactly once, even if a later step fails and freezing is retried
        plugins, self._plugins = self._plugins, []
        for plugin, prefix in plugins:
            plugin(RouteGroup(self, prefix))

        # 2. Compile route table, resolving schema references eagerly so
        #    an unknown schema id fails here rather than on first request
        router = Router()
        for pending in self._pending_routes:
            methods = frozenset(m.upper() for m in (pending.methods or ["GET"]))
            responses = {
                int(status): self._schemas.resolve(ref) for status, ref in pending.response.items()
            }
            route = Route(
                path=pending.path,
                handler=pending.handler,
                methods=methods,
                name=pending.name,
                group=pending.group,
                body_schema=self._schemas.resolve(pending.body),
                response_schemas=responses,
                pre_handlers=pending.pre_handlers,
            )
            router.add(route)
        router.compile()
        self._router = router

        # 3. Lock hooks and schemas
        self._hooks.freeze()
        self._schemas.freeze()

        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, hooks, schemas and plugins before calling app.run()."
            )
            raise RuntimeError(msg)
