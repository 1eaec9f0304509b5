"""ASGI handler — runs one HTTP request through the hook pipeline.

The only component that touches raw ASGI request scopes directly.
Per request::

    read the body (buffered; validated later)
    match route
      -> onRequest hooks (global + route group)
      -> validate the JSON body (400 before any preHandler)
      -> preHandler hooks (global + route group), then route pre_handlers
      -> handler
      -> response (optionally checked against the response schema)
      -> onResponse hooks (observe status and elapsed time)
      -> send

Every per-request error is turned into a response here; nothing raised
by a hook or handler escapes to the server. If the client disconnects,
the chain is cancelled at whatever it is awaiting and nothing is sent.
"""

import inspect
import logging
from collections.abc import Callable
from typing import Any

import anyio

from warble._internal.asgi import Receive, Scope, Send
from warble._internal.invoke import invoke
from warble.context import RequestContext
from warble.errors import (
    ClientDisconnected,
    HookError,
    HTTPError,
    PayloadTooLarge,
    ServiceUnavailable,
    ValidationError,
)
from warble.hooks import HookPipeline, Phase
from warble.http.request import Request
from warble.http.response import Response
from warble.routing.route import Route
from warble.routing.router import Router
from warble.server.errors import handle_http_error, handle_internal_error
from warble.server.negotiation import negotiate, unpack
from warble.server.tracker import RequestTracker
from warble.validation.result import Violation

logger = logging.getLogger("warble.server")

# Statuses whose responses never carry a body
_NO_BODY = frozenset({204, 304})


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    hooks: HookPipeline,
    tracker: RequestTracker,
    error_handlers: dict[int | type, Callable[..., Any]],
    providers: dict[type, Callable[..., Any]] | None = None,
    enforce_response_schema: bool = False,
    max_content_length: int | None = None,
    debug: bool = False,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)

    if not tracker.admits():
        logger.info("503 %s %s — draining", request.method, request.path)
        response = await handle_http_error(ServiceUnavailable(), request, error_handlers, debug)
        await _send(response, send)
        return

    with tracker.track():
        context = RequestContext(request=request)
        try:
            await request.body(max_content_length)
        except ClientDisconnected:
            logger.debug("Client disconnected before %s %s was read", request.method, request.path)
            return
        except PayloadTooLarge:
            # Remembered by the request; raised where the route reads its body
            pass

        response: Response | None = None
        async with anyio.create_task_group() as tg:
            tg.start_soon(_cancel_on_disconnect, request, tg.cancel_scope)
            try:
                response = await _dispatch(
                    request,
                    context,
                    router=router,
                    hooks=hooks,
                    providers=providers,
                    enforce_response_schema=enforce_response_schema,
                    max_content_length=max_content_length,
                )
            except HTTPError as exc:
                response = await handle_http_error(exc, request, error_handlers, debug)
            except Exception as exc:
                response = await handle_internal_error(exc, request, error_handlers, debug)
            tg.cancel_scope.cancel()

        if response is None:
            logger.debug("Client disconnected, abandoned %s %s", request.method, request.path)
            return

        # The response is final from here on; onResponse hooks only observe it.
        context.finish(response.status)
        try:
            await hooks.run(Phase.ON_RESPONSE, context.group, context)
        except HTTPError as exc:
            logger.error(
                "onResponse failed for %s %s — %s",
                request.method,
                request.path,
                exc if isinstance(exc, HookError) else exc.detail,
                exc_info=exc.__cause__ or exc,
            )

        await _send(response, send)


async def _cancel_on_disconnect(request: Request, scope: anyio.CancelScope) -> None:
    await request.wait_disconnect()
    scope.cancel()


async def _send(response: Response, send: Send) -> None:
    """Write *response* as one ``http.response.start`` and one body message."""
    body = b"" if response.status in _NO_BODY else response.body_bytes
    headers = [
        (b"content-type", response.content_type.encode("latin-1")),
        (b"content-length", str(len(body)).encode("latin-1")),
    ]
    headers += [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in response.headers
    ]
    await send({"type": "http.response.start", "status": response.status, "headers": headers})
    await send({"type": "http.response.body", "body": body})


async def _dispatch(
    request: Request,
    context: RequestContext,
    *,
    router: Router,
    hooks: HookPipeline,
    providers: dict[type, Callable[..., Any]] | None,
    enforce_response_schema: bool,
    max_content_length: int | None,
) -> Response:
    """Route, run hooks, validate, and call the handler."""
    routing_error: HTTPError | None = None
    try:
        context.route = router.match(request.method, request.path)
    except HTTPError as exc:
        routing_error = exc

    # Unmatched requests still pass through the global onRequest hooks.
    await hooks.run(Phase.ON_REQUEST, context.group, context)
    if routing_error is not None:
        raise routing_error

    route = context.route
    assert route is not None

    context.body = await _read_body(request, route, max_content_length)

    await hooks.run(Phase.PRE_HANDLER, context.group, context, extra=route.pre_handlers)

    kwargs = _build_handler_kwargs(route.handler, request, context, providers)
    result = await invoke(route.handler, **kwargs)

    if enforce_response_schema:
        _check_response(route, result)

    return negotiate(result)


async def _read_body(
    request: Request,
    route: Route,
    max_content_length: int | None,
) -> Any:
    """Parse the JSON body and validate it against the route's body schema.

    Without a body schema, a JSON body is parsed when one is sent and
    left as ``None`` otherwise.
    """
    schema = route.body_schema
    if schema is None and not request.is_json:
        return None

    raw = await request.body(max_content_length)
    if not raw:
        if schema is None:
            return None
        raise ValidationError([Violation("", "required", "body is required")])

    if schema is not None and not request.is_json:
        raise ValidationError([Violation("", "json", "body must be sent as application/json")])

    try:
        body = await request.json()
    except ValueError as exc:
        raise ValidationError([Violation("", "json", f"body is not valid JSON ({exc})")]) from exc

    if schema is not None:
        schema.validate(body)
    return body


def _check_response(route: Route, result: Any) -> None:
    """Reject a payload that does not match the route's response schema."""
    payload, status = unpack(result)
    if isinstance(payload, Response):
        return
    schema = route.response_schemas.get(status or 200)
    if schema is None:
        return
    found = schema.violations(payload)
    if found:
        msg = "; ".join(f"{v.path or '/'} {v.message}" for v in found)
        raise RuntimeError(f"Response does not match schema {schema.id!r}: {msg}")


def _build_handler_kwargs(
    handler: Callable[..., Any],
    request: Request,
    context: RequestContext,
    providers: dict[type, Callable[..., Any]] | None = None,
) -> dict[str, Any]:
    """Inspect handler signature and build kwargs.

    Resolution order:
    1. ``request`` parameter (by name or ``Request`` annotation)
    2. ``context`` parameter (by name or ``RequestContext`` annotation)
    3. ``body`` parameter — the parsed, validated JSON body
    4. ``user`` parameter — ``context.user`` after all preHandlers
    5. Service providers (by type annotation via ``app.provide()``)
    """
    sig = inspect.signature(handler, eval_str=True)
    kwargs: dict[str, Any] = {}

    for name, param in sig.parameters.items():
        if name == "request" or param.annotation is Request:
            kwargs[name] = request
        elif name == "context" or param.annotation is RequestContext:
            kwargs[name] = context
        elif name == "body":
            kwargs[name] = context.body
        elif name == "user":
            kwargs[name] = context.user
        elif (
            providers
            and param.annotation is not inspect.Parameter.empty
            and param.annotation in providers
        ):
            kwargs[name] = providers[param.annotation]()

    return kwargs


__all__ = ["handle_request"]
