"""Error handling pipeline for warble requests.

Maps HTTPError exceptions and unexpected failures to JSON Response
objects, using registered error handlers or the default error body::

    {"statusCode": 400, "error": "Bad Request", "message": "...",
     "violations": [{"path": "/name", "rule": "required", "message": "..."}]}

``violations`` is only present for validation failures.
"""

import inspect
import logging
from collections.abc import Callable
from http import HTTPStatus
from typing import Any

from warble.errors import HookError, HTTPError, ValidationError
from warble.http.request import Request
from warble.http.response import Response
from warble.server.negotiation import negotiate

logger = logging.getLogger("warble.server")


def reason_phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Error"


def error_body(status: int, message: str, **extra: Any) -> dict[str, Any]:
    """The default JSON error payload."""
    return {"statusCode": status, "error": reason_phrase(status), "message": message, **extra}


async def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    exc: Exception,
) -> Response:
    """Invoke a user-registered error handler with introspected arguments.

    Error handlers may accept zero, one (request), or two (request, exc) args.
    Supports both sync and async error handlers.
    """
    sig = inspect.signature(handler)
    params = list(sig.parameters.values())

    if len(params) >= 2:
        result = handler(request, exc)
    elif len(params) == 1:
        result = handler(request)
    else:
        result = handler()

    if inspect.isawaitable(result):
        result = await result

    return negotiate(result)


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> Response:
    """Map an HTTPError to a Response using registered error handlers."""
    if exc.status >= 500:
        logger.error(
            "%d %s %s — %s",
            exc.status,
            request.method,
            request.path,
            exc if isinstance(exc, HookError) else exc.detail,
            exc_info=exc.__cause__ or exc,
        )
    else:
        logger.debug("%d %s %s — %s", exc.status, request.method, request.path, exc.detail)

    # Try exact exception type, then status code
    handler = error_handlers.get(type(exc)) or error_handlers.get(exc.status)
    if handler is not None:
        response = await call_error_handler(handler, request, exc)
        # Preserve the HTTP status from the exception unless the handler
        # explicitly chose its own
        if response.status == 200:
            response = response.with_status(exc.status)
        return response

    message = exc.detail or reason_phrase(exc.status)
    if debug and isinstance(exc, HookError):
        message = f"{exc}: {exc.__cause__!r}"
    elif debug and exc.__cause__ is not None:
        message = f"{message}: {exc.__cause__!r}"

    extra: dict[str, Any] = {}
    if isinstance(exc, ValidationError):
        extra["violations"] = [v.as_dict() for v in exc.violations]

    resp = Response.from_json(error_body(exc.status, message, **extra), status=exc.status)
    for name, value in exc.headers:
        resp = resp.with_header(name, value)
    return resp


async def handle_internal_error(
    exc: Exception,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s", request.method, request.path)

    handler = error_handlers.get(500) or error_handlers.get(type(exc))
    if handler is not None:
        response = await call_error_handler(handler, request, exc)
        return response.with_status(500) if response.status == 200 else response

    message = f"{type(exc).__name__}: {exc}" if debug else "Internal Server Error"
    return Response.from_json(error_body(500, message), status=500)
