"""Content negotiation — maps handler return values to Response objects.

isinstance-based dispatch, no magic, fully predictable.
"""

from dataclasses import asdict, is_dataclass
from typing import Any

from warble.http.response import Response


def negotiate(value: Any) -> Response:
    """Convert a route handler's return value to a Response.

    Dispatch order:

    1. ``Response``            -> pass through
    2. ``None``                -> 204, empty body
    3. ``str``                 -> 200, text/plain
    4. ``bytes``               -> 200, application/octet-stream
    5. ``dict`` / ``list``     -> 200, application/json
    6. dataclass instance      -> 200, application/json
    7. ``(value, int)``        -> negotiate value, override status
    8. ``(value, int, dict)``  -> negotiate value, override status + headers
    """
    match value:
        case Response():
            return value
        case None:
            return Response(status=204)
        case str():
            return Response(body=value)
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case dict() | list():
            return Response.from_json(value)
        case (inner, int() as status):
            return negotiate(inner).with_status(status)
        case (inner, int() as status, dict() as headers):
            return negotiate(inner).with_status(status).with_headers(headers)
        case _ if is_dataclass(value) and not isinstance(value, type):
            return Response.from_json(asdict(value))
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                f"Return dict, list, str, bytes, a dataclass, Response, "
                f"or a (value, status) tuple."
            )
            raise TypeError(msg)


def unpack(value: Any) -> tuple[Any, int | None]:
    """Split a return value into (payload, explicit status).

    Used to check a payload against the route's response schema before
    it is serialized. ``Response`` objects are returned as-is with their
    own status.
    """
    if isinstance(value, Response):
        return value, value.status
    if isinstance(value, tuple) and len(value) in (2, 3) and isinstance(value[1], int):
        return value[0], value[1]
    return value, None
