"""Invoke helpers — call sync or async callables uniformly.

Handlers, hooks, startup/shutdown callbacks and error handlers can all be
``def`` or ``async def``. This module keeps the sync/async check in one
place.

Usage::

    from warble._internal.invoke import invoke

    result = await invoke(handler, *args, **kwargs)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it's awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


def callable_name(func: Any) -> str:
    """Best-effort readable name for logs and error messages."""
    name = getattr(func, "__qualname__", None) or getattr(func, "__name__", None)
    if name is None:
        name = type(func).__name__
    return name
