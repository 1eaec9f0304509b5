"""Shared type aliases used across warble modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler — user-defined function with variable signature
Handler: TypeAlias = Callable[..., Any]

# Lifecycle hook — receives the RequestContext, sync or async
Hook: TypeAlias = Callable[..., Any]

# Error handler — receives (request, error?) and returns a response value
ErrorHandler: TypeAlias = Callable[..., Any]

# Route group plugin — receives a RouteGroup and registers routes/hooks on it
Plugin: TypeAlias = Callable[..., Any]
