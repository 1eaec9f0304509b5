"""Route groups — a path prefix with its own scoped hooks.

A group is created by registering a plugin under a prefix::

    def user_routes(group: RouteGroup) -> None:
        @group.hook(Phase.ON_REQUEST)
        def audit(context): ...

        @group.route("/", methods=["POST"], body="userSchema")
        def create_user(body): ...

    app.register(user_routes, prefix="/api/users")

Plugins run when the app freezes, after all top-level setup code, so
global hooks registered anywhere during setup precede the group's own.
A route declared as ``/`` answers on both ``/api/users`` and
``/api/users/``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING

from warble._internal.types import Handler, Hook
from warble.errors import ConfigurationError
from warble.hooks import Phase
from warble.validation.schema import SchemaDef

if TYPE_CHECKING:
    from warble.app import App


def normalize_prefix(prefix: str) -> str:
    """Validate a group prefix and strip its trailing slash."""
    if not prefix.startswith("/"):
        msg = f"Group prefix must start with '/': {prefix!r}"
        raise ConfigurationError(msg)
    stripped = prefix.rstrip("/")
    if not stripped:
        msg = "Group prefix must not be '/'; register top-level routes on the app"
        raise ConfigurationError(msg)
    return stripped


def expand_path(prefix: str, path: str) -> tuple[str, ...]:
    """Full paths a group route answers on."""
    if path == "/":
        return (prefix, f"{prefix}/")
    if not path.startswith("/"):
        msg = f"Route path must start with '/': {path!r}"
        raise ConfigurationError(msg)
    return (f"{prefix}{path}",)


class RouteGroup:
    """Registration handle passed to a plugin. ``prefix`` is the group id."""

    __slots__ = ("_app", "prefix")

    def __init__(self, app: App, prefix: str) -> None:
        self._app = app
        self.prefix = normalize_prefix(prefix)

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
        """Register a route under this group's prefix. See ``App.route``."""

        def decorator(func: Handler) -> Handler:
            for full_path in expand_path(self.prefix, path):
                self._app._add_route(
                    full_path,
                    func,
                    methods=methods,
                    name=name,
                    body=body,
                    response=response,
                    pre_handlers=pre_handlers,
                    group=self.prefix,
                )
            return func

        return decorator

    def add_hook(self, phase: Phase | str, func: Hook) -> Hook:
        """Register a hook scoped to this group."""
        self._app._check_not_frozen()
        self._app._hooks.register(phase, func, group=self.prefix)
        return func

    def hook(self, phase: Phase | str) -> Callable[[Hook], Hook]:
        """Decorator form of ``add_hook``."""

        def decorator(func: Hook) -> Hook:
            return self.add_hook(phase, func)

        return decorator

    def add_schema(self, schema: SchemaDef) -> SchemaDef:
        """Register a shared schema from inside the plugin."""
        return self._app.add_schema(schema)

    def __repr__(self) -> str:
        return f"RouteGroup({self.prefix!r})"
