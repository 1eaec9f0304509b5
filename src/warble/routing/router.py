"""Compiled router with exact-path matching.

Routes are registered during setup and compiled into an immutable
lookup table when the app freezes. Paths are compared as plain strings:
``/api/users`` and ``/api/users/`` are different paths.
"""

from warble.errors import ConfigurationError, DuplicateRoute, NotFound
from warble.routing.route import Route


def normalize_path(path: str) -> str:
    """Validate a route path and return it unchanged.

    Paths must start with ``/`` and must not contain parameter
    placeholders; matching is exact.
    """
    if not path.startswith("/"):
        msg = f"Route path must start with '/': {path!r}"
        raise ConfigurationError(msg)
    if "{" in path or "<" in path:
        msg = f"Route path {path!r} has a parameter segment; only exact paths are supported"
        raise ConfigurationError(msg)
    return path


class Router:
    """Exact-match route table keyed by path, then method.

    Usage::

        router = Router()
        router.add(Route("/users", handler, frozenset({"GET"})))
        router.compile()
        route = router.match("GET", "/users")
    """

    __slots__ = ("_compiled", "_table")

    def __init__(self) -> None:
        self._table: dict[str, dict[str, Route]] = {}
        self._compiled = False

    def add(self, route: Route) -> None:
        """Add a route. Must be called before compile().

        Raises ``DuplicateRoute`` if any of the route's methods is already
        registered for its path; in that case nothing is added.
        """
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)

        path = normalize_path(route.path)
        by_method = self._table.get(path, {})
        for method in sorted(route.methods):
            if method in by_method:
                raise DuplicateRoute(method, path)

        by_method = self._table.setdefault(path, {})
        for method in route.methods:
            by_method[method] = route

    @property
    def routes(self) -> list[Route]:
        """Every unique registered Route, in registration order."""
        seen: set[int] = set()
        result: list[Route] = []
        for by_method in self._table.values():
            for route in by_method.values():
                if id(route) not in seen:
                    seen.add(id(route))
                    result.append(route)
        return result

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    def match(self, method: str, path: str) -> Route:
        """Return the route for *method* and *path*.

        Raises ``NotFound`` unless a route has both this path and
        *method*; a path registered only under other methods is not found.
        """
        route = self._table.get(path, {}).get(method.upper())
        if route is None:
            raise NotFound(f"Route {method.upper()}:{path} not found")
        return route
