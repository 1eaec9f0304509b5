"""Warble — a small HTTP service built around a request hook pipeline.

Hooks run in three phases (``onRequest``, ``preHandler``, ``onResponse``),
globally or scoped to a route group. Request bodies are validated
against named schemas before any ``preHandler`` runs.

Basic usage::

    from warble import App, Phase

    app = App()

    @app.hook(Phase.ON_REQUEST)
    def log_request(context):
        ...

    @app.route("/")
    def index():
        return {"message": "Hello World"}

    raise SystemExit(app.run())
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "HTTPError",
    "NotFound",
    "Phase",
    "Request",
    "RequestContext",
    "Response",
    "RouteGroup",
    "SchemaDef",
    "TokenSigner",
    "User",
    "ValidationError",
    "WarbleError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import warble`` fast while providing a clean top-level API.
    """
    if name == "App":
        from warble.app import App

        return App

    if name == "AppConfig":
        from warble.config import AppConfig

        return AppConfig

    if name == "Request":
        from warble.http.request import Request

        return Request

    if name == "Response":
        from warble.http.response import Response

        return Response

    if name in ("RequestContext", "User"):
        from warble import context as _ctx

        return getattr(_ctx, name)

    if name == "Phase":
        from warble.hooks import Phase

        return Phase

    if name == "RouteGroup":
        from warble.routing.group import RouteGroup

        return RouteGroup

    if name == "SchemaDef":
        from warble.validation.schema import SchemaDef

        return SchemaDef

    if name == "TokenSigner":
        from warble.tokens import TokenSigner

        return TokenSigner

    if name in (
        "ConfigurationError",
        "HTTPError",
        "NotFound",
        "ValidationError",
        "WarbleError",
    ):
        from warble import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
