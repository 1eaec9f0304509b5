"""The warble demo service.

``create_app()`` builds the app the CLI serves by default:

- ``GET /`` -> ``{"message": "Hello World"}``
- ``POST /api/users/`` (and ``/api/users``) -> 201 with a signed token,
  after the body has been validated against ``userSchema``

Global hooks log every request and response; the ``/api/users`` group
adds its own scoped hooks and a route-level preHandler.
"""

import logging
from typing import Any

from warble.app import App
from warble.config import AppConfig
from warble.context import RequestContext, User
from warble.data.connector import Connector
from warble.hooks import Phase
from warble.routing.group import RouteGroup
from warble.tokens import StubTokenSigner, TokenSigner
from warble.validation.schema import SchemaDef

logger = logging.getLogger("warble.service")

USER_SCHEMA = SchemaDef(
    "userSchema",
    {
        "type": "object",
        "properties": {
            "name": {"type": "string"},
            "age": {"type": "number"},
            "test": {"type": "boolean", "nullable": True},
        },
        "required": ["name"],
    },
)

CREATED_USER_SCHEMA = SchemaDef(
    "createdUser",
    {
        "type": "object",
        "properties": {
            "message": {"type": "string"},
            "jwt": {"type": "string"},
            "verified": {
                "type": "object",
                "properties": {"name": {"type": "string"}},
                "required": ["name"],
            },
        },
        "required": ["message", "jwt", "verified"],
    },
)


def user_routes(group: RouteGroup) -> None:
    """Routes and scoped hooks under ``/api/users``."""

    @group.hook(Phase.ON_REQUEST)
    def log_user_request(context: RequestContext) -> None:
        logger.info("Request received in user routes")

    @group.hook(Phase.ON_RESPONSE)
    def log_user_response(context: RequestContext) -> None:
        logger.info("Response sent in user routes")

    def pre_handler_test(context: RequestContext) -> None:
        logger.info("Pre-handler-test")

    @group.route(
        "/",
        methods=["POST"],
        name="create_user",
        body=USER_SCHEMA.id,
        response={201: CREATED_USER_SCHEMA},
        pre_handlers=[pre_handler_test],
    )
    def create_user(body: dict[str, Any], signer: TokenSigner) -> tuple[dict[str, Any], int]:
        logger.debug("Request body: %s", body)
        return {
            "message": "User created",
            "jwt": signer.sign(),
            "verified": signer.verify(),
        }, 201

    logger.info("User routes registered")


def create_app(
    config: AppConfig | None = None,
    *,
    signer: TokenSigner | None = None,
    connector: Connector | None = None,
) -> App:
    """Build the service app. Pass *signer* or *connector* to swap the stubs."""
    app = App(config, connector=connector)
    token_signer = signer or StubTokenSigner()

    app.add_schema(USER_SCHEMA)
    app.provide(TokenSigner, lambda: token_signer)

    @app.hook(Phase.ON_REQUEST)
    def log_request(context: RequestContext) -> None:
        logger.info("Request received")

    @app.hook(Phase.PRE_HANDLER)
    def load_user(context: RequestContext) -> None:
        context.user = User(name="John Doe", age=30)

    @app.hook(Phase.ON_RESPONSE)
    def log_response(context: RequestContext) -> None:
        logger.info("Response sent")
        logger.info("%.3fms", (context.elapsed or 0.0) * 1000)

    @app.route("/", name="index")
    def index() -> dict[str, str]:
        return {"message": "Hello World"}

    app.register(user_routes, prefix="/api/users")

    return app
