"""Starlette ASGI application factory.

The GraphQL route is an ASGI stack of
``BodyParserMiddleware → GraphQLMiddleware → graphql_fallback``: the body
parser fills ``request.state.parsed_body``, the bridge serves the request
through the engine, and the fallback renders failures the bridge delegates.
"""

import logging
from typing import Any, Optional

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from graphql_bridge.bridge.context import ContextFunction
from graphql_bridge.bridge.middleware import GraphQLMiddleware
from graphql_bridge.config.schema import BridgeConfig
from graphql_bridge.constants import GRAPHQL_ERROR_STATE_KEY, SERVER_NAME, SERVER_VERSION
from graphql_bridge.engine.base import GraphQLEngine
from graphql_bridge.server.body_parser import BodyParserMiddleware
from graphql_bridge.server.lifespan import app_lifespan
from graphql_bridge.server.schemas import ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)


def _error_json(error: str, message: str, status_code: int = 500) -> JSONResponse:
    body = ErrorResponse(error=error, message=message)
    return JSONResponse(body.model_dump(), status_code=status_code)


async def graphql_fallback(scope: Scope, receive: Receive, send: Send) -> None:
    """Next handler after the bridge: render the failure it delegated."""
    error: Any = scope.get("state", {}).get(GRAPHQL_ERROR_STATE_KEY)
    if error is None:
        response = PlainTextResponse("Not Found", status_code=404)
    else:
        logger.error("GraphQL request failed: %s", error, exc_info=error)
        response = _error_json(type(error).__name__, str(error))
    await response(scope, receive, send)


async def handle_health(request: Request) -> JSONResponse:
    """Liveness probe; reports whether the engine finished start-up."""
    engine = getattr(request.app.state, "engine", None)
    started = bool(getattr(engine, "started", False))
    body = HealthResponse(
        status="ok" if started else "starting",
        version=SERVER_VERSION,
        engine_started=started,
    )
    return JSONResponse(body.model_dump(), status_code=200 if started else 503)


def create_app(
    engine: GraphQLEngine,
    config: Optional[BridgeConfig] = None,
    *,
    context: Optional[ContextFunction] = None,
) -> Starlette:
    """Create the Starlette app serving *engine*.

    *engine* must already be started.
    """
    config = config or BridgeConfig()
    gql = config.graphql

    graphql_app = BodyParserMiddleware(
        GraphQLMiddleware(graphql_fallback, engine=engine, context=context),
        max_body_size=config.body_parser.max_body_size,
        enable_types=config.body_parser.enable_types,
    )

    application = Starlette(
        lifespan=app_lifespan,
        routes=[
            Route(gql.health_path, endpoint=handle_health, methods=["GET"]),
            Route(gql.path, endpoint=graphql_app),
        ],
    )
    application.state.engine = engine
    application.state.config = config
    application.state.graphql_path = gql.path
    logger.info(
        "Starlette ASGI app '%s' created. GraphQL on %s, health on %s",
        SERVER_NAME,
        gql.path,
        gql.health_path,
    )
    return application
