"""Server subpackage - body parsing, application factory and lifespan."""

from graphql_bridge.server.app import create_app, graphql_fallback
from graphql_bridge.server.body_parser import BodyParserMiddleware

__all__ = [
    "BodyParserMiddleware",
    "create_app",
    "graphql_fallback",
]
