"""
GraphQL Bridge - adapts ASGI HTTP requests to a GraphQL execution engine.

The bridge normalizes an inbound request into a transport-agnostic
:class:`~graphql_bridge.bridge.request.HTTPGraphQLRequest`, hands it to the
engine together with a lazy context constructor, and writes the engine's
response (complete or chunked) back onto the ASGI ``send`` channel.
"""

from graphql_bridge.constants import SERVER_NAME, SERVER_VERSION

__version__ = SERVER_VERSION
__app_name__ = SERVER_NAME

__all__ = [
    "SERVER_NAME",
    "SERVER_VERSION",
    "__version__",
    "__app_name__",
]
