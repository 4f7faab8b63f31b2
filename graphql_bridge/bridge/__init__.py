"""Bridge subpackage - request normalization, context construction and response dispatch."""

from graphql_bridge.bridge.context import (
    ContextFunction,
    ContextFunctionArgument,
    default_context,
    make_context_thunk,
)
from graphql_bridge.bridge.middleware import GraphQLMiddleware, graphql_middleware
from graphql_bridge.bridge.request import (
    HTTPGraphQLRequest,
    build_http_graphql_request,
    collapse_headers,
    headers_from_scope,
    search_from_query_string,
    search_from_url,
)
from graphql_bridge.bridge.response import (
    ASGIResponseWriter,
    ChunkedBody,
    CompleteBody,
    HTTPGraphQLResponse,
    ResponseWriter,
    dispatch_response,
)

__all__ = [
    "ASGIResponseWriter",
    "ChunkedBody",
    "CompleteBody",
    "ContextFunction",
    "ContextFunctionArgument",
    "GraphQLMiddleware",
    "HTTPGraphQLRequest",
    "HTTPGraphQLResponse",
    "ResponseWriter",
    "build_http_graphql_request",
    "collapse_headers",
    "default_context",
    "dispatch_response",
    "graphql_middleware",
    "headers_from_scope",
    "make_context_thunk",
    "search_from_query_string",
    "search_from_url",
]
