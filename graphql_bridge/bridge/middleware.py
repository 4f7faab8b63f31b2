"""ASGI middleware bridging HTTP requests to a GraphQL execution engine.

Per request the middleware:

1. checks that the body parser stored a structured body (otherwise it
   answers with a fixed 500 diagnostic and stops);
2. normalizes the request into an :class:`HTTPGraphQLRequest`;
3. calls the engine with that request and a lazy context constructor;
4. writes the returned descriptor: headers, status, then the body.

Any exception raised while doing 2-4, before the response start message was
sent, is handed over to the wrapped application (the next handler in the
chain), which becomes responsible for the response. The failure is available
to it under ``scope["state"]["graphql_error"]``.
"""

from __future__ import annotations

import logging
from typing import Optional

import anyio
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.types import ASGIApp, Receive, Scope, Send

from graphql_bridge.bridge.context import (
    ContextFunction,
    ContextFunctionArgument,
    make_context_thunk,
)
from graphql_bridge.bridge.request import build_http_graphql_request, get_parsed_body
from graphql_bridge.bridge.response import (
    ASGIResponseWriter,
    ChunkedBody,
    HTTPGraphQLResponse,
    dispatch_response,
)
from graphql_bridge.constants import BODY_NOT_PARSED_MESSAGE, GRAPHQL_ERROR_STATE_KEY
from graphql_bridge.engine.base import GraphQLEngine

logger = logging.getLogger(__name__)


def _unwrap_exception_group(exc: BaseException) -> BaseException:
    """Return the single exception wrapped by task-group exception groups."""
    inner = getattr(exc, "exceptions", None)
    while inner is not None and len(inner) == 1:
        exc = inner[0]
        inner = getattr(exc, "exceptions", None)
    return exc


class GraphQLMiddleware:
    """Serve GraphQL over HTTP through *engine*; delegate failures to *app*.

    Args:
        app: The next ASGI application. Non-HTTP scopes go straight to it,
            and it is invoked once when the engine path fails.
        engine: A started :class:`GraphQLEngine`.
        context: Optional context function receiving a
            :class:`ContextFunctionArgument`; defaults to an empty dict.
            Required when resolvers expect anything but an empty context.
    """

    def __init__(
        self,
        app: ASGIApp,
        engine: GraphQLEngine,
        context: Optional[ContextFunction] = None,
    ) -> None:
        engine.assert_started("GraphQLMiddleware()")
        self.app = app
        self._engine = engine
        self._context = context

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        writer = ASGIResponseWriter(send)

        if get_parsed_body(scope) is None:
            # The body parser always stores a value (``{}`` when the content
            # type is not handled), so a missing one means it is not installed.
            logger.warning(
                "Request to %s reached the GraphQL middleware without a parsed body.",
                scope.get("path", ""),
            )
            writer.status = 500
            await writer.send_complete(BODY_NOT_PARSED_MESSAGE)
            return

        request = Request(scope, receive)
        try:
            http_graphql_request = build_http_graphql_request(request)
            response = await self._engine.execute_http_graphql_request(
                http_graphql_request=http_graphql_request,
                context=make_context_thunk(
                    self._context, ContextFunctionArgument(request=request)
                ),
            )
            await self._deliver(response, writer, receive)
        except Exception as exc:
            if writer.started:
                logger.error(
                    "GraphQL response for %s failed after it started; "
                    "leaving the partial response as-is.",
                    scope.get("path", ""),
                )
                raise
            error = _unwrap_exception_group(exc)
            logger.info(
                "GraphQL request to %s failed (%s: %s); delegating to next handler.",
                scope.get("path", ""),
                type(error).__name__,
                error,
            )
            scope.setdefault("state", {})[GRAPHQL_ERROR_STATE_KEY] = error
            await self.app(scope, receive, send)

    async def _deliver(
        self,
        response: HTTPGraphQLResponse,
        writer: ASGIResponseWriter,
        receive: Receive,
    ) -> None:
        if not isinstance(response.body, ChunkedBody):
            await dispatch_response(response, writer)
            return

        # Stream alongside a disconnect listener so an aborted request stops
        # pulling fragments from the engine.
        async with anyio.create_task_group() as task_group:

            async def _watch_disconnect() -> None:
                await writer.listen_for_disconnect(receive)
                task_group.cancel_scope.cancel()

            task_group.start_soon(_watch_disconnect)
            await dispatch_response(response, writer)
            task_group.cancel_scope.cancel()


def graphql_middleware(
    engine: GraphQLEngine,
    context: Optional[ContextFunction] = None,
) -> Middleware:
    """Return a ``Middleware`` entry for ``Starlette(middleware=[...])``."""
    return Middleware(GraphQLMiddleware, engine=engine, context=context)
