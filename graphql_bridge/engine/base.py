"""Execution-engine boundary consumed by the bridge."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from graphql_bridge.bridge.request import HTTPGraphQLRequest
    from graphql_bridge.bridge.response import HTTPGraphQLResponse

ContextThunk = Callable[[], Awaitable[Any]]


@runtime_checkable
class GraphQLEngine(Protocol):
    """A GraphQL execution engine reachable through one HTTP-shaped entry point.

    The engine owns parsing, validation and execution, and decides whether
    the response is complete or chunked. GraphQL errors are returned inside
    the response; only unusable requests or engine faults raise.
    """

    def assert_started(self, expression: str) -> None:
        """Raise :class:`~graphql_bridge.errors.EngineNotStartedError` unless started."""
        ...

    async def execute_http_graphql_request(
        self,
        *,
        http_graphql_request: HTTPGraphQLRequest,
        context: ContextThunk,
    ) -> HTTPGraphQLResponse:
        """Execute *http_graphql_request*; call *context* to obtain the context value."""
        ...
