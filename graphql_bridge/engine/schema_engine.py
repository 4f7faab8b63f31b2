"""Reference GraphQL engine backed by ``graphql-core``.

Implements the GraphQL-over-HTTP side of :class:`GraphQLEngine` for a
``GraphQLSchema``: it reads the operation from the query string (GET) or the
structured body (POST), parses, validates and executes it, and encodes the
result as JSON. Subscriptions are streamed as ``multipart/mixed`` when the
client accepts it, which yields a chunked response body.
"""

from __future__ import annotations

import inspect
import json
import logging
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Tuple
from urllib.parse import parse_qs

from graphql import (
    ExecutionResult,
    GraphQLError,
    GraphQLSchema,
    NoSchemaIntrospectionCustomRule,
    OperationType,
    execute,
    get_operation_ast,
    parse,
    specified_rules,
    subscribe,
    validate,
    validate_schema,
)

from graphql_bridge.bridge.request import HTTPGraphQLRequest
from graphql_bridge.bridge.response import ChunkedBody, CompleteBody, HTTPGraphQLResponse
from graphql_bridge.engine.base import ContextThunk
from graphql_bridge.errors import EngineNotStartedError, EngineStartupError

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json; charset=utf-8"
MULTIPART_BOUNDARY = "graphql"
MULTIPART_CONTENT_TYPE = (
    f'multipart/mixed; boundary="{MULTIPART_BOUNDARY}"; subscriptionSpec="1.0"'
)


class _RequestError(Exception):
    """An HTTP-level problem with the request, answered without executing."""

    def __init__(self, status: int, message: str, headers: Optional[Dict[str, str]] = None):
        self.status = status
        self.message = message
        self.headers = headers or {}
        super().__init__(message)


def _first(values: Mapping[str, List[str]], key: str) -> Optional[str]:
    found = values.get(key)
    return found[0] if found else None


def _decode_json_param(raw: Optional[str], name: str) -> Optional[Dict[str, Any]]:
    if raw is None or raw == "":
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise _RequestError(400, f"`{name}` in a GET request must be a JSON-encoded object.") from exc
    if value is not None and not isinstance(value, dict):
        raise _RequestError(400, f"`{name}` in a GET request must be a JSON-encoded object.")
    return value


def _error_body(message: str) -> str:
    return json.dumps({"errors": [{"message": message}]})


def _result_body(result: ExecutionResult) -> str:
    return json.dumps(result.formatted)


class SchemaEngine:
    """Execute GraphQL-over-HTTP requests against *schema*.

    Args:
        schema: The executable ``graphql-core`` schema.
        introspection: When ``False``, ``__schema``/``__type`` selections
            fail validation.
        root_value: Passed to every execution as the root value.
    """

    name = "graphql-core"

    def __init__(
        self,
        schema: GraphQLSchema,
        *,
        introspection: bool = True,
        root_value: Any = None,
    ) -> None:
        self.schema = schema
        self.introspection = introspection
        self.root_value = root_value
        self._started = False
        self._rules = list(specified_rules)
        if not introspection:
            self._rules.append(NoSchemaIntrospectionCustomRule)

    # ── Lifecycle ───────────────────────────────────────────────────

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        """Validate the schema and mark the engine ready."""
        errors = validate_schema(self.schema)
        if errors:
            raise EngineStartupError(
                "Invalid schema: " + "; ".join(err.message for err in errors),
                engine_name=self.name,
            )
        self._started = True
        logger.info("GraphQL engine '%s' started.", self.name)

    def stop(self) -> None:
        self._started = False
        logger.info("GraphQL engine '%s' stopped.", self.name)

    def assert_started(self, expression: str) -> None:
        if not self._started:
            raise EngineNotStartedError(expression, engine_name=self.name)

    # ── Request handling ────────────────────────────────────────────

    def _extract_params(
        self, request: HTTPGraphQLRequest
    ) -> Tuple[str, Optional[Dict[str, Any]], Optional[str]]:
        """Return ``(query, variables, operation_name)`` for *request*."""
        if request.method == "GET":
            values = parse_qs(request.search.lstrip("?"), keep_blank_values=True)
            query = _first(values, "query")
            variables = _decode_json_param(_first(values, "variables"), "variables")
            operation_name = _first(values, "operationName") or None
            # Accepted but unused; only its shape is checked.
            _decode_json_param(_first(values, "extensions"), "extensions")
        elif request.method == "POST":
            body = request.body
            if not isinstance(body, Mapping):
                raise _RequestError(400, "POST body must be a JSON object.")
            query = body.get("query")
            variables = body.get("variables")
            operation_name = body.get("operationName")
            for name in ("variables", "extensions"):
                value = body.get(name)
                if value is not None and not isinstance(value, Mapping):
                    raise _RequestError(400, f"`{name}` in a POST body must be an object.")
            if operation_name is not None and not isinstance(operation_name, str):
                raise _RequestError(400, "`operationName` in a POST body must be a string.")
        else:
            raise _RequestError(
                405,
                "GraphQL only supports GET and POST requests.",
                headers={"allow": "GET, POST"},
            )

        if not isinstance(query, str) or not query:
            raise _RequestError(400, "GraphQL operations must contain a non-empty `query`.")
        return query, dict(variables) if variables is not None else None, operation_name

    async def execute_http_graphql_request(
        self,
        *,
        http_graphql_request: HTTPGraphQLRequest,
        context: ContextThunk,
    ) -> HTTPGraphQLResponse:
        try:
            query, variables, operation_name = self._extract_params(http_graphql_request)
        except _RequestError as exc:
            return self._error_response(exc.status, exc.message, exc.headers)

        try:
            document = parse(query)
        except GraphQLError as exc:
            return self._result_response(ExecutionResult(data=None, errors=[exc]), status=400)

        validation_errors = validate(self.schema, document, self._rules)
        if validation_errors:
            return self._result_response(
                ExecutionResult(data=None, errors=validation_errors), status=400
            )

        operation = get_operation_ast(document, operation_name)
        if operation is None:
            message = (
                f"Unknown operation named '{operation_name}'."
                if operation_name
                else "Must provide operation name if query contains multiple operations."
            )
            return self._error_response(400, message)

        if operation.operation == OperationType.MUTATION and http_graphql_request.method == "GET":
            return self._error_response(
                405,
                "Can only perform a mutation operation from a POST request.",
                headers={"allow": "POST"},
            )

        context_value = await context()

        if operation.operation == OperationType.SUBSCRIPTION:
            accept = http_graphql_request.headers.get("accept", "")
            if "multipart/mixed" not in accept:
                return self._error_response(
                    400, "Subscriptions require an `accept: multipart/mixed` header."
                )
            return await self._subscribe(document, context_value, variables, operation_name)

        result = execute(
            self.schema,
            document,
            root_value=self.root_value,
            context_value=context_value,
            variable_values=variables,
            operation_name=operation_name,
        )
        if inspect.isawaitable(result):
            result = await result
        return self._result_response(result)

    async def _subscribe(
        self,
        document: Any,
        context_value: Any,
        variables: Optional[Dict[str, Any]],
        operation_name: Optional[str],
    ) -> HTTPGraphQLResponse:
        result = subscribe(
            self.schema,
            document,
            root_value=self.root_value,
            context_value=context_value,
            variable_values=variables,
            operation_name=operation_name,
        )
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, ExecutionResult):
            # Subscription could not be set up; no stream to open.
            return self._result_response(result)

        return HTTPGraphQLResponse(
            status=200,
            headers={"content-type": MULTIPART_CONTENT_TYPE, "cache-control": "no-cache"},
            body=ChunkedBody(self._multipart_stream(result)),
        )

    @staticmethod
    async def _multipart_stream(
        events: AsyncIterator[ExecutionResult],
    ) -> AsyncIterator[str]:
        part_header = (
            f"\r\n--{MULTIPART_BOUNDARY}\r\ncontent-type: {JSON_CONTENT_TYPE}\r\n\r\n"
        )
        try:
            async for event in events:
                yield part_header + json.dumps({"payload": event.formatted})
            yield f"\r\n--{MULTIPART_BOUNDARY}--\r\n"
        finally:
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()

    # ── Response helpers ────────────────────────────────────────────

    @staticmethod
    def _error_response(
        status: int, message: str, headers: Optional[Dict[str, str]] = None
    ) -> HTTPGraphQLResponse:
        return HTTPGraphQLResponse(
            status=status,
            headers={"content-type": JSON_CONTENT_TYPE, **(headers or {})},
            body=CompleteBody(_error_body(message)),
        )

    @staticmethod
    def _result_response(result: ExecutionResult, status: int = 200) -> HTTPGraphQLResponse:
        return HTTPGraphQLResponse(
            status=status,
            headers={"content-type": JSON_CONTENT_TYPE},
            body=CompleteBody(_result_body(result)),
        )
