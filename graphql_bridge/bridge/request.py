"""Request normalization - ASGI request to canonical GraphQL-over-HTTP request.

Builds the transport-agnostic :class:`HTTPGraphQLRequest` the engine consumes
from the pieces an ASGI server hands us: the method, the raw header pairs,
the query string and the structured body left in ``scope["state"]`` by the
body-parsing middleware.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Sequence, Union
from urllib.parse import urlsplit

from starlette.requests import Request

from graphql_bridge.constants import HEADER_VALUE_SEPARATOR, PARSED_BODY_STATE_KEY
from graphql_bridge.errors import BodyNotParsedError

logger = logging.getLogger(__name__)

HeaderValue = Union[str, Sequence[str], None]


@dataclass(frozen=True)
class HTTPGraphQLRequest:
    """Canonical request record passed to the execution engine.

    Attributes:
        method: Upper-cased HTTP method.
        headers: Read-only mapping of lower-case header name to a single value.
        search: Query string including the leading ``?``, or ``""``.
        body: Structured body produced by the body parser (never raw bytes).
    """

    method: str
    headers: Mapping[str, str] = field(default_factory=dict)
    search: str = ""
    body: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))


def collapse_headers(raw: Mapping[str, HeaderValue]) -> Dict[str, str]:
    """Collapse a header multimap into single string values.

    Multi-valued headers are joined with ``", "`` like the Fetch API's
    ``Headers`` does. Entries whose value is ``None`` are skipped. Keys are
    assumed to be lower-case already (ASGI servers must lower-case header
    names), so they are neither lower-cased nor merged across case variants.
    """
    headers: Dict[str, str] = {}
    for key, value in raw.items():
        if value is None:
            continue
        if isinstance(value, (str, bytes)):
            headers[key] = value.decode("latin-1") if isinstance(value, bytes) else value
        else:
            headers[key] = HEADER_VALUE_SEPARATOR.join(value)
    return headers


def headers_from_scope(scope: Mapping[str, Any]) -> Dict[str, Union[str, List[str]]]:
    """Group the raw ASGI header pairs into a multimap.

    A name seen once maps to its value; a repeated name maps to the list of
    its values in arrival order.
    """
    grouped: Dict[str, Union[str, List[str]]] = {}
    for raw_key, raw_value in scope.get("headers", ()):
        key = raw_key.decode("latin-1")
        value = raw_value.decode("latin-1")
        existing = grouped.get(key)
        if existing is None:
            grouped[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            grouped[key] = [existing, value]
    return grouped


def search_from_query_string(query_string: Union[bytes, str, None]) -> str:
    """Return ``"?" + query_string``, or ``""`` when there is no query."""
    if not query_string:
        return ""
    if isinstance(query_string, bytes):
        query_string = query_string.decode("latin-1")
    return f"?{query_string}"


def search_from_url(url: str) -> str:
    """Return the search component of *url* (``""`` when absent)."""
    return search_from_query_string(urlsplit(url).query)


def get_parsed_body(scope: Mapping[str, Any]) -> Optional[Any]:
    """Return the structured body stored by the body parser, or ``None``."""
    state: Optional[MutableMapping[str, Any]] = scope.get("state")
    if not state:
        return None
    return state.get(PARSED_BODY_STATE_KEY)


def build_http_graphql_request(request: Request) -> HTTPGraphQLRequest:
    """Build the canonical request for *request*.

    The search string comes from the request URL. ``GraphQLMiddleware``
    answers a missing body itself before calling this, so the error below
    only reaches callers that build requests directly.

    Raises:
        BodyNotParsedError: No structured body was stored upstream. An
            empty mapping is a valid body; only a missing one fails.
    """
    body = get_parsed_body(request.scope)
    if body is None:
        raise BodyNotParsedError(
            f"No parsed body found in request state for {request.method} {request.url.path}"
        )

    http_graphql_request = HTTPGraphQLRequest(
        method=request.method.upper(),
        headers=collapse_headers(headers_from_scope(request.scope)),
        search=search_from_url(str(request.url)),
        body=body,
    )
    logger.debug(
        "Normalized %s request (%d header(s), search=%r)",
        http_graphql_request.method,
        len(http_graphql_request.headers),
        http_graphql_request.search,
    )
    return http_graphql_request
