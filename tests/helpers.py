"""Test doubles shared by the test modules."""

from __future__ import annotations

from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple

import anyio

from graphql_bridge.bridge.request import HTTPGraphQLRequest
from graphql_bridge.bridge.response import (
    ChunkedBody,
    CompleteBody,
    HTTPGraphQLResponse,
)
from graphql_bridge.errors import EngineNotStartedError


class FakeEngine:
    """Engine double that records calls and returns a canned response."""

    def __init__(
        self,
        response: Optional[HTTPGraphQLResponse] = None,
        error: Optional[Exception] = None,
        *,
        started: bool = True,
        call_context: bool = False,
    ) -> None:
        self.response = response or HTTPGraphQLResponse(
            status=200,
            headers={"content-type": "application/json"},
            body=CompleteBody('{"data":{}}'),
        )
        self.error = error
        self.started = started
        self.call_context = call_context
        self.calls: List[HTTPGraphQLRequest] = []
        self.contexts: List[Any] = []

    def assert_started(self, expression: str) -> None:
        if not self.started:
            raise EngineNotStartedError(expression, engine_name="fake")

    async def execute_http_graphql_request(self, *, http_graphql_request, context):
        self.calls.append(http_graphql_request)
        if self.call_context:
            self.contexts.append(await context())
        if self.error is not None:
            raise self.error
        return self.response


class RecordingWriter:
    """ResponseWriter double that logs every call in order."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Any]] = []
        self._status = 0
        self._started = False
        self._closed = False
        self._in_flight = False
        self.overlapping_writes = 0

    @property
    def status(self) -> int:
        return self._status

    @status.setter
    def status(self, value: int) -> None:
        self.calls.append(("status", value))
        self._status = value

    @property
    def started(self) -> bool:
        return self._started

    @property
    def closed(self) -> bool:
        return self._closed

    def set_header(self, name: str, value: str) -> None:
        self.calls.append(("set_header", (name, value)))

    async def send_complete(self, payload: Any) -> None:
        self._started = True
        self.calls.append(("send_complete", payload))
        self._closed = True

    async def write(self, chunk: Any) -> None:
        if self._in_flight:
            self.overlapping_writes += 1
        self._in_flight = True
        self._started = True
        await anyio.sleep(0)
        self.calls.append(("write", chunk))
        self._in_flight = False

    async def end(self) -> None:
        self.calls.append(("end", None))
        self._closed = True

    def names(self) -> List[str]:
        return [name for name, _ in self.calls]


async def iterate(items: Sequence[Any]) -> AsyncIterator[Any]:
    for item in items:
        yield item


def chunked_response(items: Sequence[Any], **kwargs: Any) -> HTTPGraphQLResponse:
    return HTTPGraphQLResponse(body=ChunkedBody(iterate(items)), **kwargs)


def make_scope(
    method: str = "POST",
    path: str = "/graphql",
    query_string: bytes = b"",
    headers: Sequence[Tuple[bytes, bytes]] = (),
    state: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    scope: Dict[str, Any] = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "query_string": query_string,
        "root_path": "",
        "headers": list(headers),
        "server": ("testserver", 80),
        "client": ("testclient", 50000),
    }
    if state is not None:
        scope["state"] = state
    return scope


