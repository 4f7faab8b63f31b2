"""Response descriptors and the dispatcher that writes them to the transport.

The engine answers with an :class:`HTTPGraphQLResponse` whose body is either
a :class:`CompleteBody` (one buffered string) or a :class:`ChunkedBody` (an
async iterator of fragments). :func:`dispatch_response` applies it to a
:class:`ResponseWriter`; :class:`ASGIResponseWriter` is the writer backed by
an ASGI ``send`` callable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    ClassVar,
    Dict,
    List,
    Mapping,
    MutableMapping,
    Optional,
    Protocol,
    Tuple,
    Union,
)

import anyio

from graphql_bridge.constants import DEFAULT_STATUS
from graphql_bridge.errors import ResponseAlreadyStartedError

logger = logging.getLogger(__name__)

Chunk = Union[str, bytes]
Send = Callable[[MutableMapping[str, Any]], Awaitable[None]]
Receive = Callable[[], Awaitable[MutableMapping[str, Any]]]

_DEFAULT_CONTENT_TYPE = "text/plain; charset=utf-8"


# ── Response descriptor ─────────────────────────────────────────────────


@dataclass(frozen=True)
class CompleteBody:
    """A response body delivered as a single payload."""

    string: str
    kind: ClassVar[str] = "complete"


@dataclass(frozen=True)
class ChunkedBody:
    """A response body delivered fragment by fragment.

    The iterator is consumed once; it is never buffered in full.
    """

    async_iterator: AsyncIterator[Chunk]
    kind: ClassVar[str] = "chunked"


ResponseBody = Union[CompleteBody, ChunkedBody]


@dataclass
class HTTPGraphQLResponse:
    """Response descriptor produced by the engine.

    Attributes:
        body: Exactly one of the two body variants.
        headers: Header name → value, applied in order.
        status: HTTP status; ``None`` or ``0`` means 200.
    """

    body: ResponseBody
    headers: Mapping[str, str] = field(default_factory=dict)
    status: Optional[int] = None


# ── Writer protocol ─────────────────────────────────────────────────────


class ResponseWriter(Protocol):
    """Outbound response primitives the dispatcher drives."""

    status: int

    @property
    def started(self) -> bool: ...

    @property
    def closed(self) -> bool: ...

    def set_header(self, name: str, value: str) -> None: ...

    async def send_complete(self, payload: Chunk) -> None: ...

    async def write(self, chunk: Chunk) -> None: ...

    async def end(self) -> None: ...


def _encode(chunk: Chunk) -> bytes:
    return chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk)


class ASGIResponseWriter:
    """:class:`ResponseWriter` over an ASGI ``send`` callable.

    Headers are buffered until the ``http.response.start`` message goes
    out, which happens on the first body write. Header names are stored
    lower-case and a later :meth:`set_header` replaces an earlier value.
    """

    def __init__(self, send: Send) -> None:
        self._send = send
        self._headers: Dict[str, str] = {}
        self._started = False
        self._closed = False
        self.status: int = DEFAULT_STATUS

    @property
    def started(self) -> bool:
        """``True`` once the response start message was sent."""
        return self._started

    @property
    def closed(self) -> bool:
        """``True`` once the body ended or the client went away."""
        return self._closed

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._headers)

    def set_header(self, name: str, value: str) -> None:
        if self._started:
            raise ResponseAlreadyStartedError(
                f"Cannot set header '{name}' after the response has started."
            )
        self._headers[name.lower()] = str(value)

    def _raw_headers(self) -> List[Tuple[bytes, bytes]]:
        return [(k.encode("latin-1"), v.encode("latin-1")) for k, v in self._headers.items()]

    async def _start(self) -> None:
        await self._send(
            {
                "type": "http.response.start",
                "status": self.status,
                "headers": self._raw_headers(),
            }
        )
        self._started = True

    async def send_complete(self, payload: Chunk) -> None:
        """Send *payload* as the entire body."""
        data = _encode(payload)
        self._headers["content-length"] = str(len(data))
        self._headers.setdefault("content-type", _DEFAULT_CONTENT_TYPE)
        await self._start()
        await self._send({"type": "http.response.body", "body": data, "more_body": False})
        self._closed = True

    async def write(self, chunk: Chunk) -> None:
        """Send one fragment; the start message goes out before the first one."""
        if self._closed:
            return
        try:
            if not self._started:
                self._headers.pop("content-length", None)
                await self._start()
            await self._send(
                {"type": "http.response.body", "body": _encode(chunk), "more_body": True}
            )
        except OSError as exc:
            logger.debug("Client disconnected while streaming response: %s", exc)
            self._closed = True

    async def end(self) -> None:
        """Signal end-of-stream."""
        if self._closed:
            return
        if not self._started:
            self._headers.pop("content-length", None)
            await self._start()
        await self._send({"type": "http.response.body", "body": b"", "more_body": False})
        self._closed = True

    async def listen_for_disconnect(self, receive: Receive) -> None:
        """Return once the client disconnects, marking the writer closed."""
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                logger.debug("Received http.disconnect; stopping response stream.")
                self._closed = True
                return


# ── Dispatcher ──────────────────────────────────────────────────────────


async def _stream_chunks(iterator: AsyncIterator[Chunk], writer: ResponseWriter) -> None:
    """Write fragments one at a time, awaiting each write before pulling the next."""
    try:
        async for chunk in iterator:
            if writer.closed:
                break
            await writer.write(chunk)
            # Client gone: do not pull another fragment.
            if writer.closed:
                break
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            with anyio.CancelScope(shield=True):
                await aclose()
    if not writer.closed:
        await writer.end()


async def dispatch_response(response: HTTPGraphQLResponse, writer: ResponseWriter) -> None:
    """Apply *response* to *writer*: headers, then status, then the body."""
    for key, value in response.headers.items():
        writer.set_header(key, value)

    writer.status = response.status or DEFAULT_STATUS

    body = response.body
    if isinstance(body, CompleteBody):
        await writer.send_complete(body.string)
    elif isinstance(body, ChunkedBody):
        await _stream_chunks(body.async_iterator, writer)
    else:
        raise TypeError(f"Unknown response body kind: {type(body).__name__}")
