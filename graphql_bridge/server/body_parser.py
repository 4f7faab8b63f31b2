"""Body-parsing middleware - reads the request body into a structured value.

Runs in front of the GraphQL middleware. The parsed value is stored at
``scope["state"]["parsed_body"]``; requests whose content type is not
handled get ``{}`` so downstream code can tell "not parsed" (missing) from
"nothing to parse" (empty). The raw body is replayed to the wrapped app.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Union
from urllib.parse import parse_qs

from starlette.datastructures import Headers
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from graphql_bridge.constants import (
    DEFAULT_ENABLE_TYPES,
    DEFAULT_MAX_BODY_SIZE,
    PARSED_BODY_STATE_KEY,
)

logger = logging.getLogger(__name__)

_SUPPORTED_TYPES = frozenset({"json", "form", "graphql"})


class PayloadTooLargeError(Exception):
    """The request body exceeded the configured limit."""


class ClientDisconnectedError(Exception):
    """The client went away before the body was fully received."""


def _media_type(content_type: str) -> str:
    return content_type.split(";", 1)[0].strip().lower()


def _is_json(media_type: str) -> bool:
    return media_type == "application/json" or (
        media_type.startswith("application/") and media_type.endswith("+json")
    )


def parse_json_body(raw: bytes) -> Any:
    """Decode a JSON body; only objects and arrays are accepted."""
    if not raw.strip():
        return {}
    value = json.loads(raw.decode("utf-8"))
    if not isinstance(value, (dict, list)):
        raise ValueError("JSON body must be an object or an array")
    return value


def parse_form_body(raw: bytes) -> Dict[str, Union[str, List[str]]]:
    """Decode an urlencoded body; repeated keys become lists."""
    parsed = parse_qs(raw.decode("utf-8"), keep_blank_values=True)
    return {key: values[0] if len(values) == 1 else values for key, values in parsed.items()}


class BodyParserMiddleware:
    """Parse JSON, urlencoded form and ``application/graphql`` bodies.

    Args:
        app: The wrapped ASGI application.
        max_body_size: Largest accepted body in bytes; larger → 413.
        enable_types: Subset of ``{"json", "form", "graphql"}`` to parse.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        max_body_size: int = DEFAULT_MAX_BODY_SIZE,
        enable_types: Iterable[str] = DEFAULT_ENABLE_TYPES,
    ) -> None:
        types = set(enable_types)
        unknown = types - _SUPPORTED_TYPES
        if unknown:
            raise ValueError(f"Unsupported body types: {sorted(unknown)}")
        self.app = app
        self.max_body_size = max_body_size
        self.enable_types = frozenset(types)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            raw = await self._read_body(receive)
        except PayloadTooLargeError:
            logger.warning("Request body exceeds %d bytes; rejecting.", self.max_body_size)
            await PlainTextResponse("Request entity too large", status_code=413)(
                scope, receive, send
            )
            return
        except ClientDisconnectedError:
            logger.debug("Client disconnected while sending the request body.")
            return

        media_type = _media_type(Headers(scope=scope).get("content-type", ""))
        try:
            parsed = self._parse(media_type, raw)
        except ValueError as exc:
            logger.info("Could not parse %s request body: %s", media_type, exc)
            await PlainTextResponse(f"Invalid {media_type} body", status_code=400)(
                scope, receive, send
            )
            return

        scope.setdefault("state", {})[PARSED_BODY_STATE_KEY] = parsed
        await self.app(scope, self._replay(raw, receive), send)

    async def _read_body(self, receive: Receive) -> bytes:
        chunks: List[bytes] = []
        size = 0
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                raise ClientDisconnectedError()
            chunk = message.get("body", b"")
            size += len(chunk)
            if size > self.max_body_size:
                raise PayloadTooLargeError()
            chunks.append(chunk)
            if not message.get("more_body", False):
                return b"".join(chunks)

    def _parse(self, media_type: str, raw: bytes) -> Any:
        if "json" in self.enable_types and _is_json(media_type):
            return parse_json_body(raw)
        if "form" in self.enable_types and media_type == "application/x-www-form-urlencoded":
            return parse_form_body(raw)
        if "graphql" in self.enable_types and media_type == "application/graphql":
            return {"query": raw.decode("utf-8")}
        return {}

    @staticmethod
    def _replay(raw: bytes, receive: Receive) -> Receive:
        """Serve *raw* once as the request body, then defer to *receive*."""
        replayed = False

        async def _receive() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": raw, "more_body": False}
            return await receive()

        return _receive
