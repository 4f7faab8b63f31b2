"""Tests for per-request context construction."""

from __future__ import annotations

import asyncio

from starlette.requests import Request

from graphql_bridge.bridge.context import (
    ContextFunctionArgument,
    default_context,
    make_context_thunk,
)
from tests.helpers import make_scope


def _arg() -> ContextFunctionArgument:
    return ContextFunctionArgument(request=Request(make_scope(headers=[(b"x-user", b"ada")])))


class TestDefaultContext:
    def test_empty_dict(self) -> None:
        assert asyncio.run(default_context(_arg())) == {}

    def test_thunk_without_function_uses_default(self) -> None:
        thunk = make_context_thunk(None, _arg())
        assert asyncio.run(thunk()) == {}


class TestContextThunk:
    def test_lazy(self) -> None:
        calls = []

        def build(arg: ContextFunctionArgument) -> dict:
            calls.append(arg)
            return {}

        make_context_thunk(build, _arg())
        assert calls == []

    def test_sync_function_receives_request(self) -> None:
        def build(arg: ContextFunctionArgument) -> dict:
            return {"user": arg.request.headers["x-user"]}

        thunk = make_context_thunk(build, _arg())
        assert asyncio.run(thunk()) == {"user": "ada"}

    def test_async_function(self) -> None:
        async def build(arg: ContextFunctionArgument) -> dict:
            return {"method": arg.request.method}

        thunk = make_context_thunk(build, _arg())
        assert asyncio.run(thunk()) == {"method": "POST"}

    def test_built_once(self) -> None:
        calls = []

        async def build(arg: ContextFunctionArgument) -> object:
            calls.append(1)
            return object()

        thunk = make_context_thunk(build, _arg())

        async def _twice():
            return await thunk(), await thunk()

        first, second = asyncio.run(_twice())
        assert first is second
        assert len(calls) == 1

    def test_none_context_is_cached(self) -> None:
        calls = []

        def build(arg: ContextFunctionArgument) -> None:
            calls.append(1)
            return None

        thunk = make_context_thunk(build, _arg())

        async def _twice():
            await thunk()
            await thunk()

        asyncio.run(_twice())
        assert len(calls) == 1
