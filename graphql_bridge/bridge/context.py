"""Per-request context construction for the GraphQL engine."""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from starlette.requests import Request


@dataclass(frozen=True)
class ContextFunctionArgument:
    """Argument passed to a user-supplied context function.

    Attributes:
        request: The Starlette request for the current ASGI scope. Custom
            context logic reads transport state (headers, ``request.state``,
            the app) through it.
    """

    request: Request


ContextFunction = Callable[[ContextFunctionArgument], Union[Any, Awaitable[Any]]]


async def default_context(arg: ContextFunctionArgument) -> Dict[str, Any]:
    """Context used when the caller does not supply one: an empty dict."""
    return {}


def make_context_thunk(
    context_fn: Optional[ContextFunction],
    arg: ContextFunctionArgument,
) -> Callable[[], Awaitable[Any]]:
    """Wrap *context_fn* into the zero-argument callback the engine calls.

    Nothing runs until the engine awaits the callback. The context is built
    at most once per request; later calls return the same value.
    """
    fn = context_fn or default_context
    built = False
    value: Any = None

    async def _context() -> Any:
        nonlocal built, value
        if not built:
            result = fn(arg)
            if inspect.isawaitable(result):
                result = await result
            value = result
            built = True
        return value

    return _context
