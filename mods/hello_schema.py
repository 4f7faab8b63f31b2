# mods/hello_schema.py
"""Small demo schema for trying the bridge out.

    graphql-bridge serve --schema mods.hello_schema:schema

Queries ``hello`` and ``viewer``, a mutation ``echo`` and a subscription
``countdown`` that is streamed as ``multipart/mixed``.
"""

import asyncio
from typing import Any, AsyncIterator, Optional

from graphql import (
    GraphQLArgument,
    GraphQLField,
    GraphQLInt,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLSchema,
    GraphQLString,
)


def resolve_hello(_root: Any, _info: Any, name: str = "world") -> str:
    return f"Hello, {name}!"


def resolve_viewer(_root: Any, info: Any) -> Optional[str]:
    context = info.context
    if isinstance(context, dict):
        return context.get("viewer")
    return None


def resolve_fail(_root: Any, _info: Any) -> str:
    raise ValueError("resolver failed on purpose")


def resolve_echo(_root: Any, _info: Any, message: str) -> str:
    return message


async def subscribe_countdown(_root: Any, _info: Any, start: int) -> AsyncIterator[int]:
    for value in range(start, -1, -1):
        yield value
        await asyncio.sleep(0)


query_type = GraphQLObjectType(
    "Query",
    {
        "hello": GraphQLField(
            GraphQLString,
            args={"name": GraphQLArgument(GraphQLString)},
            resolve=resolve_hello,
        ),
        "viewer": GraphQLField(GraphQLString, resolve=resolve_viewer),
        "fail": GraphQLField(GraphQLString, resolve=resolve_fail),
    },
)

mutation_type = GraphQLObjectType(
    "Mutation",
    {
        "echo": GraphQLField(
            GraphQLString,
            args={"message": GraphQLArgument(GraphQLNonNull(GraphQLString))},
            resolve=resolve_echo,
        ),
    },
)

subscription_type = GraphQLObjectType(
    "Subscription",
    {
        "countdown": GraphQLField(
            GraphQLInt,
            args={"start": GraphQLArgument(GraphQLNonNull(GraphQLInt))},
            subscribe=subscribe_countdown,
            resolve=lambda event, _info, **_args: event,
        ),
    },
)

schema = GraphQLSchema(
    query=query_type,
    mutation=mutation_type,
    subscription=subscription_type,
)
