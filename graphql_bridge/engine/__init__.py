"""Engine subpackage - the execution boundary and a graphql-core implementation."""

from graphql_bridge.engine.base import ContextThunk, GraphQLEngine
from graphql_bridge.engine.schema_engine import SchemaEngine

__all__ = [
    "ContextThunk",
    "GraphQLEngine",
    "SchemaEngine",
]
