"""Shared fixtures."""

from __future__ import annotations

import pytest

from graphql_bridge.engine.schema_engine import SchemaEngine


@pytest.fixture
def hello_schema():
    from mods.hello_schema import schema

    return schema


@pytest.fixture
def engine(hello_schema) -> SchemaEngine:
    eng = SchemaEngine(hello_schema)
    eng.start()
    return eng
