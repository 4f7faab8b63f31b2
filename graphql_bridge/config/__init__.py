"""Configuration loading and validation for GraphQL Bridge."""

from graphql_bridge.config.env import expand_env_vars
from graphql_bridge.config.loader import import_schema, load_bridge_config, validate_config
from graphql_bridge.config.schema import (
    BodyParserSettings,
    BridgeConfig,
    GraphQLSettings,
    LoggingSettings,
    ServerSettings,
)

__all__ = [
    "BodyParserSettings",
    "BridgeConfig",
    "GraphQLSettings",
    "LoggingSettings",
    "ServerSettings",
    "expand_env_vars",
    "import_schema",
    "load_bridge_config",
    "validate_config",
]
