"""Pydantic configuration models for GraphQL Bridge."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from graphql_bridge.constants import (
    DEFAULT_ENABLE_TYPES,
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_BODY_SIZE,
    DEFAULT_PORT,
    GRAPHQL_PATH,
    HEALTH_PATH,
)

BodyType = Literal["json", "form", "graphql"]


class ServerSettings(BaseModel):
    """Listening address of the uvicorn server."""

    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)


class GraphQLSettings(BaseModel):
    """GraphQL endpoint settings."""

    path: str = GRAPHQL_PATH
    health_path: str = HEALTH_PATH
    introspection: bool = True
    schema_ref: Optional[str] = Field(
        default=None,
        alias="schema",
        description="Import reference of the GraphQLSchema, as 'package.module:attribute'.",
    )

    model_config = {"populate_by_name": True}

    @field_validator("path", "health_path")
    @classmethod
    def _leading_slash(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("path must start with '/'")
        return v.rstrip("/") or "/"

    @field_validator("schema_ref")
    @classmethod
    def _module_attr(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v.count(":") != 1:
            raise ValueError("schema must look like 'package.module:attribute'")
        return v


class BodyParserSettings(BaseModel):
    """Body-parsing middleware settings."""

    max_body_size: int = Field(default=DEFAULT_MAX_BODY_SIZE, gt=0)
    enable_types: List[BodyType] = Field(default_factory=lambda: list(DEFAULT_ENABLE_TYPES))


class LoggingSettings(BaseModel):
    """File logging settings."""

    level: str = DEFAULT_LOG_LEVEL

    @field_validator("level", mode="before")
    @classmethod
    def _normalise_level(cls, v: str) -> str:
        if isinstance(v, str):
            v = v.strip().upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"invalid log level '{v}'")
        return v


class BridgeConfig(BaseModel):
    """Top-level configuration file model."""

    version: Literal["1"] = "1"
    server: ServerSettings = Field(default_factory=ServerSettings)
    graphql: GraphQLSettings = Field(default_factory=GraphQLSettings)
    body_parser: BodyParserSettings = Field(default_factory=BodyParserSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, v: object) -> object:
        """Accept an unquoted ``version: 1`` in YAML."""
        return str(v) if isinstance(v, int) else v
