"""Configuration file loading and validation.

Loads a YAML configuration file, expands ``${ENV_VAR}`` placeholders,
and validates against the Pydantic models defined in :mod:`schema`.
"""

import importlib
import logging
import os
from typing import Any, Dict, List

import yaml
from graphql import GraphQLSchema
from pydantic import ValidationError

from graphql_bridge.config.env import expand_env_vars
from graphql_bridge.config.schema import BridgeConfig
from graphql_bridge.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Recognised config file extensions.
_YAML_EXTS = frozenset({".yaml", ".yml"})


def _read_config_file(cfg_fpath: str) -> Dict[str, Any]:
    """Read and parse a YAML config file from *cfg_fpath*.

    Raises :class:`ConfigurationError` on I/O or parse errors.
    """
    ext = os.path.splitext(cfg_fpath)[1].lower()
    if ext not in _YAML_EXTS:
        raise ConfigurationError(
            f"Unsupported config file extension '{ext}'. "
            "Only YAML files (.yaml, .yml) are supported."
        )

    try:
        with open(cfg_fpath, "r", encoding="utf-8") as f:
            raw_data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Error reading configuration file: {cfg_fpath}\n  {exc}") from exc

    if raw_data is None:
        return {}
    if not isinstance(raw_data, dict):
        raise ConfigurationError(
            "Top-level configuration content must be a YAML mapping (dictionary)."
        )
    return raw_data


def _format_validation_errors(exc: ValidationError) -> str:
    """Format Pydantic validation errors into a readable multi-line string."""
    lines: List[str] = []
    for err in exc.errors():
        loc = " → ".join(str(part) for part in err["loc"])
        lines.append(f"  • {loc}: {err['msg']}")
    return "\n".join(lines)


def validate_config(raw_data: Dict[str, Any]) -> BridgeConfig:
    """Expand env vars in *raw_data* and validate it (all errors reported at once)."""
    raw_data = expand_env_vars(raw_data)
    try:
        return BridgeConfig.model_validate(raw_data)
    except ValidationError as exc:
        error_summary = _format_validation_errors(exc)
        raise ConfigurationError(
            f"Configuration validation failed ({len(exc.errors())} error(s)):\n" f"{error_summary}"
        ) from exc


def load_bridge_config(cfg_fpath: str) -> BridgeConfig:
    """Load, expand and validate the config file at *cfg_fpath*.

    Raises:
        ConfigurationError: On a missing file, I/O or parse errors, or
            validation failures.
    """
    logger.debug("Loading configuration file: %s", cfg_fpath)

    if not os.path.exists(cfg_fpath):
        raise ConfigurationError(f"Configuration file does not exist: {cfg_fpath}")

    config = validate_config(_read_config_file(cfg_fpath))
    logger.info("Configuration '%s' loaded (v%s).", cfg_fpath, config.version)
    return config


def import_schema(ref: str) -> GraphQLSchema:
    """Import the ``GraphQLSchema`` named by ``'package.module:attribute'``."""
    module_name, _, attr = ref.partition(":")
    if not module_name or not attr:
        raise ConfigurationError(f"Invalid schema reference '{ref}'; expected 'module:attribute'.")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"Cannot import schema module '{module_name}': {exc}") from exc

    schema = getattr(module, attr, None)
    if callable(schema) and not isinstance(schema, GraphQLSchema):
        schema = schema()
    if not isinstance(schema, GraphQLSchema):
        raise ConfigurationError(
            f"'{ref}' does not resolve to a GraphQLSchema (got {type(schema).__name__})."
        )
    return schema
