"""CLI argument parsing and main entry point.

* ``graphql-bridge serve``        — run the Uvicorn server for a schema.
* ``graphql-bridge check-config`` — validate a configuration file and exit.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

import uvicorn

from graphql_bridge.config.loader import import_schema, load_bridge_config
from graphql_bridge.config.schema import BridgeConfig
from graphql_bridge.constants import SERVER_NAME, SERVER_VERSION
from graphql_bridge.display.logging_config import setup_logging
from graphql_bridge.errors import BridgeBaseError, ConfigurationError

module_logger = logging.getLogger(__name__)

# Config file search order (first match wins)
_CONFIG_SEARCH_ORDER = ("graphql-bridge.yaml", "graphql-bridge.yml")


def _find_config_file() -> Optional[str]:
    """Return the first well-known config file in the CWD, if any."""
    for name in _CONFIG_SEARCH_ORDER:
        candidate = os.path.join(os.getcwd(), name)
        if os.path.isfile(candidate):
            return candidate
    return None


def _resolve_config(args: argparse.Namespace) -> BridgeConfig:
    """Load the config (CLI flag → env var → auto-detect) and apply CLI overrides."""
    config_path = args.config or os.environ.get("GRAPHQL_BRIDGE_CONFIG") or _find_config_file()
    config = load_bridge_config(os.path.abspath(config_path)) if config_path else BridgeConfig()

    if args.host is not None:
        config.server.host = args.host
    if args.port is not None:
        config.server.port = args.port
    if args.schema is not None:
        config.graphql.schema_ref = args.schema
    if args.log_level is not None:
        config.logging.level = args.log_level.upper()
    return config


def _cmd_serve(args: argparse.Namespace) -> None:
    """Start the server in the foreground."""
    from graphql_bridge.engine.schema_engine import SchemaEngine
    from graphql_bridge.server.app import create_app

    try:
        config = _resolve_config(args)
    except ConfigurationError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        sys.exit(1)

    log_fpath, cfg_log_lvl = setup_logging(config.logging.level)
    print(f"Logging to {log_fpath} (level {cfg_log_lvl})")
    module_logger.info(
        "---- %s v%s starting (file log level: %s) ----",
        SERVER_NAME,
        SERVER_VERSION,
        cfg_log_lvl,
    )

    if not config.graphql.schema_ref:
        print(
            "❌ Error: no schema configured. Pass --schema module:attribute "
            "or set graphql.schema in the config file.",
            file=sys.stderr,
        )
        sys.exit(1)

    try:
        schema = import_schema(config.graphql.schema_ref)
        engine = SchemaEngine(schema, introspection=config.graphql.introspection)
        engine.start()
    except BridgeBaseError as exc:
        module_logger.error("Cannot start GraphQL engine: %s", exc)
        print(f"❌ {exc}", file=sys.stderr)
        sys.exit(1)

    app = create_app(engine, config)
    module_logger.info(
        "Preparing to start Uvicorn server: http://%s:%s%s",
        config.server.host,
        config.server.port,
        config.graphql.path,
    )
    try:
        uvicorn.run(
            app,
            host=config.server.host,
            port=config.server.port,
            log_config=None,
            log_level=cfg_log_lvl.lower() if cfg_log_lvl == "DEBUG" else "warning",
        )
    except KeyboardInterrupt:
        module_logger.info("Server stopped due to KeyboardInterrupt.")
    finally:
        module_logger.info("%s has shut down or is shutting down.", SERVER_NAME)


def _cmd_check_config(args: argparse.Namespace) -> None:
    """Validate a config file, print a summary, and exit non-zero on failure."""
    try:
        config = load_bridge_config(args.path)
    except ConfigurationError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        sys.exit(1)
    print(f"✅ {args.path} is valid.")
    print(f"   server:  {config.server.host}:{config.server.port}")
    print(f"   graphql: {config.graphql.path} (schema: {config.graphql.schema_ref or 'unset'})")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="graphql-bridge",
        description=f"{SERVER_NAME} v{SERVER_VERSION} - serve a GraphQL schema over HTTP",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {SERVER_VERSION}"
    )
    subparsers = parser.add_subparsers(dest="command")

    # ── serve ────────────────────────────────────────────────────
    sp_serve = subparsers.add_parser("serve", help="Run the GraphQL server")
    sp_serve.add_argument(
        "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Path to configuration file (YAML). Default: auto-detect graphql-bridge.yaml",
    )
    sp_serve.add_argument("--host", type=str, default=None, help="Host address to bind")
    sp_serve.add_argument("--port", type=int, default=None, help="Port to listen on")
    sp_serve.add_argument(
        "--schema",
        type=str,
        default=None,
        metavar="MODULE:ATTR",
        help="GraphQLSchema to serve, e.g. 'myapp.schema:schema'",
    )
    sp_serve.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["debug", "info", "warning", "error", "critical"],
        help="File log level (default: from config, else info)",
    )
    sp_serve.set_defaults(func=_cmd_serve)

    # ── check-config ─────────────────────────────────────────────
    sp_check = subparsers.add_parser("check-config", help="Validate a configuration file")
    sp_check.add_argument("path", metavar="PATH", help="Configuration file to validate")
    sp_check.set_defaults(func=_cmd_check_config)

    return parser


def main(argv: Optional[list] = None) -> None:
    """Program entry point: parse arguments and dispatch to subcommand."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)
    else:
        args.func(args)
