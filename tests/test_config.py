"""Tests for config loading, env expansion, schema import, logging and the CLI."""

from __future__ import annotations

import logging
import os
import textwrap

import pytest
from graphql import GraphQLSchema

from graphql_bridge.cli import main
from graphql_bridge.config.env import expand_env_vars
from graphql_bridge.config.loader import import_schema, load_bridge_config, validate_config
from graphql_bridge.config.schema import BridgeConfig
from graphql_bridge.display.logging_config import build_log_config, setup_logging
from graphql_bridge.errors import ConfigurationError


def _write(tmp_path, name: str, content: str) -> str:
    path = tmp_path / name
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return str(path)


# ═══════════════════════════════════════════════════════════════════════
# Environment expansion
# ═══════════════════════════════════════════════════════════════════════


class TestExpandEnvVars:
    def test_set_variable(self, monkeypatch) -> None:
        monkeypatch.setenv("GQL_HOST", "0.0.0.0")
        assert expand_env_vars({"host": "${GQL_HOST}"}) == {"host": "0.0.0.0"}

    def test_default_used_when_unset(self, monkeypatch) -> None:
        monkeypatch.delenv("GQL_PORT", raising=False)
        assert expand_env_vars("${GQL_PORT:-4001}") == "4001"

    def test_unset_without_default_kept(self, monkeypatch) -> None:
        monkeypatch.delenv("GQL_NOPE", raising=False)
        assert expand_env_vars("${GQL_NOPE}") == "${GQL_NOPE}"

    def test_nested_and_non_strings(self, monkeypatch) -> None:
        monkeypatch.setenv("GQL_X", "x")
        data = {"a": ["${GQL_X}", 1], "b": {"c": True}}
        assert expand_env_vars(data) == {"a": ["x", 1], "b": {"c": True}}


# ═══════════════════════════════════════════════════════════════════════
# Models and loader
# ═══════════════════════════════════════════════════════════════════════


class TestBridgeConfig:
    def test_defaults(self) -> None:
        config = BridgeConfig()
        assert config.server.port == 4000
        assert config.graphql.path == "/graphql"
        assert config.body_parser.enable_types == ["json", "form"]
        assert config.logging.level == "INFO"

    def test_int_version_and_schema_alias(self) -> None:
        config = validate_config({"version": 1, "graphql": {"schema": "pkg.mod:schema"}})
        assert config.version == "1"
        assert config.graphql.schema_ref == "pkg.mod:schema"

    def test_errors_reported_together(self) -> None:
        raw = {
            "server": {"port": 0},
            "graphql": {"path": "graphql"},
            "logging": {"level": "loud"},
        }
        with pytest.raises(ConfigurationError, match=r"\(3 error\(s\)\)"):
            validate_config(raw)

    def test_unknown_body_type(self) -> None:
        with pytest.raises(ConfigurationError, match="enable_types"):
            validate_config({"body_parser": {"enable_types": ["xml"]}})


class TestLoadBridgeConfig:
    def test_yaml_with_env(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("GQL_TEST_PORT", "5050")
        path = _write(
            tmp_path,
            "graphql-bridge.yaml",
            """
            version: 1
            server:
              port: ${GQL_TEST_PORT}
            graphql:
              schema: mods.hello_schema:schema
              introspection: false
            logging:
              level: debug
            """,
        )
        config = load_bridge_config(path)
        assert config.server.port == 5050
        assert config.graphql.introspection is False
        assert config.logging.level == "DEBUG"

    def test_empty_file_gives_defaults(self, tmp_path) -> None:
        assert load_bridge_config(_write(tmp_path, "empty.yml", "")) == BridgeConfig()

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="does not exist"):
            load_bridge_config(str(tmp_path / "absent.yaml"))

    def test_bad_extension(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="Unsupported config file extension"):
            load_bridge_config(_write(tmp_path, "config.json", "{}"))

    def test_top_level_list(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="mapping"):
            load_bridge_config(_write(tmp_path, "list.yaml", "- a\n- b\n"))

    def test_invalid_yaml(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="Error reading"):
            load_bridge_config(_write(tmp_path, "bad.yaml", "server: [unclosed\n"))


class TestImportSchema:
    def test_variable(self) -> None:
        assert isinstance(import_schema("mods.hello_schema:schema"), GraphQLSchema)

    def test_missing_module(self) -> None:
        with pytest.raises(ConfigurationError, match="Cannot import"):
            import_schema("no_such_module_xyz:schema")

    def test_not_a_schema(self) -> None:
        with pytest.raises(ConfigurationError, match="does not resolve to a GraphQLSchema"):
            import_schema("mods.hello_schema:query_type")

    def test_bad_reference(self) -> None:
        with pytest.raises(ConfigurationError, match="expected 'module:attribute'"):
            import_schema("mods.hello_schema")


# ═══════════════════════════════════════════════════════════════════════
# Logging
# ═══════════════════════════════════════════════════════════════════════


class TestSetupLogging:
    def test_creates_log_file(self, tmp_path) -> None:
        log_fpath, level = setup_logging("debug", log_dir=str(tmp_path))
        try:
            assert level == "DEBUG"
            assert os.path.dirname(log_fpath) == str(tmp_path)
            assert log_fpath.endswith("_DEBUG.log")
            assert logging.getLogger("graphql_bridge").level == logging.DEBUG
        finally:
            logging.getLogger("graphql_bridge").propagate = True

    def test_invalid_level_falls_back(self, tmp_path) -> None:
        log_fpath, level = setup_logging("chatty", log_dir=str(tmp_path))
        logging.getLogger("graphql_bridge").propagate = True
        assert level == "INFO"
        with open(log_fpath, encoding="utf-8") as f:
            assert "Unknown log level 'chatty'" in f.read()

    def test_access_log_only_when_debugging(self) -> None:
        info_cfg = build_log_config("x.log", "INFO")
        debug_cfg = build_log_config("x.log", "DEBUG")
        assert info_cfg["loggers"]["uvicorn.access"]["level"] == "WARNING"
        assert info_cfg["root"]["level"] == "WARNING"
        assert debug_cfg["loggers"]["uvicorn.access"]["level"] == "INFO"
        assert debug_cfg["loggers"]["starlette"]["level"] == "DEBUG"


# ═══════════════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════════════


class TestCli:
    def test_check_config_ok(self, tmp_path, capsys) -> None:
        path = _write(tmp_path, "ok.yaml", "graphql:\n  schema: mods.hello_schema:schema\n")
        main(["check-config", path])
        out = capsys.readouterr().out
        assert "is valid" in out
        assert "mods.hello_schema:schema" in out

    def test_check_config_invalid(self, tmp_path, capsys) -> None:
        path = _write(tmp_path, "bad.yaml", "server:\n  port: 70000\n")
        with pytest.raises(SystemExit) as excinfo:
            main(["check-config", path])
        assert excinfo.value.code == 1
        assert "validation failed" in capsys.readouterr().err

    def test_no_command_prints_help(self, capsys) -> None:
        with pytest.raises(SystemExit):
            main([])
        assert "serve" in capsys.readouterr().out
