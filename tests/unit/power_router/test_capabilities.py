"""Unit tests for the capability table and gate."""

import json
from pathlib import Path

import pytest

from power_router.capabilities import (
    NOT_CONFIGURED_REASON,
    available_capabilities,
    load_capability_table,
    parse_server,
    required_env_for,
)


def _write_mcp(tmp_path: Path, servers) -> Path:
    path = tmp_path / "mcp.json"
    path.write_text(json.dumps({"mcpServers": servers}), encoding="utf-8")
    return path


class TestRequiredEnv:
    def test_from_placeholders(self):
        config = {"env": {"FIGMA_API_KEY": "${FIGMA_API_KEY}", "MODE": "stdio"}}
        assert required_env_for(config) == frozenset({"FIGMA_API_KEY"})

    def test_explicit_list_wins(self):
        config = {"env": {"A": "${A}"}, "requiredEnv": ["B"]}
        assert required_env_for(config) == frozenset({"B"})

    def test_no_env(self):
        assert required_env_for({"command": "npx"}) == frozenset()


class TestParseServer:
    def test_capability_name_and_connector(self):
        descriptor = parse_server(
            "figma",
            {
                "command": "npx",
                "args": ["-y", "figma-developer-mcp"],
                "env": {"FIGMA_API_KEY": "${FIGMA_API_KEY}"},
                "capability": "design-file-access",
            },
        )

        assert descriptor.name == "design-file-access"
        assert descriptor.connector.server == "figma"
        assert descriptor.connector.command == "npx"
        assert descriptor.connector.args == ("-y", "figma-developer-mcp")
        assert descriptor.required_env == frozenset({"FIGMA_API_KEY"})

    def test_name_defaults_to_server(self):
        assert parse_server("playwright", {"command": "npx"}).name == "playwright"

    def test_args_must_be_list(self):
        with pytest.raises(ValueError):
            parse_server("bad", {"command": "npx", "args": "-y tool"})

    def test_required_env_must_be_list(self):
        with pytest.raises(ValueError, match="requiredEnv"):
            parse_server("figma", {"command": "npx", "requiredEnv": "FIGMA_API_KEY"})

    def test_explicit_required_env_gates(self):
        descriptor = parse_server(
            "figma", {"command": "npx", "requiredEnv": ["FIGMA_API_KEY"]}
        )

        status = available_capabilities([descriptor], env={"FIGMA_API_KEY": "token"})[0]

        assert status.available is True


class TestLoadCapabilityTable:
    def test_loads_in_declaration_order(self, tmp_path: Path):
        path = _write_mcp(tmp_path, {
            "figma": {"command": "npx", "args": [], "capability": "design-file-access"},
            "playwright": {"command": "npx", "args": [], "capability": "browser-automation"},
        })

        table = load_capability_table(path)

        assert table.names() == ["design-file-access", "browser-automation"]
        assert table.load_errors == ()
        assert table.get("browser-automation").connector.server == "playwright"
        assert table.get("missing") is None

    def test_missing_file_recorded(self, tmp_path: Path):
        table = load_capability_table(tmp_path / "mcp.json")

        assert len(table) == 0
        assert "not found" in table.load_errors[0]

    def test_invalid_json_recorded(self, tmp_path: Path):
        path = tmp_path / "mcp.json"
        path.write_text("{not json", encoding="utf-8")

        assert "cannot parse" in load_capability_table(path).load_errors[0]

    def test_missing_servers_object_recorded(self, tmp_path: Path):
        path = tmp_path / "mcp.json"
        path.write_text(json.dumps({"servers": {}}), encoding="utf-8")

        assert "mcpServers" in load_capability_table(path).load_errors[0]

    def test_bad_entry_recorded_others_kept(self, tmp_path: Path):
        path = _write_mcp(tmp_path, {
            "good": {"command": "npx", "args": []},
            "bad": {"command": "npx", "args": "oops"},
        })

        table = load_capability_table(path)

        assert table.names() == ["good"]
        assert "'bad'" in table.load_errors[0]

    def test_string_required_env_recorded(self, tmp_path: Path):
        path = _write_mcp(tmp_path, {
            "figma": {"command": "npx", "requiredEnv": "FIGMA_API_KEY"},
        })

        table = load_capability_table(path)

        assert len(table) == 0
        assert "requiredEnv must be a list" in table.load_errors[0]


class TestAvailableCapabilities:
    """Tests for the capability gate."""

    def test_unavailable_lists_missing_variable(self, capability_table):
        statuses = available_capabilities(capability_table, env={})

        figma = statuses[0]
        assert figma.name == "design-file-access"
        assert figma.available is False
        assert figma.missing_env == ("FIGMA_API_KEY",)
        assert NOT_CONFIGURED_REASON in figma.reason
        assert "FIGMA_API_KEY" in figma.reason

    def test_available_when_variable_set(self, capability_table):
        statuses = available_capabilities(capability_table, env={"FIGMA_API_KEY": "token"})

        assert all(s.available for s in statuses)
        assert statuses[0].reason is None

    def test_empty_value_counts_as_missing(self, capability_table):
        statuses = available_capabilities(capability_table, env={"FIGMA_API_KEY": ""})

        assert statuses[0].available is False

    def test_no_requirements_always_available(self, capability_table):
        statuses = available_capabilities(capability_table, env={})

        assert statuses[1].name == "browser-automation"
        assert statuses[1].available is True

    def test_reevaluated_from_process_environment(self, capability_table, monkeypatch):
        monkeypatch.delenv("FIGMA_API_KEY", raising=False)
        assert available_capabilities(capability_table)[0].available is False

        monkeypatch.setenv("FIGMA_API_KEY", "set-mid-session")
        assert available_capabilities(capability_table)[0].available is True

    def test_status_to_dict(self, capability_table):
        data = available_capabilities(capability_table, env={})[0].to_dict()

        assert data == {
            "name": "design-file-access",
            "available": False,
            "missing_env": ["FIGMA_API_KEY"],
            "reason": f"{NOT_CONFIGURED_REASON}: missing FIGMA_API_KEY",
        }
