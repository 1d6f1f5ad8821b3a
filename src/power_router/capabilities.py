"""
Capability Table and Gate

Parses MCP server declarations (mcp.json) into named capabilities and
reports, per turn, which of them are usable in the current environment.

mcp.json format:
    {
      "mcpServers": {
        "figma": {
          "command": "npx",
          "args": ["-y", "figma-developer-mcp", "--stdio"],
          "env": {"FIGMA_API_KEY": "${FIGMA_API_KEY}"},
          "capability": "design-file-access",
          "description": "Read Figma files, frames and design tokens"
        }
      }
    }

Required environment variables come from an explicit "requiredEnv" list
when present, otherwise from ${VAR} placeholders in "env". The gate only
reports availability; launching connectors is the host's job.
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

ENV_PLACEHOLDER = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

NOT_CONFIGURED_REASON = "this tool integration isn't configured"


@dataclass(frozen=True)
class Connector:
    """How the host would launch an MCP server."""

    server: str
    command: str
    args: Tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "server": self.server,
            "command": self.command,
            "args": list(self.args),
            "env": dict(self.env),
        }


@dataclass(frozen=True)
class CapabilityDescriptor:
    name: str
    connector: Connector
    required_env: frozenset = frozenset()
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "connector": self.connector.to_dict(),
            "required_env": sorted(self.required_env),
        }


@dataclass(frozen=True)
class CapabilityStatus:
    name: str
    available: bool
    missing_env: Tuple[str, ...] = ()
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "available": self.available,
            "missing_env": list(self.missing_env),
            "reason": self.reason,
        }


class CapabilityTable:
    """Immutable, ordered set of capability descriptors."""

    def __init__(self, descriptors: Iterable[CapabilityDescriptor], load_errors: Iterable[str] = ()):
        self._descriptors: Tuple[CapabilityDescriptor, ...] = tuple(descriptors)
        self.load_errors: Tuple[str, ...] = tuple(load_errors)

    @property
    def descriptors(self) -> Tuple[CapabilityDescriptor, ...]:
        return self._descriptors

    def get(self, name: str) -> Optional[CapabilityDescriptor]:
        for descriptor in self._descriptors:
            if descriptor.name == name:
                return descriptor
        return None

    def names(self) -> List[str]:
        return [d.name for d in self._descriptors]

    def __iter__(self) -> Iterator[CapabilityDescriptor]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)


def required_env_for(server_config: Dict[str, Any]) -> frozenset:
    """Environment variables a server declaration depends on."""
    explicit = server_config.get("requiredEnv")
    if explicit is not None:
        if not isinstance(explicit, list):
            raise ValueError("requiredEnv must be a list of variable names")
        return frozenset(str(name) for name in explicit)
    names = set()
    for value in (server_config.get("env") or {}).values():
        names.update(ENV_PLACEHOLDER.findall(str(value)))
    return frozenset(names)


def parse_server(server_name: str, server_config: Dict[str, Any]) -> CapabilityDescriptor:
    """
    Build a descriptor from one mcpServers entry.

    Raises:
        ValueError: If args or requiredEnv is not a list, or env is not an object
    """
    args = server_config.get("args", [])
    if not isinstance(args, list):
        raise ValueError(f"MCP server '{server_name}' args must be a list")
    env = server_config.get("env") or {}
    if not isinstance(env, dict):
        raise ValueError(f"MCP server '{server_name}' env must be an object")
    required_env = server_config.get("requiredEnv")
    if required_env is not None and not isinstance(required_env, list):
        raise ValueError(f"MCP server '{server_name}' requiredEnv must be a list")
    connector = Connector(
        server=server_name,
        command=str(server_config.get("command") or ""),
        args=tuple(str(a) for a in args),
        env=MappingProxyType({str(k): str(v) for k, v in env.items()}),
    )
    return CapabilityDescriptor(
        name=str(server_config.get("capability") or server_name),
        connector=connector,
        required_env=required_env_for(server_config),
        description=str(server_config.get("description") or ""),
    )


def load_capability_table(mcp_config_path: Path) -> CapabilityTable:
    """
    Load the capability table from an mcp.json file.

    Parse problems are recorded in ``load_errors`` for validation to report.
    """
    mcp_config_path = Path(mcp_config_path)
    errors = []
    descriptors = []

    try:
        config = json.loads(mcp_config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        errors.append(f"MCP config not found: {mcp_config_path}")
        logger.error(f"MCP config not found: {mcp_config_path}")
        return CapabilityTable(descriptors, errors)
    except (OSError, json.JSONDecodeError) as e:
        errors.append(f"cannot parse MCP config {mcp_config_path.name}: {e}")
        logger.error(f"Error parsing MCP config {mcp_config_path}: {e}")
        return CapabilityTable(descriptors, errors)

    servers = config.get("mcpServers") if isinstance(config, dict) else None
    if not isinstance(servers, dict):
        errors.append(f"{mcp_config_path.name} has no mcpServers object")
        return CapabilityTable(descriptors, errors)

    for server_name, server_config in servers.items():
        if not isinstance(server_config, dict):
            errors.append(f"MCP server '{server_name}' declaration must be an object")
            continue
        try:
            descriptors.append(parse_server(server_name, server_config))
        except ValueError as e:
            errors.append(str(e))

    logger.info(f"Loaded {len(descriptors)} capabilities from {mcp_config_path}")
    return CapabilityTable(descriptors, errors)


def capability_status(descriptor: CapabilityDescriptor, env: Mapping[str, str]) -> CapabilityStatus:
    missing = tuple(sorted(name for name in descriptor.required_env if not env.get(name)))
    if missing:
        return CapabilityStatus(
            name=descriptor.name,
            available=False,
            missing_env=missing,
            reason=f"{NOT_CONFIGURED_REASON}: missing {', '.join(missing)}",
        )
    return CapabilityStatus(name=descriptor.name, available=True)


def available_capabilities(
    table: Iterable[CapabilityDescriptor],
    env: Optional[Mapping[str, str]] = None,
) -> List[CapabilityStatus]:
    """
    Report usability of every capability against an environment snapshot.

    Evaluated on every call so that variables set mid-session are picked up.

    Args:
        table: Capability table (or any iterable of descriptors)
        env: Environment snapshot; defaults to a fresh copy of os.environ

    Returns:
        One CapabilityStatus per descriptor, in table order
    """
    if env is None:
        env = dict(os.environ)
    return [capability_status(descriptor, env) for descriptor in table]
