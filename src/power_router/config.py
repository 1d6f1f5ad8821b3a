"""UI Power Router Configuration

Configuration loading with environment variable support and sensible defaults.

Environment Variables:
    UI_POWER_CONFIG_PATH: Path to config file (default: ui-power-config.yaml in package dir)
    UI_POWER_CONTENT_PATH: Override power content directory from config
    UI_POWER_MAX_MODULES: Override the per-turn module cap

Configuration Schema:
    routing:
        max_modules: int - Maximum modules surfaced per turn (default: 3)
        default_module: str - Fallback module id (default: module flagged default: true)
    power:
        path: str - Directory holding steering/ and mcp.json
    server:
        log_level: str - Logging level (default: "INFO")
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).parent


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


# Default configuration values
DEFAULT_CONFIG: Dict[str, Any] = {
    "routing": {
        "max_modules": 3,
        "default_module": None,  # Use the module flagged default: true
    },
    "power": {
        "path": None,  # Use packaged power content
    },
    "server": {
        "log_level": "INFO",
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge override dict into base dict.

    Args:
        base: Base dictionary (defaults)
        override: Override dictionary (user config)

    Returns:
        Merged dictionary with override values taking precedence
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _resolve_path(path: Optional[str], base_dir: Path) -> Optional[Path]:
    """
    Resolve a path, making relative paths absolute from base_dir.

    Args:
        path: Path string (absolute or relative) or None
        base_dir: Base directory for relative path resolution

    Returns:
        Resolved absolute Path or None if path was None
    """
    if path is None:
        return None

    path_obj = Path(path)
    if path_obj.is_absolute():
        return path_obj
    return (base_dir / path_obj).resolve()


def _read_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise yaml.YAMLError(f"top-level value must be a mapping, got {type(data).__name__}")
    return data


def load_config(
    config_path: Optional[str] = None,
    base_dir: Optional[Path] = None
) -> Dict[str, Any]:
    """
    Load configuration from YAML file with environment variable overrides.

    Configuration Loading Order (later overrides earlier):
    1. Default values (DEFAULT_CONFIG)
    2. Config file (from UI_POWER_CONFIG_PATH or config_path parameter)
    3. Environment variable overrides (UI_POWER_CONTENT_PATH, UI_POWER_MAX_MODULES)

    Args:
        config_path: Explicit config file path (overrides UI_POWER_CONFIG_PATH)
        base_dir: Directory for relative path resolution (default: package dir)

    Returns:
        Merged configuration dictionary

    Raises:
        ConfigurationError: If an explicit config file is invalid YAML, or an
            environment override has the wrong type
    """
    if base_dir is None:
        base_dir = PACKAGE_DIR

    config = copy.deepcopy(DEFAULT_CONFIG)

    file_path = config_path or os.environ.get("UI_POWER_CONFIG_PATH")

    if file_path:
        # Explicit config path - must be valid if it exists
        resolved_path = _resolve_path(file_path, base_dir)
        if resolved_path and resolved_path.exists():
            try:
                config = _deep_merge(config, _read_yaml(resolved_path))
                logger.info(f"Loaded configuration from: {resolved_path}")
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in config file: {e}")
            except IOError as e:
                raise ConfigurationError(f"Cannot read config file: {e}")
        else:
            logger.warning(f"Config file not found (using defaults): {file_path}")
    else:
        # Optional config file beside the package
        default_config_path = base_dir / "ui-power-config.yaml"
        if default_config_path.exists():
            try:
                config = _deep_merge(config, _read_yaml(default_config_path))
                logger.info(f"Loaded configuration from: {default_config_path}")
            except yaml.YAMLError as e:
                logger.warning(f"Invalid YAML in default config (ignoring): {e}")
            except IOError as e:
                logger.warning(f"Cannot read default config (ignoring): {e}")
        else:
            logger.debug("No config file found, using defaults")

    # Apply environment variable overrides
    content_override = os.environ.get("UI_POWER_CONTENT_PATH")
    if content_override:
        config.setdefault("power", {})["path"] = content_override
        logger.info(f"Power content path override from env: {content_override}")

    max_modules_override = os.environ.get("UI_POWER_MAX_MODULES")
    if max_modules_override:
        try:
            config.setdefault("routing", {})["max_modules"] = int(max_modules_override)
        except ValueError:
            raise ConfigurationError(
                f"UI_POWER_MAX_MODULES must be an integer, got: {max_modules_override!r}"
            )

    if config.get("power", {}).get("path"):
        resolved = _resolve_path(config["power"]["path"], base_dir)
        config["power"]["path"] = str(resolved) if resolved else None

    return config


def get_power_path(config: Dict[str, Any]) -> Path:
    """
    Get the power content directory (holding steering/ and mcp.json).

    Args:
        config: Configuration dictionary from load_config()

    Returns:
        Path to the configured directory, or the packaged power/ directory
    """
    path_str = config.get("power", {}).get("path")
    if path_str:
        return Path(path_str)
    return PACKAGE_DIR / "power"


def get_steering_path(config: Dict[str, Any]) -> Path:
    """Directory holding the steering (knowledge module) files."""
    return get_power_path(config) / "steering"


def get_mcp_config_path(config: Dict[str, Any]) -> Path:
    """Path to the MCP server declarations file."""
    return get_power_path(config) / "mcp.json"


def get_routing_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extract routing settings for build_router().

    Args:
        config: Configuration dictionary from load_config()

    Returns:
        Dictionary with max_modules and default_module
    """
    routing = config.get("routing", {})
    max_modules = routing.get("max_modules")
    if max_modules is None:
        max_modules = DEFAULT_CONFIG["routing"]["max_modules"]
    if isinstance(max_modules, bool) or not isinstance(max_modules, int) or max_modules < 1:
        raise ConfigurationError(
            f"routing.max_modules must be a positive integer, got: {max_modules!r}"
        )
    return {
        "max_modules": max_modules,
        "default_module": routing.get("default_module"),
    }


def configure_logging(config: Dict[str, Any]) -> None:
    """Configure root logging from server.log_level (always to stderr)."""
    level_name = str(config.get("server", {}).get("log_level", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
