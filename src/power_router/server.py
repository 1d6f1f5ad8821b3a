#!/usr/bin/env python3
"""
UI Development Power MCP Server

FastMCP server exposing the power's context router via Model Context
Protocol. One Session is kept per conversation id so modules already shown
in a conversation are not injected again.

Tools:
- route_guidance: Route a user message, load new modules, gate capabilities
- end_session: Drop a conversation's session
- list_modules / get_module: Inspect the module registry
- capability_status: Which MCP tool integrations are configured right now
- validate_power: Run the registry/capability table checks
"""

import logging
import sys

from mcp.server.fastmcp import FastMCP

from power_router.capabilities import available_capabilities
from power_router.config import configure_logging, load_config
from power_router.loader import ModuleLoadError, resolve_content
from power_router.registry import RegistryError
from power_router.router import PowerRouter, build_router
from power_router.session import SessionStore
from power_router.validation import collect_violations

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("ui-development-power")

# One session per open conversation
sessions = SessionStore()

_router: PowerRouter | None = None


def set_router(router: PowerRouter | None) -> None:
    """Install the router used by the tools (built at startup)."""
    global _router
    _router = router


def get_router() -> PowerRouter:
    """Return the installed router, building it from configuration on first use."""
    global _router
    if _router is None:
        _router = build_router(load_config())
    return _router


@mcp.tool()
async def route_guidance(message: str, conversation_id: str | None = None) -> dict:
    """
    Route a user's UI/UX request to the steering modules to attach this turn.

    Args:
        message: User message
        conversation_id: Conversation identifier; omit to start a new conversation

    Returns:
        Dictionary with:
        - conversation_id: Session the turn was recorded in
        - modules: Selected modules with scores and matched keywords
        - documents: Newly loaded module content (already-shown modules omitted)
        - already_loaded: Selected modules shown on an earlier turn
        - failed / notice: Modules whose content was unavailable
        - capabilities: Which MCP tool integrations are configured
        - routing_analysis: Diagnostics

    Examples:
        route_guidance("Help me make this form accessible for screen readers")
        route_guidance("now check the colors", conversation_id="abc123")
    """
    try:
        router = get_router()
        session = sessions.get_or_create(conversation_id)
        logger.info(
            f"route_guidance called: conversation={session.conversation_id}, "
            f"message={message[:80]!r}"
        )
        result = router.route(message, session)
        result["conversation_id"] = session.conversation_id
        return result

    except Exception as e:
        logger.error(f"Error in route_guidance: {e}", exc_info=True)
        return {
            "modules": [],
            "documents": [],
            "count": 0,
            "conversation_id": conversation_id,
            "notice": "Guidance is unavailable this turn.",
            "error": str(e),
        }


@mcp.tool()
async def end_session(conversation_id: str) -> dict:
    """
    Forget a conversation's loaded modules and turn history.

    Args:
        conversation_id: Conversation to end

    Returns:
        Dictionary with conversation_id and ended (False if unknown)
    """
    ended = sessions.end(conversation_id)
    return {"conversation_id": conversation_id, "ended": ended}


@mcp.tool()
async def list_modules(category: str | None = None) -> dict:
    """
    List registered steering modules.

    Args:
        category: Optional category filter (e.g. "accessibility", "forms")

    Returns:
        Dictionary with modules, count and the default module id
    """
    registry = get_router().registry
    modules = registry.by_category(category) if category else list(registry)
    return {
        "modules": [m.to_dict() for m in modules],
        "count": len(modules),
        "default_module": registry.default_module_id,
    }


@mcp.tool()
async def get_module(module_id: str) -> dict:
    """
    Get one steering module's metadata and content, outside of any session.

    Args:
        module_id: Module identifier (e.g. "accessibility-standards")

    Returns:
        Module dictionary with content, or an error entry
    """
    module = get_router().registry.get(module_id)
    if module is None:
        return {"module_id": module_id, "error": f"Module not found: {module_id}"}
    try:
        content = resolve_content(module)
    except ModuleLoadError as e:
        logger.warning(str(e))
        return {**module.to_dict(), "error": e.reason}
    return {**module.to_dict(), "content": content}


@mcp.tool()
async def capability_status() -> dict:
    """
    Report which MCP tool integrations are usable with the current environment.

    Returns:
        Dictionary with capabilities (name, available, missing_env, reason)
    """
    statuses = available_capabilities(get_router().capabilities)
    return {
        "capabilities": [s.to_dict() for s in statuses],
        "available": [s.name for s in statuses if s.available],
    }


@mcp.tool()
async def validate_power() -> dict:
    """
    Re-run structural validation of the loaded registry and capability table.

    Returns:
        Dictionary with ok, violations and counts
    """
    router = get_router()
    return collect_violations(router.registry, router.capabilities).to_dict()


def main():
    """Build and validate the router, then serve MCP over stdio."""
    config = load_config()
    configure_logging(config)

    logger.info("=== Starting UI Development Power MCP Server ===")

    try:
        router = build_router(config)
    except RegistryError as e:
        logger.critical("FATAL: power registry is invalid:")
        for violation in e.violations:
            logger.critical(f"  - {violation}")
        sys.exit(1)

    set_router(router)
    logger.info(f"Router: {router.version} ({router.description})")
    logger.info(f"Default module: {router.registry.default_module_id}")

    logger.info("MCP server ready - listening for tool calls")
    mcp.run()


if __name__ == "__main__":
    main()
