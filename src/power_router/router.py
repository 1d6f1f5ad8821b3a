"""
Power Router

Runs one conversational turn: match the message against the module
registry, load newly selected modules into the session, and gate the MCP
capabilities against the current environment.

Routing Algorithm:
1. Match message → at most `max_modules` modules (default module if none)
2. Load modules not already in the session
3. Evaluate capability availability (fresh environment snapshot each turn)
4. Return a single result dictionary for formatting or MCP transport
"""

import logging
from typing import Any, Dict, Mapping, Optional

from power_router.capabilities import CapabilityTable, available_capabilities, load_capability_table
from power_router.config import (
    get_mcp_config_path,
    get_routing_config,
    get_steering_path,
    load_config,
)
from power_router.loader import load
from power_router.matcher import DEFAULT_LIMIT, InvalidQueryError, Query, fallback_result, match
from power_router.registry import ModuleRegistry, load_registry
from power_router.session import Session
from power_router.validation import validate

logger = logging.getLogger(__name__)

ROUTER_VERSION = "keyword-1.0"


class PowerRouter:
    """
    Keyword router over an immutable registry and capability table.

    Attributes:
        registry: Validated ModuleRegistry
        capabilities: Validated CapabilityTable
        max_modules: Per-turn module cap
    """

    def __init__(
        self,
        registry: ModuleRegistry,
        capabilities: CapabilityTable,
        max_modules: int = DEFAULT_LIMIT,
    ):
        self.registry = registry
        self.capabilities = capabilities
        self.max_modules = max_modules
        logger.info(
            f"PowerRouter initialized (version: {self.version}, modules: {len(registry)}, "
            f"capabilities: {len(capabilities)}, max_modules: {max_modules})"
        )

    @property
    def version(self) -> str:
        return ROUTER_VERSION

    @property
    def description(self) -> str:
        return "Literal keyword-phrase routing weighted by phrase length"

    def route(
        self,
        message: Any,
        session: Session,
        env: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Route one turn's message.

        A non-string message is rejected and the turn falls back to the
        default module; the session is only touched by the loader.

        Args:
            message: User message (expected str)
            session: Conversation session (mutated by the loader)
            env: Environment snapshot for capability gating (default: os.environ)

        Returns:
            Dictionary with:
            - modules: Match results for this turn
            - documents: Newly loaded documents
            - count: Number of newly loaded documents
            - already_loaded: Selected ids the session already had
            - failed: Ids whose content could not be loaded
            - notice: Soft user-facing notice, or None
            - capabilities: Capability status list
            - routing_analysis: Diagnostics
        """
        invalid_query = False
        normalized = ""
        try:
            query = Query(message)
            normalized = query.normalized
            matches = match(query, self.registry, self.max_modules)
        except InvalidQueryError as e:
            logger.warning(f"Rejected query, using default module: {e}")
            invalid_query = True
            matches = fallback_result(self.registry)

        loaded = load([m.module_id for m in matches], session, self.registry, matches)
        statuses = available_capabilities(self.capabilities, env)

        return {
            "modules": [m.to_dict() for m in matches],
            "documents": [d.to_dict() for d in loaded.documents],
            "count": len(loaded.documents),
            "already_loaded": list(loaded.skipped),
            "failed": loaded.failed,
            "notice": loaded.notice,
            "capabilities": [s.to_dict() for s in statuses],
            "routing_analysis": {
                "router_version": self.version,
                "normalized_query": normalized,
                "fallback": any(m.fallback for m in matches),
                "invalid_query": invalid_query,
                "load_errors": dict(loaded.errors),
                "turn": session.turn_count,
            },
        }


def build_router(config: Optional[Dict[str, Any]] = None) -> PowerRouter:
    """
    Load and validate the packaged (or configured) power, then build a router.

    Args:
        config: Configuration from load_config(); loaded if omitted

    Raises:
        RegistryError: If the registry or capability table is inconsistent
        ConfigurationError: If configuration is invalid
    """
    if config is None:
        config = load_config()
    routing = get_routing_config(config)

    registry = load_registry(get_steering_path(config), routing["default_module"])
    capabilities = load_capability_table(get_mcp_config_path(config))
    validate(registry, capabilities)

    return PowerRouter(registry, capabilities, routing["max_modules"])
