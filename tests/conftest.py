"""Shared pytest fixtures for ui-development-power tests.

Unit tests build synthetic registries in tmp_path; integration tests run
against the power content shipped inside the package.
"""

from pathlib import Path

import pytest

from power_router.capabilities import CapabilityTable, load_capability_table
from power_router.config import PACKAGE_DIR
from power_router.registry import ModuleRegistry, load_registry
from power_router.session import Session
from tests.helpers import make_capability, make_module


# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def power_dir() -> Path:
    """Return the packaged power content directory."""
    return PACKAGE_DIR / "power"


@pytest.fixture
def steering_dir(tmp_path: Path) -> Path:
    """Empty steering directory for tests that write their own modules."""
    path = tmp_path / "power" / "steering"
    path.mkdir(parents=True)
    return path


# =============================================================================
# Shipped Power Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def shipped_registry() -> ModuleRegistry:
    """Registry loaded from the packaged steering files."""
    return load_registry(PACKAGE_DIR / "power" / "steering")


@pytest.fixture(scope="session")
def shipped_capabilities() -> CapabilityTable:
    """Capability table loaded from the packaged mcp.json."""
    return load_capability_table(PACKAGE_DIR / "power" / "mcp.json")


# =============================================================================
# Synthetic Registry Fixtures
# =============================================================================


@pytest.fixture
def ui_registry(steering_dir: Path) -> ModuleRegistry:
    """Small registry with overlapping generic keywords across categories."""
    modules = [
        make_module(
            steering_dir, "general", ["ui", "design"], category="general",
            priority=50, default=True,
        ),
        make_module(
            steering_dir, "a11y", ["accessibility", "screen reader", "form"],
            category="accessibility", priority=10,
        ),
        make_module(
            steering_dir, "forms", ["form", "form validation", "error message"],
            category="forms", priority=20,
        ),
        make_module(
            steering_dir, "components", ["component library", "data table", "design"],
            category="components", priority=20,
        ),
        make_module(
            steering_dir, "tokens", ["design token", "design"],
            category="design-system", priority=20,
        ),
    ]
    return ModuleRegistry(modules)


@pytest.fixture
def capability_table() -> CapabilityTable:
    """Two capabilities, one gated on an API key."""
    return CapabilityTable([
        make_capability("design-file-access", required_env={"FIGMA_API_KEY"}),
        make_capability("browser-automation", server="playwright"),
    ])


@pytest.fixture
def session() -> Session:
    return Session(conversation_id="test-conversation")

