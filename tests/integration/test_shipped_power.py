"""Integration tests against the power content shipped in the package.

These tests exercise the real steering files and mcp.json: every registered
keyword routes to its module, the documented scenario queries select the
expected modules, and the shipped registry passes validation.
"""

from __future__ import annotations

import pytest

from power_router.capabilities import available_capabilities
from power_router.loader import load
from power_router.matcher import DEFAULT_LIMIT, match
from power_router.router import PowerRouter
from power_router.session import Session
from power_router.validation import validate

pytestmark = pytest.mark.integration


# =============================================================================
# Registry Integrity
# =============================================================================


class TestShippedRegistry:
    """The shipped power must always pass the release check."""

    def test_validates_cleanly(self, shipped_registry, shipped_capabilities):
        result = validate(shipped_registry, shipped_capabilities)

        assert result.ok
        assert result.module_count == len(shipped_registry)

    def test_default_module(self, shipped_registry):
        assert shipped_registry.default_module_id == "ui-design-principles"

    def test_every_module_resolves_content(self, shipped_registry):
        result = load(shipped_registry.ids(), Session(), shipped_registry)

        assert result.errors == {}
        assert len(result.documents) == len(shipped_registry)


# =============================================================================
# Keyword Coverage
# =============================================================================


def _keyword_cases():
    from power_router.config import PACKAGE_DIR
    from power_router.registry import load_registry

    registry = load_registry(PACKAGE_DIR / "power" / "steering")
    return [
        pytest.param(module.id, keyword, id=f"{module.id}:{keyword}")
        for module in registry
        for keyword in module.keywords
    ]


@pytest.mark.parametrize("module_id,keyword", _keyword_cases())
def test_keyword_routes_to_module(shipped_registry, module_id, keyword):
    """A query containing a registered phrase verbatim selects its module."""
    query = f"Could you help with {keyword} in my app?"

    results = match(query, shipped_registry, limit=len(shipped_registry))

    assert module_id in [r.module_id for r in results]


# =============================================================================
# Scenarios
# =============================================================================


class TestScenarios:
    """Documented example turns."""

    def test_accessibility_query(self, shipped_registry):
        results = match(
            "Help me make this form accessible for screen readers", shipped_registry
        )

        assert results[0].module_id == "accessibility-standards"
        assert "screen reader" in results[0].matched_keywords
        assert "form-design-patterns" in [r.module_id for r in results]

    def test_component_library_query(self, shipped_registry):
        results = match(
            "Which component library should I use for a dashboard with data tables?",
            shipped_registry,
        )

        assert results[0].module_id == "component-libraries"
        assert results[0].score == 5

    def test_ies_plural_reaches_module(self, shipped_registry):
        results = match("Compare component libraries for React", shipped_registry)

        assert results[0].module_id == "component-libraries"

    def test_chart_axes_do_not_trigger_accessibility_testing(self, shipped_registry):
        results = match("Label the chart axes on the dashboard", shipped_registry)

        assert "accessibility-testing" not in [r.module_id for r in results]

    def test_unmatched_query_gets_default(self, shipped_registry):
        for query in ("", "xyzzyunmatchable"):
            results = match(query, shipped_registry)
            assert [r.module_id for r in results] == ["ui-design-principles"]

    def test_broad_query_respects_cap(self, shipped_registry):
        query = (
            "accessible responsive form with a design system, figma mockup, "
            "dark mode typography, playwright testing and lazy loading"
        )

        assert len(match(query, shipped_registry)) == DEFAULT_LIMIT

    def test_conversation_loads_each_module_once(self, shipped_registry, shipped_capabilities):
        router = PowerRouter(shipped_registry, shipped_capabilities)
        session = Session()

        first = router.route("Help me make this form accessible", session, env={})
        second = router.route("More on accessible forms please", session, env={})

        assert first["count"] == 2
        assert second["count"] == 0
        assert sorted(second["already_loaded"]) == [
            "accessibility-standards",
            "form-design-patterns",
        ]


# =============================================================================
# Capability Gating
# =============================================================================


class TestShippedCapabilities:
    def test_declared_capabilities(self, shipped_capabilities):
        assert shipped_capabilities.names() == [
            "design-file-access",
            "browser-debugging",
            "browser-automation",
            "performance-audit",
        ]

    def test_design_tool_gated_on_api_key(self, shipped_capabilities):
        before = {s.name: s for s in available_capabilities(shipped_capabilities, env={})}
        assert before["design-file-access"].available is False
        assert before["design-file-access"].missing_env == ("FIGMA_API_KEY",)
        assert before["browser-automation"].available is True

        after = {
            s.name: s
            for s in available_capabilities(shipped_capabilities, env={"FIGMA_API_KEY": "k"})
        }
        assert after["design-file-access"].available is True
