"""
Registry and Capability Table Validation

Structural checks run at startup and by the `ui-power validate` release
check. Every violation is collected so a maintainer can fix them all in one
pass; `validate()` raises RegistryError carrying the full list.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List

from power_router.capabilities import CapabilityTable
from power_router.registry import CATEGORIES, ModuleRegistry, RegistryError

logger = logging.getLogger(__name__)

# Steering documents shorter than this are treated as placeholders
MIN_CONTENT_BYTES = 100


@dataclass
class ValidationResult:
    violations: List[str] = field(default_factory=list)
    module_count: int = 0
    capability_count: int = 0

    @property
    def ok(self) -> bool:
        return not self.violations

    def to_dict(self) -> Dict:
        return {
            "ok": self.ok,
            "violations": list(self.violations),
            "module_count": self.module_count,
            "capability_count": self.capability_count,
        }


def _check_modules(registry: ModuleRegistry) -> List[str]:
    violations = list(registry.load_errors)

    id_counts = Counter(m.id for m in registry)
    for module_id, count in id_counts.items():
        if count > 1:
            violations.append(f"duplicate module id '{module_id}' ({count} modules)")

    owners: Dict[tuple, str] = {}
    for module in registry:
        if not module.keywords:
            violations.append(f"module '{module.id}' has no keywords")
        if module.category not in CATEGORIES:
            violations.append(
                f"module '{module.id}' has unknown category '{module.category}'"
            )
        for keyword in module.keywords:
            key = (module.category, keyword)
            owner = owners.get(key)
            if owner is not None and owner != module.id:
                violations.append(
                    f"keyword '{keyword}' appears in both '{owner}' and '{module.id}' "
                    f"(category '{module.category}')"
                )
            else:
                owners[key] = module.id
        violations.extend(_check_content(module))

    defaults = [m.id for m in registry if m.default]
    if len(defaults) > 1:
        violations.append(f"more than one default module: {', '.join(defaults)}")
    if registry.default_module_id is None:
        violations.append("no default module configured")
    elif registry.default_module_id not in registry:
        violations.append(f"default module '{registry.default_module_id}' is not registered")

    return violations


def _check_content(module) -> List[str]:
    if module.content_ref is None:
        return [f"module '{module.id}' has no content reference"]
    try:
        size = module.content_ref.stat().st_size
    except OSError:
        return [f"module '{module.id}' content missing: {module.content_ref}"]
    if size <= MIN_CONTENT_BYTES:
        return [f"module '{module.id}' content is too short ({size} bytes)"]
    return []


def _check_capabilities(table: CapabilityTable) -> List[str]:
    violations = list(table.load_errors)

    name_counts = Counter(d.name for d in table)
    for name, count in name_counts.items():
        if count > 1:
            violations.append(f"duplicate capability name '{name}' ({count} descriptors)")

    for descriptor in table:
        if not descriptor.connector.command.strip():
            violations.append(
                f"capability '{descriptor.name}' (server '{descriptor.connector.server}') "
                f"has an empty connector command"
            )
    return violations


def collect_violations(registry: ModuleRegistry, table: CapabilityTable) -> ValidationResult:
    """Run every check and return the result without raising."""
    result = ValidationResult(
        violations=_check_modules(registry) + _check_capabilities(table),
        module_count=len(registry),
        capability_count=len(table),
    )
    if result.ok:
        logger.info(
            f"Validation passed: {result.module_count} modules, "
            f"{result.capability_count} capabilities"
        )
    else:
        logger.warning(f"Validation found {len(result.violations)} violation(s)")
    return result


def validate(registry: ModuleRegistry, table: CapabilityTable) -> ValidationResult:
    """
    Validate registry and capability table.

    Raises:
        RegistryError: With every violation found, if there are any
    """
    result = collect_violations(registry, table)
    if not result.ok:
        raise RegistryError(result.violations)
    return result
