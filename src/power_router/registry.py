"""Knowledge Module Registry

Builds the process-wide, read-only table of knowledge modules ("steering
files") from Markdown documents with YAML frontmatter.

Steering File Format:
---
id: accessibility-standards
title: Accessibility Standards
description: WCAG 2.2 guidance for accessible interfaces
category: accessibility
priority: 10
keywords: [accessibility, wcag, screen reader, aria]
default: false
---

# Markdown Content

The registry is constructed once at startup and never mutated; pass it
explicitly to the matcher and loader.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Iterator, List, Mapping, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

# Closed set of module categories
CATEGORIES = frozenset({
    "general",
    "accessibility",
    "design-system",
    "components",
    "design-tooling",
    "layout",
    "visual-design",
    "testing",
    "interaction",
    "forms",
    "performance",
})

DEFAULT_PRIORITY = 100

FRONTMATTER_PATTERN = re.compile(r"^---\s*\n(.*?)\n---\s*\n?(.*)$", re.DOTALL)


class RegistryError(Exception):
    """Raised when the registry or capability table violates a structural invariant."""

    def __init__(self, violations: Iterable[str]):
        self.violations = list(violations)
        summary = "; ".join(self.violations) if self.violations else "unknown violation"
        super().__init__(f"{len(self.violations)} registry violation(s): {summary}")


def normalize_phrase(text: str) -> str:
    """Lowercase and collapse internal whitespace."""
    return " ".join(text.lower().split())


def normalize_keywords(keywords: Iterable[str]) -> Tuple[str, ...]:
    """Normalize keyword phrases, dropping blanks and repeats (order kept)."""
    seen = {}
    for keyword in keywords:
        phrase = normalize_phrase(str(keyword))
        if phrase and phrase not in seen:
            seen[phrase] = None
    return tuple(seen)


@dataclass(frozen=True)
class KnowledgeModule:
    """A keyword-triggered unit of guidance content."""

    id: str
    keywords: Tuple[str, ...]
    category: str
    priority: int = DEFAULT_PRIORITY
    content_ref: Optional[Path] = None
    title: str = ""
    description: str = ""
    default: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title or self.id,
            "description": self.description,
            "category": self.category,
            "priority": self.priority,
            "keywords": list(self.keywords),
            "default": self.default,
            "content_ref": str(self.content_ref) if self.content_ref else None,
        }


class ModuleRegistry:
    """
    Immutable, ordered collection of knowledge modules.

    Registration order is the order modules were given; it is the final
    tie-break when ranking. Duplicate ids are kept (lookups return the first)
    so that validation can report them rather than silently dropping one.

    Attributes:
        default_module_id: Module surfaced when a query matches nothing
        load_errors: Problems found while parsing steering files
    """

    def __init__(
        self,
        modules: Iterable[KnowledgeModule],
        default_module_id: Optional[str] = None,
        load_errors: Iterable[str] = (),
    ):
        self._modules: Tuple[KnowledgeModule, ...] = tuple(modules)
        by_id = {}
        positions = {}
        for index, module in enumerate(self._modules):
            if module.id not in by_id:
                by_id[module.id] = module
                positions[module.id] = index
        self._by_id: Mapping[str, KnowledgeModule] = MappingProxyType(by_id)
        self._positions: Mapping[str, int] = MappingProxyType(positions)
        self.load_errors: Tuple[str, ...] = tuple(load_errors)

        if default_module_id is None:
            flagged = [m.id for m in self._modules if m.default]
            default_module_id = flagged[0] if flagged else None
        self.default_module_id: Optional[str] = default_module_id

    @property
    def modules(self) -> Tuple[KnowledgeModule, ...]:
        return self._modules

    def get(self, module_id: str) -> Optional[KnowledgeModule]:
        return self._by_id.get(module_id)

    def position(self, module_id: str) -> int:
        """Registration index of a module id."""
        return self._positions[module_id]

    @property
    def default_module(self) -> Optional[KnowledgeModule]:
        if self.default_module_id is None:
            return None
        return self._by_id.get(self.default_module_id)

    def ids(self) -> List[str]:
        return [m.id for m in self._modules]

    def by_category(self, category: str) -> List[KnowledgeModule]:
        return [m for m in self._modules if m.category == category]

    def __iter__(self) -> Iterator[KnowledgeModule]:
        return iter(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._by_id

    def __repr__(self) -> str:
        return f"ModuleRegistry({len(self._modules)} modules, default={self.default_module_id!r})"


def split_frontmatter(text: str) -> Tuple[dict, str]:
    """
    Split a steering document into (metadata, body).

    Raises:
        yaml.YAMLError: If the frontmatter is not valid YAML
    """
    match = FRONTMATTER_PATTERN.match(text)
    if not match:
        return {}, text
    metadata = yaml.safe_load(match.group(1)) or {}
    if not isinstance(metadata, dict):
        raise yaml.YAMLError("frontmatter must be a mapping")
    return metadata, match.group(2)


def parse_module_file(file_path: Path) -> KnowledgeModule:
    """
    Parse one steering file into a KnowledgeModule.

    Missing fields fall back to: id from the file stem, category "general",
    priority DEFAULT_PRIORITY. Keywords are not defaulted; an empty set is
    left for validation to report.

    Raises:
        OSError: If the file cannot be read
        yaml.YAMLError: If the frontmatter is invalid
        ValueError: If a field has the wrong type
    """
    metadata, _ = split_frontmatter(file_path.read_text(encoding="utf-8"))

    keywords = metadata.get("keywords") or []
    if isinstance(keywords, str):
        keywords = [keywords]
    if not isinstance(keywords, list):
        raise ValueError(f"keywords must be a list, got {type(keywords).__name__}")

    priority = metadata.get("priority", DEFAULT_PRIORITY)
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise ValueError(f"priority must be an integer, got {priority!r}")

    return KnowledgeModule(
        id=str(metadata.get("id") or file_path.stem),
        keywords=normalize_keywords(keywords),
        category=str(metadata.get("category") or "general"),
        priority=priority,
        content_ref=file_path,
        title=str(metadata.get("title") or ""),
        description=str(metadata.get("description") or ""),
        default=bool(metadata.get("default", False)),
    )


def load_registry(steering_dir: Path, default_module_id: Optional[str] = None) -> ModuleRegistry:
    """
    Load every *.md steering file in a directory into a registry.

    Files register in sorted filename order. A file that cannot be parsed is
    recorded in ``load_errors`` (and logged) instead of aborting the load, so
    validation can report every problem at once.

    Args:
        steering_dir: Directory holding steering files
        default_module_id: Explicit fallback module (overrides default: true flags)

    Returns:
        ModuleRegistry (not yet validated)
    """
    steering_dir = Path(steering_dir)
    modules = []
    errors = []

    if not steering_dir.is_dir():
        errors.append(f"steering directory not found: {steering_dir}")
        logger.error(f"Steering directory not found: {steering_dir}")
        return ModuleRegistry(modules, default_module_id, errors)

    for file_path in sorted(steering_dir.glob("*.md")):
        try:
            module = parse_module_file(file_path)
        except (OSError, yaml.YAMLError, ValueError) as e:
            errors.append(f"cannot parse steering file {file_path.name}: {e}")
            logger.error(f"Error parsing steering file {file_path}: {e}")
            continue
        modules.append(module)
        logger.debug(f"Registered module: {module.id} ({module.category}) from {file_path}")

    logger.info(f"Loaded {len(modules)} steering modules from {steering_dir}")
    return ModuleRegistry(modules, default_module_id, errors)
