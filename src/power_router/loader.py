"""
Module Loader

Resolves selected module ids into document content, skipping modules the
session has already surfaced. A module whose content is unavailable is
reported and skipped; it never aborts the turn or marks the session.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import yaml

from power_router.matcher import MatchResult
from power_router.registry import KnowledgeModule, ModuleRegistry, split_frontmatter
from power_router.session import Session

logger = logging.getLogger(__name__)

PARTIAL_LOAD_NOTICE = "Some guidance is unavailable this turn."


class ModuleLoadError(Exception):
    """Raised when one module's content cannot be resolved."""

    def __init__(self, module_id: str, reason: str):
        self.module_id = module_id
        self.reason = reason
        super().__init__(f"Cannot load module '{module_id}': {reason}")


@dataclass(frozen=True)
class LoadedDocument:
    module_id: str
    title: str
    category: str
    content: str

    def to_dict(self) -> dict:
        return {
            "module_id": self.module_id,
            "title": self.title,
            "category": self.category,
            "content": self.content,
        }


@dataclass
class LoadResult:
    """Documents newly loaded this turn plus any per-module failures."""

    documents: List[LoadedDocument] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def failed(self) -> List[str]:
        return list(self.errors)

    @property
    def notice(self) -> Optional[str]:
        return PARTIAL_LOAD_NOTICE if self.errors else None


def resolve_content(module: KnowledgeModule) -> str:
    """
    Read a module's document body (frontmatter stripped).

    Raises:
        ModuleLoadError: If the content reference is missing or unreadable
    """
    if module.content_ref is None:
        raise ModuleLoadError(module.id, "no content reference")
    try:
        text = module.content_ref.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ModuleLoadError(module.id, str(e)) from e
    try:
        _, body = split_frontmatter(text)
    except yaml.YAMLError as e:
        raise ModuleLoadError(module.id, f"invalid frontmatter: {e}") from e
    return body.strip()


def _load_one(module_id: str, registry: ModuleRegistry) -> LoadedDocument:
    module = registry.get(module_id)
    if module is None:
        raise ModuleLoadError(module_id, "not in registry")
    content = resolve_content(module)
    return LoadedDocument(
        module_id=module.id,
        title=module.title or module.id,
        category=module.category,
        content=content,
    )


def load(
    module_ids: Iterable[str],
    session: Session,
    registry: ModuleRegistry,
    matches: Optional[List[MatchResult]] = None,
) -> LoadResult:
    """
    Load modules into a session.

    Args:
        module_ids: Ordered ids selected for this turn
        session: The conversation's session (mutated)
        registry: Module registry
        matches: This turn's match results, appended to the session history
            (defaults to an empty list)

    Returns:
        LoadResult with newly loaded documents in request order, ids skipped
        because the session already had them, and per-module errors
    """
    result = LoadResult()
    requested = set()

    for module_id in module_ids:
        if module_id in requested:
            continue
        requested.add(module_id)

        if session.is_loaded(module_id):
            result.skipped.append(module_id)
            continue
        try:
            document = _load_one(module_id, registry)
        except ModuleLoadError as e:
            logger.warning(str(e))
            result.errors[module_id] = e.reason
            continue
        session.mark_loaded(module_id)
        result.documents.append(document)
        logger.debug(f"Loaded module {module_id} into session {session.conversation_id}")

    session.record_turn(matches or [])
    return result
