"""
Query Matcher

Scores every knowledge module in a registry against a user query by literal
keyword-phrase presence.

Matching Algorithm:
1. Normalize the query (lowercase, collapse whitespace)
2. For each module keyword, test phrase containment on word boundaries
   (multi-word phrases must be contiguous; the last word may take a plural
   "s" or "es", or "ies" in place of a trailing consonant + "y")
3. Score = sum of matched keyword weights, weight = words in the phrase
4. Drop zero scores, sort by score desc, priority asc, registration order
5. Cap at `limit` results
6. Fall back to the registry's default module when nothing matched

The matcher is pure: identical (query, registry, limit) always yields
identical output.
"""

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, List, Tuple, Union

from power_router.registry import ModuleRegistry, normalize_phrase

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 3

# "library" pluralizes as "libraries"
CONSONANT_Y = re.compile(r"[^aeiou\W]y$")


class InvalidQueryError(Exception):
    """Raised when a query is not a string."""
    pass


@dataclass(frozen=True)
class Query:
    """Raw query text plus its normalized form."""

    raw: str
    normalized: str = field(init=False)

    def __post_init__(self):
        if not isinstance(self.raw, str):
            raise InvalidQueryError(
                f"query must be a string, got {type(self.raw).__name__}"
            )
        object.__setattr__(self, "normalized", normalize_phrase(self.raw))

    @property
    def is_empty(self) -> bool:
        return not self.normalized


@dataclass(frozen=True)
class MatchResult:
    """One module's score for one query."""

    module_id: str
    score: int
    matched_keywords: Tuple[str, ...] = ()
    fallback: bool = False

    def to_dict(self) -> Dict:
        return {
            "module_id": self.module_id,
            "score": self.score,
            "matched_keywords": list(self.matched_keywords),
            "fallback": self.fallback,
        }


def keyword_weight(keyword: str) -> int:
    """Longer phrases are more specific and weigh more."""
    return len(keyword.split())


@lru_cache(maxsize=2048)
def _keyword_pattern(keyword: str) -> "re.Pattern[str]":
    # Whole-phrase match; the final word may carry a plural suffix
    if CONSONANT_Y.search(keyword):
        phrase = re.escape(keyword[:-1]) + r"(?:y|ies)"
    else:
        phrase = re.escape(keyword) + r"(?:e?s)?"
    return re.compile(r"(?<!\w)" + phrase + r"(?!\w)")


def keyword_matches(keyword: str, normalized_query: str) -> bool:
    return bool(_keyword_pattern(keyword).search(normalized_query))


def as_query(query: Union[Query, str]) -> Query:
    """Coerce input into a Query, rejecting anything that is not text."""
    if isinstance(query, Query):
        return query
    if not isinstance(query, str):
        raise InvalidQueryError(f"query must be a string, got {type(query).__name__}")
    return Query(query)


def fallback_result(registry: ModuleRegistry) -> List[MatchResult]:
    """The single default-module result used when nothing matches."""
    if registry.default_module_id is None:
        # Guarded by validation at startup
        return []
    return [MatchResult(registry.default_module_id, 0, (), fallback=True)]


def score_modules(query: Query, registry: ModuleRegistry) -> List[MatchResult]:
    """
    Score every module with a non-zero match, unsorted and unbounded.

    Duplicate module ids (an invalid registry) are scored once, first wins.
    """
    results = []
    seen = set()
    if query.is_empty:
        return results

    for module in registry:
        if module.id in seen:
            continue
        seen.add(module.id)
        matched = tuple(
            keyword for keyword in module.keywords
            if keyword_matches(keyword, query.normalized)
        )
        if not matched:
            continue
        score = sum(keyword_weight(keyword) for keyword in matched)
        results.append(MatchResult(module.id, score, matched))

    return results


def match(
    query: Union[Query, str],
    registry: ModuleRegistry,
    limit: int = DEFAULT_LIMIT,
) -> List[MatchResult]:
    """
    Match a query against the registry.

    Args:
        query: Query or raw string
        registry: Validated module registry
        limit: Hard cap on returned modules (applied after sorting)

    Returns:
        Ordered MatchResult list; never empty for a registry with a default module

    Raises:
        InvalidQueryError: If query is not a string
    """
    query = as_query(query)
    if limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")

    scored = score_modules(query, registry)
    scored.sort(
        key=lambda r: (
            -r.score,
            registry.get(r.module_id).priority,
            registry.position(r.module_id),
        )
    )
    results = scored[:limit]

    if not results:
        logger.debug(f"No keyword matches, falling back to default: {query.normalized[:50]!r}")
        return fallback_result(registry)

    summary = ", ".join(f"{r.module_id}={r.score}" for r in results)
    logger.debug(f"Matched {summary} for {query.normalized[:50]!r}")
    return results
