"""
Conversation Sessions

A Session records which modules a conversation has already been shown and
the per-turn match history (diagnostics only, never used for scoring).
Sessions live in a SessionStore keyed by conversation id and are dropped when
the conversation ends; nothing is persisted across process restarts.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from power_router.matcher import MatchResult

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Per-conversation mutable state. Mutated only by the loader."""

    conversation_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    # dict keys as an insertion-ordered set
    _loaded: Dict[str, None] = field(default_factory=dict, repr=False)
    turn_history: List[List[MatchResult]] = field(default_factory=list)

    @property
    def loaded_module_ids(self) -> List[str]:
        return list(self._loaded)

    def is_loaded(self, module_id: str) -> bool:
        return module_id in self._loaded

    def mark_loaded(self, module_id: str) -> None:
        self._loaded.setdefault(module_id, None)

    def record_turn(self, matches: List[MatchResult]) -> None:
        self.turn_history.append(list(matches))

    @property
    def turn_count(self) -> int:
        return len(self.turn_history)

    def to_dict(self) -> dict:
        return {
            "conversation_id": self.conversation_id,
            "loaded_module_ids": self.loaded_module_ids,
            "turns": [[m.to_dict() for m in turn] for turn in self.turn_history],
        }


class SessionStore:
    """Arena of live sessions, one per open conversation."""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def get_or_create(self, conversation_id: Optional[str] = None) -> Session:
        """Return the conversation's session, starting one if needed."""
        if conversation_id is None:
            conversation_id = uuid.uuid4().hex
        session = self._sessions.get(conversation_id)
        if session is None:
            session = Session(conversation_id=conversation_id)
            self._sessions[conversation_id] = session
            logger.info(f"Session started: {conversation_id}")
        return session

    def get(self, conversation_id: str) -> Optional[Session]:
        return self._sessions.get(conversation_id)

    def end(self, conversation_id: str) -> bool:
        """Destroy a session. Returns False if it did not exist."""
        session = self._sessions.pop(conversation_id, None)
        if session is None:
            return False
        logger.info(
            f"Session ended: {conversation_id} "
            f"({session.turn_count} turns, {len(session.loaded_module_ids)} modules)"
        )
        return True

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._sessions
