"""
MODULE OVERVIEW:
The demo server's in-memory conversation registry.

WHAT IS HAPPENING HERE:
Each conversation id maps to its message history plus access timestamps.
Entries idle for longer than the TTL are evicted lazily on every lookup, so there
is no background sweeper task to manage. The server runs a single event loop, so
plain dict access needs no locking.
"""

import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from loguru import logger

from streamchat.shared.config import settings


@dataclass
class SessionEntry:
    history: List[dict] = field(default_factory=list)
    created_at: float = 0.0
    last_accessed: float = 0.0


class SessionStore:
    def __init__(self, ttl_s: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_s = ttl_s if ttl_s is not None else settings.SESSION_TTL_S
        self.clock = clock
        self._sessions: Dict[str, SessionEntry] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, conversation_id: str) -> bool:
        return conversation_id in self._sessions

    def get_or_create(self, conversation_id: Optional[str]) -> Tuple[str, List[dict]]:
        """Returns the id (minted when missing) and a copy of its history."""
        cid = conversation_id or str(uuid.uuid4())
        self._evict_expired()

        now = self.clock()
        entry = self._sessions.get(cid)
        if entry is None:
            self._sessions[cid] = SessionEntry(created_at=now, last_accessed=now)
            logger.info(f"conversation_id={cid} event=session_created")
            return cid, []

        entry.last_accessed = now
        return cid, list(entry.history)

    def save_history(self, conversation_id: str, history: List[dict]) -> None:
        entry = self._sessions.get(conversation_id)
        if entry is not None:
            entry.history = history
            entry.last_accessed = self.clock()

    def delete(self, conversation_id: str) -> bool:
        removed = self._sessions.pop(conversation_id, None) is not None
        logger.info(f"conversation_id={conversation_id} event=session_deleted existed={removed}")
        return removed

    def _evict_expired(self) -> None:
        now = self.clock()
        expired = [cid for cid, e in self._sessions.items() if now - e.last_accessed >= self.ttl_s]
        for cid in expired:
            del self._sessions[cid]
        if expired:
            logger.debug(f"evicted {len(expired)} expired sessions")
