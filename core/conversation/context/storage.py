"""
In-process session storage.

This module holds the ordered dialogue turns of every family in memory and
owns the per-family lock that serializes message handling for one family.
Sessions are a continuity aid only; the durable source of truth is the
persisted child profile.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from models.schemas import Turn

logger = logging.getLogger(__name__)


@dataclass
class StorageConfig:
    """Configuration for session storage"""
    history_window: int = 10


class SessionStore:
    """
    Per-family, append-only dialogue history.

    Memory is unbounded; only the context handed to response generation is
    bounded, through recent_window().
    """

    def __init__(self, config: Optional[StorageConfig] = None):
        self.config = config or StorageConfig()
        self._sessions: Dict[str, List[Turn]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def append(self, family_id: str, turn: Turn) -> None:
        """Add a turn to the family's session, creating the session on first use"""
        self._sessions.setdefault(family_id, []).append(turn)

    def history(self, family_id: str) -> List[Turn]:
        """All turns in original order (a copy)"""
        return list(self._sessions.get(family_id, ()))

    def recent_window(self, family_id: str, n: Optional[int] = None) -> List[Turn]:
        """
        Last n turns in original order.

        Args:
            family_id: Family identifier
            n: Window size, defaults to the configured history window

        Returns:
            Up to n most recent turns
        """
        n = self.config.history_window if n is None else n
        if n <= 0:
            return []
        return self.history(family_id)[-n:]

    def clear(self, family_id: str) -> None:
        """Remove the family's session. The lock stays, queued messages may still wait on it."""
        removed = self._sessions.pop(family_id, None)
        if removed is not None:
            logger.info(f"Cleared conversation for family {family_id} ({len(removed)} turns)")

    def lock(self, family_id: str) -> asyncio.Lock:
        """The mutex that serializes orchestration for one family"""
        lock = self._locks.get(family_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[family_id] = lock
        return lock

    def session_count(self) -> int:
        """Get count of live sessions"""
        return len(self._sessions)
