"""User try-on history store.

The engine only appends records and reads a user's history; persistence
format belongs to whatever backs the store in production.
"""

import threading
from collections import defaultdict
from typing import Protocol

from ..models import TryOnSessionRecord


class SessionStore(Protocol):
    def append(self, record: TryOnSessionRecord) -> None:
        ...

    def history(self, user_id: str) -> list[TryOnSessionRecord]:
        ...


class InMemorySessionStore:
    """Process-local store, bounded per user."""

    def __init__(self, max_per_user: int = 200):
        self.max_per_user = max_per_user
        self._sessions: dict[str, list[TryOnSessionRecord]] = defaultdict(list)
        self._lock = threading.Lock()

    def append(self, record: TryOnSessionRecord) -> None:
        with self._lock:
            sessions = self._sessions[record.user_id]
            sessions.append(record)
            if len(sessions) > self.max_per_user:
                del sessions[:-self.max_per_user]

    def history(self, user_id: str) -> list[TryOnSessionRecord]:
        with self._lock:
            return list(self._sessions.get(user_id, ()))
