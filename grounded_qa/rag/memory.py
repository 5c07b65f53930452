"""
Bounded per-session conversation memory (in-process only).
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict, deque
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Deque, Iterator, List, Literal

Role = Literal["user", "assistant"]

DEFAULT_MAX_SESSIONS = 1000

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversationTurn:
    role: Role
    text: str
    index: int


class _Session:
    def __init__(self, window_size: int) -> None:
        self.lock = threading.RLock()
        self.turns: Deque[ConversationTurn] = deque(maxlen=window_size)
        self.next_index = 0
        # Callers currently inside `session()`; guarded by the registry lock.
        self.holders = 0


class ConversationMemory:
    """
    Keeps the last `window_size` turns of every session, evicting the oldest first.

    Callers that read the window and append to it as one step hold
    `session(session_id)`; sessions never share a lock. At most `max_sessions`
    sessions are kept: the least recently used idle one is dropped on
    overflow, and a session left without turns is dropped when released.
    """

    def __init__(self, window_size: int, max_sessions: int = DEFAULT_MAX_SESSIONS) -> None:
        if window_size <= 0:
            raise ValueError("window_size must be positive")
        if max_sessions <= 0:
            raise ValueError("max_sessions must be positive")
        self.window_size = window_size
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, _Session]" = OrderedDict()
        self._registry_lock = threading.Lock()

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._sessions)

    def _get(self, session_id: str) -> _Session:
        """Fetch or create a session; caller holds the registry lock."""
        session = self._sessions.get(session_id)
        if session is None:
            session = _Session(self.window_size)
            self._sessions[session_id] = session
            self._evict_idle(keep=session_id)
        else:
            self._sessions.move_to_end(session_id)
        return session

    def _evict_idle(self, keep: str) -> None:
        overflow = len(self._sessions) - self.max_sessions
        if overflow <= 0:
            return
        candidates = [sid for sid, s in self._sessions.items() if sid != keep and s.holders == 0]
        for sid in candidates[:overflow]:
            del self._sessions[sid]
            logger.info("Evicted idle session", extra={"session_id": sid})

    @contextmanager
    def session(self, session_id: str) -> Iterator[None]:
        with self._registry_lock:
            session = self._get(session_id)
            session.holders += 1
        try:
            with session.lock:
                yield
        finally:
            with self._registry_lock:
                session.holders -= 1
                if (
                    session.holders == 0
                    and not session.turns
                    and self._sessions.get(session_id) is session
                ):
                    del self._sessions[session_id]
                else:
                    self._evict_idle(keep=session_id)

    def append(self, session_id: str, role: Role, text: str) -> ConversationTurn:
        with self._registry_lock:
            session = self._get(session_id)
        with session.lock:
            turn = ConversationTurn(role=role, text=text, index=session.next_index)
            session.next_index += 1
            session.turns.append(turn)
            return turn

    def window(self, session_id: str) -> List[ConversationTurn]:
        with self._registry_lock:
            session = self._sessions.get(session_id)
        if session is None:
            return []
        with session.lock:
            return list(session.turns)

    def discard(self, session_id: str) -> None:
        with self._registry_lock:
            self._sessions.pop(session_id, None)


__all__ = ["ConversationMemory", "ConversationTurn", "DEFAULT_MAX_SESSIONS"]
