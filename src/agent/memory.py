"""
agent.memory - Process-wide, per-session conversation memory.

Holds a sliding window of user/assistant turns per session id. The store
is a cache for conversational context, not a record of truth: nothing is
persisted, and sessions are never torn down while the process lives
(session_count() makes that growth visible).

Each session id has its own asyncio.Lock. Reads and append-then-trim
for one id are serialized; different ids never wait on each other.
"""

from __future__ import annotations

import asyncio
import logging

from domain.entities import Turn

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 10  # five user/assistant exchanges


class SessionMemoryStore:
    """Keyed store of bounded turn histories.

    NOT per-session: one instance is shared by every request in the
    process (ServiceFactory owns it).
    """

    def __init__(self, max_turns: int = DEFAULT_WINDOW):
        if max_turns <= 0 or max_turns % 2:
            raise ValueError(
                f"max_turns must be a positive even number, got {max_turns}"
            )
        self._max_turns = max_turns
        self._histories: dict[str, list[Turn]] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def max_turns(self) -> int:
        return self._max_turns

    def session_count(self) -> int:
        return len(self._histories)

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    async def get(self, session_id: str) -> tuple[Turn, ...]:
        """Return a snapshot of the session's history, creating it on first use."""
        async with self._lock_for(session_id):
            history = self._histories.get(session_id)
            if history is None:
                history = self._histories[session_id] = []
                logger.debug("Created session %s", session_id)
            return tuple(history)

    async def append(self, session_id: str, user_turn: Turn, assistant_turn: Turn) -> None:
        """Append one exchange, then drop the oldest turns beyond the window."""
        async with self._lock_for(session_id):
            history = self._histories.setdefault(session_id, [])
            history.append(user_turn)
            history.append(assistant_turn)
            overflow = len(history) - self._max_turns
            if overflow > 0:
                del history[:overflow]
                logger.debug(
                    "Trimmed %d turn(s) from session %s", overflow, session_id,
                )
