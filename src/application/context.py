"""
application.context - Request-scoped session context.

Every function receives its context explicitly. Two concurrent requests
get two different SessionContext instances, even when they share a
conversation id; the only state they share lives in SessionMemoryStore.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from uuid import uuid4


def default_session_id(user_id: str) -> str:
    """Fallback conversation id used when the client does not send one."""
    return f"{user_id}-default"


@dataclass
class SessionContext:
    """Per-request context passed through all layers.

    Attributes:
        user_id:          Authenticated principal (provided by adapter).
        conversation_id:  Client-chosen session id, or the per-user default.
        request_id:       Unique per request; scopes the memoization cache
                          and tags log lines.
    """
    user_id: str
    conversation_id: str
    request_id: str = field(default_factory=lambda: uuid4().hex)

    @classmethod
    def for_request(cls, user_id: str, session_id: Optional[str] = None) -> SessionContext:
        return cls(
            user_id=user_id,
            conversation_id=session_id or default_session_id(user_id),
        )
