"""
domain.entities - Conversation types that outlive a single request.

A Turn is the unit stored in session memory. Only user/assistant text
is persisted; tool decisions and tool results stay inside the request
that produced them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Author of a persisted conversation turn."""
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Turn:
    """One user or assistant message in a session's history."""
    role: Role
    content: str

    @classmethod
    def user(cls, content: str) -> Turn:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> Turn:
        return cls(role=Role.ASSISTANT, content=content)
