"""
application.dto - Data Transfer Objects for agent input/output.

These are the structured results the executor returns to callers
(REST endpoints, CLI adapters, evaluation scripts).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class IssuedCall:
    """A capability call that was actually dispatched during a run."""
    name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StepTiming:
    step: str
    ms: int


@dataclass(frozen=True)
class Performance:
    total_ms: int
    iterations: int
    timings: list[StepTiming] = field(default_factory=list)


@dataclass(frozen=True)
class ChatResult:
    """Complete result of one orchestration run.

    outcome is "answered" when the model produced a final answer and
    "exhausted" when the decision cap was hit and the fallback was used.
    """
    answer: str
    session_id: str
    tool_calls: list[IssuedCall]
    performance: Performance
    outcome: str = "answered"

    def to_dict(self) -> dict[str, Any]:
        """Wire shape used by the REST adapter."""
        return {
            "answer": self.answer,
            "sessionId": self.session_id,
            "toolCalls": [{"name": c.name, "args": c.args} for c in self.tool_calls],
            "performance": {
                "totalMs": self.performance.total_ms,
                "iterations": self.performance.iterations,
                "timings": [{"step": t.step, "ms": t.ms} for t in self.performance.timings],
            },
        }
