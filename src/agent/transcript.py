"""
agent.transcript - What the model sees at each decision point.

A Transcript is built fresh for every request: system instruction,
the session's stored turns, the new user turn, then the decisions and
tool results produced during this run. Only the user turn and the final
answer are written back to session memory; the steps are discarded.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union

from agent.tools.base import CapabilityCall, CapabilityResult
from domain.entities import Turn


@dataclass(frozen=True)
class Decision:
    """The model's reply at one decision point.

    A decision with no calls is final, whatever its text says.
    """
    text: str = ""
    calls: tuple[CapabilityCall, ...] = ()

    @property
    def is_final(self) -> bool:
        return not self.calls


Step = Union[Decision, CapabilityResult]


class Transcript:
    """Ordered record passed to the model collaborator."""

    def __init__(self, system_prompt: str, history: Iterable[Turn], query: str):
        self.system_prompt = system_prompt
        self.history: tuple[Turn, ...] = tuple(history)
        self.user_turn = Turn.user(query)
        self._steps: list[Step] = []

    @property
    def steps(self) -> tuple[Step, ...]:
        return tuple(self._steps)

    def add_decision(self, decision: Decision) -> None:
        self._steps.append(decision)

    def add_results(self, results: Iterable[CapabilityResult]) -> None:
        """Append the results for the latest decision.

        Every call of that decision must be answered, so the next
        decision never sees a call without its result.
        """
        results = list(results)
        last = self._last_decision()
        expected = {call.id for call in last.calls} if last else set()
        answered = {result.call_id for result in results}
        missing = expected - answered
        if missing:
            raise ValueError(f"Missing results for call id(s): {sorted(missing)}")
        self._steps.extend(results)

    def _last_decision(self) -> Decision | None:
        for step in reversed(self._steps):
            if isinstance(step, Decision):
                return step
        return None
