"""
agent.executor - Agent execution engine.

Runs the decide → dispatch loop as an explicit state machine:

    START → DECIDING → (DISPATCHING → DECIDING)* → ANSWERED
                                                 → EXHAUSTED

DECIDING is entered at most max_iterations times. A run always ends with
exactly one answer string: the model's final text, or the fixed fallback
when the cap is spent. Tool failures become data for the model; a model
failure aborts the run with ModelDecisionError.

No component construction and no business logic. Constructed by
factory.py with all dependencies injected; one instance serves every
request in the process.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Optional, Sequence

from agent.dispatcher import ConcurrentDispatcher
from agent.memory import SessionMemoryStore
from agent.tools.base import CapabilityDescriptor
from agent.tools.registry import ToolRegistry
from agent.transcript import Decision, Transcript
from application.context import SessionContext
from application.dto import ChatResult, IssuedCall, Performance, StepTiming
from domain.entities import Turn
from domain.exceptions import InvalidQueryError, ModelDecisionError
from domain.ports import DecisionModelPort

logger = logging.getLogger(__name__)

MAX_DECISION_STEPS = 3

EXHAUSTED_MESSAGE = (
    "I was unable to complete your request within the allowed number of steps. "
    "Please try rephrasing your question or breaking it into smaller parts."
)

RegistryBuilder = Callable[[SessionContext], ToolRegistry]
PromptBuilder = Callable[[ToolRegistry], str]


class LoopState(str, Enum):
    START = "start"
    DECIDING = "deciding"
    DISPATCHING = "dispatching"
    ANSWERED = "answered"
    EXHAUSTED = "exhausted"


class AgentExecutor:
    """Runs the LLM + tool selection loop.

    Stateless per call apart from the shared SessionMemoryStore; all
    request state (registry, cache, transcript) is built inside run().
    """

    def __init__(
        self,
        model: DecisionModelPort,
        registry_builder: RegistryBuilder,
        memory: SessionMemoryStore,
        prompt_builder: PromptBuilder,
        dispatcher: Optional[ConcurrentDispatcher] = None,
        max_iterations: int = MAX_DECISION_STEPS,
    ):
        if isinstance(max_iterations, bool) or not isinstance(max_iterations, int) or max_iterations < 1:
            raise ValueError(f"max_iterations must be a positive integer, got {max_iterations!r}")
        self._model = model
        self._registry_builder = registry_builder
        self._memory = memory
        self._prompt_builder = prompt_builder
        self._dispatcher = dispatcher or ConcurrentDispatcher()
        self._max_iterations = max_iterations

    @property
    def memory(self) -> SessionMemoryStore:
        return self._memory

    async def run(self, ctx: SessionContext, user_input: str) -> ChatResult:
        """Answer one user message within ctx's session.

        Args:
            ctx:        Request context (principal, session id, request id).
            user_input: The user's message text; must not be blank.

        Returns:
            ChatResult with the answer, dispatched calls and timings.

        Raises:
            InvalidQueryError:   user_input is blank.
            ModelDecisionError:  the model collaborator failed. Nothing is
                                 written to session memory in that case.
        """
        if not user_input or not user_input.strip():
            raise InvalidQueryError("query must be a non-empty string")

        started = time.perf_counter()
        session_id = ctx.conversation_id
        timings: list[StepTiming] = []
        issued: list[IssuedCall] = []

        state = LoopState.START
        history = await self._memory.get(session_id)
        registry = self._registry_builder(ctx)
        capabilities = registry.descriptors(ctx)
        known = {c.name for c in capabilities}
        transcript = Transcript(self._prompt_builder(registry), history, user_input)

        logger.info(
            "Agent processing (user=%s, session=%s, request=%s): %s",
            ctx.user_id, session_id, ctx.request_id, user_input[:80],
        )

        iterations = 0
        decision: Optional[Decision] = None
        answer = ""
        state = LoopState.DECIDING

        while state in (LoopState.DECIDING, LoopState.DISPATCHING):
            if state is LoopState.DECIDING:
                if iterations >= self._max_iterations:
                    state = LoopState.EXHAUSTED
                    continue
                iterations += 1
                decision = await self._decide(transcript, capabilities, iterations, timings)
                transcript.add_decision(decision)
                if decision.is_final:
                    # a blank reply still ends the run, with the fallback text
                    answer = decision.text if decision.text.strip() else EXHAUSTED_MESSAGE
                    state = LoopState.ANSWERED
                else:
                    state = LoopState.DISPATCHING
            else:
                for call in decision.calls:
                    if call.name in known:
                        logger.info(
                            "Executing tool: %s (id=%s) [session=%s, iteration=%d]",
                            call.name, call.id, session_id, iterations,
                        )
                        issued.append(IssuedCall(name=call.name, args=dict(call.arguments)))

                results = await self._dispatcher.dispatch(decision.calls, capabilities)
                timings.extend(
                    StepTiming(step=f"tool_{r.name}", ms=r.duration_ms)
                    for r in results if r.name in known
                )
                transcript.add_results(results)
                state = LoopState.DECIDING

        if state is LoopState.EXHAUSTED:
            logger.warning(
                "Decision cap (%d) reached without a final answer [session=%s]",
                self._max_iterations, session_id,
            )
            answer = EXHAUSTED_MESSAGE

        await self._memory.append(session_id, Turn.user(user_input), Turn.assistant(answer))

        total_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            "Chat completed [session=%s, iterations=%d, total=%dms, %s]",
            session_id, iterations, total_ms,
            ", ".join(f"{t.step}={t.ms}ms" for t in timings),
        )

        return ChatResult(
            answer=answer,
            session_id=session_id,
            tool_calls=issued,
            performance=Performance(total_ms=total_ms, iterations=iterations, timings=timings),
            outcome=state.value,
        )

    async def _decide(
        self,
        transcript: Transcript,
        capabilities: Sequence[CapabilityDescriptor],
        iteration: int,
        timings: list[StepTiming],
    ) -> Decision:
        started = time.perf_counter()
        try:
            return await self._model.decide(transcript, capabilities)
        except ModelDecisionError:
            raise
        except Exception as exc:
            logger.error("Model decision %d failed: %s", iteration, exc)
            raise ModelDecisionError(f"Model decision failed: {exc}") from exc
        finally:
            timings.append(StepTiming(
                step=f"llm_call_{iteration}",
                ms=int((time.perf_counter() - started) * 1000),
            ))
