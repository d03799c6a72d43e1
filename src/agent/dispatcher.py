"""
agent.dispatcher - Concurrent execution of one decision's tool calls.

Every call in a batch runs as its own task; a failure in one never touches
its siblings. The batch returns only when all calls have settled, with
exactly one CapabilityResult per CapabilityCall, in call order.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Optional, Sequence

from agent.tools.base import CapabilityCall, CapabilityDescriptor, CapabilityResult, ToolPayload

logger = logging.getLogger(__name__)


class ConcurrentDispatcher:
    """Fan-out/fan-in runner for capability calls.

    timeout_seconds bounds each call individually. A call that exceeds it
    is reported as an error result like any other failure.
    """

    def __init__(self, timeout_seconds: Optional[float] = None):
        if timeout_seconds is not None and timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive when set")
        self._timeout = timeout_seconds

    async def dispatch(
        self,
        calls: Sequence[CapabilityCall],
        capabilities: Sequence[CapabilityDescriptor],
    ) -> list[CapabilityResult]:
        by_name = {d.name: d for d in capabilities}
        results = await asyncio.gather(
            *(self._run_one(call, by_name.get(call.name)) for call in calls)
        )
        return list(results)

    async def _run_one(
        self,
        call: CapabilityCall,
        descriptor: Optional[CapabilityDescriptor],
    ) -> CapabilityResult:
        if descriptor is None:
            logger.warning("Unknown tool requested: %s (id=%s)", call.name, call.id)
            return CapabilityResult.failure(call, f"Unknown tool: {call.name}")

        started = time.perf_counter()
        try:
            if self._timeout is None:
                payload = await descriptor.invoke(call.arguments)
            else:
                payload = await self._with_deadline(descriptor.invoke(call.arguments))
        except _DeadlineExceeded:
            elapsed = _elapsed_ms(started)
            logger.error("Tool %s timed out after %.1fs", call.name, self._timeout)
            return CapabilityResult.failure(
                call,
                f"Tool execution failed: timed out after {self._timeout:g}s",
                duration_ms=elapsed,
            )
        except Exception as exc:
            elapsed = _elapsed_ms(started)
            reason = str(exc) or type(exc).__name__
            logger.error("Tool %s failed: %s", call.name, reason)
            return CapabilityResult.failure(
                call, f"Tool execution failed: {reason}", duration_ms=elapsed,
            )

        if not isinstance(payload, dict):
            payload = {"result": payload}
        return CapabilityResult(
            call_id=call.id,
            name=call.name,
            payload=payload,
            duration_ms=_elapsed_ms(started),
        )

    async def _with_deadline(self, invocation: Awaitable[ToolPayload]) -> ToolPayload:
        """Await invocation for at most timeout_seconds.

        Only an expired deadline raises _DeadlineExceeded; a TimeoutError
        raised by the tool itself propagates unchanged.
        """
        task = asyncio.ensure_future(invocation)
        try:
            done, _ = await asyncio.wait({task}, timeout=self._timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if not done:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise _DeadlineExceeded()
        return task.result()


class _DeadlineExceeded(Exception):
    """The per-call deadline expired before the tool finished."""


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
