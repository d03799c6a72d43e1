"""
agent.cache - Request-scoped memoization of in-flight async work.

Several tools run in parallel inside one dispatch step and often need the
same expensive upstream result (the full portfolio details). RequestCache
stores the *task*, not the resolved value, so a caller that arrives while
the first computation is still running awaits the same task instead of
starting a second one.

One instance per orchestration run. Never share an instance between
requests: keys are scoped to the request, and so is the data behind them.
"""

from __future__ import annotations

import asyncio
import dataclasses
import functools
import json
import logging
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def fingerprint(params: Any) -> str:
    """Canonical string for a parameter set.

    Dict keys are sorted at every depth, so {"a": 1, "b": 2} and
    {"b": 2, "a": 1} produce the same fingerprint. Sets and frozensets
    are sorted; dataclasses are flattened to dicts.
    """
    return json.dumps(params, sort_keys=True, separators=(",", ":"), default=_canonical)


def _canonical(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=fingerprint)
    return str(value)


class RequestCache:
    """Memoize awaitables by parameter fingerprint within one request."""

    def __init__(self, scope: str):
        self._scope = scope
        self._tasks: dict[str, asyncio.Future] = {}

    def key_for(self, params: Any) -> str:
        return fingerprint({"scope": self._scope, "params": params})

    def __len__(self) -> int:
        return len(self._tasks)

    async def get_or_compute(
        self,
        params: Any,
        compute: Callable[[], Awaitable[T]],
    ) -> T:
        """Return the shared result for params, starting compute() at most once.

        All callers waiting on a key see the same exception if the
        computation fails. A failed entry is evicted so a later call can
        recompute. A waiter that is cancelled does not cancel the shared
        computation for the others.
        """
        key = self.key_for(params)
        # No await between lookup and insert: the event loop cannot
        # interleave another caller here.
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(compute())
            self._tasks[key] = task
            task.add_done_callback(functools.partial(self._evict_if_failed, key))
            logger.debug("Cache miss [scope=%s]: %s", self._scope, key)
        else:
            logger.debug("Cache hit [scope=%s]: %s", self._scope, key)

        return await asyncio.shield(task)

    def _evict_if_failed(self, key: str, task: asyncio.Future) -> None:
        if not task.cancelled() and task.exception() is None:
            return
        if self._tasks.get(key) is task:
            del self._tasks[key]
            logger.debug("Evicted failed entry [scope=%s]: %s", self._scope, key)
