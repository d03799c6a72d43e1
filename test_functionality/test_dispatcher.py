import asyncio
import time

import pytest

from agent.dispatcher import ConcurrentDispatcher
from conftest import FakeTool, call, registry_of


def _dispatch(dispatcher, calls, tools, ctx):
    return asyncio.run(dispatcher.dispatch(calls, registry_of(*tools).descriptors(ctx)))


def test_one_result_per_call_in_call_order(ctx):
    ok = FakeTool("ok")
    boom = FakeTool("boom", error=RuntimeError("db unavailable"))
    calls = [
        call("ok", "c1", n=1),
        call("nope", "c2"),
        call("boom", "c3"),
        call("ok", "c4", n=2),
    ]

    results = _dispatch(ConcurrentDispatcher(), calls, [ok, boom], ctx)

    assert [r.call_id for r in results] == ["c1", "c2", "c3", "c4"]
    assert results[0].payload == {"tool": "ok", "args": {"n": 1}}
    assert results[1].payload == {"error": "Unknown tool: nope"}
    assert results[2].payload == {"error": "Tool execution failed: db unavailable"}
    assert [r.is_error for r in results] == [False, True, True, False]
    assert ok.calls == [{"n": 1}, {"n": 2}]


def test_unknown_tool_is_never_invoked(ctx):
    other = FakeTool("other")
    results = _dispatch(ConcurrentDispatcher(), [call("missing")], [other], ctx)
    assert results[0].payload["error"] == "Unknown tool: missing"
    assert other.calls == []


def test_calls_run_concurrently(ctx):
    tools = [FakeTool(f"slow{i}", delay=0.2) for i in range(4)]
    calls = [call(t.name) for t in tools]

    started = time.perf_counter()
    results = _dispatch(ConcurrentDispatcher(), calls, tools, ctx)
    elapsed = time.perf_counter() - started

    assert len(results) == 4
    assert elapsed < 0.6


def test_failure_does_not_cancel_siblings(ctx):
    slow = FakeTool("slow", delay=0.05, result={"done": True})
    boom = FakeTool("boom", error=ValueError())
    results = _dispatch(ConcurrentDispatcher(), [call("boom"), call("slow")], [slow, boom], ctx)
    assert results[0].payload == {"error": "Tool execution failed: ValueError"}
    assert results[1].payload == {"done": True}


def test_timeout_becomes_error_result(ctx):
    slow = FakeTool("slow", delay=1.0)
    fast = FakeTool("fast")
    results = _dispatch(ConcurrentDispatcher(timeout_seconds=0.05),
                        [call("slow"), call("fast")], [slow, fast], ctx)
    assert results[0].payload == {"error": "Tool execution failed: timed out after 0.05s"}
    assert not results[1].is_error


def test_non_dict_payload_is_wrapped(ctx):
    listy = FakeTool("listy", result=[1, 2])
    results = _dispatch(ConcurrentDispatcher(), [call("listy")], [listy], ctx)
    assert results[0].payload == {"result": [1, 2]}


def test_empty_batch(ctx):
    assert _dispatch(ConcurrentDispatcher(), [], [], ctx) == []


@pytest.mark.parametrize("timeout", [0, -1])
def test_rejects_non_positive_timeout(timeout):
    with pytest.raises(ValueError):
        ConcurrentDispatcher(timeout_seconds=timeout)


@pytest.mark.parametrize("timeout", [None, 30])
def test_tool_raising_timeout_error_keeps_its_reason(ctx, timeout):
    upstream = FakeTool("upstream", error=TimeoutError("socket read timed out"))
    ok = FakeTool("ok")
    results = _dispatch(ConcurrentDispatcher(timeout_seconds=timeout),
                        [call("upstream"), call("ok")], [upstream, ok], ctx)
    assert results[0].payload == {"error": "Tool execution failed: socket read timed out"}
    assert not results[1].is_error


def test_deadline_cancels_slow_tool(ctx):
    cancelled = []

    class Hanging(FakeTool):
        async def execute(self, ctx, **kwargs):
            try:
                await asyncio.sleep(5)
            except asyncio.CancelledError:
                cancelled.append(True)
                raise

    results = _dispatch(ConcurrentDispatcher(timeout_seconds=0.05),
                        [call("hang")], [Hanging("hang")], ctx)
    assert results[0].payload == {"error": "Tool execution failed: timed out after 0.05s"}
    assert cancelled == [True]
