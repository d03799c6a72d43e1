"""
Shared test doubles.

Nothing here talks to an LLM or a Ghostfolio server: the model is a
scripted DecisionModelPort and the portfolio back-end is the demo
fixture file shipped in data/.
"""

import asyncio
import os
import sys
from pathlib import Path
from typing import Any, Optional

import pytest
from pydantic import BaseModel, ConfigDict

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from agent.executor import AgentExecutor
from agent.memory import SessionMemoryStore
from agent.tools.base import BaseTool, CapabilityCall
from agent.tools.registry import ToolRegistry
from agent.transcript import Decision
from application.context import SessionContext
from infrastructure.portfolio.fixture_gateway import FixturePortfolioGateway

FIXTURE_PATH = Path(__file__).resolve().parent.parent / "data" / "demo_portfolio.json"


class ScriptedModel:
    """DecisionModelPort that replays a fixed list of decisions.

    Each step may be a Decision or an exception instance to raise.
    Once the script runs out the last entry is repeated. Every call
    records the transcript steps it was shown.
    """

    def __init__(self, *script):
        self._script = list(script)
        self.seen: list[list[Any]] = []
        self.capability_names: list[list[str]] = []
        self.histories: list[list[Any]] = []

    async def decide(self, transcript, capabilities):
        self.seen.append(list(transcript.steps))
        self.histories.append(list(transcript.history))
        self.capability_names.append([c.name for c in capabilities])
        step = self._script.pop(0) if len(self._script) > 1 else self._script[0]
        if isinstance(step, BaseException):
            raise step
        return step


class FreeArgs(BaseModel):
    model_config = ConfigDict(extra="allow")


class FakeTool(BaseTool):
    """Tool that returns a canned payload, raises, or sleeps first."""

    def __init__(self, name: str, result: Any = None, error: Optional[Exception] = None,
                 delay: float = 0.0):
        self.name = name
        self.description = f"fake {name}"
        self._result = result
        self._error = error
        self._delay = delay
        self.calls: list[dict] = []

    def get_schema(self):
        return FreeArgs

    async def execute(self, ctx: SessionContext, **kwargs):
        self.calls.append(kwargs)
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return self._result if self._result is not None else {"tool": self.name, "args": kwargs}


def call(name: str, call_id: Optional[str] = None, **arguments) -> CapabilityCall:
    return CapabilityCall(id=call_id or f"id-{name}", name=name, arguments=arguments)


def registry_of(*tools: BaseTool) -> ToolRegistry:
    registry = ToolRegistry()
    for tool in tools:
        registry.register(tool)
    return registry


def make_executor(model, *tools, max_iterations=3, memory=None, dispatcher=None) -> AgentExecutor:
    registry = registry_of(*tools)
    return AgentExecutor(
        model=model,
        registry_builder=lambda ctx: registry,
        memory=memory or SessionMemoryStore(),
        prompt_builder=lambda reg: "system",
        dispatcher=dispatcher,
        max_iterations=max_iterations,
    )


def final(text: str) -> Decision:
    return Decision(text=text)


def requesting(*calls: CapabilityCall, text: str = "") -> Decision:
    return Decision(text=text, calls=tuple(calls))


@pytest.fixture
def ctx():
    return SessionContext.for_request("alice", "s1")


@pytest.fixture
def gateway():
    return FixturePortfolioGateway.from_file(FIXTURE_PATH)
