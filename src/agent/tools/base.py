"""
agent.tools.base - Base tool interface and the capability contract types.

All agent tools inherit from BaseTool and return a JSON-serialisable dict.
The registry binds a tool to a SessionContext and exposes it to the
executor as a CapabilityDescriptor; the model asks for it with a
CapabilityCall and gets back exactly one CapabilityResult.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from application.context import SessionContext

ToolPayload = dict[str, Any]
InvokeFn = Callable[[dict[str, Any]], Awaitable[ToolPayload]]


class BaseTool(ABC):
    """Abstract base for all agent tools."""

    name: str
    description: str

    @abstractmethod
    async def execute(self, ctx: SessionContext, **kwargs) -> ToolPayload:
        """Execute the tool with the given session context and arguments.

        Raise on failure; the dispatcher turns the exception into an
        error result the model can read.
        """
        ...

    @abstractmethod
    def get_schema(self) -> type[BaseModel]:
        """Return the Pydantic schema for this tool's input arguments."""
        ...


@dataclass(frozen=True)
class CapabilityDescriptor:
    """A tool bound to one request, as seen by the dispatcher and the model.

    invoke validates its own arguments against args_schema.
    """
    name: str
    description: str
    args_schema: type[BaseModel]
    invoke: InvokeFn

    def json_schema(self) -> dict[str, Any]:
        return self.args_schema.model_json_schema()


@dataclass(frozen=True)
class CapabilityCall:
    """One invocation requested by the model in a single decision."""
    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "arguments", dict(self.arguments or {}))


@dataclass(frozen=True)
class CapabilityResult:
    """Outcome of one CapabilityCall: a payload or an error payload."""
    call_id: str
    name: str
    payload: ToolPayload
    is_error: bool = False
    duration_ms: int = 0

    @classmethod
    def failure(cls, call: CapabilityCall, message: str, duration_ms: int = 0) -> CapabilityResult:
        return cls(
            call_id=call.id,
            name=call.name,
            payload={"error": message},
            is_error=True,
            duration_ms=duration_ms,
        )

    def content(self) -> str:
        """Payload as the JSON text handed back to the model."""
        return json.dumps(self.payload, default=str)
