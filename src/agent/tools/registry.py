"""
agent.tools.registry - Tool registration, discovery, and binding.

A registry is built once per request (see ServiceFactory.build_registry)
so the tools it holds can share request-scoped state such as the
portfolio details cache. Names are unique; a duplicate is a wiring bug
and fails at registration, never at call time.
"""

from __future__ import annotations

import logging
from typing import Any

from application.context import SessionContext
from agent.tools.base import BaseTool, CapabilityDescriptor, InvokeFn, ToolPayload
from domain.exceptions import CapabilityNotFoundError, DuplicateCapabilityError

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Manages tool registration and exposes tools as capability descriptors."""

    def __init__(self):
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        """Register a tool by its name."""
        if tool.name in self._tools:
            raise DuplicateCapabilityError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool
        logger.debug("Registered tool: %s", tool.name)

    def get(self, name: str) -> BaseTool:
        """Get a tool by name."""
        if name not in self._tools:
            raise CapabilityNotFoundError(f"Tool '{name}' not registered")
        return self._tools[name]

    def names(self) -> list[str]:
        """Return all registered tool names."""
        return list(self._tools.keys())

    def __len__(self) -> int:
        return len(self._tools)

    def descriptors(self, ctx: SessionContext) -> list[CapabilityDescriptor]:
        """Bind every registered tool to ctx.

        The returned list is what the model is offered and what the
        dispatcher resolves call names against.
        """
        return [
            CapabilityDescriptor(
                name=tool.name,
                description=tool.description,
                args_schema=tool.get_schema(),
                invoke=_make_invoke(tool, ctx),
            )
            for tool in self._tools.values()
        ]


def _make_invoke(tool: BaseTool, ctx: SessionContext) -> InvokeFn:
    """Create a closure that validates arguments and runs the tool."""
    schema = tool.get_schema()

    async def invoke(arguments: dict[str, Any]) -> ToolPayload:
        args = schema.model_validate(arguments or {})
        return await tool.execute(ctx, **args.model_dump())

    return invoke
