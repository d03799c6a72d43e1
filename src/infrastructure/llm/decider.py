"""
infrastructure.llm.decider - LangChain chat model as the decision collaborator.

Implements DecisionModelPort: renders a Transcript as LangChain messages,
offers the capability descriptors as bound tools, and maps the reply's
tool_calls back to CapabilityCalls. Exceptions from the model propagate;
the executor turns them into ModelDecisionError.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence
from uuid import uuid4

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)

from agent.tools.base import CapabilityCall, CapabilityDescriptor, CapabilityResult
from agent.transcript import Decision, Transcript
from domain.entities import Role

logger = logging.getLogger(__name__)


class LangChainDecider:
    """Decision collaborator backed by any tool-calling LangChain chat model."""

    def __init__(self, llm: BaseChatModel):
        self._llm = llm

    async def decide(
        self,
        transcript: Transcript,
        capabilities: Sequence[CapabilityDescriptor],
    ) -> Decision:
        messages = to_messages(transcript)
        model = self._llm
        if capabilities:
            model = self._llm.bind_tools([to_openai_tool(c) for c in capabilities])

        reply = await model.ainvoke(messages)

        # fallback ids must stay unique across the decisions of one transcript
        batch = uuid4().hex[:8]
        calls = tuple(
            CapabilityCall(
                id=tc.get("id") or f"call_{batch}_{i}_{tc['name']}",
                name=tc["name"],
                arguments=tc.get("args") or {},
            )
            for i, tc in enumerate(getattr(reply, "tool_calls", None) or [])
        )
        text = content_text(reply.content)
        logger.debug("Model replied with %d call(s), %d chars", len(calls), len(text))
        return Decision(text=text, calls=calls)


def to_openai_tool(descriptor: CapabilityDescriptor) -> dict[str, Any]:
    """OpenAI function-tool format, accepted by every supported provider."""
    return {
        "type": "function",
        "function": {
            "name": descriptor.name,
            "description": descriptor.description,
            "parameters": descriptor.json_schema(),
        },
    }


def to_messages(transcript: Transcript) -> list[BaseMessage]:
    messages: list[BaseMessage] = [SystemMessage(content=transcript.system_prompt)]
    for turn in transcript.history:
        if turn.role is Role.USER:
            messages.append(HumanMessage(content=turn.content))
        else:
            messages.append(AIMessage(content=turn.content))
    messages.append(HumanMessage(content=transcript.user_turn.content))

    for step in transcript.steps:
        if isinstance(step, CapabilityResult):
            messages.append(ToolMessage(content=step.content(), tool_call_id=step.call_id))
        else:
            messages.append(AIMessage(
                content=step.text,
                tool_calls=[
                    {"name": c.name, "args": c.arguments, "id": c.id, "type": "tool_call"}
                    for c in step.calls
                ],
            ))
    return messages


def content_text(content: Any) -> str:
    """Flatten a message's content (str or list of content blocks) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return "" if content is None else str(content)
