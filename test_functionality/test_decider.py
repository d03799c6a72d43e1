import asyncio

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from agent.tools.base import CapabilityCall, CapabilityResult
from agent.transcript import Decision, Transcript
from conftest import FakeTool, registry_of
from domain.entities import Turn
from infrastructure.llm.decider import LangChainDecider, content_text, to_messages, to_openai_tool
from infrastructure.llm.llm_builder import build_llm


class FakeChatModel:
    """Just enough of BaseChatModel for LangChainDecider."""

    def __init__(self, reply: AIMessage):
        self._reply = reply
        self.bound_tools = None
        self.received = None

    def bind_tools(self, tools):
        self.bound_tools = tools
        return self

    async def ainvoke(self, messages):
        self.received = messages
        return self._reply


def _transcript():
    transcript = Transcript(
        "You are helpful.",
        [Turn.user("earlier question"), Turn.assistant("earlier answer")],
        "What do I own?",
    )
    call = CapabilityCall(id="c1", name="query_holdings", arguments={"symbol": "AAPL"})
    transcript.add_decision(Decision(calls=(call,)))
    transcript.add_results([CapabilityResult(call_id="c1", name="query_holdings",
                                             payload={"matchCount": 1})])
    return transcript


def test_messages_follow_transcript_order():
    messages = to_messages(_transcript())

    assert [type(m) for m in messages] == [
        SystemMessage, HumanMessage, AIMessage, HumanMessage, AIMessage, ToolMessage,
    ]
    assert messages[3].content == "What do I own?"
    assert messages[4].tool_calls[0]["id"] == "c1"
    assert messages[4].tool_calls[0]["args"] == {"symbol": "AAPL"}
    assert messages[5].tool_call_id == "c1"
    assert messages[5].content == '{"matchCount": 1}'


def test_reply_tool_calls_become_capability_calls(ctx):
    reply = AIMessage(content="", tool_calls=[
        {"name": "get_market_data", "args": {"symbol": "AAPL"}, "id": "tc-1"},
        {"name": "analyze_risk", "args": {}, "id": None},
    ])
    llm = FakeChatModel(reply)
    descriptors = registry_of(FakeTool("get_market_data"), FakeTool("analyze_risk")).descriptors(ctx)

    decision = asyncio.run(LangChainDecider(llm).decide(_transcript(), descriptors))

    assert [c.name for c in decision.calls] == ["get_market_data", "analyze_risk"]
    assert decision.calls[0].id == "tc-1"
    assert decision.calls[1].id.startswith("call_")
    assert decision.calls[1].id.endswith("_1_analyze_risk")
    assert decision.calls[0].arguments == {"symbol": "AAPL"}
    assert [t["function"]["name"] for t in llm.bound_tools] == ["get_market_data", "analyze_risk"]
    assert isinstance(llm.received[0], SystemMessage)


def test_fallback_ids_differ_between_decisions(ctx):
    reply = AIMessage(content="", tool_calls=[{"name": "analyze_risk", "args": {}, "id": None}])
    descriptors = registry_of(FakeTool("analyze_risk")).descriptors(ctx)
    decider = LangChainDecider(FakeChatModel(reply))

    first = asyncio.run(decider.decide(_transcript(), descriptors))
    second = asyncio.run(decider.decide(_transcript(), descriptors))

    assert first.calls[0].id != second.calls[0].id


def test_plain_reply_is_final():
    llm = FakeChatModel(AIMessage(content="You hold five positions."))

    decision = asyncio.run(LangChainDecider(llm).decide(_transcript(), []))

    assert decision.is_final
    assert decision.text == "You hold five positions."
    assert llm.bound_tools is None


def test_openai_tool_uses_argument_schema(ctx):
    descriptor = registry_of(FakeTool("t")).descriptors(ctx)[0]
    tool = to_openai_tool(descriptor)
    assert tool["type"] == "function"
    assert tool["function"]["description"] == "fake t"
    assert tool["function"]["parameters"]["type"] == "object"


def test_content_text_flattens_blocks():
    blocks = [{"type": "text", "text": "Hello "}, {"type": "image_url"}, "world"]
    assert content_text(blocks) == "Hello world"
    assert content_text(None) == ""
    assert content_text("plain") == "plain"


def test_build_llm_rejects_unknown_provider():
    with pytest.raises(ValueError, match="Unsupported LLM_PROVIDER"):
        build_llm(provider="bard", model="x")


@pytest.mark.parametrize("provider", ["openai", "groq"])
def test_build_llm_requires_api_key(provider):
    with pytest.raises(ValueError, match="API_KEY"):
        build_llm(provider=provider, model="m")
