import asyncio

import pytest
from pydantic import ValidationError

from agent.tools.base import CapabilityCall, CapabilityResult
from agent.tools.query_holdings import QueryHoldingsInput
from conftest import FakeTool, registry_of
from domain.exceptions import CapabilityNotFoundError, DuplicateCapabilityError, DomainError


def test_duplicate_names_fail_at_registration():
    registry = registry_of(FakeTool("a"))
    with pytest.raises(DuplicateCapabilityError):
        registry.register(FakeTool("a"))
    assert registry.names() == ["a"]


def test_get_unknown_name_raises_domain_and_key_error():
    registry = registry_of(FakeTool("a"))
    with pytest.raises(CapabilityNotFoundError) as info:
        registry.get("missing")
    assert isinstance(info.value, KeyError)
    assert isinstance(info.value, DomainError)


def test_descriptors_keep_registration_order_and_bind_context(ctx):
    first, second = FakeTool("first"), FakeTool("second")
    registry = registry_of(first, second)

    descriptors = registry.descriptors(ctx)

    assert [d.name for d in descriptors] == ["first", "second"]
    assert len(registry) == 2
    payload = asyncio.run(descriptors[0].invoke({"x": 1}))
    assert payload == {"tool": "first", "args": {"x": 1}}
    assert first.calls == [{"x": 1}]


def test_invoke_validates_arguments_against_schema(ctx):
    class Strict(FakeTool):
        def get_schema(self):
            return QueryHoldingsInput

    registry = registry_of(Strict("query_holdings"))
    invoke = registry.descriptors(ctx)[0].invoke

    with pytest.raises(ValidationError):
        asyncio.run(invoke({"sort_by": "colour"}))


def test_json_schema_exposes_argument_fields(ctx):
    class Strict(FakeTool):
        def get_schema(self):
            return QueryHoldingsInput

    descriptor = registry_of(Strict("query_holdings")).descriptors(ctx)[0]
    properties = descriptor.json_schema()["properties"]
    assert {"symbol", "asset_class", "sort_by"} <= set(properties)


def test_call_arguments_are_copied():
    args = {"a": 1}
    c = CapabilityCall(id="1", name="x", arguments=args)
    args["a"] = 2
    assert c.arguments == {"a": 1}


def test_failure_result_serializes_error_payload():
    result = CapabilityResult.failure(CapabilityCall(id="1", name="x"), "Unknown tool: x")
    assert result.is_error
    assert result.call_id == "1"
    assert result.content() == '{"error": "Unknown tool: x"}'
