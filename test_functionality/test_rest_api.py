"""
REST adapter tests. The factory is injected before the app starts, so
no LLM key, Ghostfolio server or .env file is needed.
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from adapters.rest.app import app
from adapters.rest.dependencies import set_factory
from conftest import ScriptedModel, call, final, requesting
from domain.exceptions import PortfolioDataError
from factory import ServiceFactory
from infrastructure.config import Settings

SECRET = "test-secret"


def _client(model, gateway):
    factory = ServiceFactory(
        Settings(project_root=Path("."), jwt_secret=SECRET),
        model=model,
        gateway=gateway,
    )
    set_factory(factory)
    return TestClient(app), factory


def _auth(factory, user="alice"):
    token = factory.create_authentication_service().create_token(user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def reset_factory():
    yield
    set_factory(None)


def test_health(gateway):
    client, _ = _client(ScriptedModel(final("x")), gateway)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": "0.1.0"}


def test_chat_requires_token(gateway):
    client, _ = _client(ScriptedModel(final("x")), gateway)
    assert client.post("/ai/chat", json={"query": "hi"}).status_code == 401


def test_chat_rejects_bad_token(gateway):
    client, _ = _client(ScriptedModel(final("x")), gateway)
    response = client.post("/ai/chat", json={"query": "hi"},
                           headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_chat_round_trip_with_tool(gateway):
    model = ScriptedModel(
        requesting(call("query_holdings", "c1", asset_class="EQUITY")),
        final("You hold three equity positions."),
    )
    client, factory = _client(model, gateway)

    response = client.post("/ai/chat", json={"query": "What stocks do I own?"},
                           headers=_auth(factory))

    assert response.status_code == 200
    body = response.json()
    assert body["answer"] == "You hold three equity positions."
    assert body["sessionId"] == "alice-default"
    assert body["toolCalls"] == [{"name": "query_holdings", "args": {"asset_class": "EQUITY"}}]
    assert body["performance"]["iterations"] == 2
    assert [t["step"] for t in body["performance"]["timings"]] == [
        "llm_call_1", "tool_query_holdings", "llm_call_2",
    ]
    tool_result = model.seen[1][1]
    assert tool_result.payload["matchCount"] == 3


def test_session_history_is_scoped_by_session_id(gateway):
    model = ScriptedModel(final("ok"))
    client, factory = _client(model, gateway)
    headers = _auth(factory)

    client.post("/ai/chat", json={"query": "first", "sessionId": "s-1"}, headers=headers)
    client.post("/ai/chat", json={"query": "second", "sessionId": "s-1"}, headers=headers)
    client.post("/ai/chat", json={"query": "other", "sessionId": "s-2"}, headers=headers)

    assert [len(h) for h in model.histories] == [0, 2, 0]


@pytest.mark.parametrize("body", [{"query": ""}, {}, {"query": "hi", "sessionId": ""}])
def test_invalid_body(gateway, body):
    client, factory = _client(ScriptedModel(final("x")), gateway)
    assert client.post("/ai/chat", json=body, headers=_auth(factory)).status_code == 422


def test_whitespace_query_is_rejected(gateway):
    client, factory = _client(ScriptedModel(final("x")), gateway)
    response = client.post("/ai/chat", json={"query": "   "}, headers=_auth(factory))
    assert response.status_code == 422


def test_server_misconfiguration_is_not_a_client_error():
    factory = ServiceFactory(
        Settings(project_root=Path("."), jwt_secret=SECRET, portfolio_backend="bogus"),
        model=ScriptedModel(final("x")),
    )
    set_factory(factory)
    client = TestClient(app, raise_server_exceptions=False)

    response = client.post("/ai/chat", json={"query": "hi"}, headers=_auth(factory))

    assert response.status_code == 500


def test_model_failure_maps_to_bad_gateway(gateway):
    client, factory = _client(ScriptedModel(RuntimeError("provider down")), gateway)
    response = client.post("/ai/chat", json={"query": "hi"}, headers=_auth(factory))
    assert response.status_code == 502


def test_tool_failure_still_answers(gateway):
    class BrokenGateway:
        def __getattr__(self, name):
            async def fail(*args, **kwargs):
                raise PortfolioDataError("Ghostfolio unreachable")
            return fail

    model = ScriptedModel(requesting(call("analyze_risk", "c1")), final("Data is unavailable."))
    client, factory = _client(model, BrokenGateway())

    response = client.post("/ai/chat", json={"query": "Am I diversified?"}, headers=_auth(factory))

    assert response.status_code == 200
    assert model.seen[1][1].payload == {"error": "Tool execution failed: Ghostfolio unreachable"}
