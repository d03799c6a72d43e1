from pathlib import Path

import pytest
from typer.testing import CliRunner

from adapters.cli import main as cli
from application.services.authentication import AuthenticationService
from conftest import ScriptedModel, call, final, requesting
from domain.exceptions import AuthenticationError
from factory import ServiceFactory
from infrastructure.config import Settings

runner = CliRunner()


@pytest.fixture
def scripted_factory(monkeypatch, gateway):
    def install(*script):
        model = ScriptedModel(*script)
        factory = ServiceFactory(
            Settings(project_root=Path("."), jwt_secret="cli-secret"), model=model, gateway=gateway,
        )
        monkeypatch.setattr(cli, "_make_factory", lambda: factory)
        return model
    return install


def test_ask_prints_answer_and_tools(scripted_factory):
    model = scripted_factory(
        requesting(call("get_performance_metrics", "c1", date_range="ytd")),
        final("Up **7.35%** this year."),
    )

    result = runner.invoke(cli.app, ["ask", "How am I doing this year?", "--user", "bob"])

    assert result.exit_code == 0, result.output
    assert "7.35%" in result.output
    assert "get_performance_metrics" in result.output
    assert model.seen[1][1].payload["netPerformancePercent"] == 7.35


def test_ask_reports_model_failure(scripted_factory):
    scripted_factory(RuntimeError("no key"))
    result = runner.invoke(cli.app, ["ask", "hello"])
    assert result.exit_code == 1
    assert "Model error" in result.output


def test_ask_rejects_blank_query(scripted_factory):
    scripted_factory(final("x"))
    assert runner.invoke(cli.app, ["ask", "  "]).exit_code == 2


def test_token_round_trips(scripted_factory):
    scripted_factory(final("x"))

    result = runner.invoke(cli.app, ["token", "--user", "carol"])

    assert result.exit_code == 0
    token = result.output.strip()
    assert AuthenticationService("cli-secret").verify_token(token) == "carol"


def test_expired_token_is_rejected():
    auth = AuthenticationService("s")
    with pytest.raises(AuthenticationError):
        auth.verify_token(auth.create_token("alice", expiry_hours=-1))


def test_token_signed_with_other_secret_is_rejected():
    token = AuthenticationService("one").create_token("alice")
    with pytest.raises(AuthenticationError):
        AuthenticationService("two").verify_token(token)
