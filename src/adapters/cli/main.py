"""
adapters.cli.main - CLI adapter for the portfolio chat agent.

Mirrors src/adapters/rest/ but for terminal use. Uses the same
ServiceFactory and AgentExecutor as the REST API, so the agent behaves
identically. There is no login: the principal is passed with --user.

Commands
--------
  ask     One-shot portfolio question
  chat    Interactive chat session (history kept for the session)
  token   Print a bearer token for the REST API

Usage
-----
  python src/adapters/cli/main.py ask "How is my portfolio doing?"
  python src/adapters/cli/main.py chat --user alice
  python src/adapters/cli/main.py token --user alice
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

# ── Ensure src/ is on the path ──
_SRC = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(_SRC))

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt

from application.context import SessionContext
from application.dto import ChatResult
from domain.exceptions import ModelDecisionError, PortfolioDataError
from factory import ServiceFactory
from infrastructure.config import Settings

__version__ = "0.1.0"

DEFAULT_USER = "cli-user"

console = Console()
app = typer.Typer(
    help="Portfolio chat agent CLI",
    add_completion=False,
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _make_factory() -> ServiceFactory:
    return ServiceFactory(Settings.from_env(project_root=_SRC.parent))


def _render(result: ChatResult) -> None:
    footer = None
    if result.tool_calls:
        names = ", ".join(dict.fromkeys(c.name for c in result.tool_calls))
        footer = f"[dim]tools: {names} · {result.performance.total_ms} ms[/dim]"
    border = "green" if result.outcome == "answered" else "yellow"
    console.print(Panel(
        Markdown(result.answer or "_(empty answer)_"),
        title="Assistant",
        subtitle=footer,
        border_style=border,
    ))


async def _ask_once(factory: ServiceFactory, ctx: SessionContext, query: str) -> Optional[ChatResult]:
    """Run one turn, printing a friendly error instead of a traceback."""
    agent = factory.create_agent()
    try:
        with console.status("[bold cyan]Thinking…", spinner="dots"):
            return await agent.run(ctx, query)
    except ModelDecisionError as exc:
        console.print(f"[bold red]Model error:[/bold red] {exc}")
    except PortfolioDataError as exc:
        console.print(f"[bold red]Portfolio data unavailable:[/bold red] {exc}")
    return None


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"portfolio-agent v{__version__}")
        raise typer.Exit()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command()
def ask(
    query: str = typer.Argument(..., help="Your portfolio question."),
    user: str = typer.Option(DEFAULT_USER, "--user", "-u", help="Principal to ask as."),
    session: Optional[str] = typer.Option(None, "--session", "-s", help="Session id."),
) -> None:
    """Ask a one-shot portfolio question."""
    if not query.strip():
        console.print("[bold red]Query must not be empty.[/bold red]")
        raise typer.Exit(code=2)

    async def _run() -> bool:
        factory = _make_factory()
        result = await _ask_once(factory, SessionContext.for_request(user, session), query)
        if result is None:
            return False
        _render(result)
        return True

    try:
        ok = asyncio.run(_run())
    except ValueError as exc:
        # configuration errors (missing API key, unknown provider/back-end)
        console.print(f"[bold red]Configuration error:[/bold red] {exc}")
        raise typer.Exit(code=1)
    if not ok:
        raise typer.Exit(code=1)


@app.command()
def chat(
    user: str = typer.Option(DEFAULT_USER, "--user", "-u", help="Principal to chat as."),
    session: Optional[str] = typer.Option(None, "--session", "-s", help="Session id."),
) -> None:
    """Start an interactive chat session."""

    async def _run() -> None:
        factory = _make_factory()
        session_id = SessionContext.for_request(user, session).conversation_id

        console.print(Panel(
            f"[bold]Portfolio Chat[/bold]\n"
            f"User [bold]{user}[/bold], session [bold]{session_id}[/bold]\n"
            "Type your question, or [bold]exit[/bold] / [bold]quit[/bold] to stop.",
            border_style="cyan",
        ))

        while True:
            try:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")
            except (KeyboardInterrupt, EOFError):
                console.print("\n[dim]Goodbye![/dim]")
                break

            if user_input.strip().lower() in ("exit", "quit", "q", "bye"):
                console.print("[dim]Goodbye![/dim]")
                break

            if not user_input.strip():
                continue

            # fresh context per turn: new request id, same session
            ctx = SessionContext.for_request(user, session_id)
            result = await _ask_once(factory, ctx, user_input)
            if result is not None:
                console.print()
                _render(result)

    try:
        asyncio.run(_run())
    except ValueError as exc:
        console.print(f"[bold red]Configuration error:[/bold red] {exc}")
        raise typer.Exit(code=1)


@app.command()
def token(
    user: str = typer.Option(DEFAULT_USER, "--user", "-u", help="Principal for the token."),
    hours: Optional[int] = typer.Option(None, "--hours", help="Lifetime in hours."),
) -> None:
    """Print a bearer token for POST /ai/chat, signed with JWT_SECRET."""
    auth = _make_factory().create_authentication_service()
    typer.echo(auth.create_token(user, expiry_hours=hours))


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------

@app.callback()
def _callback(
    verbose: bool = typer.Option(
        False, "--verbose", help="Show agent logs (LOG_LEVEL, default INFO).",
    ),
    version: bool = typer.Option(
        False, "--version", "-v",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Portfolio chat agent CLI"""
    level = Settings.from_env().log_level if verbose else "WARNING"
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
