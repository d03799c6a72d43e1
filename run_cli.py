"""
Run the portfolio chat agent CLI.

Usage:
    python run_cli.py [COMMAND] [OPTIONS]

Commands:
    ask     One-shot portfolio question
    chat    Interactive chat session
    token   Print a bearer token for the REST API

Examples:
    python run_cli.py ask "What are my top holdings?"
    python run_cli.py chat --user alice --session research
    PORTFOLIO_BACKEND=fixture python run_cli.py ask "How risky is my portfolio?"

Environment variables: see run_api.py.
"""

import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).parent / "src"))

from adapters.cli.main import app

if __name__ == "__main__":
    app()
