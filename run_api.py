"""
Run the portfolio chat agent REST API.

Usage:
    python run_api.py

Environment variables (all optional):
    LLM_PROVIDER                "openai", "groq" or "ollama" (default: openai)
    LLM_MODEL_OPENAI            Model name when LLM_PROVIDER=openai (default: gpt-4o-mini)
    OPENAI_API_KEY / GROQ_API_KEY  Required for the matching provider
    AGENT_MAX_ITERATIONS        Decision cap per request (default: 3)
    SESSION_WINDOW_MESSAGES     Turns kept per session (default: 10)
    PORTFOLIO_BACKEND           "ghostfolio" or "fixture" (default: ghostfolio)
    GHOSTFOLIO_API_URL          Ghostfolio server (default: http://localhost:3333)
    GHOSTFOLIO_SECURITY_TOKEN   Security token of the Ghostfolio account
    PORTFOLIO_FIXTURE_PATH      JSON file for PORTFOLIO_BACKEND=fixture
    JWT_SECRET                  Secret key for verifying bearer tokens (change in production!)
    LOG_LEVEL                   Root log level (default: INFO)
"""

import logging
import os
import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).parent / "src"))

import uvicorn
from dotenv import load_dotenv

if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "adapters.rest.app:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8000")),
        reload=False,
    )
