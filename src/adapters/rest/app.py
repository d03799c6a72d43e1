"""
FastAPI application: REST adapter for the portfolio chat agent.

Usage:
    python run_api.py

Or directly:
    uvicorn adapters.rest.app:app --host 0.0.0.0 --port 8000 --reload
"""

from __future__ import annotations

import sys
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Ensure src/ is on sys.path when invoked via uvicorn directly
_src_dir = Path(__file__).resolve().parent.parent.parent
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from infrastructure.config import Settings
from factory import ServiceFactory
from adapters.rest.dependencies import has_factory, set_factory
from adapters.rest.routers import chat

__version__ = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the ServiceFactory on startup unless one was injected."""
    if not has_factory():
        config = Settings.from_env(project_root=_src_dir.parent)
        set_factory(ServiceFactory(config))
    yield
    # No teardown needed; session memory lives and dies with the process


app = FastAPI(
    title="Portfolio Chat Agent",
    version=__version__,
    description="Conversational portfolio assistant backed by an LLM with tool calling.",
    lifespan=lifespan,
)

# CORS: permissive for development. Tighten allowed_origins in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat.router)


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok", "version": __version__}
