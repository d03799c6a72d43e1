"""
infrastructure.config - Typed, injectable configuration.

A frozen dataclass that can be constructed from the environment or passed
explicitly in tests.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class Settings:
    """Centralized configuration for the portfolio assistant.

    No module-level globals; construct via from_env() or pass explicitly.
    """
    project_root: Path

    # ── LLM provider ────────────────────────────────────────────
    # Allowed: "openai", "groq", "ollama"
    llm_provider: str = "openai"

    # Model names; only the one matching llm_provider is used.
    llm_model_openai: str = "gpt-4o-mini"
    llm_model_groq: str = "llama-3.3-70b-versatile"
    llm_model_ollama: str = "llama3.2"
    llm_max_tokens: int = 1024

    ollama_base_url: str = "http://localhost:11434/"
    groq_api_key: str = ""
    openai_api_key: str = ""

    # Agent
    agent_max_iterations: int = 3
    session_window_messages: int = 10
    capability_timeout_seconds: Optional[float] = 30.0

    # Portfolio back-end: "ghostfolio" or "fixture"
    portfolio_backend: str = "ghostfolio"
    ghostfolio_api_url: str = "http://localhost:3333"
    ghostfolio_security_token: str = ""
    portfolio_fixture_path: str = ""

    # JWT
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expiry_hours: int = 24

    log_level: str = "INFO"

    @property
    def active_llm_model(self) -> str:
        """Return the model name for the currently active LLM provider."""
        if self.llm_provider == "openai":
            return self.llm_model_openai
        elif self.llm_provider == "groq":
            return self.llm_model_groq
        return self.llm_model_ollama

    @property
    def fixture_path(self) -> Path:
        """Fixture file, relative paths resolved against the project root."""
        if self.portfolio_fixture_path:
            path = Path(self.portfolio_fixture_path)
            return path if path.is_absolute() else self.project_root / path
        return self.project_root / "data" / "demo_portfolio.json"

    @classmethod
    def from_env(cls, project_root: Optional[Path] = None) -> Settings:
        """Build Settings from the environment (and .env, if present)."""
        from dotenv import load_dotenv
        load_dotenv()

        root = project_root or Path(__file__).resolve().parent.parent.parent

        timeout = float(os.getenv("CAPABILITY_TIMEOUT_SECONDS", "30"))

        return cls(
            project_root=root,
            llm_provider=os.getenv("LLM_PROVIDER", "openai"),
            llm_model_openai=os.getenv("LLM_MODEL_OPENAI", "gpt-4o-mini"),
            llm_model_groq=os.getenv("LLM_MODEL_GROQ", "llama-3.3-70b-versatile"),
            llm_model_ollama=os.getenv("LLM_MODEL_OLLAMA", "llama3.2"),
            llm_max_tokens=int(os.getenv("LLM_MAX_TOKENS", "1024")),
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434/"),
            groq_api_key=os.getenv("GROQ_API_KEY", ""),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),

            agent_max_iterations=int(os.getenv("AGENT_MAX_ITERATIONS", "3")),
            session_window_messages=int(os.getenv("SESSION_WINDOW_MESSAGES", "10")),
            # 0 disables the per-call timeout
            capability_timeout_seconds=timeout if timeout > 0 else None,

            portfolio_backend=os.getenv("PORTFOLIO_BACKEND", "ghostfolio").lower(),
            ghostfolio_api_url=os.getenv("GHOSTFOLIO_API_URL", "http://localhost:3333"),
            ghostfolio_security_token=os.getenv("GHOSTFOLIO_SECURITY_TOKEN", ""),
            portfolio_fixture_path=os.getenv("PORTFOLIO_FIXTURE_PATH", ""),

            jwt_secret=os.getenv("JWT_SECRET", "change-me-in-production"),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            jwt_expiry_hours=int(os.getenv("JWT_EXPIRY_HOURS", "24")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
