"""
infrastructure.llm.llm_builder - Chat model construction per provider.

The agent needs a chat model that supports bind_tools(), so every
provider maps onto its LangChain chat class:

    openai  → langchain_openai.ChatOpenAI
    groq    → langchain_groq.ChatGroq
    ollama  → langchain_ollama.ChatOllama

Provider packages are imported lazily; only the selected one has to be
importable at runtime.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)

GROQ_DEFAULT_MAX_TOKENS = 512


def _openai(model: str, temperature: float, max_tokens: Optional[int], **opts: Any) -> BaseChatModel:
    from langchain_openai import ChatOpenAI

    api_key = opts.get("openai_api_key")
    if not api_key:
        raise ValueError("OPENAI_API_KEY is required when LLM_PROVIDER='openai'")
    extra = {"max_tokens": max_tokens} if max_tokens is not None else {}
    return ChatOpenAI(model=model, temperature=temperature, api_key=api_key, **extra)


def _groq(model: str, temperature: float, max_tokens: Optional[int], **opts: Any) -> BaseChatModel:
    from langchain_groq import ChatGroq

    api_key = opts.get("groq_api_key")
    if not api_key:
        raise ValueError("GROQ_API_KEY is required when LLM_PROVIDER='groq'")
    return ChatGroq(
        model=model,
        temperature=temperature,
        api_key=api_key,
        max_tokens=max_tokens if max_tokens is not None else GROQ_DEFAULT_MAX_TOKENS,
    )


def _ollama(model: str, temperature: float, max_tokens: Optional[int], **opts: Any) -> BaseChatModel:
    from langchain_ollama import ChatOllama

    # Ollama calls the completion limit num_predict
    extra = {"num_predict": max_tokens} if max_tokens is not None else {}
    return ChatOllama(
        model=model,
        temperature=temperature,
        base_url=opts.get("ollama_base_url"),
        **extra,
    )


_BUILDERS: Dict[str, Callable[..., BaseChatModel]] = {
    "openai": _openai,
    "groq": _groq,
    "ollama": _ollama,
}


def build_llm(
    *,
    provider: str,
    model: str,
    temperature: float = 0,
    ollama_base_url: str = "http://localhost:11434/",
    openai_api_key: str = "",
    groq_api_key: str = "",
    max_tokens: Optional[int] = None,
) -> BaseChatModel:
    """Build a tool-calling chat model.

    Raises:
        ValueError: unknown provider, or the provider's API key is missing.
    """
    name = provider.lower().strip()
    builder = _BUILDERS.get(name)
    if builder is None:
        raise ValueError(
            f"Unsupported LLM_PROVIDER: '{provider}'. "
            f"Must be one of: {', '.join(sorted(_BUILDERS))}."
        )
    llm = builder(
        model,
        temperature,
        max_tokens,
        openai_api_key=openai_api_key,
        groq_api_key=groq_api_key,
        ollama_base_url=ollama_base_url,
    )
    logger.info("Built %s chat model (model=%s)", name, model)
    return llm
