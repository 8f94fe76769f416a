"""LLM initialisation: single place to swap providers.

Supports two modes:

1. **Gemini** (default): set ``GOOGLE_API_KEY``.
2. **OpenAI-compatible**: set ``LLM_PROVIDER=openai`` and ``OPENAI_API_KEY``;
   additionally set ``LLM_BASE_URL`` to point at a vLLM server, which
   exposes the same ``/v1/chat/completions`` endpoint.

Both are configured for factual answers: low temperature, narrow top-p /
top-k, bounded output length.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from manual_rag.config import Settings, settings

if TYPE_CHECKING:
    from langchain_core.language_models.chat_models import BaseChatModel

logger = logging.getLogger(__name__)


def get_llm(cfg: Settings = settings) -> BaseChatModel:
    """Return the configured chat model."""
    if cfg.llm_provider == "openai":
        return _openai_llm(cfg)

    from langchain_google_genai import ChatGoogleGenerativeAI

    return ChatGoogleGenerativeAI(
        model=cfg.llm_model_name,
        temperature=cfg.llm_temperature,
        top_p=cfg.llm_top_p,
        top_k=cfg.llm_top_k,
        max_output_tokens=cfg.llm_max_output_tokens,
        google_api_key=cfg.google_api_key or None,
    )


def _openai_llm(cfg: Settings) -> BaseChatModel:
    from langchain_openai import ChatOpenAI

    kwargs: dict[str, Any] = {
        "model": cfg.llm_model_name,
        "temperature": cfg.llm_temperature,
        "top_p": cfg.llm_top_p,
        "max_tokens": cfg.llm_max_output_tokens,
    }

    if cfg.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", cfg.llm_base_url)
        kwargs["base_url"] = cfg.llm_base_url
        # vLLM doesn't need a real key; LangChain requires a non-empty value.
        kwargs["api_key"] = cfg.openai_api_key or "EMPTY"
        # top_k is a vLLM sampling extension, the OpenAI cloud API rejects it.
        kwargs["extra_body"] = {"top_k": cfg.llm_top_k}
    else:
        kwargs["api_key"] = cfg.openai_api_key

    return ChatOpenAI(**kwargs)
