"""Shared configuration loaded from environment / ``.env``."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Provider credentials
    google_api_key: str = Field(default="", description="Gemini API key")
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for local vLLM)")

    # Embedding
    embedding_provider: Literal["google", "huggingface"] = "google"
    embedding_model: str = "models/text-embedding-004"
    embedding_dimension: int | None = Field(
        default=None,
        description="Expected vector length. Responses of any other length are treated as malformed.",
    )
    embed_request_delay: float = Field(default=0.2, description="Seconds between provider requests")
    embed_max_retries: int = 3
    embed_batch_size: int = Field(default=5, description="Progress-reporting group size")
    embed_max_input_chars: int = 8000

    # LLM
    llm_provider: Literal["google", "openai"] = "google"
    llm_model_name: str = "gemini-2.0-flash"
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for an OpenAI-compatible API (e.g. a vLLM server). "
            "Only used when llm_provider is 'openai'."
        ),
    )
    llm_temperature: float = 0.1
    llm_top_p: float = 0.8
    llm_top_k: int = 40
    llm_max_output_tokens: int = 1024

    # Chunk store
    store_backend: Literal["sql", "memory"] = "sql"
    database_url: str = "sqlite:///./manual_rag.db"
    database_echo: bool = False

    # Ingestion
    chunk_size: int = 1000
    chunk_overlap: int = 100
    max_chunks: int = 50
    max_text_chars: int = 1_000_000
    max_stored_content_chars: int = 50_000
    download_timeout: float = 60.0
    download_max_bytes: int = 50 * 1024 * 1024
    download_max_attempts: int = 3
    download_backoff: float = Field(default=2.0, description="Seconds, multiplied by the attempt number")
    download_user_agent: str = "Mozilla/5.0 (compatible; Manual-RAG-Bot/1.0)"
    batch_limit: int = 166
    inter_document_delay: float = 1.0

    # Retrieval / answers
    retrieval_k: int = 5
    preview_chars: int = 200

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


# Configuration only; clients are built explicitly in ``manual_rag.container``.
settings = Settings()
