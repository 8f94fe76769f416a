"""Unit tests for service wiring."""

from unittest.mock import MagicMock

from manual_rag.config import Settings
from manual_rag.container import build_services
from manual_rag.ingestion.registry import SqlDocumentRegistry, StaticDocumentRegistry
from manual_rag.store.memory import InMemoryChunkStore
from manual_rag.store.sql_store import SqlChunkStore


def test_sql_backend(keyword_embeddings) -> None:
    cfg = Settings(store_backend="sql", database_url="sqlite://", _env_file=None)
    services = build_services(cfg, embeddings=keyword_embeddings, llm=MagicMock())
    assert isinstance(services.store, SqlChunkStore)
    assert isinstance(services.registry, SqlDocumentRegistry)


def test_memory_backend_shares_store_and_states(keyword_embeddings) -> None:
    cfg = Settings(store_backend="memory", retrieval_k=3, _env_file=None)
    services = build_services(cfg, embeddings=keyword_embeddings, llm=MagicMock())
    assert isinstance(services.store, InMemoryChunkStore)
    assert isinstance(services.registry, StaticDocumentRegistry)
    assert services.pipeline.store is services.store
    assert services.pipeline.states is services.states
    assert services.qa.k == 3
    assert services.retriever.default_k == 3


def test_explicit_store_gets_static_registry(keyword_embeddings, memory_store) -> None:
    services = build_services(
        Settings(_env_file=None), embeddings=keyword_embeddings, llm=MagicMock(), store=memory_store
    )
    assert services.store is memory_store
    assert isinstance(services.registry, StaticDocumentRegistry)
