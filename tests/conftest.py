"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import re
import zlib
from collections.abc import Callable
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from langchain_core.embeddings import Embeddings
from langchain_core.messages import AIMessage

from manual_rag.config import Settings
from manual_rag.container import RagServices, build_services
from manual_rag.errors import DownloadError
from manual_rag.events import RecordingEventSink
from manual_rag.ingestion.embedder import EmbeddingClient
from manual_rag.ingestion.loader import FetchedDocument
from manual_rag.store.memory import InMemoryChunkStore
from manual_rag.store.models import ChunkRecord
from manual_rag.store.sql_store import SqlChunkStore


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


class KeywordEmbeddings(Embeddings):
    """Deterministic bag-of-words vectors: each token bumps one hashed slot.

    Texts sharing words get a positive cosine similarity, which is enough
    to exercise ranking without a real model.
    """

    def __init__(self, dimension: int = 64) -> None:
        self.dimension = dimension
        self.document_calls: list[str] = []
        self.query_calls: list[str] = []

    def _vector(self, text: str) -> list[float]:
        vec = [0.0] * self.dimension
        for token in re.findall(r"[a-z0-9]+", text.lower()):
            vec[zlib.crc32(token.encode()) % self.dimension] += 1.0
        return vec

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_calls.extend(texts)
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        self.query_calls.append(text)
        return self._vector(text)


@pytest.fixture
def keyword_embeddings() -> KeywordEmbeddings:
    return KeywordEmbeddings()


@pytest.fixture
def events() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture
def embedder(keyword_embeddings: KeywordEmbeddings, events: RecordingEventSink) -> EmbeddingClient:
    return EmbeddingClient(
        keyword_embeddings,
        request_delay=0.0,
        sleep=lambda _: None,
        events=events,
    )


@pytest.fixture
def memory_store() -> InMemoryChunkStore:
    return InMemoryChunkStore()


@pytest.fixture
def sql_store() -> SqlChunkStore:
    return SqlChunkStore.from_url("sqlite://")


@pytest.fixture(params=["memory", "sql"])
def store(request: pytest.FixtureRequest):
    """Both chunk-store backends, for behaviour they must share."""
    if request.param == "memory":
        return InMemoryChunkStore()
    return SqlChunkStore.from_url("sqlite://")


@pytest.fixture
def make_record() -> Callable[..., ChunkRecord]:
    def _make(
        document_id: str,
        chunk_index: int,
        embedding: list[float] | None = None,
        content: str | None = None,
        processed_at: datetime | None = None,
    ) -> ChunkRecord:
        return ChunkRecord(
            document_id=document_id,
            chunk_index=chunk_index,
            content=content if content is not None else f"{document_id} chunk {chunk_index}",
            embedding=embedding if embedding is not None else [1.0, 0.0, 0.0],
            page_estimate=chunk_index // 5 + 1,
            processed_at=processed_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
        )

    return _make


SAMPLE_MANUALS = {
    "https://example.com/abc-100.txt": (
        "ABC-100 heater installation guide.\n\n"
        "Installation requirements: mount the unit on a non-combustible wall.\n\n"
        "The operating temperature range is 5 to 40 degrees Celsius."
    ),
    "https://example.com/blank.txt": "   ",
}


@pytest.fixture
def services(keyword_embeddings: KeywordEmbeddings) -> RagServices:
    """Fully wired in-memory services with a fake fetcher and chat model."""

    def fetch(uri: str) -> FetchedDocument:
        if uri not in SAMPLE_MANUALS:
            raise DownloadError(f"Failed to download {uri}")
        return FetchedDocument(uri=uri, content=SAMPLE_MANUALS[uri].encode())

    fetcher = MagicMock()
    fetcher.fetch.side_effect = fetch
    llm = MagicMock()
    llm.invoke.return_value = AIMessage(content="Mount it on a non-combustible wall (Document: ABC-100).")

    cfg = Settings(
        store_backend="memory",
        embed_request_delay=0.0,
        inter_document_delay=0.0,
        _env_file=None,
    )
    return build_services(cfg, embeddings=keyword_embeddings, llm=llm, fetcher=fetcher)
