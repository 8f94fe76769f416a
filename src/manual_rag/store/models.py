"""Typed records crossing the chunk-store boundary."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

MAX_STORED_CONTENT_CHARS = 50_000


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChunkRecord(BaseModel):
    """One persisted fragment of a document.

    Attributes
    ----------
    document_id:
        Owning document (model / equipment number).
    chunk_index:
        0-based position; contiguous per document at write time.
    content:
        Chunk text, at most 50,000 characters.
    embedding:
        Vector in document mode.  An empty list marks an item whose
        embedding failed; such chunks are never retrieval candidates.
    page_estimate:
        Rough page number derived from the chunk index.  Not authoritative.
    processed_at:
        When the ingestion run that wrote this chunk finished embedding.
    """

    model_config = ConfigDict(frozen=True)

    document_id: str = Field(min_length=1)
    chunk_index: int = Field(ge=0)
    content: str = Field(max_length=MAX_STORED_CONTENT_CHARS)
    embedding: list[float] = Field(default_factory=list)
    page_estimate: int = Field(default=1, ge=0)
    processed_at: datetime = Field(default_factory=utcnow)

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)

    @property
    def dimension(self) -> int:
        return len(self.embedding)


class DocumentStats(BaseModel):
    """Aggregate view of one document's stored chunks."""

    document_id: str
    chunk_count: int = 0
    last_processed_at: datetime | None = None


class ChunkSummary(BaseModel):
    """Lightweight row used for store overviews (no content, no vector)."""

    document_id: str
    chunk_index: int
    processed_at: datetime
