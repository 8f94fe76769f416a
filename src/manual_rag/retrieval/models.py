"""Domain models for retrieval results."""

from __future__ import annotations

from pydantic import BaseModel, Field

from manual_rag.store.models import ChunkRecord


class RetrievalResult(BaseModel):
    """A stored chunk together with its cosine similarity to the query."""

    chunk: ChunkRecord
    similarity: float = Field(ge=-1.0 - 1e-9, le=1.0 + 1e-9)

    @property
    def document_id(self) -> str:
        return self.chunk.document_id

    @property
    def content(self) -> str:
        return self.chunk.content

    def short_ref(self) -> str:
        """Return a compact ``[document§chunk]`` reference string."""
        return f"[{self.chunk.document_id}§{self.chunk.chunk_index}]"

    def __str__(self) -> str:  # noqa: D105
        return f"{self.short_ref()} ({self.similarity:.3f}) {self.content[:120]}…"
