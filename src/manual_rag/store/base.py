"""Abstract base class for chunk-store backends.

A backend persists :class:`ChunkRecord` rows and hands them back in full.
Similarity scoring happens outside the store (see
:mod:`manual_rag.retrieval`); the only server-side filter is the document id.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from manual_rag.errors import StoreError
from manual_rag.store.models import ChunkRecord, ChunkSummary, DocumentStats


class ChunkStore(ABC):
    """Backend-agnostic chunk persistence with replace-on-reingest semantics."""

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def replace(self, document_id: str, chunks: Sequence[ChunkRecord]) -> None:
        """Delete every chunk of *document_id*, then insert *chunks*.

        Raises
        ------
        StoreError
            If the batch is inconsistent or the backend fails.
        """
        ...

    @abstractmethod
    def query(self, document_id: str | None = None) -> list[ChunkRecord]:
        """Return all chunks, or only those of *document_id*."""
        ...

    @abstractmethod
    def wipe(self) -> int:
        """Delete every chunk and return how many were removed."""
        ...

    @abstractmethod
    def count(self) -> int:
        ...

    @abstractmethod
    def document_ids(self) -> list[str]:
        """Distinct document ids with at least one stored chunk, sorted."""
        ...

    @abstractmethod
    def document_stats(self, document_id: str) -> DocumentStats:
        ...

    @abstractmethod
    def sample(self, limit: int = 5) -> list[ChunkSummary]:
        """Most recently processed chunks, newest first."""
        ...

    # -- shared helpers ---------------------------------------------------------

    @staticmethod
    def validate_batch(document_id: str, chunks: Sequence[ChunkRecord]) -> None:
        """Check ownership, index contiguity and vector dimensionality.

        Raises
        ------
        StoreError
            On the first violated invariant.
        """
        for chunk in chunks:
            if chunk.document_id != document_id:
                raise StoreError(
                    f"Chunk {chunk.chunk_index} belongs to {chunk.document_id!r}, "
                    f"not {document_id!r}"
                )
        indexes = sorted(c.chunk_index for c in chunks)
        if indexes != list(range(len(chunks))):
            raise StoreError(f"Chunk indexes for {document_id!r} are not contiguous from 0")
        dimensions = {c.dimension for c in chunks if c.has_embedding}
        if len(dimensions) > 1:
            raise StoreError(
                f"Mixed embedding dimensions for {document_id!r}: {sorted(dimensions)}"
            )
