"""In-process chunk store, for local runs and tests."""

from __future__ import annotations

import threading
from collections.abc import Sequence

from manual_rag.store.base import ChunkStore
from manual_rag.store.models import ChunkRecord, ChunkSummary, DocumentStats


class InMemoryChunkStore(ChunkStore):
    """Dict-of-lists store.

    ``replace`` swaps a document's list under a lock, so a concurrent
    ``query`` sees either the old set or the new one, never a mix.
    """

    def __init__(self) -> None:
        self._chunks: dict[str, list[ChunkRecord]] = {}
        self._lock = threading.Lock()

    def replace(self, document_id: str, chunks: Sequence[ChunkRecord]) -> None:
        self.validate_batch(document_id, chunks)
        ordered = sorted(chunks, key=lambda c: c.chunk_index)
        with self._lock:
            if ordered:
                self._chunks[document_id] = ordered
            else:
                self._chunks.pop(document_id, None)

    def query(self, document_id: str | None = None) -> list[ChunkRecord]:
        with self._lock:
            if document_id is not None:
                return list(self._chunks.get(document_id, []))
            return [c for chunks in self._chunks.values() for c in chunks]

    def wipe(self) -> int:
        with self._lock:
            deleted = sum(len(chunks) for chunks in self._chunks.values())
            self._chunks.clear()
        return deleted

    def count(self) -> int:
        with self._lock:
            return sum(len(chunks) for chunks in self._chunks.values())

    def document_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._chunks)

    def document_stats(self, document_id: str) -> DocumentStats:
        chunks = self.query(document_id)
        return DocumentStats(
            document_id=document_id,
            chunk_count=len(chunks),
            last_processed_at=max((c.processed_at for c in chunks), default=None),
        )

    def sample(self, limit: int = 5) -> list[ChunkSummary]:
        newest = sorted(self.query(), key=lambda c: c.processed_at, reverse=True)[:limit]
        return [
            ChunkSummary(
                document_id=c.document_id,
                chunk_index=c.chunk_index,
                processed_at=c.processed_at,
            )
            for c in newest
        ]
