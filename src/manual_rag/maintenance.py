"""Store maintenance: wipe, overview and processing status."""

from __future__ import annotations

import logging
from datetime import datetime

from pydantic import BaseModel, Field

from manual_rag.ingestion.models import IngestionState, IngestionStateTracker
from manual_rag.store.base import ChunkStore
from manual_rag.store.models import ChunkSummary, DocumentStats

logger = logging.getLogger(__name__)


class WipeReport(BaseModel):
    deleted_count: int = Field(serialization_alias="deletedCount")
    before_count: int = Field(serialization_alias="beforeCount")
    after_count: int = Field(serialization_alias="afterCount")

    @property
    def message(self) -> str:
        return f"Successfully deleted {self.deleted_count} chunks from database"


class StoreOverview(BaseModel):
    total_chunks: int
    sample: list[ChunkSummary] = Field(default_factory=list)
    can_clean: bool
    message: str


class DocumentStatus(BaseModel):
    document_id: str
    is_processed: bool
    chunks_count: int
    last_processed: datetime | None = None
    state: IngestionState = IngestionState.UNPROCESSED


class CorpusStatus(BaseModel):
    total_processed: int
    processed_documents: list[DocumentStats] = Field(default_factory=list)


class MaintenanceService:
    """Administrative operations over a :class:`ChunkStore`.

    Store errors are not caught here; they reach the caller unchanged.
    """

    def __init__(
        self,
        store: ChunkStore,
        *,
        states: IngestionStateTracker | None = None,
        sample_size: int = 5,
    ) -> None:
        self._store = store
        self._states = states or IngestionStateTracker()
        self.sample_size = sample_size

    def wipe(self) -> WipeReport:
        """Delete every chunk.  Safe to call on an empty store."""
        before = self._store.count()
        deleted = self._store.wipe()
        after = self._store.count()
        self._states.reset()
        logger.info("Wiped chunk store: %d deleted (%d before, %d after)", deleted, before, after)
        return WipeReport(deleted_count=deleted, before_count=before, after_count=after)

    def overview(self) -> StoreOverview:
        total = self._store.count()
        return StoreOverview(
            total_chunks=total,
            sample=self._store.sample(self.sample_size) if total else [],
            can_clean=total > 0,
            message=f"Database contains {total} chunks" if total else "Database is already clean",
        )

    def status(self, document_id: str | None = None) -> DocumentStatus | CorpusStatus:
        """Processing status of one document, or of the whole corpus."""
        if document_id:
            stats = self._store.document_stats(document_id)
            return DocumentStatus(
                document_id=document_id,
                is_processed=stats.chunk_count > 0,
                chunks_count=stats.chunk_count,
                last_processed=stats.last_processed_at,
                state=self._states.get(document_id),
            )

        documents = [self._store.document_stats(doc_id) for doc_id in self._store.document_ids()]
        return CorpusStatus(total_processed=len(documents), processed_documents=documents)
