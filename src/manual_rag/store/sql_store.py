"""Relational chunk store backed by SQLAlchemy."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import Engine, delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from manual_rag.errors import StoreError
from manual_rag.store.base import ChunkStore
from manual_rag.store.codec import decode_embedding, encode_embedding
from manual_rag.store.models import ChunkRecord, ChunkSummary, DocumentStats
from manual_rag.store.tables import Base, ManualChunkRow, make_engine

logger = logging.getLogger(__name__)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on the way back.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlChunkStore(ChunkStore):
    """Chunk store over the ``manual_chunks`` table.

    ``replace`` runs its delete and insert inside one transaction, so on a
    transactional database readers never observe a half-replaced document.
    Rows that fail validation on read are logged and skipped.

    Parameters
    ----------
    engine:
        SQLAlchemy engine for the target database.
    create_tables:
        Run ``create_all`` on construction.
    """

    def __init__(self, engine: Engine, *, create_tables: bool = True) -> None:
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        if create_tables:
            try:
                Base.metadata.create_all(engine)
            except SQLAlchemyError as exc:
                raise StoreError(f"Failed to create chunk tables: {exc}") from exc

    @classmethod
    def from_url(cls, database_url: str, *, echo: bool = False) -> SqlChunkStore:
        return cls(make_engine(database_url, echo=echo))

    @property
    def engine(self) -> Engine:
        return self._engine

    # -- ChunkStore overrides -------------------------------------------------

    def replace(self, document_id: str, chunks: Sequence[ChunkRecord]) -> None:
        self.validate_batch(document_id, chunks)
        rows = [
            ManualChunkRow(
                document_id=c.document_id,
                content=c.content,
                chunk_index=c.chunk_index,
                page_estimate=c.page_estimate,
                embedding=encode_embedding(c.embedding),
                processed_at=c.processed_at,
            )
            for c in chunks
        ]
        with self._transaction() as session:
            session.execute(delete(ManualChunkRow).where(ManualChunkRow.document_id == document_id))
            session.add_all(rows)

    def query(self, document_id: str | None = None) -> list[ChunkRecord]:
        stmt = select(ManualChunkRow).order_by(ManualChunkRow.document_id, ManualChunkRow.chunk_index)
        if document_id is not None:
            stmt = stmt.where(ManualChunkRow.document_id == document_id)
        with self._transaction() as session:
            rows = session.scalars(stmt).all()
            records = [self._to_record(row) for row in rows]
        return [r for r in records if r is not None]

    def wipe(self) -> int:
        with self._transaction() as session:
            deleted = session.scalar(select(func.count()).select_from(ManualChunkRow)) or 0
            session.execute(delete(ManualChunkRow))
        return deleted

    def count(self) -> int:
        with self._transaction() as session:
            return session.scalar(select(func.count()).select_from(ManualChunkRow)) or 0

    def document_ids(self) -> list[str]:
        stmt = select(ManualChunkRow.document_id).distinct().order_by(ManualChunkRow.document_id)
        with self._transaction() as session:
            return list(session.scalars(stmt).all())

    def document_stats(self, document_id: str) -> DocumentStats:
        stmt = select(func.count(), func.max(ManualChunkRow.processed_at)).where(
            ManualChunkRow.document_id == document_id
        )
        with self._transaction() as session:
            chunk_count, last_processed = session.execute(stmt).one()
        return DocumentStats(
            document_id=document_id,
            chunk_count=chunk_count or 0,
            last_processed_at=_as_utc(last_processed),
        )

    def sample(self, limit: int = 5) -> list[ChunkSummary]:
        stmt = (
            select(ManualChunkRow.document_id, ManualChunkRow.chunk_index, ManualChunkRow.processed_at)
            .order_by(ManualChunkRow.processed_at.desc(), ManualChunkRow.id.desc())
            .limit(limit)
        )
        with self._transaction() as session:
            rows = session.execute(stmt).all()
        return [
            ChunkSummary(document_id=doc_id, chunk_index=idx, processed_at=_as_utc(ts))
            for doc_id, idx, ts in rows
        ]

    # -- internals ------------------------------------------------------------

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        try:
            with self._session_factory.begin() as session:
                yield session
        except SQLAlchemyError as exc:
            raise StoreError(f"Chunk store operation failed: {exc}") from exc

    @staticmethod
    def _to_record(row: ManualChunkRow) -> ChunkRecord | None:
        try:
            return ChunkRecord(
                document_id=row.document_id,
                chunk_index=row.chunk_index,
                content=row.content,
                embedding=decode_embedding(row.embedding),
                page_estimate=row.page_estimate,
                processed_at=_as_utc(row.processed_at),
            )
        except ValueError as exc:
            logger.warning(
                "Quarantined chunk row id=%s (%s#%s): %s",
                row.id,
                row.document_id,
                row.chunk_index,
                exc,
            )
            return None
