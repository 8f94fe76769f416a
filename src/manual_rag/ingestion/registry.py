"""Where the batch orchestrator finds the manuals to process."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from sqlalchemy import Engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from manual_rag.errors import StoreError
from manual_rag.ingestion.models import ManualDocument
from manual_rag.store.tables import Base, ManualRow, make_engine


class DocumentRegistry(ABC):
    """Source of ``(document_id, source_uri)`` pairs."""

    @abstractmethod
    def add(self, document_id: str, source_uri: str) -> ManualDocument:
        """Register (or re-point) one manual."""

    @abstractmethod
    def list_documents(self, limit: int | None = None) -> list[ManualDocument]:
        """Return up to *limit* documents in a stable order."""


class StaticDocumentRegistry(DocumentRegistry):
    """Fixed in-memory list, kept in insertion order."""

    def __init__(self, documents: Iterable[ManualDocument] = ()) -> None:
        self._documents = list(documents)

    def add(self, document_id: str, source_uri: str) -> ManualDocument:
        doc = ManualDocument(document_id=document_id, source_uri=source_uri)
        self._documents = [d for d in self._documents if d.document_id != document_id]
        self._documents.append(doc)
        return doc

    def list_documents(self, limit: int | None = None) -> list[ManualDocument]:
        docs = list(self._documents)
        return docs if limit is None else docs[:limit]


class SqlDocumentRegistry(DocumentRegistry):
    """Documents listed in the ``manuals`` table, ordered by id."""

    def __init__(self, engine: Engine, *, create_tables: bool = True) -> None:
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        if create_tables:
            try:
                Base.metadata.create_all(engine)
            except SQLAlchemyError as exc:
                raise StoreError(f"Failed to create manuals table: {exc}") from exc

    @classmethod
    def from_url(cls, database_url: str, *, echo: bool = False) -> SqlDocumentRegistry:
        return cls(make_engine(database_url, echo=echo))

    def add(self, document_id: str, source_uri: str) -> ManualDocument:
        """Insert or update one manual."""
        doc = ManualDocument(document_id=document_id, source_uri=source_uri)
        try:
            with self._session_factory.begin() as session:
                session.merge(ManualRow(document_id=doc.document_id, source_uri=doc.source_uri))
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to register manual {document_id}: {exc}") from exc
        return doc

    def list_documents(self, limit: int | None = None) -> list[ManualDocument]:
        stmt = select(ManualRow).order_by(ManualRow.document_id)
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            with self._session_factory() as session:
                rows = session.scalars(stmt).all()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to read manuals: {exc}") from exc
        return [ManualDocument(document_id=r.document_id, source_uri=r.source_uri) for r in rows]
