"""SQLAlchemy tables for the relational backend.

``manual_chunks`` holds the chunk records; ``manuals`` is the document
registry (document id → source URI) read by the batch orchestrator.
Tables are created with ``create_all``; there is no migration tooling.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Engine, Integer, String, Text, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    pass


class ManualChunkRow(Base):
    __tablename__ = "manual_chunks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)
    page_estimate: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    # JSON array; see manual_rag.store.codec
    embedding: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    processed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class ManualRow(Base):
    __tablename__ = "manuals"

    document_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    source_uri: Mapped[str] = mapped_column(String(2048), nullable=False)


def make_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Create an engine; SQLite connections are shareable across threads.

    In-memory SQLite uses a single static connection so every session
    sees the same database.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, pool_pre_ping=True)

    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(database_url, echo=echo, **kwargs)
