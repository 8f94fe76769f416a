"""
Store: persistence of chunk records and their embeddings.

Public surface
--------------
- :class:`ChunkStore`: abstract backend with replace-on-reingest semantics.
- :class:`InMemoryChunkStore`: process-local backend.
- :class:`SqlChunkStore`: SQLAlchemy backend (``manual_chunks`` table).
- :class:`ChunkRecord`, :class:`DocumentStats`, :class:`ChunkSummary`: records.
"""

from manual_rag.store.base import ChunkStore
from manual_rag.store.memory import InMemoryChunkStore
from manual_rag.store.models import ChunkRecord, ChunkSummary, DocumentStats
from manual_rag.store.sql_store import SqlChunkStore

__all__ = [
    "ChunkRecord",
    "ChunkStore",
    "ChunkSummary",
    "DocumentStats",
    "InMemoryChunkStore",
    "SqlChunkStore",
]
