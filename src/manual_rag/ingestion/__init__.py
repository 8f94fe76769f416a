"""
Ingestion: turning equipment manuals into embedded, stored chunks.

Fetch → extract → normalize → chunk → embed → store, one document at a
time (:class:`IngestionPipeline`), driven in batches by
:class:`BatchOrchestrator`.
"""

from manual_rag.ingestion.chunker import ManualTextSplitter
from manual_rag.ingestion.embedder import EmbeddingClient, get_embedding_function
from manual_rag.ingestion.loader import HttpDocumentFetcher, extract_text
from manual_rag.ingestion.models import (
    BatchSummary,
    IngestionOutcome,
    IngestionState,
    IngestionStateTracker,
    ManualDocument,
)
from manual_rag.ingestion.normalizer import normalize_text
from manual_rag.ingestion.orchestrator import BatchOrchestrator
from manual_rag.ingestion.pipeline import IngestionPipeline
from manual_rag.ingestion.registry import DocumentRegistry, SqlDocumentRegistry, StaticDocumentRegistry

__all__ = [
    "BatchOrchestrator",
    "BatchSummary",
    "DocumentRegistry",
    "EmbeddingClient",
    "HttpDocumentFetcher",
    "IngestionOutcome",
    "IngestionPipeline",
    "IngestionState",
    "IngestionStateTracker",
    "ManualDocument",
    "ManualTextSplitter",
    "SqlDocumentRegistry",
    "StaticDocumentRegistry",
    "extract_text",
    "get_embedding_function",
    "normalize_text",
]
