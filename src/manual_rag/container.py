"""Explicit service wiring.

Every client (store, embedding provider, chat model) is created here from a
:class:`Settings` instance and handed to the services that need it.  Nothing
is cached at module level; callers decide how long the services live.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from manual_rag.config import Settings, settings
from manual_rag.events import EventSink, LoggingEventSink
from manual_rag.generation.llm import get_llm
from manual_rag.generation.synthesizer import AnswerSynthesizer
from manual_rag.ingestion.chunker import ManualTextSplitter
from manual_rag.ingestion.embedder import EmbeddingClient
from manual_rag.ingestion.loader import HttpDocumentFetcher
from manual_rag.ingestion.models import IngestionStateTracker
from manual_rag.ingestion.orchestrator import BatchOrchestrator
from manual_rag.ingestion.pipeline import IngestionPipeline
from manual_rag.ingestion.registry import DocumentRegistry, SqlDocumentRegistry, StaticDocumentRegistry
from manual_rag.maintenance import MaintenanceService
from manual_rag.qa import ManualQAService
from manual_rag.retrieval.retriever import ManualRetriever
from manual_rag.store.base import ChunkStore
from manual_rag.store.memory import InMemoryChunkStore
from manual_rag.store.sql_store import SqlChunkStore

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings
    from langchain_core.language_models.chat_models import BaseChatModel

logger = logging.getLogger(__name__)


@dataclass
class RagServices:
    store: ChunkStore
    registry: DocumentRegistry
    embedder: EmbeddingClient
    pipeline: IngestionPipeline
    orchestrator: BatchOrchestrator
    retriever: ManualRetriever
    qa: ManualQAService
    maintenance: MaintenanceService
    states: IngestionStateTracker


def build_store(cfg: Settings) -> tuple[ChunkStore, DocumentRegistry]:
    """Create the chunk store and the matching document registry."""
    if cfg.store_backend == "memory":
        return InMemoryChunkStore(), StaticDocumentRegistry()
    store = SqlChunkStore.from_url(cfg.database_url, echo=cfg.database_echo)
    return store, SqlDocumentRegistry(store.engine)


def build_services(
    cfg: Settings = settings,
    *,
    embeddings: Embeddings | None = None,
    llm: BaseChatModel | None = None,
    store: ChunkStore | None = None,
    registry: DocumentRegistry | None = None,
    fetcher: HttpDocumentFetcher | None = None,
    events: EventSink | None = None,
) -> RagServices:
    """Wire every service from *cfg*.

    Parameters
    ----------
    cfg:
        Settings to build from.
    embeddings, llm, store, registry, fetcher:
        Pre-built components; anything omitted is created from *cfg*.
    events:
        Event sink shared by all ingestion components.

    Returns
    -------
    RagServices
        The wired services.  They share one store and one state tracker.
    """
    events = events or LoggingEventSink()
    if store is None:
        store, default_registry = build_store(cfg)
        registry = registry or default_registry
    elif registry is None:
        registry = StaticDocumentRegistry()

    states = IngestionStateTracker()
    embedder = EmbeddingClient.from_settings(cfg, embeddings=embeddings, events=events)
    pipeline = IngestionPipeline(
        fetcher or HttpDocumentFetcher.from_settings(cfg),
        ManualTextSplitter(
            chunk_size=cfg.chunk_size,
            chunk_overlap=cfg.chunk_overlap,
            max_chunks=cfg.max_chunks,
        ),
        embedder,
        store,
        states=states,
        events=events,
        max_text_chars=cfg.max_text_chars,
        max_stored_content_chars=cfg.max_stored_content_chars,
    )
    orchestrator = BatchOrchestrator(
        pipeline,
        registry,
        batch_limit=cfg.batch_limit,
        inter_document_delay=cfg.inter_document_delay,
        events=events,
    )
    retriever = ManualRetriever(embedder, store, default_k=cfg.retrieval_k)
    synthesizer = AnswerSynthesizer(llm or get_llm(cfg), preview_chars=cfg.preview_chars)

    logger.info(
        "Services configured (store=%s, embeddings=%s, llm=%s)",
        type(store).__name__,
        cfg.embedding_provider,
        cfg.llm_provider,
    )
    return RagServices(
        store=store,
        registry=registry,
        embedder=embedder,
        pipeline=pipeline,
        orchestrator=orchestrator,
        retriever=retriever,
        qa=ManualQAService(retriever, synthesizer, k=cfg.retrieval_k),
        maintenance=MaintenanceService(store, states=states),
        states=states,
    )
