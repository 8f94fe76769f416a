"""Single-document ingestion: fetch, extract, normalize, chunk, embed, store."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from manual_rag.errors import ManualRagError, classify_error
from manual_rag.events import FAILED, SKIPPED, SUCCEEDED, EventSink, LoggingEventSink, PipelineEvent, track
from manual_rag.ingestion.chunker import ManualTextSplitter
from manual_rag.ingestion.embedder import EmbeddingClient
from manual_rag.ingestion.loader import HttpDocumentFetcher, extract_text
from manual_rag.ingestion.models import IngestionOutcome, IngestionState, IngestionStateTracker, ManualDocument
from manual_rag.ingestion.normalizer import MAX_TEXT_CHARS, normalize_text
from manual_rag.store.base import ChunkStore
from manual_rag.store.models import MAX_STORED_CONTENT_CHARS, ChunkRecord, utcnow

NO_TEXT_MESSAGE = "No text content found in document"
EMPTY_AFTER_CLEANING_MESSAGE = "No valid text content after cleaning"
NO_CHUNKS_MESSAGE = "No chunks created from text"

# Rough chunks-per-page ratio used for ``page_estimate``.
CHUNKS_PER_PAGE = 5


def estimate_page(chunk_index: int) -> int:
    return chunk_index // CHUNKS_PER_PAGE + 1


class IngestionPipeline:
    """Turn one :class:`ManualDocument` into stored, embedded chunks.

    Every call returns an :class:`IngestionOutcome`.  Pipeline errors
    (:class:`ManualRagError`) are converted into a failed outcome; anything
    else marks the document failed and propagates.

    A successful run replaces the document's whole chunk set.  Runs that
    stop early leave the previously stored chunks untouched.

    Parameters
    ----------
    fetcher:
        Downloads the source bytes.
    splitter:
        Chunker applied to the normalized text.
    embedder:
        Document-mode embedding client.
    store:
        Destination chunk store.
    states:
        Shared per-document state tracker.  A private one is created if
        omitted.
    events:
        Sink for stage events; defaults to logging.
    """

    def __init__(
        self,
        fetcher: HttpDocumentFetcher,
        splitter: ManualTextSplitter,
        embedder: EmbeddingClient,
        store: ChunkStore,
        *,
        states: IngestionStateTracker | None = None,
        events: EventSink | None = None,
        max_text_chars: int = MAX_TEXT_CHARS,
        max_stored_content_chars: int = MAX_STORED_CONTENT_CHARS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.fetcher = fetcher
        self.splitter = splitter
        self.embedder = embedder
        self.store = store
        self.states = states or IngestionStateTracker()
        self._events = events or LoggingEventSink()
        self.max_text_chars = max_text_chars
        self.max_stored_content_chars = min(max_stored_content_chars, MAX_STORED_CONTENT_CHARS)
        self._clock = clock

    def state_of(self, document_id: str) -> IngestionState:
        return self.states.get(document_id)

    def ingest(self, document: ManualDocument) -> IngestionOutcome:
        """Run every stage for *document* and report the outcome."""
        doc_id = document.document_id
        try:
            self.states.transition(doc_id, IngestionState.PROCESSING)
        except ManualRagError as exc:
            return self._failure(doc_id, exc)

        try:
            outcome = self._run(document)
        except ManualRagError as exc:
            self.states.finish(doc_id, IngestionState.FAILED)
            outcome = self._failure(doc_id, exc)
            self._emit_result(outcome, FAILED)
            return outcome
        except Exception:
            self.states.finish(doc_id, IngestionState.FAILED)
            raise

        self.states.finish(doc_id, IngestionState.PROCESSED if outcome.success else IngestionState.FAILED)
        self._emit_result(outcome, SUCCEEDED if outcome.success else SKIPPED)
        return outcome

    # -- internals -------------------------------------------------------------

    def _run(self, document: ManualDocument) -> IngestionOutcome:
        doc_id = document.document_id
        ev = self._events

        with track(ev, "fetch", doc_id, source_uri=document.source_uri) as info:
            fetched = self.fetcher.fetch(document.source_uri)
            info["bytes"] = fetched.size

        with track(ev, "extract", doc_id) as info:
            extracted = extract_text(fetched)
            info.update(kind=extracted.kind, chars=len(extracted.text), pages=extracted.page_count)
        if not extracted.text.strip():
            return IngestionOutcome(document_id=doc_id, success=False, message=NO_TEXT_MESSAGE)

        with track(ev, "normalize", doc_id) as info:
            normalized = normalize_text(extracted.text, self.max_text_chars)
            info.update(chars=len(normalized.text), truncated=normalized.truncated)
            if normalized.truncated:
                info["original_chars"] = normalized.original_length
        if normalized.is_empty:
            return IngestionOutcome(document_id=doc_id, success=False, message=EMPTY_AFTER_CLEANING_MESSAGE)

        with track(ev, "chunk", doc_id) as info:
            chunking = self.splitter.split(normalized.text)
            info.update(chunks=len(chunking.chunks), dropped=chunking.dropped)
        if not chunking.chunks:
            return IngestionOutcome(document_id=doc_id, success=False, message=NO_CHUNKS_MESSAGE)

        with track(ev, "embed", doc_id, items=len(chunking.chunks)) as info:
            batch = self.embedder.embed_documents(chunking.chunks, document_id=doc_id)
            info.update(succeeded=batch.succeeded, failed=batch.failed, degraded=batch.degraded)

        processed_at = self._clock()
        records = [
            ChunkRecord(
                document_id=doc_id,
                chunk_index=i,
                content=chunk[: self.max_stored_content_chars],
                embedding=vector,
                page_estimate=estimate_page(i),
                processed_at=processed_at,
            )
            for i, (chunk, vector) in enumerate(zip(chunking.chunks, batch.vectors))
        ]

        with track(ev, "store", doc_id, records=len(records)):
            self.store.replace(doc_id, records)

        return IngestionOutcome(
            document_id=doc_id,
            success=True,
            chunks_processed=len(records),
            embedded_chunks=batch.succeeded,
            degraded=batch.degraded,
            message=f"Successfully processed {len(records)} chunks",
        )

    @staticmethod
    def _failure(document_id: str, exc: ManualRagError) -> IngestionOutcome:
        report = classify_error(exc)
        return IngestionOutcome(
            document_id=document_id,
            success=False,
            message=report.error,
            error=report.details,
            error_type=type(exc).__name__,
            status_code=report.status_code,
        )

    def _emit_result(self, outcome: IngestionOutcome, status: str) -> None:
        self._events.emit(
            PipelineEvent(
                stage="document",
                document_id=outcome.document_id,
                outcome=status,
                detail={
                    "message": outcome.message,
                    "chunks": outcome.chunks_processed,
                    "embedded": outcome.embedded_chunks,
                },
            )
        )
