"""Sequential batch ingestion over the document registry."""

from __future__ import annotations

import time
from collections.abc import Callable

from manual_rag.errors import classify_error
from manual_rag.events import FAILED, PROGRESS, EventSink, LoggingEventSink, PipelineEvent, track
from manual_rag.ingestion.models import BatchSummary, IngestionOutcome
from manual_rag.ingestion.pipeline import IngestionPipeline
from manual_rag.ingestion.registry import DocumentRegistry

EMPTY_REGISTRY_MESSAGE = "No manuals found to process"


class BatchOrchestrator:
    """Ingest every registered manual, one after another.

    A failure in one document never stops the batch: it becomes that
    document's outcome and the next document starts after
    ``inter_document_delay`` seconds.

    Parameters
    ----------
    pipeline:
        Single-document pipeline.
    registry:
        Source of documents; at most ``batch_limit`` are read per run.
    batch_limit:
        Maximum documents per run.
    inter_document_delay:
        Pause before every document except the first.
    """

    def __init__(
        self,
        pipeline: IngestionPipeline,
        registry: DocumentRegistry,
        *,
        batch_limit: int = 166,
        inter_document_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        events: EventSink | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.registry = registry
        self.batch_limit = batch_limit
        self.inter_document_delay = inter_document_delay
        self._sleep = sleep
        self._events = events or LoggingEventSink()

    def run(self) -> BatchSummary:
        ev = self._events
        with track(ev, "batch", None, limit=self.batch_limit) as info:
            documents = self.registry.list_documents(limit=self.batch_limit)
            info["documents"] = len(documents)
            if not documents:
                info["message"] = EMPTY_REGISTRY_MESSAGE
                return BatchSummary(message=EMPTY_REGISTRY_MESSAGE)

            outcomes: list[IngestionOutcome] = []
            for position, document in enumerate(documents):
                if position and self.inter_document_delay > 0:
                    self._sleep(self.inter_document_delay)
                ev.emit(
                    PipelineEvent(
                        stage="batch",
                        document_id=document.document_id,
                        outcome=PROGRESS,
                        detail={"position": position + 1, "total": len(documents)},
                    )
                )
                try:
                    outcome = self.pipeline.ingest(document)
                # One bad document must not abort the rest of the batch.
                except Exception as exc:
                    report = classify_error(exc)
                    outcome = IngestionOutcome(
                        document_id=document.document_id,
                        success=False,
                        message=report.error,
                        error=report.details,
                        error_type=type(exc).__name__,
                        status_code=report.status_code,
                    )
                    ev.emit(
                        PipelineEvent(
                            stage="document",
                            document_id=document.document_id,
                            outcome=FAILED,
                            detail={"error": str(exc), "error_type": outcome.error_type},
                        )
                    )
                outcomes.append(outcome)

            summary = BatchSummary.from_outcomes(outcomes)
            info.update(successful=summary.successful, failed=summary.failed)
            return summary
