"""Ingestion inputs, outcomes and per-document processing state."""

from __future__ import annotations

import threading
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from manual_rag.errors import IngestionStateError


class ManualDocument(BaseModel):
    """A manual to ingest: its model / equipment number and where to get it."""

    model_config = ConfigDict(frozen=True)

    document_id: str = Field(min_length=1)
    source_uri: str = Field(min_length=1)


class IngestionOutcome(BaseModel):
    """Result of ingesting one document.

    ``success`` is ``False`` both for hard failures (``error`` set) and for
    documents that simply had nothing to index (``error`` unset).
    """

    document_id: str
    success: bool
    chunks_processed: int = 0
    embedded_chunks: int = 0
    degraded: bool = False
    message: str = ""
    error: str | None = None
    error_type: str | None = None
    status_code: int | None = None


def format_success_rate(successful: int, total: int) -> str:
    """Whole-percent success rate, rounded half up; ``"0%"`` for an empty batch."""
    if total <= 0:
        return "0%"
    return f"{int(successful / total * 100 + 0.5)}%"


class BatchSummary(BaseModel):
    message: str
    results: list[IngestionOutcome] = Field(default_factory=list)
    total: int = 0
    successful: int = 0
    failed: int = 0
    success_rate: str = "0%"

    @classmethod
    def from_outcomes(cls, outcomes: list[IngestionOutcome], message: str | None = None) -> BatchSummary:
        successful = sum(1 for o in outcomes if o.success)
        return cls(
            message=message or f"Processed {len(outcomes)} manuals",
            results=outcomes,
            total=len(outcomes),
            successful=successful,
            failed=len(outcomes) - successful,
            success_rate=format_success_rate(successful, len(outcomes)),
        )


class IngestionState(str, Enum):
    UNPROCESSED = "unprocessed"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"


_TRANSITIONS: dict[IngestionState, frozenset[IngestionState]] = {
    IngestionState.UNPROCESSED: frozenset({IngestionState.PROCESSING}),
    IngestionState.PROCESSING: frozenset({IngestionState.PROCESSED, IngestionState.FAILED}),
    IngestionState.PROCESSED: frozenset({IngestionState.PROCESSING}),
    IngestionState.FAILED: frozenset({IngestionState.PROCESSING}),
}
_FINAL_STATES = _TRANSITIONS[IngestionState.PROCESSING]


class IngestionStateTracker:
    """Thread-safe record of each document's :class:`IngestionState`.

    Documents never seen are ``UNPROCESSED``.  Moving a document that is
    already ``PROCESSING`` back into ``PROCESSING`` raises
    :class:`IngestionStateError`, which keeps two runs for the same id from
    overlapping.
    """

    def __init__(self) -> None:
        self._states: dict[str, IngestionState] = {}
        self._lock = threading.Lock()

    def get(self, document_id: str) -> IngestionState:
        with self._lock:
            return self._states.get(document_id, IngestionState.UNPROCESSED)

    def transition(self, document_id: str, target: IngestionState) -> None:
        with self._lock:
            current = self._states.get(document_id, IngestionState.UNPROCESSED)
            if target not in _TRANSITIONS[current]:
                raise IngestionStateError(
                    f"Invalid state transition for {document_id}: {current.value} -> {target.value}"
                )
            self._states[document_id] = target

    def finish(self, document_id: str, target: IngestionState) -> None:
        """Close a run that entered ``PROCESSING`` with its final state.

        The run owns the id until it finishes, so the current state is not
        consulted.
        """
        if target not in _FINAL_STATES:
            raise ValueError(f"Not a final ingestion state: {target.value}")
        with self._lock:
            self._states[document_id] = target

    def reset(self) -> None:
        """Forget every settled state.  Runs still ``PROCESSING`` are kept."""
        with self._lock:
            self._states = {
                doc_id: state
                for doc_id, state in self._states.items()
                if state is IngestionState.PROCESSING
            }
