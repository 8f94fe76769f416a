"""Structured pipeline events.

Ingestion components never format progress messages themselves; they emit
:class:`PipelineEvent` records to an :class:`EventSink`.  What happens to
those events (logging, metrics, a test assertion) is the sink's business.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Protocol

logger = logging.getLogger(__name__)

STARTED = "started"
SUCCEEDED = "succeeded"
FAILED = "failed"
SKIPPED = "skipped"
RETRY = "retry"
PROGRESS = "progress"


@dataclass(frozen=True)
class PipelineEvent:
    """One observation emitted by the pipeline.

    Attributes
    ----------
    stage:
        Pipeline stage, e.g. ``"fetch"``, ``"embed"``, ``"store"``, ``"batch"``.
    document_id:
        Document the event refers to (``None`` for batch-level events).
    outcome:
        One of ``started``, ``succeeded``, ``failed``, ``skipped``,
        ``retry`` or ``progress``.
    duration_ms:
        Wall time of the stage, when the event closes one.
    detail:
        Free-form structured payload (counts, error messages, …).
    """

    stage: str
    document_id: str | None
    outcome: str
    duration_ms: float | None = None
    detail: dict[str, Any] = field(default_factory=dict)


class EventSink(Protocol):
    """Anything that accepts pipeline events."""

    def emit(self, event: PipelineEvent) -> None: ...


class NullEventSink:
    def emit(self, event: PipelineEvent) -> None:
        return None


class RecordingEventSink:
    """Keeps every event in memory, in emission order."""

    def __init__(self) -> None:
        self.events: list[PipelineEvent] = []

    def emit(self, event: PipelineEvent) -> None:
        self.events.append(event)

    def for_stage(self, stage: str) -> list[PipelineEvent]:
        return [e for e in self.events if e.stage == stage]


class LoggingEventSink:
    """Forwards events to :mod:`logging`; failures at WARNING, the rest at INFO."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def emit(self, event: PipelineEvent) -> None:
        level = logging.WARNING if event.outcome in (FAILED, RETRY) else logging.INFO
        duration = f" in {event.duration_ms:.0f}ms" if event.duration_ms is not None else ""
        self._log.log(
            level,
            "[%s] %s %s%s %s",
            event.stage,
            event.document_id or "-",
            event.outcome,
            duration,
            event.detail or "",
        )


@contextmanager
def track(
    sink: EventSink,
    stage: str,
    document_id: str | None,
    **detail: Any,
) -> Iterator[dict[str, Any]]:
    """Time a stage and emit ``succeeded`` or ``failed`` when it ends.

    The yielded dict is merged into the closing event's ``detail`` so the
    stage body can report counts.  Exceptions are re-raised unchanged.
    """
    extra: dict[str, Any] = {}
    t0 = time.perf_counter()
    try:
        yield extra
    except Exception as exc:
        sink.emit(
            PipelineEvent(
                stage=stage,
                document_id=document_id,
                outcome=FAILED,
                duration_ms=(time.perf_counter() - t0) * 1000,
                detail={**detail, **extra, "error": str(exc), "error_type": type(exc).__name__},
            )
        )
        raise
    sink.emit(
        PipelineEvent(
            stage=stage,
            document_id=document_id,
            outcome=SUCCEEDED,
            duration_ms=(time.perf_counter() - t0) * 1000,
            detail={**detail, **extra},
        )
    )


def configure_logging(level: str = "INFO") -> None:
    """Install a basic root handler at *level*."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
