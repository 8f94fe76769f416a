"""Unit tests for wipe, overview and status reporting."""

from datetime import datetime, timezone

from manual_rag.ingestion.models import IngestionState, IngestionStateTracker
from manual_rag.maintenance import CorpusStatus, DocumentStatus, MaintenanceService


def test_wipe_reports_counts(store, make_record) -> None:
    store.replace("A", [make_record("A", i) for i in range(4)])
    report = MaintenanceService(store).wipe()
    assert (report.deleted_count, report.before_count, report.after_count) == (4, 4, 0)
    assert report.message == "Successfully deleted 4 chunks from database"


def test_wipe_empty_store(store) -> None:
    report = MaintenanceService(store).wipe()
    assert (report.deleted_count, report.before_count, report.after_count) == (0, 0, 0)


def test_wipe_report_uses_camel_case_keys(memory_store, make_record) -> None:
    memory_store.replace("A", [make_record("A", 0), make_record("A", 1)])
    report = MaintenanceService(memory_store).wipe()
    assert report.model_dump(by_alias=True) == {"deletedCount": 2, "beforeCount": 2, "afterCount": 0}


def test_wipe_resets_settled_states(memory_store) -> None:
    states = IngestionStateTracker()
    for doc_id, final in (("A", IngestionState.PROCESSED), ("B", IngestionState.FAILED)):
        states.transition(doc_id, IngestionState.PROCESSING)
        states.transition(doc_id, final)
    states.transition("C", IngestionState.PROCESSING)

    MaintenanceService(memory_store, states=states).wipe()

    assert states.get("A") is IngestionState.UNPROCESSED
    assert states.get("B") is IngestionState.UNPROCESSED
    assert states.get("C") is IngestionState.PROCESSING


def test_overview(memory_store, make_record) -> None:
    service = MaintenanceService(memory_store, sample_size=2)
    empty = service.overview()
    assert empty.message == "Database is already clean"
    assert not empty.can_clean
    assert empty.sample == []

    memory_store.replace("A", [make_record("A", i) for i in range(3)])
    full = service.overview()
    assert full.total_chunks == 3
    assert full.can_clean
    assert full.message == "Database contains 3 chunks"
    assert len(full.sample) == 2


def test_document_status(memory_store, make_record) -> None:
    t0 = datetime(2024, 3, 1, tzinfo=timezone.utc)
    memory_store.replace("A", [make_record("A", 0, processed_at=t0), make_record("A", 1, processed_at=t0)])
    states = IngestionStateTracker()
    states.transition("A", IngestionState.PROCESSING)
    states.transition("A", IngestionState.PROCESSED)
    service = MaintenanceService(memory_store, states=states)

    status = service.status("A")
    assert isinstance(status, DocumentStatus)
    assert status.is_processed
    assert status.chunks_count == 2
    assert status.last_processed == t0
    assert status.state is IngestionState.PROCESSED

    missing = service.status("B")
    assert not missing.is_processed
    assert missing.chunks_count == 0
    assert missing.last_processed is None
    assert missing.state is IngestionState.UNPROCESSED


def test_corpus_status(store, make_record) -> None:
    store.replace("B", [make_record("B", 0)])
    store.replace("A", [make_record("A", 0), make_record("A", 1)])

    status = MaintenanceService(store).status()

    assert isinstance(status, CorpusStatus)
    assert status.total_processed == 2
    assert [(d.document_id, d.chunk_count) for d in status.processed_documents] == [("A", 2), ("B", 1)]
