"""Unit tests for the command-line entry point."""

import json
from unittest.mock import patch

import pytest

from manual_rag.cli import build_parser, main, run_command

ABC_URI = "https://example.com/abc-100.txt"


def _run(argv: list[str], services, capsys: pytest.CaptureFixture) -> tuple[int, dict]:
    code = run_command(build_parser().parse_args(argv), services)
    return code, json.loads(capsys.readouterr().out)


def test_ingest_then_ask(services, capsys) -> None:
    code, outcome = _run(["ingest", "ABC-100", ABC_URI], services, capsys)
    assert code == 0
    assert outcome["success"] is True

    code, answer = _run(["ask", "installation requirements?", "--document-id", "ABC-100"], services, capsys)
    assert code == 0
    assert answer["sources"][0]["document_id"] == "ABC-100"


def test_failed_ingest_exit_code(services, capsys) -> None:
    code, outcome = _run(["ingest", "X-1", "https://example.com/missing.pdf"], services, capsys)
    assert code == 1
    assert outcome["error_type"] == "DownloadError"


def test_ingest_all_and_status(services, capsys) -> None:
    services.registry.add("ABC-100", ABC_URI)
    code, summary = _run(["ingest-all"], services, capsys)
    assert code == 0
    assert summary["success_rate"] == "100%"

    _, status = _run(["status", "ABC-100"], services, capsys)
    assert status["is_processed"] is True


def test_wipe_requires_confirmation(services, capsys) -> None:
    _run(["ingest", "ABC-100", ABC_URI], services, capsys)

    _, overview = _run(["wipe"], services, capsys)
    assert overview["can_clean"] is True
    assert services.store.count() > 0

    _, report = _run(["wipe", "--yes"], services, capsys)
    assert report["afterCount"] == 0


def test_main_reports_classified_errors(services, capsys) -> None:
    with patch("manual_rag.cli.build_services", return_value=services):
        code = main(["ask", "   "])
    assert code == 1
    out = json.loads(capsys.readouterr().out)
    assert out["status_code"] == 400
    assert out["error"] == "Question is required"
