"""Unit tests for document fetching and text extraction."""

import io
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests
from pypdf import PdfWriter

from manual_rag.errors import DocumentTooLargeError, DownloadError, DownloadTimeoutError, ParseError
from manual_rag.ingestion.loader import FetchedDocument, HttpDocumentFetcher, extract_text

URL = "https://example.com/manuals/abc-100.pdf"


def _response(chunks: list[bytes], headers: dict | None = None) -> MagicMock:
    resp = MagicMock()
    resp.headers = headers or {"content-type": "application/pdf"}
    resp.iter_content.return_value = chunks
    return resp


def _fetcher(session, **kwargs) -> tuple[HttpDocumentFetcher, list[float]]:
    sleeps: list[float] = []
    return HttpDocumentFetcher(session, sleep=sleeps.append, **kwargs), sleeps


class TestHttpFetch:
    def test_streams_body(self) -> None:
        session = MagicMock()
        session.get.return_value = _response([b"%PDF-", b"1.4"])
        fetcher, sleeps = _fetcher(session, timeout=30)

        doc = fetcher.fetch(URL)

        assert doc.content == b"%PDF-1.4"
        assert doc.content_type == "application/pdf"
        assert sleeps == []
        _, kwargs = session.get.call_args
        assert kwargs["stream"] is True
        assert kwargs["timeout"] == 30
        assert "Manual-RAG-Bot" in kwargs["headers"]["User-Agent"]
        session.get.return_value.close.assert_called_once()

    def test_declared_size_over_cap_is_not_retried(self) -> None:
        session = MagicMock()
        session.get.return_value = _response([b"x"], {"content-length": "2048"})
        fetcher, sleeps = _fetcher(session, max_bytes=1024)
        with pytest.raises(DocumentTooLargeError):
            fetcher.fetch(URL)
        assert session.get.call_count == 1
        assert sleeps == []

    def test_streamed_size_over_cap(self) -> None:
        session = MagicMock()
        session.get.return_value = _response([b"x" * 600, b"x" * 600], {})
        fetcher, _ = _fetcher(session, max_bytes=1024)
        with pytest.raises(DocumentTooLargeError):
            fetcher.fetch(URL)

    def test_retries_with_linear_backoff(self) -> None:
        session = MagicMock()
        session.get.side_effect = [requests.Timeout("read timed out"), _response([b"ok"])]
        fetcher, sleeps = _fetcher(session)
        assert fetcher.fetch(URL).content == b"ok"
        assert sleeps == [2.0]

    def test_gives_up_after_three_attempts(self) -> None:
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("connection refused")
        fetcher, sleeps = _fetcher(session)
        with pytest.raises(DownloadError, match="after 3 attempts"):
            fetcher.fetch(URL)
        assert session.get.call_count == 3
        assert sleeps == [2.0, 4.0]

    def test_final_error_chains_last_attempt(self) -> None:
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("connection refused")
        fetcher, sleeps = _fetcher(session, max_attempts=0)
        with pytest.raises(DownloadError, match="after 1 attempts") as excinfo:
            fetcher.fetch(URL)
        assert type(excinfo.value) is DownloadError
        assert "connection refused" in str(excinfo.value.__cause__)
        assert sleeps == []

    def test_timeout_classified(self) -> None:
        session = MagicMock()
        session.get.side_effect = requests.Timeout("timed out")
        fetcher, _ = _fetcher(session, max_attempts=1)
        with pytest.raises(DownloadTimeoutError):
            fetcher.fetch(URL)

    def test_http_error_status(self) -> None:
        resp = _response([])
        resp.raise_for_status.side_effect = requests.HTTPError("404 Client Error")
        session = MagicMock()
        session.get.return_value = resp
        fetcher, _ = _fetcher(session, max_attempts=1)
        with pytest.raises(DownloadError, match="404"):
            fetcher.fetch(URL)

    def test_unsupported_scheme(self) -> None:
        fetcher, _ = _fetcher(MagicMock())
        with pytest.raises(DownloadError, match="Unsupported"):
            fetcher.fetch("ftp://example.com/a.pdf")


class TestLocalFetch:
    def test_path_and_file_uri(self, tmp_path: Path) -> None:
        path = tmp_path / "manual.txt"
        path.write_text("Install the unit.")
        fetcher, _ = _fetcher(MagicMock())
        assert fetcher.fetch(str(path)).content == b"Install the unit."
        assert fetcher.fetch(path.as_uri()).content == b"Install the unit."

    def test_missing_file(self, tmp_path: Path) -> None:
        fetcher, _ = _fetcher(MagicMock())
        with pytest.raises(DownloadError, match="not found"):
            fetcher.fetch(str(tmp_path / "nope.pdf"))

    def test_local_size_cap(self, tmp_path: Path) -> None:
        path = tmp_path / "big.txt"
        path.write_bytes(b"x" * 2048)
        fetcher, _ = _fetcher(MagicMock(), max_bytes=1024)
        with pytest.raises(DocumentTooLargeError):
            fetcher.fetch(str(path))


class TestExtractText:
    def test_plain_text(self) -> None:
        result = extract_text(FetchedDocument(uri="notes.txt", content="Café manual".encode()))
        assert result.kind == "text"
        assert result.text == "Café manual"

    def test_html_drops_scripts(self) -> None:
        html = b"<html><head><script>var x = 1;</script></head><body><p>Step one</p></body></html>"
        result = extract_text(FetchedDocument(uri="https://x/manual", content=html, content_type="text/html"))
        assert result.kind == "html"
        assert "Step one" in result.text
        assert "var x" not in result.text

    def test_pdf_pages_joined(self) -> None:
        pages = [MagicMock(), MagicMock(), MagicMock()]
        pages[0].extract_text.return_value = " Page one "
        pages[1].extract_text.return_value = ""
        pages[2].extract_text.return_value = "Page three"
        with patch("manual_rag.ingestion.loader.PdfReader") as reader:
            reader.return_value.pages = pages
            result = extract_text(FetchedDocument(uri=URL, content=b"%PDF-1.4"))
        assert result.kind == "pdf"
        assert result.text == "Page one\n\nPage three"
        assert result.page_count == 3

    def test_blank_pdf_has_no_text(self) -> None:
        writer = PdfWriter()
        writer.add_blank_page(width=72, height=72)
        buf = io.BytesIO()
        writer.write(buf)
        result = extract_text(FetchedDocument(uri="blank.pdf", content=buf.getvalue()))
        assert result.text == ""
        assert result.page_count == 1

    def test_corrupt_pdf(self) -> None:
        with patch("manual_rag.ingestion.loader.PdfReader", side_effect=Exception("EOF marker not found")):
            with pytest.raises(ParseError, match="EOF marker"):
                extract_text(FetchedDocument(uri=URL, content=b"%PDF-garbage"))
