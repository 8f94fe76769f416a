"""Document fetching and text extraction.

:class:`HttpDocumentFetcher` downloads a manual (or reads a local file) with
retries, a hard size cap and a timeout.  :func:`extract_text` turns the
downloaded bytes into plain text: PDF through ``pypdf``, HTML through
BeautifulSoup, anything else decoded as UTF-8.
"""

from __future__ import annotations

import io
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlparse

import requests
from bs4 import BeautifulSoup
from pypdf import PdfReader

from manual_rag.config import Settings, settings
from manual_rag.errors import DocumentTooLargeError, DownloadError, DownloadTimeoutError, ParseError

logger = logging.getLogger(__name__)

_READ_CHUNK_BYTES = 64 * 1024
_BOILERPLATE_TAGS = ["script", "style", "nav", "footer", "header", "aside", "noscript", "iframe"]


@dataclass(frozen=True)
class FetchedDocument:
    uri: str
    content: bytes
    content_type: str = ""

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class ExtractedText:
    text: str
    kind: str
    page_count: int | None = None


class HttpDocumentFetcher:
    """Download source documents one at a time.

    Parameters
    ----------
    session:
        ``requests.Session`` (or compatible) used for HTTP(S) URIs.
    timeout:
        Per-request timeout in seconds.
    max_bytes:
        Downloads larger than this fail with :class:`DocumentTooLargeError`.
    max_attempts:
        Attempts per document, including the first.
    backoff:
        Seconds to wait after failed attempt *n* is ``backoff * n``.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        timeout: float = 60.0,
        max_bytes: int = 50 * 1024 * 1024,
        max_attempts: int = 3,
        backoff: float = 2.0,
        user_agent: str = "Mozilla/5.0 (compatible; Manual-RAG-Bot/1.0)",
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._session = session or requests.Session()
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.max_attempts = max(1, max_attempts)
        self.backoff = backoff
        self.user_agent = user_agent
        self._sleep = sleep

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> HttpDocumentFetcher:
        return cls(
            timeout=cfg.download_timeout,
            max_bytes=cfg.download_max_bytes,
            max_attempts=cfg.download_max_attempts,
            backoff=cfg.download_backoff,
            user_agent=cfg.download_user_agent,
        )

    def fetch(self, uri: str) -> FetchedDocument:
        """Return the document bytes.

        Raises
        ------
        DownloadError
            After the last failed attempt (``DownloadTimeoutError`` when it
            timed out).  ``DocumentTooLargeError`` is raised immediately.
        """
        parsed = urlparse(uri)
        if parsed.scheme in ("", "file"):
            return self._read_local(Path(unquote(parsed.path)) if parsed.scheme else Path(uri), uri)
        if parsed.scheme not in ("http", "https"):
            raise DownloadError(f"Unsupported URI scheme {parsed.scheme!r} in {uri}")

        last_error = DownloadError(f"No download attempted for {uri}")
        for attempt in range(1, self.max_attempts + 1):
            try:
                return self._download(uri)
            except requests.Timeout as exc:
                last_error = DownloadTimeoutError(f"Timed out downloading {uri}: {exc}")
            except requests.RequestException as exc:
                if "timed out" in str(exc).lower():
                    last_error = DownloadTimeoutError(f"Timed out downloading {uri}: {exc}")
                else:
                    last_error = DownloadError(f"Failed to download {uri}: {exc}")

            if attempt < self.max_attempts:
                wait = self.backoff * attempt
                logger.warning(
                    "Download attempt %d/%d for %s failed (wait %.1fs): %s",
                    attempt,
                    self.max_attempts,
                    uri,
                    wait,
                    last_error,
                )
                self._sleep(wait)

        raise type(last_error)(
            f"Failed to download document after {self.max_attempts} attempts: {last_error}"
        ) from last_error

    # -- internals ------------------------------------------------------------

    def _download(self, uri: str) -> FetchedDocument:
        response = self._session.get(
            uri,
            timeout=self.timeout,
            stream=True,
            headers={"User-Agent": self.user_agent},
        )
        try:
            response.raise_for_status()
            declared = response.headers.get("content-length")
            if declared and declared.isdigit() and int(declared) > self.max_bytes:
                raise DocumentTooLargeError(
                    f"{uri} declares {int(declared)} bytes, limit is {self.max_bytes}"
                )
            buffer = bytearray()
            for block in response.iter_content(chunk_size=_READ_CHUNK_BYTES):
                buffer.extend(block)
                if len(buffer) > self.max_bytes:
                    raise DocumentTooLargeError(f"{uri} exceeds the {self.max_bytes} byte limit")
            return FetchedDocument(
                uri=uri,
                content=bytes(buffer),
                content_type=response.headers.get("content-type", ""),
            )
        finally:
            response.close()

    def _read_local(self, path: Path, uri: str) -> FetchedDocument:
        if not path.is_file():
            raise DownloadError(f"File not found: {path}")
        size = path.stat().st_size
        if size > self.max_bytes:
            raise DocumentTooLargeError(f"{path} is {size} bytes, limit is {self.max_bytes}")
        return FetchedDocument(uri=uri, content=path.read_bytes())


# -- extraction ---------------------------------------------------------------


def _detect_kind(doc: FetchedDocument) -> str:
    ctype = doc.content_type.lower()
    uri = doc.uri.lower().split("?", 1)[0]
    head = doc.content[:512].lstrip().lower()
    if doc.content.startswith(b"%PDF") or "pdf" in ctype or uri.endswith(".pdf"):
        return "pdf"
    if "html" in ctype or uri.endswith((".html", ".htm")) or head.startswith((b"<!doctype html", b"<html")):
        return "html"
    return "text"


def extract_text(doc: FetchedDocument) -> ExtractedText:
    """Extract plain text from a fetched document.

    Raises
    ------
    ParseError
        If the bytes cannot be parsed as the detected format.
    """
    kind = _detect_kind(doc)
    if kind == "pdf":
        return _extract_pdf(doc)
    if kind == "html":
        soup = BeautifulSoup(doc.content, "html.parser")
        for tag in soup(_BOILERPLATE_TAGS):
            tag.decompose()
        return ExtractedText(text=soup.get_text(separator="\n", strip=True), kind=kind)
    return ExtractedText(text=doc.content.decode("utf-8", errors="replace"), kind=kind)


def _extract_pdf(doc: FetchedDocument) -> ExtractedText:
    try:
        reader = PdfReader(io.BytesIO(doc.content))
        text_parts = []
        for page in reader.pages:
            text = page.extract_text()
            if text:
                text_parts.append(text.strip())
        page_count = len(reader.pages)
    # pypdf raises a wide range of exception types on corrupt input.
    except Exception as exc:
        raise ParseError(f"Failed to parse PDF {doc.uri}: {exc}") from exc
    return ExtractedText(text="\n\n".join(text_parts), kind="pdf", page_count=page_count)
