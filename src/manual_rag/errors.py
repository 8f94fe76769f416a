"""Error taxonomy for the ingestion and question-answering pipeline.

Every failure the pipeline raises on purpose derives from
:class:`ManualRagError`.  Each class carries an HTTP-style ``status_code``
and a short ``user_message`` so that outer layers (API, CLI) can report a
classified, human-readable reason instead of a raw internal error.
"""

from __future__ import annotations

from dataclasses import dataclass


class ManualRagError(Exception):
    """Base class for all pipeline errors."""

    status_code: int = 500
    user_message: str = "Internal pipeline error"


class DownloadError(ManualRagError):
    """The source document could not be fetched."""

    status_code = 502
    user_message = "Failed to download document"


class DownloadTimeoutError(DownloadError):
    status_code = 408
    user_message = "Request timeout - document download took too long"


class DocumentTooLargeError(DownloadError):
    status_code = 413
    user_message = "Document too large to process"


class ParseError(ManualRagError):
    """The downloaded bytes are corrupt or unreadable."""

    status_code = 422
    user_message = "Failed to parse document"


class EmptyContentError(ManualRagError):
    """Nothing usable remains after extraction / normalization."""

    status_code = 422
    user_message = "No text content found in document"


class ChunkingError(ManualRagError):
    status_code = 500
    user_message = "Failed to chunk text"


class EmbeddingError(ManualRagError):
    """No usable embedding could be produced."""

    status_code = 502
    user_message = "Failed to generate embeddings"


class RateLimitError(EmbeddingError):
    status_code = 429
    user_message = "API rate limit exceeded - please try again later"


class StoreError(ManualRagError):
    status_code = 503
    user_message = "Chunk store unavailable"


class RetrievalError(ManualRagError):
    """Stored vectors are incompatible with the query vector."""

    status_code = 500
    user_message = "Stored embeddings are incompatible with the query embedding"


class GenerationError(ManualRagError):
    """The generative model returned no usable text."""

    status_code = 502
    user_message = "No answer was generated"


class IngestionStateError(ManualRagError):
    status_code = 409
    user_message = "Document is already being processed"


@dataclass(frozen=True)
class ErrorReport:
    """User-facing classification of an exception."""

    status_code: int
    error: str
    details: str


_RATE_LIMIT_MARKERS = ("rate limit", "429", "quota", "resource exhausted", "resource_exhausted")


def is_rate_limit_message(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in _RATE_LIMIT_MARKERS)


def classify_error(exc: BaseException) -> ErrorReport:
    """Map *exc* to a status code and a user-facing message.

    Taxonomy errors use their own ``status_code`` / ``user_message``.
    Foreign exceptions are classified by message: timeouts become 408,
    rate-limit conditions 429, everything else 500 with the raw message.
    """
    details = str(exc) or type(exc).__name__
    if isinstance(exc, ManualRagError):
        return ErrorReport(exc.status_code, exc.user_message, details)
    if isinstance(exc, ValueError):
        return ErrorReport(400, details, details)
    lowered = details.lower()
    if "timeout" in lowered or "timed out" in lowered:
        return ErrorReport(408, DownloadTimeoutError.user_message, details)
    if is_rate_limit_message(details):
        return ErrorReport(429, RateLimitError.user_message, details)
    return ErrorReport(500, details, details)
