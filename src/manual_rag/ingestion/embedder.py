"""Rate-limited, retrying embedding client.

The client wraps any LangChain :class:`~langchain_core.embeddings.Embeddings`
provider and keeps its two task modes apart:

* **document mode**: :meth:`EmbeddingClient.embed_documents` calls the
  provider's ``embed_documents`` (Gemini: ``RETRIEVAL_DOCUMENT``);
* **query mode**: :meth:`EmbeddingClient.embed_query` calls the provider's
  ``embed_query`` (Gemini: ``RETRIEVAL_QUERY``).

Requests are sent one at a time through a :class:`RateLimiter`.  Every item
gets its own set of retries; an item that exhausts them yields an empty vector
instead of failing the whole document.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from numbers import Real
from typing import TYPE_CHECKING

from manual_rag.config import Settings, settings
from manual_rag.errors import EmbeddingError, RateLimitError, is_rate_limit_message
from manual_rag.events import PROGRESS, RETRY, EventSink, LoggingEventSink, PipelineEvent
from manual_rag.ingestion.rate_limit import RateLimiter

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings


def get_embedding_function(cfg: Settings = settings) -> Embeddings:
    """Return the configured LangChain embedding provider."""
    if cfg.embedding_provider == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        return HuggingFaceEmbeddings(model_name=cfg.embedding_model)

    from langchain_google_genai import GoogleGenerativeAIEmbeddings

    return GoogleGenerativeAIEmbeddings(
        model=cfg.embedding_model,
        google_api_key=cfg.google_api_key or None,
    )


@dataclass(frozen=True)
class EmbeddingBatch:
    """Per-item vectors for one document, in input order.

    An empty vector marks an item whose retries were exhausted.
    """

    vectors: list[list[float]]

    @property
    def succeeded(self) -> int:
        return sum(1 for v in self.vectors if v)

    @property
    def failed(self) -> int:
        return len(self.vectors) - self.succeeded

    @property
    def degraded(self) -> bool:
        """Fewer than half of the items produced a vector."""
        return self.succeeded < len(self.vectors) / 2


class EmbeddingClient:
    """Sequential embedding with per-item retries and partial-failure isolation.

    Parameters
    ----------
    embeddings:
        LangChain embedding provider.
    rate_limiter:
        Scheduler consulted before every provider request.  Defaults to a
        :class:`RateLimiter` with ``request_delay`` spacing.
    request_delay:
        Seconds between requests; also the base of the retry backoff.
    max_retries:
        Attempts per item (including the first).
    max_input_chars:
        Inputs are truncated to this many characters before sending.
    batch_size:
        Items per progress event.  Requests are never grouped.
    expected_dimension:
        When set, vectors of any other length count as malformed.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        *,
        rate_limiter: RateLimiter | None = None,
        request_delay: float = 0.2,
        max_retries: int = 3,
        max_input_chars: int = 8000,
        batch_size: int = 5,
        expected_dimension: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
        events: EventSink | None = None,
    ) -> None:
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")
        self._embeddings = embeddings
        self._limiter = rate_limiter or RateLimiter(request_delay, sleep=sleep)
        self.retry_delay = request_delay
        self.max_retries = max_retries
        self.max_input_chars = max_input_chars
        self.batch_size = max(1, batch_size)
        self.expected_dimension = expected_dimension
        self._sleep = sleep
        self._events = events or LoggingEventSink()

    @classmethod
    def from_settings(
        cls,
        cfg: Settings = settings,
        *,
        embeddings: Embeddings | None = None,
        events: EventSink | None = None,
    ) -> EmbeddingClient:
        return cls(
            embeddings or get_embedding_function(cfg),
            request_delay=cfg.embed_request_delay,
            max_retries=cfg.embed_max_retries,
            max_input_chars=cfg.embed_max_input_chars,
            batch_size=cfg.embed_batch_size,
            expected_dimension=cfg.embedding_dimension,
            events=events,
        )

    # -- document mode ---------------------------------------------------------

    def embed_documents(
        self,
        texts: Sequence[str],
        *,
        document_id: str | None = None,
    ) -> EmbeddingBatch:
        """Embed *texts* in document mode, one request at a time.

        Raises
        ------
        EmbeddingError
            When not a single item produced a vector (``RateLimitError``
            when every failure was a rate-limit rejection).
        """
        if not texts:
            return EmbeddingBatch(vectors=[])

        vectors: list[list[float]] = []
        errors: list[Exception] = []
        total_batches = math.ceil(len(texts) / self.batch_size)

        for batch_no, offset in enumerate(range(0, len(texts), self.batch_size), 1):
            self._events.emit(
                PipelineEvent(
                    stage="embed",
                    document_id=document_id,
                    outcome=PROGRESS,
                    detail={"batch": batch_no, "batches": total_batches},
                )
            )
            for index, text in enumerate(texts[offset : offset + self.batch_size], offset):
                if not text or not text.strip():
                    vectors.append([])
                    continue
                vector, error = self._embed_with_retry(
                    self._embed_document, text, document_id=document_id, index=index
                )
                vectors.append(vector)
                if error is not None:
                    errors.append(error)

        batch = EmbeddingBatch(vectors=vectors)
        if batch.succeeded == 0:
            detail = f": {errors[-1]}" if errors else ""
            if errors and all(is_rate_limit_message(str(e)) for e in errors):
                raise RateLimitError(f"No valid embeddings were generated{detail}")
            raise EmbeddingError(f"No valid embeddings were generated{detail}")
        return batch

    # -- query mode --------------------------------------------------------------

    def embed_query(self, text: str) -> list[float]:
        """Embed a search query in query mode."""
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed an empty query")

        vector, error = self._embed_with_retry(
            self._embeddings.embed_query, text, document_id=None, index=None
        )
        if not vector:
            message = f"Failed to generate query embedding after {self.max_retries} attempts: {error}"
            if error is not None and is_rate_limit_message(str(error)):
                raise RateLimitError(message) from error
            raise EmbeddingError(message) from error
        return vector

    # -- internals ---------------------------------------------------------------

    def _embed_document(self, text: str) -> Sequence[float]:
        vectors = self._embeddings.embed_documents([text])
        if not vectors:
            raise EmbeddingError("Provider returned no embedding")
        return vectors[0]

    def _embed_with_retry(
        self,
        call: Callable[[str], Sequence[float]],
        text: str,
        *,
        document_id: str | None,
        index: int | None,
    ) -> tuple[list[float], Exception | None]:
        payload = text[: self.max_input_chars]
        last_error: Exception | None = None
        for attempt in range(self.max_retries):
            self._limiter.wait()
            try:
                return self._validate(call(payload)), None
            # Provider SDKs raise their own exception types; each one is a
            # failed attempt for this item only.
            except Exception as exc:
                last_error = exc
                if attempt + 1 < self.max_retries:
                    delay = self.retry_delay * 2**attempt
                    self._events.emit(
                        PipelineEvent(
                            stage="embed",
                            document_id=document_id,
                            outcome=RETRY,
                            detail={
                                "chunk_index": index,
                                "attempt": attempt + 1,
                                "wait_seconds": delay,
                                "error": str(exc),
                            },
                        )
                    )
                    self._sleep(delay)
        return [], last_error

    def _validate(self, raw: Sequence[float] | None) -> list[float]:
        if raw is None or len(raw) == 0:
            raise EmbeddingError("Provider returned an empty embedding")
        if any(isinstance(v, bool) or not isinstance(v, Real) for v in raw):
            raise EmbeddingError("Provider returned a non-numeric embedding")
        if self.expected_dimension is not None and len(raw) != self.expected_dimension:
            raise EmbeddingError(
                f"Embedding has dimension {len(raw)}, expected {self.expected_dimension}"
            )
        return [float(v) for v in raw]
