"""Manual retriever: query embedding plus brute-force cosine ranking.

This module is the **primary public interface** for retrieval.  It reads
every candidate chunk from the store (optionally restricted to one
document) and ranks them in process; there is no approximate index.

Usage::

    from manual_rag.retrieval.retriever import ManualRetriever

    retriever = ManualRetriever(embedder=client, store=store)
    results   = retriever.search("What is the operating range?", document_id="ABC-100")
    for r in results:
        print(r.short_ref(), f"{r.similarity:.3f}", r.content[:80])
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from manual_rag.errors import RetrievalError
from manual_rag.ingestion.embedder import EmbeddingClient
from manual_rag.retrieval.models import RetrievalResult
from manual_rag.retrieval.similarity import cosine_similarities
from manual_rag.store.base import ChunkStore

logger = logging.getLogger(__name__)


class ManualRetriever:
    """Rank stored chunks against a question.

    Parameters
    ----------
    embedder:
        Client used in **query** mode for the question.
    store:
        Chunk store providing the candidates.
    default_k:
        Default number of results returned by :meth:`search`.
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        store: ChunkStore,
        *,
        default_k: int = 5,
    ) -> None:
        self._embedder = embedder
        self._store = store
        self.default_k = default_k

    # -- public API -----------------------------------------------------------

    def search(
        self,
        question: str,
        *,
        document_id: str | None = None,
        k: int | None = None,
    ) -> list[RetrievalResult]:
        """Embed *question* and return the top-*k* chunks, best first.

        An empty corpus (or an unknown *document_id*) gives ``[]``.

        Raises
        ------
        EmbeddingError
            If the question cannot be embedded.
        RetrievalError
            If a stored vector's dimensionality differs from the query's.
        """
        query_vector = self._embedder.embed_query(question)
        return self.search_by_embedding(query_vector, document_id=document_id, k=k)

    def search_by_embedding(
        self,
        embedding: Sequence[float],
        *,
        document_id: str | None = None,
        k: int | None = None,
    ) -> list[RetrievalResult]:
        """Same as :meth:`search` but accepts a pre-computed query vector."""
        k = k or self.default_k
        candidates = [c for c in self._store.query(document_id) if c.has_embedding]
        if not candidates:
            logger.info("No candidate chunks (document filter: %s)", document_id or "none")
            return []

        for chunk in candidates:
            if chunk.dimension != len(embedding):
                raise RetrievalError(
                    f"Chunk {chunk.document_id}#{chunk.chunk_index} has embedding dimension "
                    f"{chunk.dimension}, query has {len(embedding)}"
                )

        scores = cosine_similarities(embedding, [c.embedding for c in candidates])
        order = np.argsort(-scores, kind="stable")[:k]
        return [
            RetrievalResult(chunk=candidates[i], similarity=float(scores[i]))
            for i in order
        ]
