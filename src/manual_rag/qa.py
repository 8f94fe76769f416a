"""Question answering over the ingested manuals."""

from __future__ import annotations

import logging
from typing import Any

from manual_rag.generation.models import Answer
from manual_rag.generation.synthesizer import AnswerSynthesizer
from manual_rag.retrieval.retriever import ManualRetriever

logger = logging.getLogger(__name__)

HEALTH_PROBE_QUERY = "installation requirements"
HEALTH_PROBE_K = 2


def no_information_message(document_id: str | None) -> str:
    if document_id:
        return (
            f"I don't have manual information available for document {document_id} "
            "to answer your question."
        )
    return (
        "I don't have relevant manual information to answer your question. "
        "Please make sure the manuals have been processed."
    )


class ManualQAService:
    """Retrieve relevant chunks and synthesize a cited answer.

    Parameters
    ----------
    retriever:
        Ranks stored chunks against the question.
    synthesizer:
        Produces the grounded answer from the ranked chunks.
    k:
        Number of chunks passed to the model.
    """

    def __init__(
        self,
        retriever: ManualRetriever,
        synthesizer: AnswerSynthesizer,
        *,
        k: int = 5,
    ) -> None:
        self.retriever = retriever
        self.synthesizer = synthesizer
        self.k = k

    def ask(self, question: str, document_id: str | None = None) -> Answer:
        """Answer *question*, optionally restricted to one document.

        Raises
        ------
        ValueError
            If the question is blank.
        EmbeddingError, RetrievalError, GenerationError
            Propagated from the underlying stages.
        """
        if not question or not question.strip():
            raise ValueError("Question is required")
        question = question.strip()
        document_id = document_id or None

        results = self.retriever.search(question, document_id=document_id, k=self.k)
        if not results:
            logger.info("No relevant chunks for question (document: %s)", document_id or "any")
            return Answer(
                answer=no_information_message(document_id),
                sources=[],
                question=question,
                document_id=document_id,
            )

        logger.info(
            "Answering with %d chunks, best similarity %.3f", len(results), results[0].similarity
        )
        return self.synthesizer.synthesize(question, results, document_id)

    def health_check(self) -> dict[str, Any]:
        """Run a probe retrieval and report how many chunks came back."""
        results = self.retriever.search(HEALTH_PROBE_QUERY, k=HEALTH_PROBE_K)
        return {
            "success": True,
            "message": "RAG system test completed",
            "test_query": HEALTH_PROBE_QUERY,
            "chunks_found": len(results),
            "sample_chunk": results[0].content[:200] if results else None,
        }
