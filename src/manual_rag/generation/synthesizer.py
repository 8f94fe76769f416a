"""Grounded answer synthesis over retrieved chunks."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from manual_rag.errors import GenerationError, is_rate_limit_message
from manual_rag.generation.models import Answer, Source
from manual_rag.generation.prompts import build_answer_prompt

if TYPE_CHECKING:
    from langchain_core.language_models.chat_models import BaseChatModel

    from manual_rag.retrieval.models import RetrievalResult

logger = logging.getLogger(__name__)


def _response_text(content: Any) -> str:
    """Flatten a chat-model response ``content`` to plain text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "".join(parts)
    return ""


def make_preview(content: str, limit: int = 200) -> str:
    if len(content) <= limit:
        return content
    return content[:limit] + "..."


class AnswerSynthesizer:
    """Ask the chat model for an answer restricted to the retrieved context.

    Parameters
    ----------
    llm:
        Chat model, already configured with the sampling settings.
    preview_chars:
        Length of the content preview attached to each source.
    """

    def __init__(self, llm: BaseChatModel, *, preview_chars: int = 200) -> None:
        self._llm = llm
        self.preview_chars = preview_chars

    def synthesize(
        self,
        question: str,
        results: Sequence[RetrievalResult],
        document_id: str | None = None,
    ) -> Answer:
        """Generate the answer and pair it with its sources.

        Raises
        ------
        GenerationError
            If the model call fails or returns no text.
        """
        messages = build_answer_prompt(question, results, document_id)
        try:
            response = self._llm.invoke(messages)
        # Chat-model SDKs raise their own exception types.
        except Exception as exc:
            logger.error("Generation call failed: %s", exc)
            if is_rate_limit_message(str(exc)):
                raise GenerationError(f"Generation rate limited: {exc}") from exc
            raise GenerationError(f"Generation call failed: {exc}") from exc

        text = _response_text(getattr(response, "content", None)).strip()
        if not text:
            raise GenerationError("No response generated")

        return Answer(
            answer=text,
            sources=[
                Source(
                    document_id=r.document_id,
                    similarity=r.similarity,
                    preview=make_preview(r.content, self.preview_chars),
                )
                for r in results
            ],
            question=question,
            document_id=document_id,
        )
