"""System prompt and message layout for grounded answers."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

    from manual_rag.retrieval.models import RetrievalResult

ANSWER_SYSTEM = """\
You are a helpful assistant specializing in technical equipment manuals.
Answer the user's question using **only** the provided context from
official manuals.

Rules:
1. Only answer based on the provided context. Do NOT use outside knowledge
   and do NOT fabricate information.
2. If the context does not contain the information needed, say so clearly
   and explicitly.
3. Cite the document (model number) for every fact you use, e.g.
   "(Document: ABC-100)".
4. Be specific and technical when appropriate.
5. Keep answers concise but comprehensive.
"""


def build_answer_prompt(
    question: str,
    results: Sequence[RetrievalResult],
    document_id: str | None = None,
) -> list[BaseMessage]:
    """Assemble the messages for one grounded-answer call.

    Parameters
    ----------
    question:
        The user question.
    results:
        Ranked retrieval results; each becomes a labelled context block.
    document_id:
        Document filter the retrieval was restricted to, if any.

    Returns
    -------
    list[BaseMessage]
        A list of LangChain message objects ready for ``.invoke()``.
    """
    parts = [f"CONTEXT FROM MANUALS:\n{format_context(results)}\n"]
    if document_id:
        parts.append(f"SPECIFIC DOCUMENT: {document_id}\n")
    parts.append(f"USER QUESTION: {question}\n")
    parts.append("ANSWER:")
    return [
        SystemMessage(content=ANSWER_SYSTEM),
        HumanMessage(content="\n".join(parts)),
    ]


def format_context(results: Sequence[RetrievalResult]) -> str:
    """Rank-labelled context blocks, best match first."""
    return "\n\n".join(
        f"[Context {rank} - Document: {r.document_id}]\n{r.content}"
        for rank, r in enumerate(results, 1)
    )
