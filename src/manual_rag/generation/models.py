"""Answer payloads returned to callers."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Source(BaseModel):
    """Citation linking an answer back to one retrieved chunk."""

    document_id: str
    similarity: float
    preview: str


class Answer(BaseModel):
    """A grounded answer and the retrieval results it was built from.

    ``sources`` is in the same order as the context blocks in the prompt,
    so ``[Context n]`` corresponds to ``sources[n - 1]``.
    """

    answer: str
    sources: list[Source] = Field(default_factory=list)
    question: str
    document_id: str | None = None
