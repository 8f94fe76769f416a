"""Boundary-aware text chunking.

:class:`ManualTextSplitter` walks the text with a fixed window, pulls each
window end back to the nearest paragraph / line / sentence break when one is
close enough, and overlaps consecutive chunks.  It is a LangChain
``TextSplitter`` so ``split_documents`` / ``create_documents`` work as usual.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from langchain_text_splitters import TextSplitter

logger = logging.getLogger(__name__)

MIN_CHUNK_SIZE = 100
MAX_CHUNK_SIZE = 10_000

# In preference order.
BREAK_SEPARATORS: tuple[str, ...] = ("\n\n", "\n", ". ", ".")

# A break closer to the window start than this fraction of the size is ignored.
MIN_BREAK_FRACTION = 0.3


@dataclass(frozen=True)
class ChunkingResult:
    chunks: list[str]
    dropped: int = 0

    @property
    def truncated(self) -> bool:
        return self.dropped > 0


class ManualTextSplitter(TextSplitter):
    """Split text into overlapping, boundary-aligned chunks.

    Parameters
    ----------
    chunk_size:
        Target chunk length in characters, clamped to ``[100, 10000]``.
    chunk_overlap:
        Characters shared by consecutive chunks, clamped to at most half
        of ``chunk_size``.
    max_chunks:
        Hard ceiling on chunks per text.  Anything after the first
        ``max_chunks`` chunks is dropped.
    """

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 100,
        max_chunks: int = 50,
        **kwargs: Any,
    ) -> None:
        size = max(MIN_CHUNK_SIZE, min(chunk_size, MAX_CHUNK_SIZE))
        overlap = max(0, min(chunk_overlap, size // 2))
        super().__init__(chunk_size=size, chunk_overlap=overlap, **kwargs)
        if max_chunks < 1:
            raise ValueError(f"max_chunks must be >= 1, got {max_chunks}")
        self.max_chunks = max_chunks

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def chunk_overlap(self) -> int:
        return self._chunk_overlap

    # -- TextSplitter override -------------------------------------------------

    def split_text(self, text: str) -> list[str]:
        return self.split(text).chunks

    # -- public API ------------------------------------------------------------

    def split(self, text: str) -> ChunkingResult:
        """Chunk *text* and report how many chunks the ceiling dropped."""
        if not text:
            return ChunkingResult(chunks=[])

        chunks = [text[start:end].strip() for start, end in self.split_spans(text)]
        valid = [c for c in chunks if c and len(c) <= 2 * self._chunk_size]
        if len(valid) != len(chunks):
            logger.debug("Filtered out %d invalid chunks", len(chunks) - len(valid))

        dropped = max(0, len(valid) - self.max_chunks)
        return ChunkingResult(chunks=valid[: self.max_chunks], dropped=dropped)

    def split_spans(self, text: str) -> list[tuple[int, int]]:
        """Return the raw ``(start, end)`` window of every non-blank chunk.

        Spans are untrimmed and unaffected by the chunk ceiling.
        """
        length = len(text)
        size = self._chunk_size
        overlap = self._chunk_overlap
        step = max(1, size - overlap)
        max_iterations = math.ceil(length / step) + 10

        spans: list[tuple[int, int]] = []
        start = 0
        iterations = 0
        while start < length and iterations < max_iterations:
            iterations += 1
            end = min(start + size, length)

            if end < length:
                brk = self._find_break(text, start, end)
                if brk is not None and brk > start + size * MIN_BREAK_FRACTION:
                    end = brk

            if text[start:end].strip():
                spans.append((start, end))

            next_start = end - overlap
            start = next_start if next_start > start else start + step

        if start < length:
            logger.warning(
                "Chunking stopped after %d iterations at offset %d of %d",
                iterations,
                start,
                length,
            )
        return spans

    # -- internals ---------------------------------------------------------------

    def _find_break(self, text: str, start: int, end: int) -> int | None:
        """Offset just past the preferred separator inside the window, if any."""
        search_start = max(start, end - self._chunk_size)
        for separator in BREAK_SEPARATORS:
            idx = text.rfind(separator, search_start, end)
            if idx > search_start:
                return idx + len(separator)
        return None
