"""Cleanup of raw extracted text before chunking."""

from __future__ import annotations

import re
from dataclasses import dataclass

MAX_TEXT_CHARS = 1_000_000

# C0 controls except \t \n \r, DEL, and C1 controls.
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")


@dataclass(frozen=True)
class NormalizedText:
    """Result of :func:`normalize_text`.

    ``is_empty`` is the signal for "nothing usable left"; it is not an
    error, callers turn it into a failed ingestion outcome.
    """

    text: str
    original_length: int
    truncated: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.text


def normalize_text(raw: str | None, max_chars: int = MAX_TEXT_CHARS) -> NormalizedText:
    """Strip control characters, trim, and cap the length at *max_chars*.

    Documents longer than the cap keep their prefix only.
    """
    if not raw:
        return NormalizedText(text="", original_length=0)
    text = _CONTROL_CHARS.sub("", raw).strip()
    if len(text) > max_chars:
        return NormalizedText(text=text[:max_chars], original_length=len(text), truncated=True)
    return NormalizedText(text=text, original_length=len(text))
