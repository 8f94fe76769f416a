"""Embedding (de)serialization at the persistence boundary.

Vectors are stored as JSON arrays in a text column.  Nothing outside the
store layer should see the encoded form.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from numbers import Real


def encode_embedding(vector: Sequence[float]) -> str:
    return json.dumps([float(v) for v in vector], separators=(",", ":"))


def decode_embedding(raw: str | None) -> list[float]:
    """Parse a stored vector.

    ``None`` and the empty string decode to ``[]`` (the failure marker).

    Raises
    ------
    ValueError
        If *raw* is not a JSON array of numbers.
    """
    if raw is None or raw == "":
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Embedding is not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise ValueError(f"Embedding must be a JSON array, got {type(data).__name__}")
    if any(isinstance(v, bool) or not isinstance(v, Real) for v in data):
        raise ValueError("Embedding contains non-numeric values")
    return [float(v) for v in data]
