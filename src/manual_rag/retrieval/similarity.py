"""Cosine similarity, brute force over every candidate."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from manual_rag.errors import RetrievalError


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between *a* and *b*; 0.0 if either is all zeros."""
    if len(a) != len(b):
        raise RetrievalError(f"Vectors must have the same length ({len(a)} != {len(b)})")
    return float(cosine_similarities(a, [b])[0])


def cosine_similarities(query: Sequence[float], candidates: Sequence[Sequence[float]]) -> np.ndarray:
    """Score every row of *candidates* against *query*.

    Raises
    ------
    RetrievalError
        If any candidate's dimensionality differs from the query's.
    """
    if not candidates:
        return np.zeros(0)
    q = np.asarray(query, dtype=np.float64)
    for i, row in enumerate(candidates):
        if len(row) != q.shape[0]:
            raise RetrievalError(
                f"Candidate {i} has dimension {len(row)}, query has {q.shape[0]}"
            )
    matrix = np.asarray(candidates, dtype=np.float64)

    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(q)
    dots = matrix @ q
    scores = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)
    return np.clip(scores, -1.0, 1.0)
