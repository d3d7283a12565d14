"""Cosine-similarity ranking of fragments against a query vector.

Pure functions, no I/O.  ``rank`` is what the query path uses;
``rank_with_scores`` keeps the similarity next to each text for callers
that want to display or threshold it.

Two guards that a plain ``dot / (|a| * |b|)`` lacks:

- a zero-magnitude vector has similarity ``0.0`` with anything (never NaN);
- vectors of different length are never compared:
  :class:`VectorDimensionError` is raised instead.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from src.utils.errors import VectorDimensionError

Candidate = tuple[str, Sequence[float]]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return ``dot(a, b) / (||a|| * ||b||)``, or ``0.0`` if either norm is zero."""
    if len(a) != len(b):
        raise VectorDimensionError(
            message=f"Cannot compare vectors of length {len(a)} and {len(b)}"
        )
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


def similarity_scores(query: Sequence[float], vectors: Sequence[Sequence[float]]) -> list[float]:
    """Vectorised cosine similarity of *query* against every row of *vectors*."""
    if not vectors:
        return []

    dimension = len(query)
    for index, vector in enumerate(vectors):
        if len(vector) != dimension:
            raise VectorDimensionError(
                message=(
                    f"Candidate {index} has dimension {len(vector)}, "
                    f"query has dimension {dimension}"
                )
            )

    q = np.asarray(query, dtype=np.float64)
    matrix = np.asarray(vectors, dtype=np.float64).reshape(len(vectors), dimension)
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(q)
    dots = matrix @ q
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(norms > 0.0, dots / np.where(norms > 0.0, norms, 1.0), 0.0)
    return [float(s) for s in scores]


def rank_with_scores(
    query: Sequence[float],
    candidates: Sequence[Candidate],
    top_k: int,
) -> list[tuple[str, float]]:
    """Return the *top_k* ``(text, similarity)`` pairs, most similar first.

    Ties keep the original candidate order.  ``top_k <= 0`` returns an
    empty list; ``top_k`` above the candidate count returns all of them.
    """
    if top_k <= 0 or not candidates:
        return []

    scores = similarity_scores(query, [vector for _, vector in candidates])
    # sorted() is stable, so equal scores keep input order.
    order = sorted(range(len(candidates)), key=lambda i: -scores[i])
    return [(candidates[i][0], scores[i]) for i in order[:top_k]]


def rank(
    query: Sequence[float],
    candidates: Sequence[Candidate],
    top_k: int,
) -> list[str]:
    """Return the texts of the *top_k* candidates most similar to *query*."""
    return [text for text, _ in rank_with_scores(query, candidates, top_k)]
