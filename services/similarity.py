"""Vector similarity and top-K ranking over knowledge-base documents.

Pure functions: no I/O, no shared state. Every document passed in must carry
an embedding; the knowledge base only publishes fully-embedded sets.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from models.document import Document

DEFAULT_TOP_K = 8


@dataclass(frozen=True)
class ScoredDocument:
    document: Document
    score: float


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Cosine of the angle between two vectors, in [-1, 1].

    Returns ``0.0`` when either vector has zero magnitude.
    """
    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)

    mag_a = float(np.linalg.norm(a))
    mag_b = float(np.linalg.norm(b))
    if mag_a == 0.0 or mag_b == 0.0:
        return 0.0

    score = float(np.dot(a, b)) / (mag_a * mag_b)
    # Clamp float drift (e.g. 1.0000000000000002 for identical vectors)
    return max(-1.0, min(1.0, score))


def rank_documents(
    query_vector: Sequence[float],
    documents: Sequence[Document],
) -> list[ScoredDocument]:
    """Score every document against the query, highest score first.

    Equal scores keep their original relative order.
    """
    scored = [
        ScoredDocument(document=doc, score=cosine_similarity(query_vector, doc.embedding))
        for doc in documents
    ]
    # sorted() is stable, including with reverse=True
    return sorted(scored, key=lambda item: item.score, reverse=True)


def top_k(
    query_vector: Sequence[float],
    documents: Sequence[Document],
    k: int = DEFAULT_TOP_K,
) -> list[Document]:
    """Return the ``k`` documents most similar to ``query_vector``."""
    if k <= 0:
        return []
    return [item.document for item in rank_documents(query_vector, documents)[:k]]
