"""
Scoring functions used by the relevance ranker.
"""

from typing import Sequence

import numpy as np


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 when either vector has zero magnitude or their shapes differ.
    """
    vec_a = np.asarray(a, dtype=float)
    vec_b = np.asarray(b, dtype=float)
    if vec_a.size == 0 or vec_a.shape != vec_b.shape:
        return 0.0

    magnitude_a = np.linalg.norm(vec_a)
    magnitude_b = np.linalg.norm(vec_b)
    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0

    return float(np.dot(vec_a, vec_b) / (magnitude_a * magnitude_b))


def tokenize(query: str) -> list:
    """Lowercase whitespace tokenization."""
    return (query or "").lower().split()


def keyword_score(words: Sequence[str], title: str, content: str) -> float:
    """
    Occurrence-based relevance in [0, 1].

    Each word contributes 0.1 per occurrence in the content and 0.3 per
    occurrence in the title; the sum is divided by the number of words.
    """
    if not words:
        return 0.0

    title = (title or "").lower()
    content = (content or "").lower()

    score = 0.0
    for word in words:
        score += content.count(word) * 0.1 + title.count(word) * 0.3

    return min(max(score / len(words), 0.0), 1.0)
