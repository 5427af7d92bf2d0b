"""
Relevance ranking module initialization.
"""

from .ranker import RelevanceRanker
from .similarity import cosine_similarity, keyword_score, tokenize

__all__ = [
    "RelevanceRanker",
    "cosine_similarity",
    "keyword_score",
    "tokenize"
]
