"""
Relevance ranking engine.

Scores candidate documents against a query with embedding similarity,
falling back to keyword occurrence scoring when the embedding
collaborator is missing or fails.
"""

import asyncio
from typing import List, Optional
from finsight.core.models import Document
from finsight.core.embeddings import EmbeddingModel
from finsight.core.ranking.similarity import cosine_similarity, keyword_score, tokenize
from finsight.config.settings import get_config, RankingConfig
from finsight.utils.logging import get_logger, preview
from finsight.utils.exceptions import EmbeddingError

logger = get_logger(__name__)


class RelevanceRanker:
    """Ranks documents by relevance to a query."""

    def __init__(
        self,
        embedding_model: Optional[EmbeddingModel] = None,
        config: Optional[RankingConfig] = None
    ):
        """
        Initialize the ranker.

        Args:
            embedding_model: Embedding collaborator, None for keyword scoring only
            config: Ranking thresholds and limits
        """
        self.embedding_model = embedding_model
        self.config = config or get_config().ranking

    async def rank(self, query: str, documents: List[Document]) -> List[Document]:
        """
        Score and filter documents, highest score first.

        Never raises: if scoring itself breaks, every original document is
        returned unsorted with the neutral score.
        """
        try:
            if self.embedding_model is not None:
                try:
                    return await self._rank_with_embeddings(query, documents)
                except EmbeddingError as e:
                    logger.warning(f"⚠️ Embedding ranking unavailable, using keywords: {str(e)}")

            logger.info("🔤 Using keyword-based relevance scoring")
            return self._rank_with_keywords(query, documents)

        except Exception as e:
            logger.error(f"❌ Ranking failed, returning neutral scores: {str(e)}")
            return [doc.with_score(self.config.neutral_score) for doc in documents]

    async def _embed(self, text: str) -> List[float]:
        return await self.embedding_model.embed(text[:self.config.max_content_length])

    async def _rank_with_embeddings(self, query: str, documents: List[Document]) -> List[Document]:
        try:
            query_vector = await self._embed(query)
        except Exception as e:
            raise EmbeddingError(f"Query embedding failed: {str(e)}") from e

        candidates = [doc for doc in documents if doc.has_content()]
        skipped = len(documents) - len(candidates)
        if skipped:
            logger.debug(f"Skipping {skipped} documents with empty content")

        vectors = await asyncio.gather(
            *(self._embed(doc.content) for doc in candidates),
            return_exceptions=True
        )

        relevant = []
        for doc, vector in zip(candidates, vectors):
            if isinstance(vector, BaseException):
                logger.warning(f"⚠️ Skipping {doc.url or doc.title}: {str(vector)}")
                continue

            score = cosine_similarity(query_vector, vector)
            if score > self.config.primary_threshold:
                relevant.append(doc.with_score(score))

        relevant.sort(key=lambda d: d.relevance_score, reverse=True)
        logger.info(f"📊 Ranked {len(relevant)}/{len(documents)} documents for: {preview(query)}")
        return relevant

    def _rank_with_keywords(self, query: str, documents: List[Document]) -> List[Document]:
        words = tokenize(query)

        relevant = []
        for doc in documents:
            if not doc.has_content():
                continue
            score = keyword_score(words, doc.title, doc.content)
            if score > self.config.fallback_threshold:
                relevant.append(doc.with_score(score))

        relevant.sort(key=lambda d: d.relevance_score, reverse=True)
        return relevant
