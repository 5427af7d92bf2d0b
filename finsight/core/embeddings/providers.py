"""
Embedding providers used by the relevance ranker.

The ranker depends only on the ``EmbeddingModel`` interface; the OpenAI
implementation wraps LangChain's ``OpenAIEmbeddings``.
"""

import hashlib
from collections import OrderedDict
from typing import List, Optional, Dict, Any
from abc import ABC, abstractmethod
from langchain_openai import OpenAIEmbeddings
from finsight.utils.logging import get_logger
from finsight.utils.exceptions import EmbeddingError
from finsight.config.settings import get_config, FinsightConfig

logger = get_logger(__name__)


class EmbeddingModel(ABC):
    """Abstract base class for embedding collaborators."""

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """
        Encode text into a fixed-size vector.

        Args:
            text: Text to embed

        Returns:
            Embedding vector

        Raises:
            EmbeddingError: If the collaborator cannot embed the text
        """
        pass

    def get_cache_stats(self) -> Dict[str, Any]:
        """Cache statistics, empty for models without a cache."""
        return {}


class OpenAIEmbeddingModel(EmbeddingModel):
    """OpenAI embedding model with a bounded in-process LRU vector cache."""

    def __init__(
        self,
        api_key: str,
        model_name: Optional[str] = None,
        cache_enabled: bool = True,
        cache_size: Optional[int] = None,
        embeddings: Optional[OpenAIEmbeddings] = None
    ):
        """
        Initialize the OpenAI embedding model.

        Args:
            api_key: OpenAI API key
            model_name: OpenAI embedding model name
            cache_enabled: Whether to memoize vectors by text
            cache_size: Maximum number of memoized vectors
            embeddings: Pre-built LangChain embeddings (tests)
        """
        self.model_name = model_name or get_config().embedding.model_name
        self.cache_enabled = cache_enabled
        self.cache_size = cache_size or get_config().embedding.cache_size
        self.embeddings = embeddings or OpenAIEmbeddings(
            model=self.model_name,
            api_key=api_key
        )
        self._cache: "OrderedDict[str, List[float]]" = OrderedDict()

        logger.info(f"🤖 Initialized OpenAI embedding model: {self.model_name}")

    def _get_cache_key(self, text: str) -> str:
        """Generate cache key for text."""
        return f"{self.model_name}:{hashlib.sha256(text.encode()).hexdigest()}"

    async def embed(self, text: str) -> List[float]:
        cache_key = self._get_cache_key(text)
        if self.cache_enabled and cache_key in self._cache:
            self._cache.move_to_end(cache_key)
            return self._cache[cache_key]

        try:
            vector = await self.embeddings.aembed_query(text)
        except Exception as e:
            raise EmbeddingError(f"Failed to embed text: {str(e)}") from e

        if self.cache_enabled:
            self._cache[cache_key] = vector
            while len(self._cache) > self.cache_size:
                self._cache.popitem(last=False)
        return vector

    def get_cache_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        return {
            "cache_enabled": self.cache_enabled,
            "cached_embeddings": len(self._cache),
            "cache_size": self.cache_size,
            "model_name": self.model_name
        }


def create_embedding_model(config: Optional[FinsightConfig] = None) -> Optional[EmbeddingModel]:
    """
    Create the configured embedding model.

    Returns None when embeddings are disabled or no key is configured, in
    which case the ranker uses keyword scoring.
    """
    config = config or get_config()

    if not config.embedding.enabled:
        logger.info("ℹ️ Embeddings disabled, keyword ranking only")
        return None
    if not config.openai_api_key:
        logger.warning("⚠️ No OpenAI API key, keyword ranking only")
        return None

    try:
        return OpenAIEmbeddingModel(
            api_key=config.openai_api_key,
            model_name=config.embedding.model_name,
            cache_size=config.embedding.cache_size
        )
    except Exception as e:
        logger.warning(f"⚠️ Could not create embedding model: {str(e)}")
        return None
