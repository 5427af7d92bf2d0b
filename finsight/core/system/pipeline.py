"""
Pipeline assembly.

Wires configuration, collaborators and the orchestrator into one object
used by the API layer.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from finsight.core.analysis import MetricsExtractor
from finsight.core.cache import CacheStore, create_cache_store
from finsight.core.documents import DocumentExtractor, PlainTextExtractor
from finsight.core.embeddings import EmbeddingModel, create_embedding_model
from finsight.core.providers import ProviderRegistry, ProviderManager, create_default_registry
from finsight.core.ranking import RelevanceRanker
from finsight.core.ratelimit import RateLimiter, create_rate_limiter
from finsight.core.search import ContentAcquisition, create_content_acquisition
from finsight.core.streaming import StreamOrchestrator
from finsight.core.usage import UsageTracker
from finsight.config.settings import get_config, FinsightConfig
from finsight.utils.logging import get_logger

logger = get_logger(__name__)


class FinsightPipeline:
    """All shared components of the service."""

    def __init__(
        self,
        config: Optional[FinsightConfig] = None,
        search: Optional[ContentAcquisition] = None,
        embedding_model: Optional[EmbeddingModel] = None,
        registry: Optional[ProviderRegistry] = None,
        cache: Optional[CacheStore] = None,
        rate_limiter: Optional[RateLimiter] = None,
        usage_tracker: Optional[UsageTracker] = None,
        document_extractor: Optional[DocumentExtractor] = None
    ):
        """
        Initialize the pipeline, building any component not supplied.

        Raises:
            ConfigurationError: If the search collaborator cannot be configured
        """
        self.config = config or get_config()

        self.usage_tracker = usage_tracker or UsageTracker()
        self.cache = cache or create_cache_store(self.config.cache)
        self.rate_limiter = rate_limiter or create_rate_limiter(self.config.rate_limit)
        self.registry = registry or create_default_registry(self.config)
        self.search = search or create_content_acquisition(self.config)
        self.embedding_model = embedding_model if embedding_model is not None else create_embedding_model(self.config)
        self.document_extractor = document_extractor or PlainTextExtractor()

        self.provider_manager = ProviderManager(self.registry, self.usage_tracker)
        self.ranker = RelevanceRanker(self.embedding_model, self.config.ranking)
        self.orchestrator = StreamOrchestrator(
            search=self.search,
            ranker=self.ranker,
            cache=self.cache,
            provider_manager=self.provider_manager,
            metrics_extractor=MetricsExtractor(self.provider_manager),
            rate_limiter=self.rate_limiter,
            usage_tracker=self.usage_tracker,
            config=self.config
        )

        logger.info("✅ Finsight pipeline assembled")

    def health_check(self) -> Dict[str, Any]:
        """
        Report component availability without calling external services.

        Returns:
            Dictionary with overall status and per-component flags
        """
        providers_available = self.registry.select() is not None
        components = {
            "cache": self.cache.available,
            "rate_limiter": self.rate_limiter.store is not None,
            "embeddings": self.embedding_model is not None,
            "providers": providers_available,
            "search": self.search is not None
        }

        overall = "healthy"
        if not providers_available:
            overall = "unhealthy"
        elif not (components["cache"] and components["embeddings"]):
            overall = "degraded"

        return {
            "overall": overall,
            "components": components,
            "timestamp": str(datetime.now())
        }

    async def get_system_stats(self) -> Dict[str, Any]:
        return {
            "usage": self.usage_tracker.get_stats(),
            "cache": await self.cache.get_stats(),
            "providers": self.registry.get_usage_stats(),
            "embeddings": self.embedding_model.get_cache_stats() if self.embedding_model is not None else {}
        }

    def reset_provider_usage(self) -> None:
        self.registry.reset_daily_usage()


def create_pipeline(config: Optional[FinsightConfig] = None) -> FinsightPipeline:
    """Create a pipeline from configuration."""
    return FinsightPipeline(config=config)
