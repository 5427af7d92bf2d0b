"""
Pipeline service for API operations.

Holds the pipeline built at startup and exposes the operations the
endpoints need.
"""

from typing import Dict, Any, Optional
from datetime import datetime
from finsight.core.streaming import StreamSession, EventChannel
from finsight.core.system import FinsightPipeline
from finsight.utils.logging import get_logger, preview

logger = get_logger(__name__)


class PipelineService:
    """Service class for pipeline operations."""

    def __init__(self, pipeline: Optional[FinsightPipeline] = None):
        """
        Initialize pipeline service.

        Args:
            pipeline: Assembled pipeline instance
        """
        self.pipeline = pipeline
        logger.info("🔧 Pipeline service initialized")

    def set_pipeline(self, pipeline: Optional[FinsightPipeline]) -> None:
        """Set the pipeline instance."""
        self.pipeline = pipeline
        if pipeline is not None:
            logger.info("✅ Pipeline set in service")

    def is_ready(self) -> bool:
        """Check if the service is ready."""
        return self.pipeline is not None

    def _require(self) -> FinsightPipeline:
        if self.pipeline is None:
            raise RuntimeError("Pipeline not initialized")
        return self.pipeline

    def health_check(self) -> Dict[str, Any]:
        """Perform health check."""
        if not self.is_ready():
            return {
                "overall": "unhealthy",
                "components": {"pipeline": False},
                "timestamp": str(datetime.now()),
                "error": "Pipeline not initialized"
            }

        try:
            return self.pipeline.health_check()
        except Exception as e:
            logger.error(f"❌ Health check failed: {str(e)}")
            return {
                "overall": "unhealthy",
                "components": {"pipeline": False},
                "timestamp": str(datetime.now()),
                "error": str(e)
            }

    async def get_stats(self) -> Dict[str, Any]:
        """Get usage, cache and provider statistics."""
        return await self._require().get_system_stats()

    def reset_provider_usage(self) -> None:
        self._require().reset_provider_usage()

    async def flush_cache(self) -> None:
        await self._require().cache.flush()

    async def enforce(self, profile: str, identity: str) -> None:
        """
        Apply a rate limit profile to a caller.

        Raises:
            RateLimitExceeded: If the caller exhausted the profile's window
        """
        await self._require().rate_limiter.enforce(profile, identity)

    async def chat(self, query: Optional[str], identity: Optional[str] = None) -> Dict[str, Any]:
        session = StreamSession.for_query(query, identity=identity)
        logger.info(f"❓ Processing query: {preview(session.query_or_subject)}")
        return await self._require().orchestrator.complete(session)

    async def analyze(
        self,
        subject: Optional[str],
        time_horizon: Optional[str] = None,
        identity: Optional[str] = None,
        document_text: Optional[str] = None
    ) -> Dict[str, Any]:
        session = StreamSession.for_subject(
            subject, time_horizon=time_horizon, identity=identity, document_text=document_text
        )
        logger.info(f"📈 Processing analysis: {session.query_or_subject} ({session.time_horizon})")
        result = await self._require().orchestrator.complete(session)
        return {**result, "subject": session.query_or_subject, "time_horizon": session.time_horizon}

    async def analyze_document(
        self,
        subject: Optional[str],
        filename: str,
        data: bytes,
        time_horizon: Optional[str] = None,
        identity: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Analyze a subject with an uploaded document as extra context.

        Raises:
            ValidationError: If the subject is blank
            DocumentExtractionError: If the upload cannot be read
        """
        # Validate before reading the upload
        StreamSession.for_subject(subject, time_horizon=time_horizon)
        text = self._require().document_extractor.extract(filename, data)
        result = await self.analyze(subject, time_horizon, identity, document_text=text)
        return {**result, "document": filename}

    async def follow_up(
        self,
        subject: Optional[str],
        analysis: Optional[str],
        message: Optional[str],
        identity: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self._require().orchestrator.follow_up(subject, analysis, message, identity)

    def start_stream(self, session: StreamSession) -> EventChannel:
        """Start a streaming session and return its event channel."""
        logger.info(f"🌊 Starting stream for {session.kind.value}: {preview(session.query_or_subject)}")
        return self._require().orchestrator.start(session)


# Global service instance
pipeline_service = PipelineService()
