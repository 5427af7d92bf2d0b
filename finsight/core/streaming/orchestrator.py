"""
Stream orchestrator.

Drives one session through cache lookup, search, ranking, generation and
metrics extraction, emitting ordered events on an ``EventChannel``. The
same pipeline backs the synchronous ``complete`` variant.
"""

import asyncio
import re
import time
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Set, Tuple
from finsight.core.models import Document, documents_to_payload, documents_from_payload
from finsight.core.analysis import MetricsExtractor, placeholder_metrics, derive_recommendation
from finsight.core.cache import CacheStore, CacheHit
from finsight.core.providers import ProviderManager
from finsight.core.ranking import RelevanceRanker
from finsight.core.ratelimit import RateLimiter, PROVIDER_PROFILE
from finsight.core.search import ContentAcquisition
from finsight.core.streaming import events
from finsight.core.streaming.events import EventChannel, StreamEvent
from finsight.core.streaming.session import StreamSession, SessionState
from finsight.core.usage import UsageTracker
from finsight.chains.prompts import build_chat_prompt, build_analysis_prompt, build_followup_prompt
from finsight.config.settings import get_config, FinsightConfig
from finsight.utils.logging import get_logger, preview
from finsight.utils.exceptions import GenerationError, ValidationError

logger = get_logger(__name__)

QUERY_WORDS_PER_FRAGMENT = 3
ANALYSIS_CHARS_PER_FRAGMENT = 50

_TOKEN_PATTERN = re.compile(r"\S+\s*|\s+")


def split_word_groups(text: str, size: int = QUERY_WORDS_PER_FRAGMENT) -> List[str]:
    """Split text into groups of ``size`` words, keeping the original spacing."""
    tokens = _TOKEN_PATTERN.findall(text or "")
    return ["".join(tokens[i:i + size]) for i in range(0, len(tokens), size)]


def split_slices(text: str, size: int = ANALYSIS_CHARS_PER_FRAGMENT) -> List[str]:
    """Split text into fixed-length slices."""
    text = text or ""
    return [text[i:i + size] for i in range(0, len(text), size)]


class StreamOrchestrator:
    """Runs query and subject sessions end to end."""

    def __init__(
        self,
        search: ContentAcquisition,
        ranker: RelevanceRanker,
        cache: CacheStore,
        provider_manager: ProviderManager,
        metrics_extractor: Optional[MetricsExtractor] = None,
        rate_limiter: Optional[RateLimiter] = None,
        usage_tracker: Optional[UsageTracker] = None,
        config: Optional[FinsightConfig] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the orchestrator.

        Args:
            search: Content acquisition collaborator
            ranker: Relevance ranker
            cache: Cache store shared by all sessions
            provider_manager: Generative provider manager
            metrics_extractor: Metrics extraction for subject sessions
            rate_limiter: Applies the provider profile on cache misses
            usage_tracker: Request and cache counters
            config: Application configuration
            clock: Time source used for cache ages
        """
        self.search = search
        self.ranker = ranker
        self.cache = cache
        self.provider_manager = provider_manager
        self.metrics_extractor = metrics_extractor
        self.rate_limiter = rate_limiter
        self.usage_tracker = usage_tracker

        config = config or get_config()
        self.streaming_config = config.streaming
        self.cache_config = config.cache
        self.top_k = config.ranking.top_k
        self._clock = clock
        self._producers: Set[asyncio.Task] = set()

        logger.info("🎼 Stream orchestrator initialized")

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    def start(self, session: StreamSession) -> EventChannel:
        """
        Start a producer task for the session and return its channel.

        Closing the channel cancels the session: the producer stops
        consuming the provider stream and skips the cache write.
        """
        channel = EventChannel()
        task = asyncio.create_task(self._produce(session, channel))
        self._producers.add(task)
        task.add_done_callback(self._producers.discard)
        return channel

    async def stream(self, session: StreamSession) -> AsyncIterator[StreamEvent]:
        """Yield the session's events until a terminal one."""
        channel = self.start(session)
        try:
            async for event in channel:
                yield event
        finally:
            channel.close()

    async def complete(self, session: StreamSession) -> Dict[str, Any]:
        """
        Run the session without pacing and return the assembled result.

        Returns:
            ``{sources, text, cached, metrics?, recommendation?, provider?, cache_age?}``

        Raises:
            RateLimitExceeded: If the provider profile rejects the identity
            CollaboratorUnavailable: If search or generation fails
        """
        try:
            return await self._run(session, None, paced=False)
        except Exception:
            self._mark_failed(session)
            raise

    async def follow_up(
        self,
        subject: Optional[str],
        analysis: Optional[str],
        message: Optional[str],
        identity: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Answer a question about a previous analysis.

        Raises:
            ValidationError: If any field is blank
            RateLimitExceeded: If the provider profile rejects the identity
            GenerationError: If no provider could answer
        """
        if not (subject and subject.strip() and analysis and analysis.strip() and message and message.strip()):
            raise ValidationError("Subject, analysis and message are required")

        if self.usage_tracker is not None:
            self.usage_tracker.track_request()
        await self._enforce_provider_profile(identity)

        logger.info(f"💬 Follow-up about {subject}: {preview(message)}")
        try:
            response = await self.provider_manager.make_request(
                build_followup_prompt(subject.strip(), analysis, message)
            )
        except Exception:
            if self.usage_tracker is not None:
                self.usage_tracker.track_error()
            raise
        return {"response": response.text, "provider": response.provider_name}

    # ------------------------------------------------------------------
    # Producer
    # ------------------------------------------------------------------

    async def _produce(self, session: StreamSession, channel: EventChannel) -> None:
        try:
            await self._run(session, channel, paced=True)
        except Exception as e:
            logger.error(f"❌ Session {session.id} failed: {str(e)}")
            self._mark_failed(session)
            channel.send(events.ERROR, {"message": str(e)})

    def _mark_failed(self, session: StreamSession) -> None:
        if not session.is_terminal:
            session.transition(SessionState.ERROR)
        if self.usage_tracker is not None:
            self.usage_tracker.track_error()

    @staticmethod
    def _emit(channel: Optional[EventChannel], event: str, data: Any = None) -> None:
        if channel is not None:
            channel.send(event, data)

    @staticmethod
    def _cancelled(channel: Optional[EventChannel]) -> bool:
        return channel is not None and channel.closed

    async def _pause(self, delay: float, paced: bool) -> None:
        if paced and delay > 0:
            await asyncio.sleep(delay)

    async def _enforce_provider_profile(self, identity: Optional[str]) -> None:
        if self.rate_limiter is not None and identity:
            await self.rate_limiter.enforce(PROVIDER_PROFILE, identity)

    async def _run(
        self,
        session: StreamSession,
        channel: Optional[EventChannel],
        paced: bool
    ) -> Dict[str, Any]:
        subject = session.query_or_subject
        logger.info(f"🚀 Session {session.id} ({session.kind.value}): {preview(subject)}")
        if self.usage_tracker is not None:
            self.usage_tracker.track_request()

        session.transition(SessionState.CACHE_CHECK)
        key = session.cache_key() if session.cacheable else None
        hit = await self.cache.get(key) if key else None

        if hit is not None:
            if self.usage_tracker is not None:
                self.usage_tracker.track_cache_hit()
            session.transition(SessionState.CACHE_HIT_REPLAY)
            return await self._replay(session, hit, channel, paced)

        if key and self.usage_tracker is not None:
            self.usage_tracker.track_cache_miss()

        await self._enforce_provider_profile(session.identity)

        session.transition(SessionState.SEARCHING)
        phrase = session.search_phrase()
        documents = await self.search.search(phrase)

        session.transition(SessionState.RANKING)
        ranked = await self.ranker.rank(phrase, documents)
        sources = ranked[:self.top_k]
        sources_payload = documents_to_payload(sources)
        self._emit(channel, events.SOURCES, sources_payload)

        session.transition(SessionState.GENERATING)
        metrics_task = None
        if session.is_subject:
            self._emit(channel, events.PROCESSING, f"Generating analysis for {subject}...")
            prompt = build_analysis_prompt(subject, session.time_horizon, sources, session.document_text)
            metrics_task = self._start_metrics(subject, sources)
        else:
            prompt = build_chat_prompt(subject, sources)

        try:
            text, provider_name, completed = await self._generate(prompt, channel, paced)

            if not completed:
                logger.info(f"🔌 Session {session.id} cancelled by caller, skipping cache write")
                return {"sources": sources_payload, "text": text, "cached": False}

            result: Dict[str, Any] = {
                "sources": sources_payload,
                "text": text,
                "provider": provider_name,
                "cached": False
            }

            cache_write = session.cacheable
            if session.is_subject:
                session.transition(SessionState.METRICS)
                metrics, resolved = await self._join_metrics(metrics_task)
                metrics_task = None
                cache_write = cache_write and resolved
                result["metrics"] = metrics
                result["recommendation"] = derive_recommendation(text)
                self._emit(channel, events.METRICS, metrics)
        finally:
            if metrics_task is not None and not metrics_task.done():
                metrics_task.cancel()

        if cache_write and not self._cancelled(channel):
            payload = {name: value for name, value in result.items() if name != "cached"}
            await self.cache.set(key, payload, self._ttl(session))

        session.transition(SessionState.DONE)
        done = {"cached": False}
        if "recommendation" in result:
            done["recommendation"] = result["recommendation"]
        self._emit(channel, events.DONE, done)
        logger.info(f"✅ Session {session.id} completed via {provider_name}")
        return result

    def _ttl(self, session: StreamSession) -> int:
        if session.is_subject:
            return self.cache_config.analysis_ttl
        return self.cache_config.query_ttl

    async def _generate(
        self,
        prompt: str,
        channel: Optional[EventChannel],
        paced: bool
    ) -> Tuple[str, Optional[str], bool]:
        """
        Stream provider fragments as content events.

        Returns:
            Accumulated text, provider name, and False if the caller went away

        Raises:
            GenerationError: If the provider fails or produces no text
        """
        stream = self.provider_manager.make_stream_request(prompt)
        parts: List[str] = []
        try:
            async for fragment in stream:
                if self._cancelled(channel):
                    return "".join(parts), stream.provider_name, False
                if not fragment:
                    continue
                parts.append(fragment)
                self._emit(channel, events.CONTENT, fragment)
                await self._pause(self.streaming_config.content_delay, paced)
        finally:
            await stream.aclose()

        if not parts:
            raise GenerationError(f"{stream.provider_name} returned an empty response")
        return "".join(parts), stream.provider_name, True

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def _start_metrics(self, subject: str, sources: List[Document]) -> Optional[asyncio.Task]:
        if self.metrics_extractor is None:
            return None
        return asyncio.create_task(
            asyncio.wait_for(
                self.metrics_extractor.extract(subject, sources),
                timeout=self.streaming_config.metrics_timeout
            )
        )

    async def _join_metrics(self, task: Optional[asyncio.Task]) -> Tuple[Dict[str, str], bool]:
        """
        Wait for metrics extraction.

        Returns:
            Metrics, and whether they came from the extractor rather than the placeholder
        """
        if task is None:
            return placeholder_metrics(), False
        try:
            return await task, True
        except asyncio.TimeoutError:
            logger.warning("⏰ Metrics extraction timed out, using placeholder metrics")
        except Exception as e:
            logger.error(f"❌ Metrics extraction failed, using placeholder metrics: {str(e)}")
        return placeholder_metrics(), False

    # ------------------------------------------------------------------
    # Cache replay
    # ------------------------------------------------------------------

    async def _replay(
        self,
        session: StreamSession,
        hit: CacheHit,
        channel: Optional[EventChannel],
        paced: bool
    ) -> Dict[str, Any]:
        payload = hit.payload
        cache_age = hit.age(self._clock())
        text = payload.get("text", "")
        sources = documents_to_payload(documents_from_payload(payload.get("sources", [])))
        logger.info(f"🎯 Replaying cached result for session {session.id} (age {cache_age}s)")

        self._emit(channel, events.SOURCES, sources)
        if session.is_subject:
            self._emit(channel, events.PROCESSING, f"Loading cached analysis for {session.query_or_subject}...")
            fragments = split_slices(text)
            delay = self.streaming_config.replay_delay_analysis
        else:
            fragments = split_word_groups(text)
            delay = self.streaming_config.replay_delay_query

        for fragment in fragments:
            if self._cancelled(channel):
                logger.info(f"🔌 Session {session.id} cancelled during replay")
                break
            self._emit(channel, events.CONTENT, fragment)
            await self._pause(delay, paced)

        result: Dict[str, Any] = {
            "sources": sources,
            "text": text,
            "cached": True,
            "cache_age": cache_age
        }
        if payload.get("provider"):
            result["provider"] = payload["provider"]
        if payload.get("metrics") is not None:
            result["metrics"] = payload["metrics"]
            self._emit(channel, events.METRICS, payload["metrics"])
        if payload.get("recommendation"):
            result["recommendation"] = payload["recommendation"]

        session.transition(SessionState.DONE)
        done = {"cached": True, "cache_age": cache_age}
        if "recommendation" in result:
            done["recommendation"] = result["recommendation"]
        self._emit(channel, events.DONE, done)
        return result
