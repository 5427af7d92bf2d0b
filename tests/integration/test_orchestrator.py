"""
End-to-end tests for the stream orchestrator with in-memory collaborators.
"""

import asyncio
from typing import List

import pytest

from finsight.config.settings import RankingConfig
from finsight.core.analysis import MetricsExtractor, NOT_AVAILABLE
from finsight.core.cache import CacheStore, MemoryCacheBackend
from finsight.core.providers import ProviderManager
from finsight.core.ranking import RelevanceRanker
from finsight.core.streaming import StreamOrchestrator, StreamSession, StreamEvent, SessionState
from finsight.core.usage import UsageTracker
from finsight.utils.exceptions import SearchError, RateLimitExceeded, NoProvidersAvailable
from tests.conftest import (
    FakeClock,
    FakeEmbedding,
    FakeProvider,
    FakeSearch,
    make_config,
    make_rate_limiter,
    make_registry,
    nvda_documents,
    NVDA_SCORES
)


class SlowMetricsExtractor(MetricsExtractor):

    def __init__(self, delay: float):
        self.delay = delay

    async def extract(self, subject, sources):
        await asyncio.sleep(self.delay)
        return {"EPS": "1.0"}


class Pipeline:
    """Orchestrator plus handles on its fakes."""

    def __init__(self, provider=None, search=None, rate_limiter=None, metrics_extractor=None, **streaming):
        self.clock = FakeClock()
        self.search = search or FakeSearch(nvda_documents())
        self.embedding = FakeEmbedding(NVDA_SCORES)
        self.provider = provider or FakeProvider("openai")
        self.registry = make_registry(self.provider)
        self.usage = UsageTracker()
        self.cache = CacheStore(MemoryCacheBackend(clock=self.clock), clock=self.clock)
        manager = ProviderManager(self.registry, self.usage)
        self.orchestrator = StreamOrchestrator(
            search=self.search,
            ranker=RelevanceRanker(self.embedding, RankingConfig()),
            cache=self.cache,
            provider_manager=manager,
            metrics_extractor=metrics_extractor or MetricsExtractor(manager),
            rate_limiter=rate_limiter,
            usage_tracker=self.usage,
            config=make_config(**streaming),
            clock=self.clock
        )

    def run(self, session: StreamSession) -> List[StreamEvent]:
        async def consume():
            return [event async for event in self.orchestrator.stream(session)]
        return asyncio.run(consume())


def names(events: List[StreamEvent]) -> List[str]:
    return [event.event for event in events]


class TestQuerySession:

    def test_sources_are_ranked_filtered_and_first(self):
        pipeline = Pipeline()

        events = pipeline.run(StreamSession.for_query("What's the market sentiment on NVDA?"))

        assert names(events)[0] == "sources"
        sources = events[0].data
        assert [s["url"] for s in sources] == [
            "https://a.example", "https://f.example", "https://b.example", "https://d.example"
        ]
        assert [s["relevance_score"] for s in sources] == pytest.approx([0.9, 0.7, 0.5, 0.35])
        assert names(events).index("content") > 0
        assert names(events)[-1] == "done"
        assert events[-1].data == {"cached": False}

    def test_content_is_streamed_in_order(self):
        pipeline = Pipeline()

        events = pipeline.run(StreamSession.for_query("NVDA outlook"))

        content = [e.data for e in events if e.event == "content"]
        assert content == ["NVDA ", "looks ", "strong. ", "Buy."]
        assert "metrics" not in names(events)
        assert "processing" not in names(events)

    def test_top_five_only(self):
        from finsight.core.models import Document
        documents = [Document(title=str(i), url=f"https://{i}", content=f"c{i}") for i in range(8)]
        pipeline = Pipeline(search=FakeSearch(documents))

        events = pipeline.run(StreamSession.for_query("q"))

        assert len(events[0].data) == 5

    def test_second_identical_query_replays_from_cache(self):
        pipeline = Pipeline()
        pipeline.run(StreamSession.for_query("What's the market sentiment on NVDA?"))
        pipeline.clock.advance(4)
        embedding_calls, provider_calls = pipeline.embedding.calls, pipeline.provider.calls

        events = pipeline.run(StreamSession.for_query("  what's the market sentiment on nvda?"))

        assert events[-1].data == {"cached": True, "cache_age": 4}
        assert pipeline.embedding.calls == embedding_calls
        assert pipeline.provider.calls == provider_calls
        assert len(pipeline.search.phrases) == 1
        # three-word groups rebuild the original text
        content = [e.data for e in events if e.event == "content"]
        assert content == ["NVDA looks strong. ", "Buy."]
        assert pipeline.usage.get_stats()["cache_hits"] == 1

    def test_cache_entry_expires(self):
        pipeline = Pipeline()
        pipeline.run(StreamSession.for_query("q"))
        pipeline.clock.advance(1800)

        events = pipeline.run(StreamSession.for_query("q"))

        assert events[-1].data == {"cached": False}
        assert pipeline.provider.stream_calls == 2


class TestSubjectSession:

    def test_full_event_order(self):
        pipeline = Pipeline()

        events = pipeline.run(StreamSession.for_subject("NVDA", "long-term"))
        order = names(events)

        assert pipeline.search.phrases == ["NVDA stock financial analysis investor information"]
        assert order[0] == "sources"
        assert order[1] == "processing"
        last_content = max(i for i, name in enumerate(order) if name == "content")
        assert order.index("metrics") == last_content + 1
        assert order[-1] == "done"
        assert events[order.index("metrics")].data["PE Ratio"] == "25.1"
        assert events[-1].data == {"cached": False, "recommendation": "Buy"}

    def test_second_identical_subject_uses_neither_embedding_nor_provider(self):
        pipeline = Pipeline()
        first = pipeline.run(StreamSession.for_subject("NVDA", "medium-term"))
        embedding_calls, provider_calls = pipeline.embedding.calls, pipeline.provider.calls

        second = pipeline.run(StreamSession.for_subject("nvda", "medium-term"))

        done = second[-1].data
        assert done["cached"] is True
        assert done["cache_age"] >= 0
        assert pipeline.embedding.calls == embedding_calls
        assert pipeline.provider.calls == provider_calls
        assert second[0].data == first[0].data
        assert "processing" in names(second)
        cached_metrics = [e.data for e in second if e.event == "metrics"]
        assert cached_metrics and cached_metrics[0]["EPS"] == "3.2"
        content = "".join(e.data for e in second if e.event == "content")
        assert content == "NVDA looks strong. Buy."

    def test_different_time_horizon_is_a_miss(self):
        pipeline = Pipeline()
        pipeline.run(StreamSession.for_subject("NVDA", "short-term"))

        events = pipeline.run(StreamSession.for_subject("NVDA", "long-term"))

        assert events[-1].data["cached"] is False

    def test_metrics_timeout_uses_placeholder_and_skips_cache(self):
        pipeline = Pipeline(metrics_extractor=SlowMetricsExtractor(delay=1.0), metrics_timeout=0.05)
        session = StreamSession.for_subject("NVDA")

        events = pipeline.run(session)

        metrics = [e.data for e in events if e.event == "metrics"][0]
        assert metrics["EPS"] == NOT_AVAILABLE
        assert names(events)[-1] == "done"
        assert asyncio.run(pipeline.cache.get(session.cache_key())) is None

    def test_metrics_do_not_block_content(self):
        pipeline = Pipeline(metrics_extractor=SlowMetricsExtractor(delay=0.05))

        events = pipeline.run(StreamSession.for_subject("NVDA"))

        metrics = [e.data for e in events if e.event == "metrics"][0]
        assert metrics == {"EPS": "1.0"}

    def test_document_sessions_bypass_cache(self):
        pipeline = Pipeline()
        pipeline.run(StreamSession.for_subject("NVDA", document_text="Q3 memo"))

        events = pipeline.run(StreamSession.for_subject("NVDA", document_text="Q3 memo"))

        assert events[-1].data["cached"] is False
        assert pipeline.provider.stream_calls == 2


class TestFailures:

    def test_search_failure_is_a_single_terminal_error(self):
        pipeline = Pipeline(search=FakeSearch(error=SearchError("Search failed: timeout")))
        session = StreamSession.for_query("NVDA")

        events = pipeline.run(session)

        assert names(events) == ["error"]
        assert events[0].data == {"message": "Search failed: timeout"}
        assert session.state == SessionState.ERROR
        assert pipeline.provider.calls == 0

    def test_generation_failure_keeps_sources_and_has_no_done(self):
        pipeline = Pipeline(provider=FakeProvider("openai", fragments=["a", "b"], fail_after=1))
        session = StreamSession.for_query("NVDA")

        events = pipeline.run(session)

        assert names(events) == ["sources", "content", "error"]
        assert asyncio.run(pipeline.cache.get(session.cache_key())) is None
        assert pipeline.usage.get_stats()["errors"] == 1

    def test_empty_generation_is_an_error(self):
        pipeline = Pipeline(provider=FakeProvider("openai", fragments=["", ""]))
        session = StreamSession.for_subject("NVDA")

        events = pipeline.run(session)

        assert names(events) == ["sources", "processing", "error"]
        assert events[-1].data == {"message": "openai returned an empty response"}
        assert session.state == SessionState.ERROR
        assert asyncio.run(pipeline.cache.get(session.cache_key())) is None

    def test_no_providers(self):
        pipeline = Pipeline()
        pipeline.registry.descriptor("openai").usage_counter = 100

        events = pipeline.run(StreamSession.for_query("NVDA"))

        assert events[-1].event == "error"
        assert events[-1].data["message"] == "No AI providers available"


class TestRateLimiting:

    def test_provider_profile_applies_on_miss_only(self):
        pipeline = Pipeline(rate_limiter=make_rate_limiter(provider_max=1))

        first = pipeline.run(StreamSession.for_query("first", identity="1.2.3.4"))
        blocked = pipeline.run(StreamSession.for_query("second", identity="1.2.3.4"))
        replay = pipeline.run(StreamSession.for_query("first", identity="1.2.3.4"))

        assert first[-1].event == "done"
        assert names(blocked) == ["error"]
        assert "rate limit" in blocked[0].data["message"]
        assert replay[-1].data["cached"] is True
        assert len(pipeline.search.phrases) == 1


class TestCancellation:

    def test_closing_the_channel_stops_generation_and_skips_cache(self):
        provider = FakeProvider("openai", fragments=[f"w{i} " for i in range(50)], yield_control=True)
        pipeline = Pipeline(provider=provider, content_delay=0.001)
        orchestrator = pipeline.orchestrator
        session = StreamSession.for_query("NVDA")

        async def scenario():
            channel = orchestrator.start(session)
            received = []
            async for event in channel:
                received.append(event)
                if event.event == "content":
                    channel.close()
            await asyncio.gather(*orchestrator._producers)
            return received, channel

        received, channel = asyncio.run(scenario())

        assert names(received)[:2] == ["sources", "content"]
        assert "done" not in names(received)
        assert provider.fragments_served < 50
        assert channel.send("content", "late") is False
        assert asyncio.run(pipeline.cache.get(session.cache_key())) is None


class TestComplete:

    def test_returns_assembled_result(self):
        pipeline = Pipeline()

        result = asyncio.run(pipeline.orchestrator.complete(StreamSession.for_subject("NVDA")))

        assert result["text"] == "NVDA looks strong. Buy."
        assert result["cached"] is False
        assert result["provider"] == "openai"
        assert result["recommendation"] == "Buy"
        assert result["metrics"]["Revenue"] == "$60.9B"
        assert len(result["sources"]) == 4

    def test_second_call_is_cached(self):
        pipeline = Pipeline()
        asyncio.run(pipeline.orchestrator.complete(StreamSession.for_query("NVDA")))
        pipeline.clock.advance(2)

        result = asyncio.run(pipeline.orchestrator.complete(StreamSession.for_query("nvda")))

        assert result["cached"] is True
        assert result["cache_age"] == 2
        assert result["provider"] == "openai"

    def test_raises_typed_errors(self):
        pipeline = Pipeline(search=FakeSearch(error=SearchError("down")))
        session = StreamSession.for_query("NVDA")

        with pytest.raises(SearchError):
            asyncio.run(pipeline.orchestrator.complete(session))

        assert session.state == SessionState.ERROR

    def test_rate_limited(self):
        pipeline = Pipeline(rate_limiter=make_rate_limiter(provider_max=0))

        with pytest.raises(RateLimitExceeded):
            asyncio.run(pipeline.orchestrator.complete(StreamSession.for_query("q", identity="ip")))

        assert pipeline.search.phrases == []

    def test_follow_up(self):
        pipeline = Pipeline(provider=FakeProvider("openai", completion="Margins are expanding."))

        result = asyncio.run(pipeline.orchestrator.follow_up("NVDA", "Long analysis", "How are margins?"))

        assert result == {"response": "Margins are expanding.", "provider": "openai"}

    def test_follow_up_without_providers(self):
        pipeline = Pipeline()
        pipeline.registry.descriptor("openai").usage_counter = 100

        with pytest.raises(NoProvidersAvailable):
            asyncio.run(pipeline.orchestrator.follow_up("NVDA", "analysis", "question"))
