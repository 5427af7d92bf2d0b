"""
Tests for provider selection, fallback and streaming.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from finsight.core.providers import (
    ChatModelProvider,
    ProviderDescriptor,
    ProviderManager,
    ProviderRegistry,
    NO_PROVIDERS_MESSAGE,
    message_text
)
from finsight.core.usage import UsageTracker
from finsight.utils.exceptions import GenerationError, NoProvidersAvailable
from tests.conftest import FakeProvider, make_registry


async def collect(stream):
    return [fragment async for fragment in stream]


class TestSelection:

    def test_lowest_priority_number_wins(self):
        registry = make_registry(FakeProvider("openai"), FakeProvider("cohere"))
        assert registry.select().name == "openai"

    def test_provider_at_quota_is_skipped(self):
        a, b = FakeProvider("a"), FakeProvider("b")
        registry = make_registry(a, b, quotas={"a": 1})
        registry.descriptor("a").usage_counter = 1
        manager = ProviderManager(registry)

        response = asyncio.run(manager.make_request("prompt"))

        assert response.provider_name == "b"
        assert a.calls == 0

    def test_all_at_quota_fails(self):
        registry = make_registry(FakeProvider("a"), FakeProvider("b"), quotas={"a": 0, "b": 0})
        manager = ProviderManager(registry)

        with pytest.raises(NoProvidersAvailable) as excinfo:
            asyncio.run(manager.make_request("prompt"))

        assert str(excinfo.value) == NO_PROVIDERS_MESSAGE

    def test_uncredentialed_provider_is_never_selected(self):
        registry = ProviderRegistry()
        registry.register(ProviderDescriptor("a", "https://a", 100, 1, credentialed=False), FakeProvider("a"))
        registry.register(ProviderDescriptor("b", "https://b", 100, 2), FakeProvider("b"))

        assert registry.select().name == "b"
        assert registry.is_eligible("a") is False

    def test_usage_only_grows_on_success_and_resets_explicitly(self):
        registry = make_registry(FakeProvider("a"))
        manager = ProviderManager(registry)

        asyncio.run(manager.make_request("one"))
        asyncio.run(manager.make_request("two"))
        assert registry.descriptor("a").usage_counter == 2

        registry.reset_daily_usage()
        assert registry.descriptor("a").usage_counter == 0

    def test_usage_stats(self):
        registry = make_registry(FakeProvider("a"), quotas={"a": 4})
        registry.descriptor("a").usage_counter = 1

        stats = registry.get_usage_stats()

        assert stats == [{
            "name": "a", "usage": 1, "limit": 4, "priority": 1,
            "credentialed": True, "percentage": 25.0
        }]


class TestFallback:

    def test_single_fallback_on_failure(self):
        a, b = FakeProvider("a", fail=True), FakeProvider("b")
        registry = make_registry(a, b)
        tracker = UsageTracker()
        manager = ProviderManager(registry, tracker)

        response = asyncio.run(manager.make_request("prompt"))

        assert response.provider_name == "b"
        assert registry.descriptor("a").usage_counter == 0
        assert registry.descriptor("b").usage_counter == 1
        assert tracker.get_stats()["provider_calls"] == {"b": 1}

    def test_second_failure_propagates_without_third_attempt(self):
        a, b, c = FakeProvider("a", fail=True), FakeProvider("b", fail=True), FakeProvider("c")
        manager = ProviderManager(make_registry(a, b, c))

        with pytest.raises(GenerationError):
            asyncio.run(manager.make_request("prompt"))

        assert (a.calls, b.calls, c.calls) == (1, 1, 0)

    def test_failure_without_alternative_propagates(self):
        manager = ProviderManager(make_registry(FakeProvider("a", fail=True)))

        with pytest.raises(GenerationError):
            asyncio.run(manager.make_request("prompt"))

    def test_exclude_provider_option(self):
        a, b = FakeProvider("a"), FakeProvider("b")
        manager = ProviderManager(make_registry(a, b))

        response = asyncio.run(manager.make_request("prompt", {"exclude_provider": "a"}))

        assert response.provider_name == "b"
        assert a.calls == 0


class TestStreaming:

    def test_stream_yields_fragments_and_names_provider(self):
        registry = make_registry(FakeProvider("a", fragments=["x", "y"]))
        stream = ProviderManager(registry).make_stream_request("prompt")

        assert asyncio.run(collect(stream)) == ["x", "y"]
        assert stream.provider_name == "a"
        assert registry.descriptor("a").usage_counter == 1

    def test_stream_is_lazy(self):
        a = FakeProvider("a")
        ProviderManager(make_registry(a)).make_stream_request("prompt")
        assert a.calls == 0

    def test_stream_cannot_be_restarted(self):
        stream = ProviderManager(make_registry(FakeProvider("a"))).make_stream_request("prompt")
        asyncio.run(collect(stream))

        with pytest.raises(RuntimeError):
            asyncio.run(collect(stream))

    def test_fallback_before_first_fragment(self):
        a, b = FakeProvider("a", fail=True), FakeProvider("b", fragments=["ok"])
        stream = ProviderManager(make_registry(a, b)).make_stream_request("prompt")

        assert asyncio.run(collect(stream)) == ["ok"]
        assert stream.provider_name == "b"

    def test_no_fallback_after_fragments_were_delivered(self):
        a = FakeProvider("a", fragments=["one", "two"], fail_after=1)
        b = FakeProvider("b")
        registry = make_registry(a, b)
        stream = ProviderManager(registry).make_stream_request("prompt")
        received = []

        async def scenario():
            async for fragment in stream:
                received.append(fragment)

        with pytest.raises(GenerationError):
            asyncio.run(scenario())

        assert received == ["one"]
        assert b.calls == 0
        assert registry.descriptor("a").usage_counter == 0

    def test_stream_without_providers(self):
        stream = ProviderManager(make_registry(FakeProvider("a"), quotas={"a": 0})).make_stream_request("p")

        with pytest.raises(NoProvidersAvailable):
            asyncio.run(collect(stream))


class TestChatModelProvider:

    def test_generate_flattens_content(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(return_value=MagicMock(content=[{"type": "text", "text": "hello"}, " world"]))
        provider = ChatModelProvider("openai", llm)

        assert asyncio.run(provider.generate("hi")) == "hello world"

    def test_generate_wraps_errors(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(side_effect=TimeoutError("slow"))
        provider = ChatModelProvider("openai", llm)

        with pytest.raises(GenerationError):
            asyncio.run(provider.generate("hi"))

    def test_stream_skips_empty_chunks(self):
        async def astream(prompt):
            for text in ["a", "", "b"]:
                yield MagicMock(content=text)

        llm = MagicMock()
        llm.astream = astream
        provider = ChatModelProvider("cohere", llm)

        assert asyncio.run(collect(provider.generate_stream("hi"))) == ["a", "b"]

    def test_message_text(self):
        assert message_text("plain") == "plain"
        assert message_text([{"type": "image_url"}, {"type": "text", "text": "t"}]) == "t"
        assert message_text(None) == ""
