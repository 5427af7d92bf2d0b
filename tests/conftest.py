"""
Pytest configuration and shared fakes for the Finsight test suite.
"""

import asyncio
import math
from typing import Dict, List, Optional

import pytest

from finsight.config.settings import FinsightConfig, StreamingConfig, CacheConfig, RateLimitConfig
from finsight.core.cache import CacheStore, MemoryCacheBackend
from finsight.core.embeddings import EmbeddingModel
from finsight.core.models import Document
from finsight.core.providers import GenerativeProvider, ProviderDescriptor, ProviderRegistry
from finsight.core.ratelimit import RateLimiter, MemoryCounterStore, default_profiles
from finsight.core.search import ContentAcquisition
from finsight.core.usage import UsageTracker
from finsight.utils.exceptions import EmbeddingError, GenerationError


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSearch(ContentAcquisition):
    """Returns a fixed document list and records phrases."""

    def __init__(self, documents: Optional[List[Document]] = None, error: Optional[Exception] = None):
        self.documents = documents or []
        self.error = error
        self.phrases: List[str] = []

    async def search(self, phrase: str) -> List[Document]:
        self.phrases.append(phrase)
        if self.error is not None:
            raise self.error
        return list(self.documents)


def unit_vector(score: float) -> List[float]:
    """Vector whose cosine similarity with [1, 0] equals ``score``."""
    return [score, math.sqrt(max(0.0, 1.0 - score * score))]


class FakeEmbedding(EmbeddingModel):
    """
    Embeds known texts so that their similarity to any other text is the
    configured score; unknown texts map to [1, 0].
    """

    def __init__(self, scores: Optional[Dict[str, float]] = None, failing: Optional[set] = None):
        self.scores = scores or {}
        self.failing = failing or set()
        self.calls = 0

    async def embed(self, text: str) -> List[float]:
        self.calls += 1
        if text in self.failing:
            raise EmbeddingError(f"cannot embed {text!r}")
        if text in self.scores:
            return unit_vector(self.scores[text])
        return [1.0, 0.0]


class FakeProvider(GenerativeProvider):
    """Scripted generative provider."""

    def __init__(
        self,
        name: str,
        fragments: Optional[List[str]] = None,
        completion: str = "PE Ratio: 25.1\nEPS: 3.2\nRevenue: $60.9B",
        fail: bool = False,
        fail_after: Optional[int] = None,
        yield_control: bool = False
    ):
        self.name = name
        self.fragments = fragments if fragments is not None else ["NVDA ", "looks ", "strong. ", "Buy."]
        self.completion = completion
        self.fail = fail
        self.fail_after = fail_after
        self.yield_control = yield_control
        self.generate_calls = 0
        self.stream_calls = 0
        self.fragments_served = 0

    @property
    def calls(self) -> int:
        return self.generate_calls + self.stream_calls

    async def generate(self, prompt: str) -> str:
        self.generate_calls += 1
        if self.fail:
            raise GenerationError(f"{self.name} is down")
        return self.completion

    async def generate_stream(self, prompt: str):
        self.stream_calls += 1
        if self.fail:
            raise GenerationError(f"{self.name} is down")
        for index, fragment in enumerate(self.fragments):
            if self.fail_after is not None and index >= self.fail_after:
                raise GenerationError(f"{self.name} dropped the stream")
            if self.yield_control:
                await asyncio.sleep(0)
            self.fragments_served += 1
            yield fragment


def make_registry(*providers: FakeProvider, quotas: Optional[Dict[str, int]] = None) -> ProviderRegistry:
    """Register providers with priorities in argument order."""
    quotas = quotas or {}
    registry = ProviderRegistry()
    for priority, provider in enumerate(providers, start=1):
        registry.register(ProviderDescriptor(
            name=provider.name,
            endpoint=f"https://{provider.name}.example/v1",
            daily_quota=quotas.get(provider.name, 100),
            priority=priority
        ), provider)
    return registry


def make_config(**streaming) -> FinsightConfig:
    """Configuration with no pacing delays."""
    values = {
        "content_delay": 0.0,
        "replay_delay_query": 0.0,
        "replay_delay_analysis": 0.0,
        "metrics_timeout": 1.0
    }
    values.update(streaming)
    return FinsightConfig(
        streaming=StreamingConfig(**values),
        cache=CacheConfig(backend="memory")
    )


def make_rate_limiter(clock=None, **limits) -> RateLimiter:
    config = RateLimitConfig(**limits)
    kwargs = {"clock": clock} if clock else {}
    return RateLimiter(MemoryCounterStore(**kwargs), default_profiles(config), **kwargs)


def nvda_documents() -> List[Document]:
    """Six candidates, two of which score below the primary threshold."""
    return [
        Document(title="NVDA rallies", url="https://a.example", content="doc-a"),
        Document(title="Chip demand", url="https://b.example", content="doc-b"),
        Document(title="Unrelated", url="https://c.example", content="doc-c"),
        Document(title="Analyst notes", url="https://d.example", content="doc-d"),
        Document(title="Weather", url="https://e.example", content="doc-e"),
        Document(title="Data center", url="https://f.example", content="doc-f"),
    ]


NVDA_SCORES = {
    "doc-a": 0.9,
    "doc-b": 0.5,
    "doc-c": 0.2,
    "doc-d": 0.35,
    "doc-e": 0.1,
    "doc-f": 0.7,
}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache_store(clock):
    return CacheStore(MemoryCacheBackend(clock=clock), clock=clock)


@pytest.fixture
def usage_tracker():
    return UsageTracker()


@pytest.fixture
def config():
    return make_config()
