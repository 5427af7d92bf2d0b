"""
Provider manager: quota-aware selection with a single fallback.

A failed provider call is retried exactly once on the next eligible
provider; a second failure propagates, which bounds request latency.
"""

from typing import Any, AsyncGenerator, AsyncIterator, Dict, Optional
from finsight.core.models import ProviderResponse
from finsight.core.providers.registry import ProviderRegistry, ProviderDescriptor
from finsight.core.usage import UsageTracker
from finsight.utils.logging import get_logger
from finsight.utils.exceptions import GenerationError, NoProvidersAvailable

logger = get_logger(__name__)

NO_PROVIDERS_MESSAGE = "No AI providers available"


def _as_generation_error(name: str, error: Exception) -> GenerationError:
    if isinstance(error, GenerationError):
        return error
    return GenerationError(f"{name} failed: {str(error)}")


class ProviderStream:
    """
    Lazy, finite, single-use sequence of fragments from one provider.

    ``provider_name`` is set once a provider is chosen. A fallback is only
    attempted while no fragment has been delivered.
    """

    def __init__(self, manager: "ProviderManager", prompt: str):
        self._manager = manager
        self._prompt = prompt
        self._iterator: Optional[AsyncGenerator[str, None]] = None
        self.provider_name: Optional[str] = None

    def __aiter__(self) -> AsyncIterator[str]:
        if self._iterator is not None:
            raise RuntimeError("Provider streams cannot be restarted")
        self._iterator = self._iterate()
        return self._iterator

    async def aclose(self) -> None:
        """Stop consuming the provider; safe to call more than once."""
        if self._iterator is not None:
            await self._iterator.aclose()

    async def _iterate(self) -> AsyncGenerator[str, None]:
        registry = self._manager.registry
        descriptor = registry.select()
        if descriptor is None:
            raise NoProvidersAvailable(NO_PROVIDERS_MESSAGE)

        self.provider_name = descriptor.name
        delivered = False
        try:
            async for fragment in self._manager._stream_from(descriptor, self._prompt):
                delivered = True
                yield fragment
            return
        except Exception as e:
            logger.error(f"❌ {descriptor.name} stream error: {str(e)}")
            if delivered:
                raise _as_generation_error(descriptor.name, e) from e
            fallback = registry.select(exclude={descriptor.name})
            if fallback is None:
                raise _as_generation_error(descriptor.name, e) from e

        logger.info(f"↪️ Falling back to {fallback.name} for streaming")
        self.provider_name = fallback.name
        async for fragment in self._manager._stream_from(fallback, self._prompt):
            yield fragment


class ProviderManager:
    """Chooses generative providers by priority under daily quotas."""

    def __init__(self, registry: ProviderRegistry, usage_tracker: Optional[UsageTracker] = None):
        """
        Args:
            registry: Providers and their usage counters
            usage_tracker: Optional tracker notified of successful calls
        """
        self.registry = registry
        self.usage_tracker = usage_tracker

    def _record_success(self, name: str) -> None:
        self.registry.record_success(name)
        if self.usage_tracker is not None:
            self.usage_tracker.track_ai_call(name)

    async def _call(self, descriptor: ProviderDescriptor, prompt: str) -> ProviderResponse:
        client = self.registry.client(descriptor.name)
        try:
            text = await client.generate(prompt)
        except Exception as e:
            raise _as_generation_error(descriptor.name, e) from e
        self._record_success(descriptor.name)
        return ProviderResponse(text=text, provider_name=descriptor.name)

    async def _stream_from(self, descriptor: ProviderDescriptor, prompt: str) -> AsyncIterator[str]:
        client = self.registry.client(descriptor.name)
        try:
            async for fragment in client.generate_stream(prompt):
                yield fragment
        except Exception as e:
            raise _as_generation_error(descriptor.name, e) from e
        self._record_success(descriptor.name)

    async def make_request(self, prompt: str, options: Optional[Dict[str, Any]] = None) -> ProviderResponse:
        """
        Generate a complete response.

        Args:
            prompt: Prompt text
            options: ``exclude_provider`` removes a provider from selection

        Returns:
            ProviderResponse with the text and the provider that produced it

        Raises:
            NoProvidersAvailable: If no provider is eligible
            GenerationError: If the selected provider and its fallback both fail
        """
        options = options or {}
        excluded = {options["exclude_provider"]} if options.get("exclude_provider") else set()

        descriptor = self.registry.select(exclude=excluded)
        if descriptor is None:
            raise NoProvidersAvailable(NO_PROVIDERS_MESSAGE)

        try:
            return await self._call(descriptor, prompt)
        except GenerationError as e:
            logger.error(f"❌ {descriptor.name} API error: {str(e)}")
            fallback = self.registry.select(exclude=excluded | {descriptor.name})
            if fallback is None:
                raise

        logger.info(f"↪️ Falling back to {fallback.name}")
        return await self._call(fallback, prompt)

    def make_stream_request(self, prompt: str) -> ProviderStream:
        """Open a lazy fragment stream; nothing is sent until iteration starts."""
        return ProviderStream(self, prompt)
