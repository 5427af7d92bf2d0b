"""
Provider registry: descriptors, daily usage accounting and selection.

The registry is an explicit value handed to the provider manager and the
orchestrator. Usage counters only grow until ``reset_daily_usage`` is
called by the daily schedule (or the system endpoint).
"""

import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Any
from langchain_openai import ChatOpenAI
from langchain_cohere import ChatCohere
from finsight.core.providers.base import GenerativeProvider, ChatModelProvider
from finsight.config.settings import get_config, FinsightConfig
from finsight.utils.logging import get_logger
from finsight.utils.exceptions import ConfigurationError

logger = get_logger(__name__)


@dataclass
class ProviderDescriptor:
    """Quota and priority metadata of one provider."""

    name: str
    endpoint: str
    daily_quota: int
    priority: int
    usage_counter: int = 0
    credentialed: bool = True


class ProviderRegistry:
    """Registered providers and their daily usage."""

    def __init__(self):
        self._descriptors: Dict[str, ProviderDescriptor] = {}
        self._clients: Dict[str, GenerativeProvider] = {}
        self._lock = threading.Lock()

    def register(self, descriptor: ProviderDescriptor, client: GenerativeProvider) -> None:
        with self._lock:
            self._descriptors[descriptor.name] = descriptor
            self._clients[descriptor.name] = client
        logger.info(
            f"🔌 Registered provider {descriptor.name} "
            f"(priority={descriptor.priority}, quota={descriptor.daily_quota})"
        )

    def client(self, name: str) -> GenerativeProvider:
        return self._clients[name]

    def descriptor(self, name: str) -> ProviderDescriptor:
        return self._descriptors[name]

    @property
    def names(self) -> List[str]:
        return list(self._descriptors)

    def _eligible(self, descriptor: ProviderDescriptor) -> bool:
        return descriptor.credentialed and descriptor.usage_counter < descriptor.daily_quota

    def is_eligible(self, name: str) -> bool:
        with self._lock:
            descriptor = self._descriptors.get(name)
            return descriptor is not None and self._eligible(descriptor)

    def select(self, exclude: Iterable[str] = ()) -> Optional[ProviderDescriptor]:
        """Eligible provider with the lowest priority number, or None."""
        excluded = set(exclude)
        with self._lock:
            candidates = [
                d for d in self._descriptors.values()
                if d.name not in excluded and self._eligible(d)
            ]
        if not candidates:
            return None
        return min(candidates, key=lambda d: d.priority)

    def record_success(self, name: str) -> None:
        with self._lock:
            self._descriptors[name].usage_counter += 1

    def reset_daily_usage(self) -> None:
        with self._lock:
            for descriptor in self._descriptors.values():
                descriptor.usage_counter = 0
        logger.info("🔄 Provider daily usage reset")

    def get_usage_stats(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                {
                    "name": d.name,
                    "usage": d.usage_counter,
                    "limit": d.daily_quota,
                    "priority": d.priority,
                    "credentialed": d.credentialed,
                    "percentage": (d.usage_counter / d.daily_quota * 100) if d.daily_quota else 100.0
                }
                for d in sorted(self._descriptors.values(), key=lambda d: d.priority)
            ]


def create_default_registry(config: Optional[FinsightConfig] = None) -> ProviderRegistry:
    """
    Register the OpenAI and Cohere chat models.

    A provider without an API key is registered as uncredentialed so it
    shows up in usage stats but is never selected.
    """
    config = config or get_config()
    settings = config.providers
    registry = ProviderRegistry()

    if config.openai_api_key:
        openai_client = ChatModelProvider("openai", ChatOpenAI(
            model=settings.openai_model,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            timeout=settings.timeout,
            api_key=config.openai_api_key
        ))
    else:
        openai_client = _MissingCredentials("openai")
    registry.register(ProviderDescriptor(
        name="openai",
        endpoint=settings.openai_endpoint,
        daily_quota=settings.openai_daily_quota,
        priority=settings.openai_priority,
        credentialed=bool(config.openai_api_key)
    ), openai_client)

    if config.cohere_api_key:
        cohere_client = ChatModelProvider("cohere", ChatCohere(
            model=settings.cohere_model,
            temperature=settings.temperature,
            cohere_api_key=config.cohere_api_key
        ))
    else:
        cohere_client = _MissingCredentials("cohere")
    registry.register(ProviderDescriptor(
        name="cohere",
        endpoint=settings.cohere_endpoint,
        daily_quota=settings.cohere_daily_quota,
        priority=settings.cohere_priority,
        credentialed=bool(config.cohere_api_key)
    ), cohere_client)

    return registry


class _MissingCredentials(GenerativeProvider):
    """Placeholder client for a provider registered without an API key."""

    def __init__(self, name: str):
        self.name = name

    async def generate(self, prompt: str) -> str:
        raise ConfigurationError(f"{self.name} has no API key configured")

    async def generate_stream(self, prompt: str):
        raise ConfigurationError(f"{self.name} has no API key configured")
        yield  # pragma: no cover
