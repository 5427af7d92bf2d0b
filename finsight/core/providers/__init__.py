"""
Generative provider module initialization.
"""

from .base import GenerativeProvider, ChatModelProvider, message_text
from .registry import ProviderDescriptor, ProviderRegistry, create_default_registry
from .manager import ProviderManager, ProviderStream, NO_PROVIDERS_MESSAGE

__all__ = [
    "GenerativeProvider",
    "ChatModelProvider",
    "message_text",
    "ProviderDescriptor",
    "ProviderRegistry",
    "create_default_registry",
    "ProviderManager",
    "ProviderStream",
    "NO_PROVIDERS_MESSAGE"
]
