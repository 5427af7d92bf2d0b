"""
Configuration management for Finsight.

Handles environment variables and settings using Pydantic
for validation and type safety.
"""

from .settings import FinsightConfig, get_config, validate_api_keys

__all__ = [
    "FinsightConfig",
    "get_config",
    "validate_api_keys"
]
