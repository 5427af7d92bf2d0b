"""
Environment settings and configuration management.

Provides centralized configuration using Pydantic settings models
for type safety and validation.
"""

import os
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class CacheConfig(BaseSettings):
    """Analysis cache configuration."""

    backend: str = Field(default="memory", description="memory, file or none")
    directory: str = Field(default=os.path.join(os.getcwd(), "cache", "analysis"))
    default_ttl: int = Field(default=3600)
    query_ttl: int = Field(default=1800)
    analysis_ttl: int = Field(default=3600)
    schema_version: str = Field(default="1.0")

    model_config = SettingsConfigDict(env_prefix="CACHE_", extra="ignore")


class RateLimitConfig(BaseSettings):
    """Rate limiting profiles."""

    enabled: bool = Field(default=True)
    default_max: int = Field(default=100)
    default_window: int = Field(default=15 * 60)
    provider_max: int = Field(default=5)
    provider_window: int = Field(default=60)
    upload_max: int = Field(default=5)
    upload_window: int = Field(default=5 * 60)

    model_config = SettingsConfigDict(env_prefix="RATE_LIMIT_", extra="ignore")


class RankingConfig(BaseSettings):
    """Relevance ranking configuration."""

    primary_threshold: float = Field(default=0.3)
    fallback_threshold: float = Field(default=0.1)
    max_content_length: int = Field(default=1000)
    top_k: int = Field(default=5)
    neutral_score: float = Field(default=0.5)

    model_config = SettingsConfigDict(env_prefix="RANKING_", extra="ignore")


class StreamingConfig(BaseSettings):
    """Streaming and pacing configuration."""

    content_delay: float = Field(default=0.05)
    replay_delay_query: float = Field(default=0.1)
    replay_delay_analysis: float = Field(default=0.03)
    metrics_timeout: float = Field(default=20.0)

    model_config = SettingsConfigDict(env_prefix="STREAM_", extra="ignore")


class ProviderSettings(BaseSettings):
    """Generative provider configuration."""

    openai_model: str = Field(default="gpt-4o-mini")
    openai_endpoint: str = Field(default="https://api.openai.com/v1/chat/completions")
    openai_daily_quota: int = Field(default=100)
    openai_priority: int = Field(default=1)
    cohere_model: str = Field(default="command-r")
    cohere_endpoint: str = Field(default="https://api.cohere.com/v2/chat")
    cohere_daily_quota: int = Field(default=50)
    cohere_priority: int = Field(default=2)
    temperature: float = Field(default=0.7)
    max_tokens: int = Field(default=2048)
    timeout: int = Field(default=120)

    model_config = SettingsConfigDict(env_prefix="PROVIDER_", extra="ignore")


class SearchConfig(BaseSettings):
    """Content acquisition configuration."""

    max_results: int = Field(default=10)
    search_depth: str = Field(default="advanced")

    model_config = SettingsConfigDict(env_prefix="SEARCH_", extra="ignore")


class EmbeddingConfig(BaseSettings):
    """Embedding model configuration."""

    enabled: bool = Field(default=True)
    model_name: str = Field(default="text-embedding-3-small")
    cache_size: int = Field(default=1000)

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_", extra="ignore")


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO")
    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    file_path: Optional[str] = Field(default=None)

    model_config = SettingsConfigDict(env_prefix="LOG_", extra="ignore")


class FinsightConfig(BaseSettings):
    """Main application configuration."""

    cache: CacheConfig = Field(default_factory=CacheConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    streaming: StreamingConfig = Field(default_factory=StreamingConfig)
    providers: ProviderSettings = Field(default_factory=ProviderSettings)
    search: SearchConfig = Field(default_factory=SearchConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # API Keys
    openai_api_key: Optional[str] = Field(default=None)
    cohere_api_key: Optional[str] = Field(default=None)
    tavily_api_key: Optional[str] = Field(default=None)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"  # Ignore extra fields from .env
    )


# Global configuration instance
config = FinsightConfig()


def get_config() -> FinsightConfig:
    """Get the global configuration instance."""
    return config


def validate_api_keys() -> None:
    """Validate that at least one generative provider and the search API are configured."""
    missing_keys = []

    if not (config.openai_api_key or config.cohere_api_key):
        missing_keys.append("openai_api_key or cohere_api_key")
    if not config.tavily_api_key:
        missing_keys.append("tavily_api_key")

    if missing_keys:
        raise ValueError(f"Missing required API keys: {', '.join(missing_keys)}")
