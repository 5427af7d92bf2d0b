"""
Tests for environment-driven configuration.
"""

from finsight.config.settings import CacheConfig, RateLimitConfig, StreamingConfig, FinsightConfig


class TestSettings:

    def test_defaults(self):
        assert CacheConfig().query_ttl == 1800
        assert CacheConfig().analysis_ttl == 3600
        assert StreamingConfig().metrics_timeout == 20.0

    def test_group_env_prefix(self, monkeypatch):
        monkeypatch.setenv("CACHE_QUERY_TTL", "60")
        monkeypatch.setenv("RATE_LIMIT_PROVIDER_MAX", "2")

        assert CacheConfig().query_ttl == 60
        assert RateLimitConfig().provider_max == 2

    def test_api_keys_from_environment(self, monkeypatch):
        monkeypatch.setenv("TAVILY_API_KEY", "tvly-test")

        assert FinsightConfig().tavily_api_key == "tvly-test"
