"""
Rate limiting module initialization.
"""

from .limiter import (
    RateWindow,
    RateLimitProfile,
    RateLimitResult,
    CounterStore,
    MemoryCounterStore,
    RateLimiter,
    default_profiles,
    create_rate_limiter,
    DEFAULT_PROFILE,
    PROVIDER_PROFILE,
    UPLOAD_PROFILE
)

__all__ = [
    "RateWindow",
    "RateLimitProfile",
    "RateLimitResult",
    "CounterStore",
    "MemoryCounterStore",
    "RateLimiter",
    "default_profiles",
    "create_rate_limiter",
    "DEFAULT_PROFILE",
    "PROVIDER_PROFILE",
    "UPLOAD_PROFILE"
]
