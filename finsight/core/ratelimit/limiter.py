"""
Windowed rate limiting with named profiles.

Counters live in a ``CounterStore``; the limiter fails open whenever the
store cannot be reached, favouring availability over strict enforcement.
"""

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Tuple
from finsight.config.settings import get_config, RateLimitConfig
from finsight.utils.logging import get_logger
from finsight.utils.exceptions import RateLimitExceeded

logger = get_logger(__name__)

DEFAULT_PROFILE = "default"
PROVIDER_PROFILE = "provider"
UPLOAD_PROFILE = "upload"


@dataclass
class RateWindow:
    """Hit count for one identity inside one fixed window."""

    identity: str
    count: int
    window_start: float
    limit: int
    window_seconds: int = 0

    def expired(self, now: float) -> bool:
        return now >= self.window_start + self.window_seconds


@dataclass(frozen=True)
class RateLimitProfile:
    """A named limit applied to a class of operations."""

    name: str
    limit: int
    window_seconds: int
    message: str = "Too many requests, please try again later."


@dataclass
class RateLimitResult:
    """Outcome of counting one request."""

    allowed: bool
    total_hits: int
    limit: int
    reset_time: float

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.total_hits)

    def retry_after(self, now: Optional[float] = None) -> int:
        now = time.time() if now is None else now
        return max(0, int(round(self.reset_time - now)))


class CounterStore(ABC):
    """Shared counters incremented atomically per key."""

    @abstractmethod
    async def increment(self, key: str, window_seconds: int, limit: int = 0) -> Tuple[int, float]:
        """
        Count one hit.

        Returns:
            (total hits in the current window, epoch time the window resets)
        """
        pass

    @abstractmethod
    async def decrement(self, key: str) -> None:
        pass

    @abstractmethod
    async def reset(self, key: str) -> None:
        pass


class MemoryCounterStore(CounterStore):
    """Process-local counter store."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._windows: Dict[str, RateWindow] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def _prune(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if window.expired(now)]
        for key in expired:
            del self._windows[key]

    async def increment(self, key: str, window_seconds: int, limit: int = 0) -> Tuple[int, float]:
        with self._lock:
            now = self._clock()
            self._prune(now)
            window = self._windows.get(key)
            if window is None:
                window = RateWindow(
                    identity=key, count=0, window_start=now, limit=limit, window_seconds=window_seconds
                )
                self._windows[key] = window
            window.count += 1
            return window.count, window.window_start + window_seconds

    async def decrement(self, key: str) -> None:
        with self._lock:
            window = self._windows.get(key)
            if window is not None:
                window.count = max(0, window.count - 1)

    async def reset(self, key: str) -> None:
        with self._lock:
            self._windows.pop(key, None)

    def get_window(self, key: str) -> Optional[RateWindow]:
        with self._lock:
            return self._windows.get(key)

    def window_count(self) -> int:
        with self._lock:
            return len(self._windows)


class RateLimiter:
    """Applies rate limit profiles to caller identities."""

    def __init__(
        self,
        store: Optional[CounterStore],
        profiles: Iterable[RateLimitProfile],
        enabled: bool = True,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the rate limiter.

        Args:
            store: Counter store, None behaves as an unreachable store
            profiles: Profiles addressable by name
            enabled: When False every request is allowed without counting
            clock: Time source in epoch seconds
        """
        self.store = store
        self.profiles = {profile.name: profile for profile in profiles}
        self.enabled = enabled
        self._clock = clock

    def _profile(self, name: str) -> RateLimitProfile:
        try:
            return self.profiles[name]
        except KeyError:
            raise ValueError(f"Unknown rate limit profile: {name}")

    @staticmethod
    def _key(profile: RateLimitProfile, identity: str) -> str:
        return f"rate_limit:{profile.name}:{identity}"

    async def hit(self, profile_name: str, identity: str) -> RateLimitResult:
        """Count one request for an identity under a profile."""
        profile = self._profile(profile_name)
        now = self._clock()

        if not self.enabled:
            return RateLimitResult(True, 0, profile.limit, now + profile.window_seconds)

        if self.store is None:
            logger.warning("⚠️ Rate limit store unavailable, skipping rate limit")
            return RateLimitResult(True, 1, profile.limit, now + profile.window_seconds)

        try:
            total_hits, reset_time = await self.store.increment(
                self._key(profile, identity), profile.window_seconds, profile.limit
            )
        except Exception as e:
            logger.warning(f"⚠️ Rate limit store error, allowing request: {str(e)}")
            return RateLimitResult(True, 1, profile.limit, now + profile.window_seconds)

        allowed = total_hits <= profile.limit
        if not allowed:
            logger.info(f"🚦 {profile.name} limit reached for {identity} ({total_hits}/{profile.limit})")
        return RateLimitResult(allowed, total_hits, profile.limit, reset_time)

    async def enforce(self, profile_name: str, identity: str) -> RateLimitResult:
        """
        Count one request and reject it when over the limit.

        Raises:
            RateLimitExceeded: If the identity exhausted its window
        """
        result = await self.hit(profile_name, identity)
        if not result.allowed:
            profile = self._profile(profile_name)
            raise RateLimitExceeded(
                profile.message,
                profile=profile.name,
                retry_after=result.retry_after(self._clock())
            )
        return result

    async def decrement(self, profile_name: str, identity: str) -> None:
        profile = self._profile(profile_name)
        if self.store is None:
            return
        try:
            await self.store.decrement(self._key(profile, identity))
        except Exception as e:
            logger.warning(f"⚠️ Rate limit decrement error: {str(e)}")

    async def reset(self, profile_name: str, identity: str) -> None:
        profile = self._profile(profile_name)
        if self.store is None:
            return
        try:
            await self.store.reset(self._key(profile, identity))
        except Exception as e:
            logger.warning(f"⚠️ Rate limit reset error: {str(e)}")


def default_profiles(config: Optional[RateLimitConfig] = None) -> list:
    """The three standard profiles: general traffic, provider calls and uploads."""
    config = config or get_config().rate_limit
    return [
        RateLimitProfile(
            name=DEFAULT_PROFILE,
            limit=config.default_max,
            window_seconds=config.default_window,
            message="Too many requests from this IP, please try again later."
        ),
        RateLimitProfile(
            name=PROVIDER_PROFILE,
            limit=config.provider_max,
            window_seconds=config.provider_window,
            message="AI API rate limit exceeded. Please wait before making another request."
        ),
        RateLimitProfile(
            name=UPLOAD_PROFILE,
            limit=config.upload_max,
            window_seconds=config.upload_window,
            message="Upload rate limit exceeded. Please wait before uploading again."
        ),
    ]


def create_rate_limiter(config: Optional[RateLimitConfig] = None) -> RateLimiter:
    """Build a limiter with the standard profiles over an in-memory store."""
    config = config or get_config().rate_limit
    return RateLimiter(
        store=MemoryCounterStore(),
        profiles=default_profiles(config),
        enabled=config.enabled
    )
