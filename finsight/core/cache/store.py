"""
TTL-bounded cache store for generated answers.

Every operation degrades instead of raising: a failing or absent backend
turns reads into misses and writes into no-ops, so the pipeline stays
correct, only slower.
"""

import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional
from finsight.core.cache.backends import CacheBackend, MemoryCacheBackend, FileCacheBackend, Clock
from finsight.config.settings import get_config, CacheConfig
from finsight.utils.logging import get_logger

logger = get_logger(__name__)

HIT_COUNTER_SUFFIX = ":count"


@dataclass
class CacheHit:
    """A readable cache entry."""

    payload: Dict[str, Any]
    stored_at: float
    ttl: int
    hit_count: Optional[int] = None

    def age(self, now: Optional[float] = None) -> int:
        """Whole seconds since the entry was stored, never negative."""
        now = time.time() if now is None else now
        return max(0, int(now - self.stored_at))


class CacheStore:
    """Cache of session results keyed by ``derive_key``."""

    def __init__(
        self,
        backend: Optional[CacheBackend] = None,
        default_ttl: int = 3600,
        schema_version: str = "1.0",
        clock: Clock = time.time
    ):
        """
        Initialize the cache store.

        Args:
            backend: Storage backend, None when no store is available
            default_ttl: TTL used when ``set`` gets none
            schema_version: Entries written under another version read as misses
            clock: Time source in epoch seconds
        """
        self.backend = backend
        self.default_ttl = default_ttl
        self.schema_version = schema_version
        self._clock = clock

    @property
    def available(self) -> bool:
        return self.backend is not None

    async def get(self, key: str) -> Optional[CacheHit]:
        """
        Read an unexpired entry and bump its hit counter.

        Returns:
            CacheHit, or None on a miss or any backend failure
        """
        if self.backend is None:
            return None

        try:
            raw = await self.backend.get(key)
        except Exception as e:
            logger.warning(f"⚠️ Cache get error: {str(e)}")
            return None

        if raw is None:
            return None

        try:
            entry = json.loads(raw)
            stored_at = float(entry["stored_at"])
            ttl = int(entry["ttl"])
            payload = entry["payload"]
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"⚠️ Discarding unreadable cache entry {key}: {str(e)}")
            return None

        if entry.get("schema_version") != self.schema_version:
            logger.debug(f"Cache entry {key} has schema {entry.get('schema_version')}, treating as miss")
            return None
        if stored_at + ttl <= self._clock():
            return None

        hit_count = None
        try:
            hit_count = await self.backend.incr(key + HIT_COUNTER_SUFFIX)
        except Exception as e:
            logger.warning(f"⚠️ Cache hit counter error: {str(e)}")

        logger.debug(f"🎯 Cache hit for {key}")
        return CacheHit(payload=payload, stored_at=stored_at, ttl=ttl, hit_count=hit_count)

    async def set(self, key: str, payload: Dict[str, Any], ttl: Optional[int] = None) -> bool:
        """
        Store a payload with a TTL applied to both the value and its hit counter.

        Returns:
            True when the write reached the backend
        """
        if self.backend is None:
            return False

        expiry = ttl or self.default_ttl
        try:
            entry = json.dumps({
                "payload": payload,
                "stored_at": self._clock(),
                "ttl": expiry,
                "schema_version": self.schema_version
            })
            await self.backend.set(key, entry, expiry)
            await self.backend.set(key + HIT_COUNTER_SUFFIX, "0", expiry)
            logger.debug(f"💾 Cached {key} for {expiry}s")
            return True
        except Exception as e:
            logger.warning(f"⚠️ Cache set error: {str(e)}")
            return False

    async def delete(self, key: str) -> None:
        if self.backend is None:
            return
        try:
            await self.backend.delete(key)
            await self.backend.delete(key + HIT_COUNTER_SUFFIX)
        except Exception as e:
            logger.warning(f"⚠️ Cache delete error: {str(e)}")

    async def flush(self) -> None:
        if self.backend is None:
            return
        try:
            await self.backend.flush()
            logger.info("🗑️ Cache flushed")
        except Exception as e:
            logger.warning(f"⚠️ Cache flush error: {str(e)}")

    async def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        if self.backend is None:
            return {"backend": None, "keys": 0}
        try:
            keys = await self.backend.size()
        except Exception as e:
            logger.warning(f"⚠️ Cache stats error: {str(e)}")
            return {"backend": type(self.backend).__name__, "keys": 0, "error": str(e)}
        return {"backend": type(self.backend).__name__, "keys": keys}


def create_cache_store(config: Optional[CacheConfig] = None) -> CacheStore:
    """Build the configured cache store."""
    config = config or get_config().cache

    backend_name = config.backend.lower()
    if backend_name == "memory":
        backend = MemoryCacheBackend()
    elif backend_name == "file":
        try:
            backend = FileCacheBackend(config.directory)
        except OSError as e:
            logger.warning(f"⚠️ File cache unavailable, running without cache: {str(e)}")
            backend = None
    elif backend_name == "none":
        backend = None
    else:
        raise ValueError(f"Unsupported cache backend: {config.backend}")

    return CacheStore(
        backend=backend,
        default_ttl=config.default_ttl,
        schema_version=config.schema_version
    )
