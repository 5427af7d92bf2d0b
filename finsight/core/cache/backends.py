"""
Storage backends for the analysis cache.

Backends store opaque strings with a time-to-live. ``MemoryCacheBackend``
keeps entries in the process; ``FileCacheBackend`` writes one JSON file per
key so several worker processes on a host share entries.
"""

import asyncio
import hashlib
import json
import os
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple
from finsight.utils.logging import get_logger
from finsight.utils.exceptions import CacheUnavailable

logger = get_logger(__name__)

Clock = Callable[[], float]


class CacheBackend(ABC):
    """Key/value store with per-key expiry."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if missing or expired."""
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int) -> None:
        """Store a value that expires after ``ttl`` seconds."""
        pass

    @abstractmethod
    async def incr(self, key: str) -> int:
        """Increment an integer value, keeping its expiry."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def flush(self) -> None:
        pass

    @abstractmethod
    async def size(self) -> int:
        """Number of live keys."""
        pass


class MemoryCacheBackend(CacheBackend):
    """In-process backend guarded by a lock."""

    def __init__(self, clock: Clock = time.time):
        self._entries: Dict[str, Tuple[str, Optional[float]]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def _live(self, key: str) -> Optional[Tuple[str, Optional[float]]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry

    async def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._live(key)
            return entry[0] if entry else None

    async def set(self, key: str, value: str, ttl: int) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)

    async def incr(self, key: str) -> int:
        with self._lock:
            entry = self._live(key)
            value, expires_at = entry if entry else ("0", None)
            count = int(value) + 1
            self._entries[key] = (str(count), expires_at)
            return count

    async def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    async def flush(self) -> None:
        with self._lock:
            self._entries.clear()

    async def size(self) -> int:
        with self._lock:
            return sum(1 for key in list(self._entries) if self._live(key))


class FileCacheBackend(CacheBackend):
    """JSON-file backend rooted in a cache directory."""

    def __init__(self, cache_dir: str, clock: Clock = time.time):
        """
        Initialize the file backend.

        Args:
            cache_dir: Directory for cache files
            clock: Time source in epoch seconds
        """
        self.cache_dir = cache_dir
        self._clock = clock
        self._lock = threading.Lock()
        Path(self.cache_dir).mkdir(parents=True, exist_ok=True)

        logger.info(f"💾 Initialized file cache backend: {self.cache_dir}")

    def _get_cache_path(self, key: str) -> str:
        # Hash to avoid filesystem issues with long keys
        key_hash = hashlib.md5(key.encode()).hexdigest()
        return os.path.join(self.cache_dir, f"{key_hash}.json")

    def _read(self, key: str) -> Optional[dict]:
        path = self._get_cache_path(key)
        try:
            with open(path, "r") as f:
                record = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            raise CacheUnavailable(f"Cache read failed: {str(e)}") from e

        expires_at = record.get("expires_at")
        if expires_at is not None and expires_at <= self._clock():
            self._remove(path)
            return None
        return record

    def _write(self, key: str, value: str, expires_at: Optional[float]) -> None:
        path = self._get_cache_path(key)
        tmp_path = f"{path}.{os.getpid()}.{threading.get_ident()}.tmp"
        try:
            with open(tmp_path, "w") as f:
                json.dump({"key": key, "value": value, "expires_at": expires_at}, f)
            os.replace(tmp_path, path)
        except OSError as e:
            raise CacheUnavailable(f"Cache write failed: {str(e)}") from e

    @staticmethod
    def _remove(path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass

    def _get_sync(self, key: str) -> Optional[str]:
        record = self._read(key)
        return record["value"] if record else None

    def _incr_sync(self, key: str) -> int:
        with self._lock:
            record = self._read(key) or {"value": "0", "expires_at": None}
            count = int(record["value"]) + 1
            self._write(key, str(count), record["expires_at"])
            return count

    def _flush_sync(self) -> None:
        for name in os.listdir(self.cache_dir):
            if name.endswith(".json"):
                self._remove(os.path.join(self.cache_dir, name))

    def _size_sync(self) -> int:
        count = 0
        now = self._clock()
        for name in os.listdir(self.cache_dir):
            if not name.endswith(".json"):
                continue
            try:
                with open(os.path.join(self.cache_dir, name), "r") as f:
                    expires_at = json.load(f).get("expires_at")
            except (OSError, ValueError):
                continue
            if expires_at is None or expires_at > now:
                count += 1
        return count

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._get_sync, key)

    async def set(self, key: str, value: str, ttl: int) -> None:
        await asyncio.to_thread(self._write, key, value, self._clock() + ttl)

    async def incr(self, key: str) -> int:
        return await asyncio.to_thread(self._incr_sync, key)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._remove, self._get_cache_path(key))

    async def flush(self) -> None:
        await asyncio.to_thread(self._flush_sync)

    async def size(self) -> int:
        return await asyncio.to_thread(self._size_sync)
