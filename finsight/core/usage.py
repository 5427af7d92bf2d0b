"""
Request and cache usage counters reported by the system endpoints.
"""

import threading
from datetime import datetime, timezone
from typing import Any, Dict


class UsageTracker:
    """Thread-safe counters for requests, cache outcomes and provider calls."""

    _FIELDS = ("requests", "cache_hits", "cache_misses", "ai_calls", "errors")

    def __init__(self):
        self._lock = threading.Lock()
        self._metrics: Dict[str, int] = {}
        self._provider_calls: Dict[str, int] = {}
        self.reset()

    def _bump(self, field: str) -> None:
        with self._lock:
            self._metrics[field] += 1

    def track_request(self) -> None:
        self._bump("requests")

    def track_cache_hit(self) -> None:
        self._bump("cache_hits")

    def track_cache_miss(self) -> None:
        self._bump("cache_misses")

    def track_ai_call(self, provider: str) -> None:
        with self._lock:
            self._metrics["ai_calls"] += 1
            self._provider_calls[provider] = self._provider_calls.get(provider, 0) + 1

    def track_error(self) -> None:
        self._bump("errors")

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            lookups = self._metrics["cache_hits"] + self._metrics["cache_misses"]
            hit_rate = (self._metrics["cache_hits"] / lookups * 100) if lookups else 0.0
            return {
                **self._metrics,
                "provider_calls": dict(self._provider_calls),
                "cache_hit_rate": f"{hit_rate:.2f}%",
                "timestamp": datetime.now(timezone.utc).isoformat()
            }

    def reset(self) -> None:
        with self._lock:
            self._metrics = {field: 0 for field in self._FIELDS}
            self._provider_calls = {}
