"""
Cache module initialization.

Exports key derivation, the cache store and its backends.
"""

from .keys import derive_key, query_key, analysis_key, QUERY_CATEGORY, ANALYSIS_CATEGORY
from .backends import CacheBackend, MemoryCacheBackend, FileCacheBackend
from .store import CacheStore, CacheHit, create_cache_store

__all__ = [
    "derive_key",
    "query_key",
    "analysis_key",
    "QUERY_CATEGORY",
    "ANALYSIS_CATEGORY",
    "CacheBackend",
    "MemoryCacheBackend",
    "FileCacheBackend",
    "CacheStore",
    "CacheHit",
    "create_cache_store"
]
