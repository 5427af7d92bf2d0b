"""
Deterministic cache key derivation.
"""

import hashlib
import json
from typing import Iterable, Optional

QUERY_CATEGORY = "chat"
ANALYSIS_CATEGORY = "analysis"


def derive_key(
    category: str,
    query: Optional[str],
    symbol: Optional[str] = "",
    sources: Iterable[str] = ()
) -> str:
    """
    Derive a namespaced cache key from normalized inputs.

    The query is lower-cased and trimmed, the symbol upper-cased and trimmed,
    and the first five source identifiers are sorted, so equivalent requests
    always share a key.

    Args:
        category: Key namespace, e.g. ``chat`` or ``analysis``
        query: Free-text query or time horizon
        symbol: Optional subject symbol
        sources: Optional source identifiers (URLs)

    Returns:
        ``<category>:<sha256 hex digest>``
    """
    normalized = {
        "query": (query or "").lower().strip(),
        "symbol": (symbol or "").upper().strip(),
        "sources": sorted(list(sources)[:5])
    }
    digest = hashlib.sha256(
        json.dumps(normalized, sort_keys=True).encode("utf-8")
    ).hexdigest()
    return f"{category}:{digest}"


def query_key(query: str) -> str:
    """Key for a free-text query session."""
    return derive_key(QUERY_CATEGORY, query)


def analysis_key(subject: str, time_horizon: str) -> str:
    """Key for a subject analysis session."""
    return derive_key(ANALYSIS_CATEGORY, time_horizon, symbol=subject)
