"""Query result caching."""

from .query_cache import DEFAULT_TTL_SECONDS, CacheEntry, CacheKind, QueryCache

__all__ = [
    "DEFAULT_TTL_SECONDS",
    "CacheEntry",
    "CacheKind",
    "QueryCache",
]
