"""
Request cache for the catalog client.

Components:
- RequestCache: single-flight, freshness-aware memoization with per-key
  subscriptions
- CacheKey and the key builders: deterministic, typed keys per operation

Usage:
    from pokedex_catalog.cache import RequestCache, detail_key

    cache = RequestCache()
    record = await cache.get_or_fetch(detail_key(25), lambda: client.get_entity(25))
"""

from .keys import (
    CacheKey,
    OperationKind,
    REFERENCE_KINDS,
    detail_key,
    evolution_key,
    freshness_for,
    group_key,
    page_key,
    roster_key,
    species_key,
    tag_key,
    type_key,
)
from .store import CacheEntry, EntryState, RequestCache, RequestCacheStats

__all__ = [
    # Store
    "RequestCache",
    "RequestCacheStats",
    "CacheEntry",
    "EntryState",
    # Keys
    "CacheKey",
    "OperationKind",
    "REFERENCE_KINDS",
    "page_key",
    "detail_key",
    "species_key",
    "evolution_key",
    "group_key",
    "tag_key",
    "roster_key",
    "type_key",
    "freshness_for",
]
