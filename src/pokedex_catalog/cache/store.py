"""
Keyed asynchronous request cache.

The cache memoizes the results of remote operations with a per-entry
freshness window and collapses concurrent requests for the same key into a
single producer invocation. It is also the reactive hub of the catalog:
callers can subscribe to a key and are notified whenever a new value is
stored under it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

from .keys import CacheKey

logger = logging.getLogger("pokedex-catalog")

Producer = Callable[[], Awaitable[Any]]
KeyListener = Callable[[CacheKey, Any], None]


class EntryState(str, Enum):
    """Lifecycle state of a cache key."""
    PENDING = "pending"
    FRESH = "fresh"
    STALE = "stale"


@dataclass
class CacheEntry:
    """Single cache entry with freshness metadata.

    Attributes:
        key: Cache key identifier.
        value: The cached result.
        created_at: Clock reading when the entry was stored.
        ttl: Freshness window in seconds (may be ``math.inf``).
    """
    key: CacheKey
    value: Any
    created_at: float
    ttl: float


@dataclass
class RequestCacheStats:
    """Statistics for the request cache.

    Attributes:
        total_entries: Number of entries currently stored.
        in_flight: Number of producer invocations currently running.
        hit_count: Lookups served from a fresh entry.
        miss_count: Lookups that started a producer.
        shared_count: Lookups that joined an already running producer.
        failure_count: Producer invocations that raised.
        expired_count: Entries found stale on access or removed by cleanup.
        invalidated_count: Entries explicitly invalidated.
        hit_rate: Ratio of hits to hits plus misses (0.0-1.0).
    """
    total_entries: int
    in_flight: int
    hit_count: int
    miss_count: int
    shared_count: int
    failure_count: int
    expired_count: int
    invalidated_count: int
    hit_rate: float


class RequestCache:
    """Single-flight memoization layer for remote catalog calls.

    Features:
    - Per-entry freshness windows; stale values stay readable via ``peek``
      until they are refreshed or cleaned up
    - One producer invocation per key under concurrent callers
    - Failures are never cached and are propagated to every waiter
    - Per-key subscriptions notified on every store

    Usage:
        cache = RequestCache(default_ttl=300)

        detail = await cache.get_or_fetch(
            detail_key(25), lambda: client.get_entity(25), ttl=600
        )

        unsubscribe = cache.subscribe(group_key(1), on_group_loaded)
    """

    def __init__(
        self,
        default_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the request cache.

        Args:
            default_ttl: Freshness window used when a call passes no ttl.
            clock: Monotonic time source, injectable for tests.
        """
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._in_flight: dict[CacheKey, asyncio.Task] = {}
        self._listeners: dict[CacheKey, list[KeyListener]] = {}
        self._hit_count = 0
        self._miss_count = 0
        self._shared_count = 0
        self._failure_count = 0
        self._expired_count = 0
        self._invalidated_count = 0

    # =========================================================================
    # Lookup
    # =========================================================================

    async def get_or_fetch(
        self,
        key: CacheKey,
        producer: Producer,
        ttl: float | None = None,
    ) -> Any:
        """Return the fresh value for ``key``, invoking ``producer`` if needed.

        If a fetch for ``key`` is already running, this call awaits the same
        invocation instead of starting another one. A producer failure is
        raised to every waiter and leaves the key uncached, so the next call
        retries immediately.

        Args:
            key: Cache key for the operation.
            producer: Zero-argument coroutine function producing the value.
            ttl: Freshness window in seconds. Uses default_ttl if not specified.

        Returns:
            The cached or freshly produced value.
        """
        entry = self._entries.get(key)
        if entry is not None:
            if not self._is_expired(entry):
                self._hit_count += 1
                logger.debug(f"Request cache: hit for {key}")
                return entry.value
            self._expired_count += 1
            logger.debug(f"Request cache: {key} is stale, refetching")

        task = self._in_flight.get(key)
        if task is not None:
            self._shared_count += 1
            logger.debug(f"Request cache: joining in-flight fetch for {key}")
        else:
            self._miss_count += 1
            task = asyncio.ensure_future(self._produce(key, producer, ttl))
            task.add_done_callback(_retrieve_exception)
            self._in_flight[key] = task

        # Shielded so a cancelled waiter does not cancel the shared fetch
        return await asyncio.shield(task)

    async def _produce(self, key: CacheKey, producer: Producer, ttl: float | None) -> Any:
        try:
            value = await producer()
        except Exception as e:
            self._failure_count += 1
            logger.debug(f"Request cache: producer for {key} failed: {e}")
            raise
        finally:
            self._in_flight.pop(key, None)

        self.store(key, value, ttl=ttl)
        return value

    def peek(self, key: CacheKey) -> Any | None:
        """Return the stored value for ``key`` even if it is stale.

        Never starts a fetch and does not count towards hit statistics.
        """
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def get(self, key: CacheKey) -> Any | None:
        """Return the value for ``key`` only if it is still fresh."""
        entry = self._entries.get(key)
        if entry is None or self._is_expired(entry):
            return None
        return entry.value

    def state(self, key: CacheKey) -> EntryState | None:
        """Current lifecycle state of ``key``; None if unknown."""
        entry = self._entries.get(key)
        if entry is not None:
            return EntryState.STALE if self._is_expired(entry) else EntryState.FRESH
        if key in self._in_flight:
            return EntryState.PENDING
        return None

    def is_pending(self, key: CacheKey) -> bool:
        return key in self._in_flight

    # =========================================================================
    # Mutation
    # =========================================================================

    def store(self, key: CacheKey, value: Any, ttl: float | None = None) -> None:
        """Store a value and notify the key's subscribers.

        If an entry with the same key already exists, it is replaced.
        """
        effective_ttl = ttl if ttl is not None else self.default_ttl
        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            created_at=self._clock(),
            ttl=effective_ttl,
        )
        logger.debug(f"Request cache: stored {key} (TTL: {effective_ttl}s)")
        self._notify(key, value)

    def invalidate(self, pattern: str) -> int:
        """Invalidate entries whose rendered key contains ``pattern``.

        Returns:
            Number of entries invalidated.
        """
        matching = [key for key in self._entries if pattern in str(key)]
        for key in matching:
            del self._entries[key]
            self._invalidated_count += 1

        if matching:
            logger.debug(
                f"Request cache: invalidated {len(matching)} entries "
                f"matching pattern '{pattern}'"
            )
        return len(matching)

    def invalidate_key(self, key: CacheKey) -> bool:
        """Invalidate a single entry by exact key."""
        if key in self._entries:
            del self._entries[key]
            self._invalidated_count += 1
            return True
        return False

    def clear(self) -> None:
        """Remove all stored entries. In-flight fetches are left running."""
        count = len(self._entries)
        self._entries.clear()
        if count > 0:
            logger.debug(f"Request cache: cleared {count} entries")

    def cleanup_expired(self) -> int:
        """Evict every stale entry.

        Returns:
            Number of entries removed.
        """
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry)]
        for key in expired:
            del self._entries[key]
            self._expired_count += 1

        if expired:
            logger.debug(f"Request cache: cleanup removed {len(expired)} stale entries")
        return len(expired)

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def subscribe(self, key: CacheKey, listener: KeyListener) -> Callable[[], None]:
        """Register ``listener`` to be called with (key, value) on every store.

        Returns:
            A zero-argument function that removes the subscription.
        """
        self._listeners.setdefault(key, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key)
            if listeners and listener in listeners:
                listeners.remove(listener)
                if not listeners:
                    del self._listeners[key]

        return unsubscribe

    def _notify(self, key: CacheKey, value: Any) -> None:
        for listener in list(self._listeners.get(key, ())):
            try:
                listener(key, value)
            except Exception as e:
                logger.error(f"Error in cache listener for {key}: {e}", exc_info=True)

    # =========================================================================
    # Introspection
    # =========================================================================

    def get_stats(self) -> RequestCacheStats:
        """Return cache performance statistics."""
        lookups = self._hit_count + self._miss_count
        return RequestCacheStats(
            total_entries=len(self._entries),
            in_flight=len(self._in_flight),
            hit_count=self._hit_count,
            miss_count=self._miss_count,
            shared_count=self._shared_count,
            failure_count=self._failure_count,
            expired_count=self._expired_count,
            invalidated_count=self._invalidated_count,
            hit_rate=self._hit_count / lookups if lookups > 0 else 0.0,
        )

    def _is_expired(self, entry: CacheEntry) -> bool:
        return (self._clock() - entry.created_at) > entry.ttl

    @property
    def size(self) -> int:
        """Return the number of entries currently stored."""
        return len(self._entries)


def _retrieve_exception(task: asyncio.Task) -> None:
    # Marks the exception as retrieved when every waiter was cancelled
    if not task.cancelled():
        task.exception()


__all__ = [
    "RequestCache",
    "RequestCacheStats",
    "CacheEntry",
    "EntryState",
]
