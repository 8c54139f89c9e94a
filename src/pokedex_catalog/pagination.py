"""
Incremental loading of the base catalog listing.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from .cache import RequestCache, page_key
from .client import CatalogSource
from .config import CatalogConfig
from .exceptions import PaginationError
from .models import CreatureSummary
from .registry import CreatureRegistry

logger = logging.getLogger("pokedex-catalog")


class PaginationState(str, Enum):
    """State of the pagination controller.

    idle -> fetching -> idle (more pages) | exhausted | error
    """
    IDLE = "idle"
    FETCHING = "fetching"
    EXHAUSTED = "exhausted"
    ERROR = "error"


class PaginationController:
    """Drives fixed-size page fetches of the base listing.

    Pages are requested with the opaque cursor returned by the previous page
    and go through the request cache, so re-reading a page within its
    freshness window costs no network call. Accumulated summaries keep their
    arrival order (ascending ID) and are also pushed into the registry.

    A failed page leaves the accumulated data untouched, moves the controller
    into the ``error`` state and is retried on the next ``fetch_next`` call.
    """

    def __init__(
        self,
        client: CatalogSource,
        cache: RequestCache,
        config: CatalogConfig | None = None,
        registry: CreatureRegistry | None = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.config = config or CatalogConfig()
        self.registry = registry
        self._items: list[CreatureSummary] = []
        self._seen: set[int] = set()
        self._next_cursor: str | None = None
        self._has_more = True
        self._state = PaginationState.IDLE
        self._last_error: PaginationError | None = None
        self._pages_loaded = 0
        self._listeners: list[Callable[["PaginationController"], None]] = []

    @property
    def state(self) -> PaginationState:
        return self._state

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def is_fetching(self) -> bool:
        return self._state is PaginationState.FETCHING

    @property
    def items(self) -> tuple[CreatureSummary, ...]:
        """Flattened accumulated sequence across all loaded pages."""
        return tuple(self._items)

    @property
    def last_error(self) -> PaginationError | None:
        return self._last_error

    @property
    def pages_loaded(self) -> int:
        return self._pages_loaded

    async def fetch_next(self) -> bool:
        """Load the next page.

        No-op when a fetch is already running or the listing is exhausted.

        Returns:
            True if a page was appended, False otherwise.
        """
        if self._state is PaginationState.FETCHING:
            logger.debug("Pagination: fetch already in flight, ignoring")
            return False
        if not self._has_more:
            return False

        cursor = self._next_cursor
        self._set_state(PaginationState.FETCHING)

        try:
            page = await self.cache.get_or_fetch(
                page_key(cursor, self.config.page_size),
                lambda: self.client.list_page(cursor),
                ttl=self.config.page_freshness,
            )
        except Exception as e:
            self._last_error = PaginationError(
                f"Failed to load catalog page: {e}",
                details={"cursor": cursor},
            )
            logger.warning(f"Pagination: page at cursor {cursor!r} failed: {e}")
            self._set_state(PaginationState.ERROR)
            return False

        fresh = [s for s in page.entities if s.id not in self._seen]
        self._items.extend(fresh)
        self._seen.update(s.id for s in fresh)
        self._next_cursor = page.next_cursor
        self._has_more = page.next_cursor is not None
        self._pages_loaded += 1
        self._last_error = None

        logger.info(
            f"Pagination: loaded page {self._pages_loaded} "
            f"({len(fresh)} creatures, {len(self._items)} total)"
        )

        if self.registry is not None:
            self.registry.upsert_many(fresh)

        self._set_state(PaginationState.IDLE if self._has_more else PaginationState.EXHAUSTED)
        return True

    def reset(self) -> None:
        """Forget all accumulated pages and start again from the first page."""
        self._items.clear()
        self._seen.clear()
        self._next_cursor = None
        self._has_more = True
        self._pages_loaded = 0
        self._last_error = None
        self._set_state(PaginationState.IDLE)

    def on_change(self, listener: Callable[["PaginationController"], None]) -> Callable[[], None]:
        """Register a listener called after every state change."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _set_state(self, state: PaginationState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(f"Error in pagination listener: {e}", exc_info=True)


__all__ = [
    "PaginationController",
    "PaginationState",
]
