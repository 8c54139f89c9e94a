"""
Catalog service: the reactive surface consumed by presentation code.

The service owns one request cache, one record registry and one pagination
controller, and keeps any number of ``Subscription`` objects up to date.
Each subscription recomputes its merged view synchronously whenever one of
its inputs changes:

- a page is appended (pagination listener)
- a record is enriched (registry listener)
- a selected category group or tag pool is stored (per-key cache
  subscriptions, rebound whenever the criteria change)
- a pool load fails

Fetches triggered by a recomputation (dimension pools, detail hydration)
run as background tasks. Their results flow back through the same
listeners, so the latest recomputation always wins and late arrivals merge
harmlessly.

Failures never masquerade as "no matches": a failed pool is reported in
``CatalogView.failed_dimensions``. A transiently failing detail fetch keeps
its ID pending and is retried up to ``hydration_attempts`` times, after which
the ID is reported in ``CatalogView.failed_ids``. Only a not-found or
malformed record is a silent permanent miss.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Sequence

from .cache import (
    CacheKey,
    RequestCache,
    detail_key,
    evolution_key,
    group_key,
    roster_key,
    species_key,
    tag_key,
    type_key,
)
from .client import CatalogSource
from .config import CatalogConfig
from .exceptions import CatalogError, PaginationError
from .filters import DimensionPool, FilterMergeEngine, MergeResult
from .hydrator import DetailHydrator
from .models import (
    Creature,
    CreatureDetail,
    CreaturePlaceholder,
    CreatureSummary,
    EvolutionNode,
    FilterCriteria,
    SpeciesInfo,
    TypeDetails,
)
from .pagination import PaginationController, PaginationState
from .prefetch import PrefetchAdvisor
from .registry import CreatureRegistry
from .roster import RosterIndex

logger = logging.getLogger("pokedex-catalog")

ViewListener = Callable[["CatalogView"], None]


@dataclass(frozen=True)
class CatalogView:
    """Snapshot of one subscription's merged view.

    Attributes:
        items: Ordered, de-duplicated records matching the criteria.
        still_resolving: True while outstanding fetches may change ``items``.
        has_more: True while further listing pages can be loaded.
        pagination_state: Current state of the listing pagination.
        error: Last pagination failure, cleared by the next successful page.
        failed_dimensions: Selected groups and tags whose pool could not be
            loaded (``"group:<id>"``, ``"tag:<name>"``). Their members are
            missing from ``items``, so an empty view is not "no matches".
        failed_ids: IDs in the view's pool whose detail could not be
            fetched after every retry; they may match but cannot be shown.
    """
    items: tuple[Creature, ...] = ()
    still_resolving: bool = False
    has_more: bool = True
    pagination_state: PaginationState = PaginationState.IDLE
    error: PaginationError | None = None
    failed_dimensions: tuple[str, ...] = ()
    failed_ids: tuple[int, ...] = ()

    @property
    def ids(self) -> list[int]:
        return [r.id for r in self.items]

    @property
    def degraded(self) -> bool:
        """True when a failure may have removed matching creatures."""
        return bool(self.failed_dimensions or self.failed_ids)


@dataclass(frozen=True)
class CreatureProfile:
    """Full record of one creature plus its species data when available."""
    detail: CreatureDetail
    species: SpeciesInfo | None = None


class Subscription:
    """Live merged view for one set of filter criteria.

    Created by ``CatalogService.subscribe``. The optional listener is called
    with every recomputed ``CatalogView``; ``view`` always holds the latest
    one.
    """

    def __init__(
        self,
        service: "CatalogService",
        criteria: FilterCriteria,
        listener: ViewListener | None = None,
    ) -> None:
        self._service = service
        self._criteria = criteria
        self._listener = listener
        self._view = CatalogView()
        self._key_unsubscribers: list[Callable[[], None]] = []
        self._closed = False

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    @property
    def view(self) -> CatalogView:
        return self._view

    @property
    def closed(self) -> bool:
        return self._closed

    def update(self, criteria: FilterCriteria) -> CatalogView:
        """Replace the criteria and recompute immediately."""
        if self._closed:
            return self._view
        self._criteria = criteria
        self._service._forget_pool_failures(criteria)
        self._rebind()
        return self.refresh()

    def refresh(self) -> CatalogView:
        """Recompute the merged view from current data and notify the listener."""
        if self._closed:
            return self._view

        result = self._service._merge(self._criteria)
        pagination = self._service.pagination
        self._view = CatalogView(
            items=result.items,
            still_resolving=result.still_resolving,
            has_more=pagination.has_more,
            pagination_state=pagination.state,
            error=pagination.last_error,
            failed_dimensions=result.failed_dimensions,
            failed_ids=tuple(
                i for i in result.unresolved_ids if i in self._service._failed_ids
            ),
        )

        if self._listener is not None:
            try:
                self._listener(self._view)
            except Exception as e:
                logger.error(f"Error in view listener: {e}", exc_info=True)

        if result.pending_ids:
            self._service._schedule_hydration(result.pending_ids)
        return self._view

    async def settle(self) -> CatalogView:
        """Wait until every background fetch has finished, then return the view."""
        await self._service.wait_idle()
        return self._view

    def close(self) -> None:
        """Stop receiving updates."""
        if self._closed:
            return
        self._closed = True
        self._unbind()
        self._service._detach(self)

    def _rebind(self) -> None:
        self._unbind()
        cache = self._service.cache
        for key in self._service._dimension_keys(self._criteria):
            self._key_unsubscribers.append(cache.subscribe(key, self._on_key_stored))

    def _unbind(self) -> None:
        for unsubscribe in self._key_unsubscribers:
            unsubscribe()
        self._key_unsubscribers.clear()

    def _on_key_stored(self, key: CacheKey, value: object) -> None:
        self.refresh()


class CatalogService:
    """Façade over the catalog core.

    Features:
    - Reactive ``subscribe(criteria)`` views with a ``still_resolving`` signal
    - Incremental listing pagination with a retryable error state
    - Background dimension pool loading and batched detail hydration
    - Neighbor prefetching, details with species data, evolution lines
    - Roster-based name suggestions

    Usage:
        async with CatalogClient(config) as client:
            service = CatalogService(client, config)
            sub = service.subscribe(FilterCriteria(groups=frozenset({1})))
            await service.fetch_next_page()
            view = await sub.settle()
    """

    def __init__(
        self,
        client: CatalogSource,
        config: CatalogConfig | None = None,
        cache: RequestCache | None = None,
        engine: FilterMergeEngine | None = None,
    ) -> None:
        self.client = client
        self.config = config or CatalogConfig()
        self.cache = cache or RequestCache(default_ttl=self.config.page_freshness)
        self.registry = CreatureRegistry()
        self.pagination = PaginationController(client, self.cache, self.config, self.registry)
        self.hydrator = DetailHydrator(client, self.cache, self.config, self.registry)
        self.engine = engine or FilterMergeEngine()
        self.advisor = PrefetchAdvisor(self.hydrator, self.config.max_creature_id)

        self._subscriptions: list[Subscription] = []
        self._tasks: set[asyncio.Task] = set()
        self._loading_pools: set[CacheKey] = set()
        self._failed_pools: set[CacheKey] = set()
        self._hydration_queue: list[int] = []
        self._hydrating: set[int] = set()
        self._unresolvable: set[int] = set()
        self._transient_failures: dict[int, int] = {}
        self._failed_ids: set[int] = set()
        self._hydration_worker: asyncio.Task | None = None

        self._remove_listeners = [
            self.registry.on_change(lambda changed: self._refresh_all()),
            self.pagination.on_change(lambda controller: self._refresh_all()),
        ]

    # =========================================================================
    # Reactive views
    # =========================================================================

    def subscribe(
        self,
        criteria: FilterCriteria | None = None,
        listener: ViewListener | None = None,
    ) -> Subscription:
        """Create a live view for ``criteria`` and compute it once immediately.

        Pools of ``criteria`` that failed earlier are fetched again.
        """
        criteria = criteria or FilterCriteria()
        self._forget_pool_failures(criteria)
        subscription = Subscription(self, criteria, listener)
        self._subscriptions.append(subscription)
        subscription._rebind()
        subscription.refresh()
        return subscription

    def snapshot(self, criteria: FilterCriteria) -> CatalogView:
        """One-off merged view without keeping a subscription."""
        subscription = self.subscribe(criteria)
        view = subscription.view
        subscription.close()
        return view

    def _detach(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def _refresh_all(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.refresh()

    def _merge(self, criteria: FilterCriteria) -> MergeResult:
        group_pools = {
            group: self._pool(group_key(group), self._group_loader(group))
            for group in criteria.groups
        }
        tag_pools = {
            tag: self._pool(tag_key(tag), self._tag_loader(tag))
            for tag in criteria.tags
        }
        return self.engine.merge(
            criteria,
            listing=self.pagination.items,
            records=self.registry.snapshot(),
            group_pools=group_pools,
            tag_pools=tag_pools,
            unresolvable=frozenset(self._unresolvable),
        )

    @staticmethod
    def _dimension_keys(criteria: FilterCriteria) -> list[CacheKey]:
        keys = [group_key(group) for group in sorted(criteria.groups)]
        keys.extend(tag_key(tag) for tag in sorted(criteria.tags))
        return keys

    # =========================================================================
    # Dimension pools
    # =========================================================================

    def _group_loader(self, group: int) -> Callable[[], Awaitable[list[CreatureSummary]]]:
        return lambda: self.client.list_by_category_group(group)

    def _tag_loader(self, tag: str) -> Callable[[], Awaitable[list[CreatureSummary]]]:
        return lambda: self.client.list_by_tag(tag)

    def _pool(
        self,
        key: CacheKey,
        loader: Callable[[], Awaitable[list[CreatureSummary]]],
    ) -> DimensionPool:
        members = self.cache.peek(key)
        if members is not None:
            if self.cache.get(key) is None:
                # Serve the stale members while a refresh runs
                self._load_pool(key, loader)
            return DimensionPool.ready(members)
        if key in self._failed_pools:
            return DimensionPool.failed()
        self._load_pool(key, loader)
        return DimensionPool.loading()

    def _load_pool(
        self,
        key: CacheKey,
        loader: Callable[[], Awaitable[list[CreatureSummary]]],
    ) -> None:
        if key in self._loading_pools:
            return
        if self._spawn(self._fetch_pool(key, loader)) is not None:
            self._loading_pools.add(key)

    async def _fetch_pool(
        self,
        key: CacheKey,
        loader: Callable[[], Awaitable[list[CreatureSummary]]],
    ) -> None:
        try:
            members = await self.cache.get_or_fetch(
                key, loader, ttl=self.config.reference_freshness
            )
        except Exception as e:
            logger.warning(f"Failed to load pool {key}, treating as empty: {e}")
            self._failed_pools.add(key)
            self._loading_pools.discard(key)
            self._refresh_all()
            return

        self._loading_pools.discard(key)
        logger.info(f"Loaded pool {key} ({len(members)} creatures)")

    def _forget_pool_failures(self, criteria: FilterCriteria) -> None:
        for key in self._dimension_keys(criteria):
            self._failed_pools.discard(key)

    def forget_failures(self) -> None:
        """Allow failed pools and unresolvable IDs to be fetched again."""
        self._failed_pools.clear()
        self._unresolvable.clear()
        self._transient_failures.clear()
        self._failed_ids.clear()
        self._refresh_all()

    # =========================================================================
    # Hydration
    # =========================================================================

    def _schedule_hydration(self, ids: Iterable[int]) -> None:
        queued = set(self._hydration_queue)
        for creature_id in ids:
            if (
                creature_id in queued
                or creature_id in self._hydrating
                or creature_id in self._unresolvable
            ):
                continue
            self._hydration_queue.append(creature_id)
            queued.add(creature_id)

        if self._hydration_queue and (
            self._hydration_worker is None or self._hydration_worker.done()
        ):
            self._hydration_worker = self._spawn(self._drain_hydration())

    async def _drain_hydration(self) -> None:
        batch_size = self.config.hydration_batch_size
        while self._hydration_queue:
            batch = self._hydration_queue[:batch_size]
            del self._hydration_queue[:batch_size]
            self._hydrating.update(batch)
            try:
                patch = await self.hydrator.hydrate(batch)
                for creature_id, record in patch.items():
                    self._record_hydration(creature_id, record)
            finally:
                self._hydrating.difference_update(batch)
            self._refresh_all()

    def _record_hydration(self, creature_id: int, record: Creature) -> None:
        if not isinstance(record, CreaturePlaceholder):
            self._transient_failures.pop(creature_id, None)
            return
        if not record.loading:
            self._unresolvable.add(creature_id)
            return

        # Transient failure: stays pending, so the next recompute retries it
        attempts = self._transient_failures.get(creature_id, 0) + 1
        self._transient_failures[creature_id] = attempts
        if attempts < self.config.hydration_attempts:
            logger.debug(f"Hydration of creature {creature_id} failed ({attempts}), retrying")
            return

        logger.warning(
            f"Giving up on creature {creature_id} after {attempts} failed hydrations"
        )
        self._transient_failures.pop(creature_id, None)
        self._unresolvable.add(creature_id)
        self._failed_ids.add(creature_id)
        self.registry.upsert(CreaturePlaceholder.for_id(creature_id))

    async def hydrate_ids(self, ids: Sequence[int]) -> list[Creature]:
        """Hydrate an externally supplied ID list (favorites, team).

        Returns:
            Records in the order of ``ids``; failed IDs are placeholders.
        """
        patch = await self.hydrator.hydrate(ids)
        return [patch[int(i)] for i in ids if int(i) in patch]

    # =========================================================================
    # Pagination and prefetch
    # =========================================================================

    async def fetch_next_page(self) -> bool:
        """Load the next listing page. Returns True if a page was appended."""
        return await self.pagination.fetch_next()

    def prefetch_neighbors(
        self,
        focused_id: int,
        ordered_ids: Sequence[int] = (),
    ) -> asyncio.Task | None:
        """Warm the detail cache around ``focused_id``. Never raises."""
        return self.advisor.prefetch_neighbors(focused_id, ordered_ids)

    # =========================================================================
    # Single-creature lookups
    # =========================================================================

    async def creature_details(self, creature_id: int) -> CreatureProfile:
        """Full record plus species data for one creature.

        Raises:
            CreatureNotFoundError: If the creature does not exist.
            CatalogError: For other failures fetching the full record.
        """
        detail = await self.cache.get_or_fetch(
            detail_key(creature_id),
            lambda: self.client.get_entity(creature_id),
            ttl=self.config.detail_freshness,
        )
        self.registry.upsert(detail)

        species: SpeciesInfo | None = None
        try:
            species = await self._species(creature_id)
        except CatalogError as e:
            logger.warning(f"Species data unavailable for creature {creature_id}: {e}")

        return CreatureProfile(detail=detail, species=species)

    async def evolution_line(self, creature_id: int) -> EvolutionNode | None:
        """Root of the evolution graph containing ``creature_id``.

        Returns None when the species has no evolution chain.
        """
        species = await self._species(creature_id)
        if not species.evolution_chain_url:
            return None
        url = species.evolution_chain_url
        return await self.cache.get_or_fetch(
            evolution_key(url),
            lambda: self.client.get_evolution_graph(url),
            ttl=self.config.reference_freshness,
        )

    async def _species(self, creature_id: int) -> SpeciesInfo:
        return await self.cache.get_or_fetch(
            species_key(creature_id),
            lambda: self.client.get_species(creature_id),
            ttl=self.config.reference_freshness,
        )

    async def type_details(self, type_name: str) -> TypeDetails:
        """Damage relations of one category tag, as reported remotely."""
        return await self.cache.get_or_fetch(
            type_key(type_name),
            lambda: self.client.get_type_details(type_name),
            ttl=self.config.reference_freshness,
        )

    async def suggest(self, query: str, limit: int | None = None) -> list[CreatureSummary]:
        """Name or ID-prefix suggestions from the whole roster."""
        if not query.strip():
            return []
        roster = await self.cache.get_or_fetch(
            roster_key(self.config.max_creature_id),
            self.client.list_roster,
            ttl=self.config.reference_freshness,
        )
        return RosterIndex(roster).suggest(query, limit or self.config.suggestion_limit)

    # =========================================================================
    # Background tasks
    # =========================================================================

    def _spawn(self, coro: Awaitable[None]) -> asyncio.Task | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, background fetch skipped")
            coro.close()
            return None

        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Background catalog task failed: {task.exception()}")

    async def wait_idle(self) -> None:
        """Wait for background pool loads, hydration and prefetches to finish."""
        while True:
            pending = list(self._tasks) + list(self.advisor.active_tasks)
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def aclose(self) -> None:
        """Close every subscription and wait for background work to finish."""
        for subscription in list(self._subscriptions):
            subscription.close()
        for remove in self._remove_listeners:
            remove()
        self._remove_listeners.clear()
        await self.wait_idle()


__all__ = [
    "CatalogService",
    "CatalogView",
    "CreatureProfile",
    "Subscription",
]
