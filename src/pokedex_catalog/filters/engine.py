"""
Filter-merge engine for the catalog browser.

Combines the paginated listing, the category-group, tag, tier and curated
dimension pools, and the best known record per ID into one ordered,
de-duplicated result. The engine is a pure synchronous function of its
inputs: it never fetches. Instead it reports which IDs need hydration and
whether the result may still change (``still_resolving``), and the caller
re-runs it when more data arrives.

Pipeline:
1. Pool selection: the listing when no dimension filter is active,
   otherwise the intersection of every active dimension (each dimension is
   the union of its selected members; tier A and tier B are unioned before
   entering the intersection).
2. Record resolution: best known record per pool ID.
3. Hydration gate: IDs with no usable record, or lacking detail needed by an
   active physical bound, are reported as pending and treated as
   non-matching for those bounds. Failed pools and abandoned IDs are
   reported alongside, never silently folded into "no matches".
4. Secondary predicates: search, height, weight, has-successor.
5. Full sort.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from ..constants import LEGENDARY_IDS, MYTHICAL_IDS, NON_EVOLVING_IDS
from ..models import (
    Creature,
    CreatureDetail,
    CreaturePlaceholder,
    FilterCriteria,
    merge_records,
)
from .pools import DimensionPool, union_pools
from .predicates import (
    has_successor,
    is_loading,
    matches_physical,
    matches_search,
    sort_records,
)

logger = logging.getLogger("pokedex-catalog")


@dataclass(frozen=True)
class MergeResult:
    """Output of one merge pass.

    Attributes:
        items: Ordered, de-duplicated records.
        still_resolving: True while outstanding fetches may change ``items``.
        pending_ids: IDs the caller should hydrate, ascending.
        pool_size: Number of IDs in the candidate pool before secondary filters.
        failed_dimensions: Selected groups and tags whose pool failed to load,
            as ``"group:<id>"`` and ``"tag:<name>"`` labels.
        unresolved_ids: Pool IDs left without a usable record because their
            hydration was given up on, ascending.
    """
    items: tuple[Creature, ...] = ()
    still_resolving: bool = False
    pending_ids: tuple[int, ...] = ()
    pool_size: int = 0
    failed_dimensions: tuple[str, ...] = ()
    unresolved_ids: tuple[int, ...] = ()

    @property
    def ids(self) -> list[int]:
        return [r.id for r in self.items]


@dataclass
class _Pool:
    ids: list[int]
    summaries: dict[int, Creature] = field(default_factory=dict)
    loading: bool = False
    failed: list[str] = field(default_factory=list)


class FilterMergeEngine:
    """Pure recomputation of the filtered, sorted catalog view.

    Args:
        tier_a: IDs of the first privileged classification (legendary).
        tier_b: IDs of the second privileged classification (mythical).
        terminal_ids: IDs treated as having no evolutionary successor.

    Usage:
        engine = FilterMergeEngine()
        result = engine.merge(
            criteria,
            listing=controller.items,
            records=registry.snapshot(),
            group_pools={1: DimensionPool.ready(gen_one)},
        )
        if result.pending_ids:
            await hydrator.hydrate(result.pending_ids[:20])
    """

    def __init__(
        self,
        tier_a: frozenset[int] = LEGENDARY_IDS,
        tier_b: frozenset[int] = MYTHICAL_IDS,
        terminal_ids: frozenset[int] = NON_EVOLVING_IDS,
    ) -> None:
        self.tier_a = frozenset(tier_a)
        self.tier_b = frozenset(tier_b)
        self.terminal_ids = frozenset(terminal_ids)

    def merge(
        self,
        criteria: FilterCriteria,
        listing: Sequence[Creature] = (),
        records: Mapping[int, Creature] | None = None,
        group_pools: Mapping[int, DimensionPool] | None = None,
        tag_pools: Mapping[str, DimensionPool] | None = None,
        unresolvable: frozenset[int] = frozenset(),
    ) -> MergeResult:
        """Compute the merged view for the current inputs.

        Args:
            criteria: Active filter criteria.
            listing: Accumulated paginated sequence.
            records: Best known record per ID (hydrated details, placeholders).
            group_pools: Pools for the selected category groups; a missing
                entry counts as still loading.
            tag_pools: Pools for the selected tags; same convention.
            unresolvable: IDs whose hydration was given up on (not found, or
                retries exhausted); they are reported in ``unresolved_ids``
                instead of as pending.

        Returns:
            MergeResult with ordered items and the resolution signals.
        """
        records = records or {}
        pool = self._select_pool(criteria, listing, group_pools or {}, tag_pools or {})

        candidates: dict[int, Creature] = {}
        pending: set[int] = set()
        unresolved: set[int] = set()
        for creature_id in pool.ids:
            record = self._resolve(creature_id, records, pool.summaries)
            candidates[creature_id] = record
            if isinstance(record, CreaturePlaceholder) and creature_id in unresolvable:
                unresolved.add(creature_id)
            elif is_loading(record):
                pending.add(creature_id)

        bounds = criteria.storage_bounds()
        needs_detail = criteria.requires_detail
        matched: list[Creature] = []

        for record in candidates.values():
            if not matches_search(record, criteria.search):
                continue
            if criteria.has_successor and not has_successor(record, self.terminal_ids):
                continue
            if needs_detail:
                if not isinstance(record, CreatureDetail):
                    if record.id in unresolvable:
                        unresolved.add(record.id)
                    elif not isinstance(record, CreaturePlaceholder):
                        pending.add(record.id)
                    continue
                if not matches_physical(record, bounds):
                    continue
            matched.append(record)

        still_resolving = pool.loading or bool(pending)
        items = tuple(sort_records(matched, criteria.sort))

        logger.debug(
            f"Merge: pool={len(candidates)} matched={len(items)} "
            f"pending={len(pending)} resolving={still_resolving} failed={pool.failed}"
        )

        return MergeResult(
            items=items,
            still_resolving=still_resolving,
            pending_ids=tuple(sorted(pending)),
            pool_size=len(candidates),
            failed_dimensions=tuple(pool.failed),
            unresolved_ids=tuple(sorted(unresolved)),
        )

    # =========================================================================
    # Pool selection
    # =========================================================================

    def _select_pool(
        self,
        criteria: FilterCriteria,
        listing: Sequence[Creature],
        group_pools: Mapping[int, DimensionPool],
        tag_pools: Mapping[str, DimensionPool],
    ) -> _Pool:
        listed: dict[int, Creature] = {}
        for record in listing:
            listed[record.id] = merge_records(listed.get(record.id), record)

        if not criteria.has_dimension_filter:
            return _Pool(ids=list(listed), summaries=listed)

        active: list[frozenset[int]] = []
        summaries: dict[int, Creature] = dict(listed)
        loading = False
        failed: list[str] = []

        if criteria.groups:
            ids, members, group_loading, failed_groups = union_pools(sorted(criteria.groups), group_pools)
            active.append(ids)
            loading = loading or group_loading
            failed.extend(f"group:{group}" for group in failed_groups)
            _absorb(summaries, members)

        if criteria.tags:
            ids, members, tag_loading, failed_tags = union_pools(sorted(criteria.tags), tag_pools)
            active.append(ids)
            loading = loading or tag_loading
            failed.extend(f"tag:{tag}" for tag in failed_tags)
            _absorb(summaries, members)

        if criteria.tier_active:
            # Either tier qualifies: union first, then intersect with the rest
            tier_ids: frozenset[int] = frozenset()
            if criteria.legendary:
                tier_ids |= self.tier_a
            if criteria.mythical:
                tier_ids |= self.tier_b
            active.append(tier_ids)

        if criteria.curated_ids is not None:
            active.append(frozenset(criteria.curated_ids))

        pool_ids = frozenset.intersection(*active) if active else frozenset()
        return _Pool(ids=sorted(pool_ids), summaries=summaries, loading=loading, failed=failed)

    @staticmethod
    def _resolve(
        creature_id: int,
        records: Mapping[int, Creature],
        summaries: Mapping[int, Creature],
    ) -> Creature:
        best = merge_records(None, summaries[creature_id]) if creature_id in summaries else None
        known = records.get(creature_id)
        if known is not None:
            best = merge_records(best, known)
        if best is None:
            return CreaturePlaceholder.for_id(creature_id, loading=True)
        return best


def _absorb(target: dict[int, Creature], incoming: Mapping[int, Creature]) -> None:
    for creature_id, record in incoming.items():
        target[creature_id] = merge_records(target.get(creature_id), record)


__all__ = [
    "FilterMergeEngine",
    "MergeResult",
]
