"""
Tests for the FilterMergeEngine and its predicates.

Tests cover:
- Pool selection (listing, dimension intersection, tier union, curated IDs)
- Hydration gate and still_resolving
- Secondary predicates (search, height/weight bounds, has-successor)
- De-duplication, enrichment precedence and sorting
- Failed and loading dimension pools
"""

from __future__ import annotations

from pokedex_catalog.filters import (
    DimensionPool,
    FilterMergeEngine,
    PoolStatus,
    union_pools,
)
from pokedex_catalog.filters.predicates import matches_search, within_bounds
from pokedex_catalog.models import (
    CreatureDetail,
    CreaturePlaceholder,
    CreatureSummary,
    FilterCriteria,
    SortOrder,
)


def summary(creature_id: int, name: str | None = None) -> CreatureSummary:
    return CreatureSummary(id=creature_id, name=name or f"mon-{creature_id}")


def detail(creature_id: int, name: str | None = None, height: int = 10, weight: int = 100) -> CreatureDetail:
    return CreatureDetail(
        id=creature_id,
        name=name or f"mon-{creature_id}",
        types=("normal",),
        height=height,
        weight=weight,
    )


def pool(*ids: int) -> DimensionPool:
    return DimensionPool.ready([summary(i) for i in ids])


# ============================================================================
# Pool selection
# ============================================================================


class TestPoolSelection:
    """Test candidate pool selection."""

    def test_no_filters_uses_listing(self):
        """Paginated [1..5] with no filters yields [1..5] by ID."""
        engine = FilterMergeEngine()
        listing = [summary(i) for i in (3, 1, 5, 2, 4)]

        result = engine.merge(FilterCriteria(), listing=listing)

        assert result.ids == [1, 2, 3, 4, 5]
        assert result.still_resolving is False

    def test_group_and_tag_intersect(self):
        """G1={1,2,3} and fire={2,3,9} yield {2,3}; 9 is excluded."""
        engine = FilterMergeEngine()
        criteria = FilterCriteria(groups=frozenset({1}), tags=frozenset({"fire"}))

        result = engine.merge(
            criteria,
            group_pools={1: pool(1, 2, 3)},
            tag_pools={"fire": pool(2, 3, 9)},
        )

        assert result.ids == [2, 3]

    def test_multiple_groups_union(self):
        engine = FilterMergeEngine()
        criteria = FilterCriteria(groups=frozenset({1, 2}))

        result = engine.merge(criteria, group_pools={1: pool(1, 2), 2: pool(152)})

        assert result.ids == [1, 2, 152]

    def test_multiple_tags_union_then_intersect_group(self):
        engine = FilterMergeEngine()
        criteria = FilterCriteria(groups=frozenset({1}), tags=frozenset({"fire", "water"}))

        result = engine.merge(
            criteria,
            group_pools={1: pool(4, 5, 7, 25)},
            tag_pools={"fire": pool(4, 5, 155), "water": pool(7, 158)},
        )

        assert result.ids == [4, 5, 7]

    def test_both_tiers_union(self):
        """Tier A {150} and tier B {151} both set yield {150, 151}."""
        engine = FilterMergeEngine(tier_a=frozenset({150}), tier_b=frozenset({151}))
        criteria = FilterCriteria(legendary=True, mythical=True)
        records = {150: detail(150, "mewtwo"), 151: detail(151, "mew")}

        result = engine.merge(criteria, records=records)

        assert result.ids == [150, 151]

    def test_single_tier(self):
        engine = FilterMergeEngine(tier_a=frozenset({150}), tier_b=frozenset({151}))

        result = engine.merge(
            FilterCriteria(mythical=True),
            records={150: detail(150), 151: detail(151)},
        )

        assert result.ids == [151]

    def test_tier_intersects_with_group(self):
        engine = FilterMergeEngine(tier_a=frozenset({144, 150, 249}), tier_b=frozenset({151, 251}))
        criteria = FilterCriteria(groups=frozenset({1}), legendary=True, mythical=True)

        result = engine.merge(criteria, group_pools={1: pool(1, 144, 150, 151)})

        assert result.ids == [144, 150, 151]

    def test_tiers_off_never_constrain(self):
        engine = FilterMergeEngine(tier_a=frozenset({1}), tier_b=frozenset({2}))
        listing = [summary(i) for i in (1, 2, 3)]

        result = engine.merge(FilterCriteria(), listing=listing)

        assert result.ids == [1, 2, 3]

    def test_curated_ids_intersect(self):
        engine = FilterMergeEngine()
        criteria = FilterCriteria(groups=frozenset({1}), curated_ids=frozenset({2, 200}))

        result = engine.merge(criteria, group_pools={1: pool(1, 2, 3)})

        assert result.ids == [2]

    def test_empty_curated_list_matches_nothing(self):
        engine = FilterMergeEngine()
        listing = [summary(i) for i in (1, 2)]

        result = engine.merge(FilterCriteria(curated_ids=frozenset()), listing=listing)

        assert result.ids == []
        assert result.still_resolving is False

    def test_curated_ids_without_records_are_pending(self):
        engine = FilterMergeEngine()

        result = engine.merge(FilterCriteria(curated_ids=frozenset({25, 7})))

        assert result.pending_ids == (7, 25)
        assert result.still_resolving is True
        assert all(isinstance(r, CreaturePlaceholder) and r.loading for r in result.items)


# ============================================================================
# Dimension pool status
# ============================================================================


class TestDimensionPools:
    """Test loading and failed pools."""

    def test_loading_pool_marks_still_resolving(self):
        engine = FilterMergeEngine()
        criteria = FilterCriteria(groups=frozenset({1}))

        result = engine.merge(criteria, group_pools={1: DimensionPool.loading()})

        assert result.ids == []
        assert result.still_resolving is True

    def test_missing_pool_counts_as_loading(self):
        engine = FilterMergeEngine()

        result = engine.merge(FilterCriteria(tags=frozenset({"fire"})))

        assert result.still_resolving is True

    def test_failed_pool_contributes_empty_set(self):
        engine = FilterMergeEngine()
        criteria = FilterCriteria(groups=frozenset({1, 2}))

        result = engine.merge(
            criteria,
            group_pools={1: pool(1, 2), 2: DimensionPool.failed()},
        )

        assert result.ids == [1, 2]
        assert result.still_resolving is False
        assert result.failed_dimensions == ("group:2",)

    def test_failed_intersected_dimension_yields_no_matches(self):
        engine = FilterMergeEngine()
        criteria = FilterCriteria(groups=frozenset({1}), tags=frozenset({"fire"}))

        result = engine.merge(
            criteria,
            group_pools={1: pool(1, 2)},
            tag_pools={"fire": DimensionPool.failed()},
        )

        assert result.ids == []
        assert result.still_resolving is False
        assert result.failed_dimensions == ("tag:fire",)

    def test_union_pools_reports_loading(self):
        ids, members, loading, failed = union_pools([1, 2], {1: pool(1, 2)})

        assert ids == frozenset({1, 2})
        assert set(members) == {1, 2}
        assert loading is True
        assert failed == []

    def test_union_pools_reports_failed_keys(self):
        ids, _, loading, failed = union_pools(
            ["fire", "water"], {"fire": pool(4), "water": DimensionPool.failed()}
        )

        assert ids == frozenset({4})
        assert loading is False
        assert failed == ["water"]

    def test_ready_empty_pool_is_not_failed(self):
        engine = FilterMergeEngine()

        result = engine.merge(FilterCriteria(groups=frozenset({1})), group_pools={1: pool()})

        assert result.ids == []
        assert result.failed_dimensions == ()

    def test_pool_status(self):
        assert DimensionPool.ready([]).status is PoolStatus.READY
        assert DimensionPool.loading().is_loading
        assert DimensionPool.failed().ids == frozenset()


# ============================================================================
# De-duplication and enrichment
# ============================================================================


class TestDeduplication:
    """Test ID uniqueness and enrichment precedence."""

    def test_overlapping_pools_yield_each_id_once(self):
        engine = FilterMergeEngine()
        criteria = FilterCriteria(tags=frozenset({"fire", "flying"}))

        result = engine.merge(
            criteria,
            tag_pools={"fire": pool(4, 6), "flying": pool(6, 144)},
        )

        assert result.ids == [4, 6, 144]

    def test_duplicate_listing_entries_collapse(self):
        engine = FilterMergeEngine()
        listing = [summary(1), summary(2), summary(1)]

        result = engine.merge(FilterCriteria(), listing=listing)

        assert result.ids == [1, 2]

    def test_full_record_wins_over_summary(self):
        engine = FilterMergeEngine()
        criteria = FilterCriteria(groups=frozenset({1}))

        result = engine.merge(
            criteria,
            group_pools={1: pool(6)},
            records={6: detail(6, "charizard")},
        )

        assert isinstance(result.items[0], CreatureDetail)
        assert result.items[0].name == "charizard"

    def test_full_record_never_downgraded_by_refetched_listing(self):
        engine = FilterMergeEngine()
        records = {1: detail(1, "bulbasaur")}

        first = engine.merge(FilterCriteria(), listing=[summary(1, "bulbasaur")], records=records)
        second = engine.merge(FilterCriteria(), listing=[summary(1, "bulbasaur")], records=records)

        assert not first.items[0].summary_only
        assert not second.items[0].summary_only


# ============================================================================
# Hydration gate
# ============================================================================


class TestHydrationGate:
    """Test detail requirements of physical bounds."""

    def test_summaries_pending_when_bounds_active(self):
        engine = FilterMergeEngine()
        criteria = FilterCriteria(min_height=1.0)
        listing = [summary(1), summary(2)]

        result = engine.merge(criteria, listing=listing, records={2: detail(2, height=12)})

        assert result.ids == [2]
        assert result.pending_ids == (1,)
        assert result.still_resolving is True

    def test_no_pending_when_all_hydrated(self):
        engine = FilterMergeEngine()
        criteria = FilterCriteria(max_weight=20.0)
        records = {1: detail(1, weight=69), 3: detail(3, weight=1000)}

        result = engine.merge(criteria, listing=[summary(1), summary(3)], records=records)

        assert result.ids == [1]
        assert result.pending_ids == ()
        assert result.still_resolving is False

    def test_no_bounds_requires_no_detail(self):
        engine = FilterMergeEngine()

        result = engine.merge(FilterCriteria(search="mon"), listing=[summary(1), summary(2)])

        assert result.pending_ids == ()
        assert result.ids == [1, 2]

    def test_unresolvable_ids_are_not_pending(self):
        engine = FilterMergeEngine()
        criteria = FilterCriteria(min_height=0.1)

        result = engine.merge(criteria, listing=[summary(1)], unresolvable=frozenset({1}))

        assert result.ids == []
        assert result.pending_ids == ()
        assert result.still_resolving is False
        assert result.unresolved_ids == (1,)

    def test_abandoned_pool_only_id_is_not_pending(self):
        engine = FilterMergeEngine()
        criteria = FilterCriteria(curated_ids=frozenset({1, 25}))

        result = engine.merge(
            criteria, records={1: detail(1)}, unresolvable=frozenset({25})
        )

        assert result.ids == [1, 25]
        assert result.pending_ids == ()
        assert result.still_resolving is False
        assert result.unresolved_ids == (25,)

    def test_permanent_placeholder_is_not_pending(self):
        engine = FilterMergeEngine()
        criteria = FilterCriteria(min_height=0.1, curated_ids=frozenset({999}))

        result = engine.merge(criteria, records={999: CreaturePlaceholder.for_id(999)})

        assert result.pending_ids == ()
        assert result.still_resolving is False


# ============================================================================
# Secondary predicates
# ============================================================================


class TestPhysicalBounds:
    """Test inclusive bounds with display-to-storage conversion."""

    def test_min_height_equal_is_included(self):
        """min_height=1.0 (10 storage units) includes height 10, excludes 9."""
        engine = FilterMergeEngine()
        criteria = FilterCriteria(min_height=1.0)
        records = {1: detail(1, height=10), 2: detail(2, height=9)}

        result = engine.merge(criteria, listing=[summary(1), summary(2)], records=records)

        assert result.ids == [1]

    def test_max_weight_inclusive(self):
        engine = FilterMergeEngine()
        criteria = FilterCriteria(max_weight=6.9)
        records = {1: detail(1, weight=69), 2: detail(2, weight=70)}

        result = engine.merge(criteria, listing=[summary(1), summary(2)], records=records)

        assert result.ids == [1]

    def test_float_conversion_noise(self):
        criteria = FilterCriteria(min_height=0.3)
        assert criteria.storage_bounds()["min_height"] == 3

    def test_unknown_value_never_matches_active_bound(self):
        assert within_bounds(0, 0, None) is False
        assert within_bounds(0, None, None) is True


class TestSearchAndSuccessor:
    """Test search and has-successor predicates."""

    def test_search_by_name_case_insensitive(self):
        engine = FilterMergeEngine()
        listing = [summary(1, "bulbasaur"), summary(4, "charmander")]

        result = engine.merge(FilterCriteria(search="CHAR"), listing=listing)

        assert result.ids == [4]

    def test_search_by_id_prefix(self):
        engine = FilterMergeEngine()
        listing = [summary(15, "beedrill"), summary(150, "mewtwo"), summary(25, "pikachu")]

        result = engine.merge(FilterCriteria(search="15"), listing=listing)

        assert result.ids == [15, 150]

    def test_loading_placeholder_never_matches_search(self):
        assert not matches_search(CreaturePlaceholder.for_id(25, loading=True), "25")
        assert matches_search(CreaturePlaceholder.for_id(25), "25")
        assert not matches_search(CreaturePlaceholder.for_id(25), "creature")

    def test_has_successor_uses_terminal_denylist(self):
        engine = FilterMergeEngine(terminal_ids=frozenset({3}))
        listing = [summary(1), summary(2), summary(3)]

        result = engine.merge(FilterCriteria(has_successor=True), listing=listing)

        assert result.ids == [1, 2]


# ============================================================================
# Sorting
# ============================================================================


class TestSorting:
    """Test result ordering."""

    def test_sort_by_name(self):
        engine = FilterMergeEngine()
        listing = [summary(4, "charmander"), summary(1, "bulbasaur"), summary(7, "Squirtle")]

        result = engine.merge(FilterCriteria(sort=SortOrder.NAME), listing=listing)

        assert result.ids == [1, 4, 7]

    def test_placeholders_sorted_last_by_name(self):
        engine = FilterMergeEngine()
        criteria = FilterCriteria(curated_ids=frozenset({1, 25, 150}), sort=SortOrder.NAME)
        records = {150: detail(150, "mewtwo"), 25: detail(25, "abra")}

        result = engine.merge(criteria, records=records)

        assert result.ids == [25, 150, 1]
        assert isinstance(result.items[-1], CreaturePlaceholder)

    def test_sort_recomputed_on_every_merge(self):
        engine = FilterMergeEngine()
        listing = [summary(2, "beta"), summary(1, "gamma"), summary(3, "alpha")]

        by_number = engine.merge(FilterCriteria(), listing=listing)
        by_name = engine.merge(FilterCriteria(sort=SortOrder.NAME), listing=listing)

        assert by_number.ids == [1, 2, 3]
        assert by_name.ids == [3, 2, 1]
