"""
Tests for PrefetchAdvisor.

Tests cover:
- Neighbor computation from an ordered sequence
- Fallback to adjacent IDs clamped to the valid range
- Background cache warming that ignores failures
"""

from __future__ import annotations

import pytest

from pokedex_catalog.cache import RequestCache, detail_key
from pokedex_catalog.hydrator import DetailHydrator
from pokedex_catalog.prefetch import PrefetchAdvisor

pytestmark = pytest.mark.anyio


def make_advisor(catalog, max_id: int = 1025) -> tuple[PrefetchAdvisor, RequestCache]:
    cache = RequestCache()
    return PrefetchAdvisor(DetailHydrator(catalog, cache), max_id), cache


class TestNeighbors:
    """Test neighbor selection."""

    def test_neighbors_in_sequence(self, fake_catalog):
        advisor, _ = make_advisor(fake_catalog)
        assert advisor.neighbors(25, [4, 7, 25, 133, 150]) == [7, 133]

    def test_first_in_sequence_has_only_successor(self, fake_catalog):
        advisor, _ = make_advisor(fake_catalog)
        assert advisor.neighbors(4, [4, 7, 25]) == [7]

    def test_last_in_sequence_has_only_predecessor(self, fake_catalog):
        advisor, _ = make_advisor(fake_catalog)
        assert advisor.neighbors(25, [4, 7, 25]) == [7]

    def test_fallback_without_sequence(self, fake_catalog):
        advisor, _ = make_advisor(fake_catalog)
        assert advisor.neighbors(25) == [24, 26]

    def test_fallback_when_not_in_sequence(self, fake_catalog):
        advisor, _ = make_advisor(fake_catalog)
        assert advisor.neighbors(25, [1, 2, 3]) == [24, 26]

    def test_fallback_clamped_to_valid_range(self, fake_catalog):
        advisor, _ = make_advisor(fake_catalog, max_id=151)
        assert advisor.neighbors(1) == [2]
        assert advisor.neighbors(151) == [150]


class TestPrefetch:
    """Test background warming."""

    async def test_neighbors_warmed_in_background(self, fake_catalog):
        advisor, cache = make_advisor(fake_catalog)

        task = advisor.prefetch_neighbors(2, [1, 2, 3])
        assert task is not None
        await task

        assert cache.get(detail_key(1)) is not None
        assert cache.get(detail_key(3)) is not None
        assert advisor.active_count == 0

    async def test_failures_are_ignored(self, fake_catalog):
        fake_catalog.missing.update({1, 3})
        advisor, cache = make_advisor(fake_catalog)

        task = advisor.prefetch_neighbors(2, [1, 2, 3])
        await task

        assert task.exception() is None
        assert cache.get(detail_key(1)) is None

    def test_no_running_loop_returns_none(self, fake_catalog):
        advisor, _ = make_advisor(fake_catalog)
        assert advisor.prefetch_neighbors(25) is None

    async def test_nothing_to_prefetch(self, fake_catalog):
        advisor, _ = make_advisor(fake_catalog, max_id=1)
        assert advisor.prefetch_neighbors(1) is None
