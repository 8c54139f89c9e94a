"""
Dimension pools: the member sets of one filter axis.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping

from ..models import CreatureSummary


class PoolStatus(str, Enum):
    """Load status of a dimension pool."""
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class DimensionPool:
    """Members of one category group or tag.

    A failed pool has no members: it contributes an empty set rather than
    failing the whole merge, and is reported separately so the view can say
    so. A loading pool has no members yet and marks the
    merged view as still resolving.
    """
    status: PoolStatus
    members: Mapping[int, CreatureSummary] = field(default_factory=dict)

    @classmethod
    def ready(cls, members: Iterable[CreatureSummary]) -> "DimensionPool":
        return cls(status=PoolStatus.READY, members={m.id: m for m in members})

    @classmethod
    def loading(cls) -> "DimensionPool":
        return cls(status=PoolStatus.LOADING)

    @classmethod
    def failed(cls) -> "DimensionPool":
        return cls(status=PoolStatus.FAILED)

    @property
    def ids(self) -> frozenset[int]:
        return frozenset(self.members)

    @property
    def is_loading(self) -> bool:
        return self.status is PoolStatus.LOADING

    @property
    def is_failed(self) -> bool:
        return self.status is PoolStatus.FAILED


def union_pools(
    selected: Iterable,
    pools: Mapping,
) -> tuple[frozenset[int], dict[int, CreatureSummary], bool, list]:
    """Union the member sets of every selected key.

    Keys without an entry in ``pools`` count as loading. Failed pools add no
    members but are reported so the caller can tell them from empty ones.

    Returns:
        (member IDs, member summaries by ID, whether any pool is still
        loading, keys whose pool failed)
    """
    ids: set[int] = set()
    summaries: dict[int, CreatureSummary] = {}
    loading = False
    failed: list = []

    for key in selected:
        pool = pools.get(key)
        if pool is None or pool.is_loading:
            loading = True
            continue
        if pool.is_failed:
            failed.append(key)
            continue
        ids.update(pool.members)
        summaries.update(pool.members)

    return frozenset(ids), summaries, loading, failed


__all__ = [
    "PoolStatus",
    "DimensionPool",
    "union_pools",
]
