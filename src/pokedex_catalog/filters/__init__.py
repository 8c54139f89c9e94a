"""
Filter-merge engine for the creature catalog.

Components:
- FilterMergeEngine: pure recomputation of the filtered, sorted view
- DimensionPool: member set of one category group or tag
- predicates: search, physical bounds, has-successor, sorting
"""

from .engine import FilterMergeEngine, MergeResult
from .pools import DimensionPool, PoolStatus, union_pools
from .predicates import (
    has_successor,
    is_loading,
    matches_physical,
    matches_search,
    sort_records,
    within_bounds,
)

__all__ = [
    # Engine
    "FilterMergeEngine",
    "MergeResult",
    # Pools
    "DimensionPool",
    "PoolStatus",
    "union_pools",
    # Predicates
    "has_successor",
    "is_loading",
    "matches_physical",
    "matches_search",
    "sort_records",
    "within_bounds",
]
