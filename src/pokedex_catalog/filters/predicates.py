"""
Secondary predicates and ordering for merged creature records.

Every predicate is pure and conjunctive. Records that lack the data a
predicate needs are treated as non-matching.
"""

from __future__ import annotations

from typing import Iterable

from ..models import Creature, CreatureDetail, CreaturePlaceholder, SortOrder


def is_loading(record: Creature) -> bool:
    return isinstance(record, CreaturePlaceholder) and record.loading


def matches_search(record: Creature, query: str) -> bool:
    """Case-insensitive name substring, or ID prefix match.

    An empty query matches everything. Placeholders only match on ID, and
    loading placeholders match nothing.
    """
    if not query:
        return True
    if is_loading(record):
        return False
    needle = query.lower()
    if str(record.id).startswith(needle):
        return True
    if isinstance(record, CreaturePlaceholder):
        return False
    return needle in record.name.lower()


def within_bounds(value: int, low: float | None, high: float | None) -> bool:
    """Inclusive range check in storage units; ``0`` means unknown and never matches."""
    if low is None and high is None:
        return True
    if not value:
        return False
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


def matches_physical(record: CreatureDetail, bounds: dict[str, float | None]) -> bool:
    """Height and weight bounds (already converted to storage units)."""
    return (
        within_bounds(record.height, bounds["min_height"], bounds["max_height"])
        and within_bounds(record.weight, bounds["min_weight"], bounds["max_weight"])
    )


def has_successor(record: Creature, terminal_ids: frozenset[int]) -> bool:
    """Approximate "can still evolve" test against a denylist of terminal IDs."""
    if is_loading(record):
        return False
    return record.id not in terminal_ids


def sort_records(records: Iterable[Creature], order: SortOrder) -> list[Creature]:
    """Full, stable sort of merged records.

    By number: ascending ID. By name: case-insensitive name with every
    placeholder after all named records.
    """
    if order is SortOrder.NAME:
        return sorted(
            records,
            key=lambda r: (isinstance(r, CreaturePlaceholder), r.name.casefold(), r.id),
        )
    return sorted(records, key=lambda r: r.id)


__all__ = [
    "is_loading",
    "matches_search",
    "within_bounds",
    "matches_physical",
    "has_successor",
    "sort_records",
]
