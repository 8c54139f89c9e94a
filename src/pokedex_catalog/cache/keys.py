"""
Typed cache keys for remote catalog operations.

Every remote operation gets its own key builder. Keys are structured tuples
(operation kind + full parameter tuple) rather than joined strings, so two
different operations can never collide on the same key.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, NamedTuple

from ..config import CatalogConfig


class OperationKind(str, Enum):
    """Kinds of cached remote operations."""
    PAGE = "page"
    DETAIL = "detail"
    SPECIES = "species"
    EVOLUTION = "evolution"
    GROUP = "group"
    TAG = "tag"
    ROSTER = "roster"
    TYPE = "type"


# Immutable reference data: never goes stale
REFERENCE_KINDS = frozenset({
    OperationKind.SPECIES,
    OperationKind.EVOLUTION,
    OperationKind.GROUP,
    OperationKind.TAG,
    OperationKind.ROSTER,
    OperationKind.TYPE,
})


class CacheKey(NamedTuple):
    """Deterministic cache key: operation kind plus its parameters."""
    kind: OperationKind
    params: tuple[Any, ...] = ()

    def __str__(self) -> str:
        rendered = ",".join(repr(p) for p in self.params)
        return f"{self.kind.value}({rendered})"


def page_key(cursor: str | None, page_size: int) -> CacheKey:
    return CacheKey(OperationKind.PAGE, (cursor, page_size))


def detail_key(creature_id: int) -> CacheKey:
    return CacheKey(OperationKind.DETAIL, (int(creature_id),))


def species_key(creature_id: int) -> CacheKey:
    return CacheKey(OperationKind.SPECIES, (int(creature_id),))


def evolution_key(chain_url: str) -> CacheKey:
    return CacheKey(OperationKind.EVOLUTION, (chain_url,))


def group_key(group_id: int) -> CacheKey:
    return CacheKey(OperationKind.GROUP, (int(group_id),))


def tag_key(tag: str) -> CacheKey:
    return CacheKey(OperationKind.TAG, (tag.lower(),))


def roster_key(limit: int) -> CacheKey:
    return CacheKey(OperationKind.ROSTER, (int(limit),))


def type_key(type_name: str) -> CacheKey:
    return CacheKey(OperationKind.TYPE, (type_name.lower(),))


def freshness_for(kind: OperationKind, config: CatalogConfig) -> float:
    """Freshness window in seconds for an operation kind."""
    if kind is OperationKind.PAGE:
        return config.page_freshness
    if kind is OperationKind.DETAIL:
        return config.detail_freshness
    return config.reference_freshness


__all__ = [
    "OperationKind",
    "REFERENCE_KINDS",
    "CacheKey",
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
