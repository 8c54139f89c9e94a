"""
Data models for the creature catalog.

Creature records are a tagged union discriminated by ``kind``:

- ``CreatureSummary``: what a listing endpoint knows (ID and name).
- ``CreatureDetail``: a fully hydrated record from the detail endpoint.
- ``CreaturePlaceholder``: a stand-in for an ID whose record is still
  loading or could not be fetched at all.

Records only ever move up the rank ladder placeholder < summary < full;
``merge_records`` is the single place that decides which record wins.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import DISPLAY_TO_STORAGE_FACTOR, LEGENDARY_IDS, MYTHICAL_IDS


# =============================================================================
# Creature records
# =============================================================================


class Ability(BaseModel):
    """An ability a creature can have."""
    model_config = ConfigDict(frozen=True)

    name: str
    is_hidden: bool = False


class BaseStat(BaseModel):
    """One base stat value (hp, attack, ...)."""
    model_config = ConfigDict(frozen=True)

    name: str
    value: int = Field(ge=0)


class _CreatureRecord(BaseModel):
    """Fields and derived properties shared by every record variant."""
    model_config = ConfigDict(frozen=True)

    id: int = Field(gt=0, description="Stable, externally assigned creature ID")
    name: str = Field(description="Lower-case canonical name")

    @field_validator("name")
    @classmethod
    def canonical_name(cls, v: str) -> str:
        return v.strip().lower()

    @property
    def summary_only(self) -> bool:
        return False

    @property
    def rank(self) -> int:
        raise NotImplementedError

    @property
    def is_legendary(self) -> bool:
        """Tier A membership, derived from the ID."""
        return self.id in LEGENDARY_IDS

    @property
    def is_mythical(self) -> bool:
        """Tier B membership, derived from the ID."""
        return self.id in MYTHICAL_IDS


class CreatureSummary(_CreatureRecord):
    """Record produced by a listing or grouping endpoint."""
    kind: Literal["summary"] = "summary"

    @property
    def summary_only(self) -> bool:
        return True

    @property
    def rank(self) -> int:
        return 1


class CreatureDetail(_CreatureRecord):
    """Fully hydrated creature record.

    ``height`` is stored in decimeters and ``weight`` in hectograms; ``0``
    means unknown.
    """
    kind: Literal["full"] = "full"
    types: tuple[str, ...] = ()
    height: int = Field(default=0, ge=0)
    weight: int = Field(default=0, ge=0)
    abilities: tuple[Ability, ...] = ()
    stats: tuple[BaseStat, ...] = ()
    moves: tuple[str, ...] = ()
    sprites: dict[str, str | None] = Field(default_factory=dict)

    @property
    def rank(self) -> int:
        return 2

    @property
    def total_stats(self) -> int:
        return sum(stat.value for stat in self.stats)


class CreaturePlaceholder(_CreatureRecord):
    """Stand-in record for an ID without usable data.

    ``loading`` is True while a fetch is still expected to resolve the ID.
    A placeholder with ``loading=False`` marks a permanent miss (invalid ID
    or malformed response) and is never hydrated again by the merge loop.
    """
    kind: Literal["placeholder"] = "placeholder"
    loading: bool = False

    @property
    def rank(self) -> int:
        return 0

    @classmethod
    def for_id(cls, creature_id: int, loading: bool = False) -> "CreaturePlaceholder":
        return cls(id=creature_id, name=f"creature-{creature_id}", loading=loading)


Creature = Annotated[
    Union[CreatureSummary, CreatureDetail, CreaturePlaceholder],
    Field(discriminator="kind"),
]


def merge_records(current: Creature | None, incoming: Creature) -> Creature:
    """Return the record to keep when ``incoming`` arrives for an ID.

    The higher-ranked record wins; on equal rank the incoming (newer) record
    replaces the current one. A full record is therefore never replaced by a
    summary or placeholder.
    """
    if current is None:
        return incoming
    if current.id != incoming.id:
        raise ValueError(f"Cannot merge records for different IDs: {current.id} != {incoming.id}")
    if incoming.rank >= current.rank:
        return incoming
    return current


# =============================================================================
# Remote metadata
# =============================================================================


class SpeciesInfo(BaseModel):
    """Classification and narrative metadata for a creature species."""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str = ""
    generation: str | None = None
    capture_rate: int | None = None
    gender_rate: int | None = None
    habitat: str | None = None
    is_legendary: bool = False
    is_mythical: bool = False
    evolution_chain_url: str | None = None


class EvolutionNode(BaseModel):
    """One stage of an evolution graph; branching factor is arbitrary."""

    id: int
    name: str
    evolves_to: list["EvolutionNode"] = Field(default_factory=list)


EvolutionNode.model_rebuild()


class TypeDetails(BaseModel):
    """Damage relations for a single category tag, as reported remotely."""

    name: str
    double_damage_from: list[str] = Field(default_factory=list)
    double_damage_to: list[str] = Field(default_factory=list)
    half_damage_from: list[str] = Field(default_factory=list)
    half_damage_to: list[str] = Field(default_factory=list)
    no_damage_from: list[str] = Field(default_factory=list)
    no_damage_to: list[str] = Field(default_factory=list)


class CatalogPage(BaseModel):
    """One page of the base listing.

    ``next_cursor`` is opaque to callers; pass it back to ``list_page`` to
    get the following page. ``None`` means the listing is exhausted.
    """

    entities: list[CreatureSummary] = Field(default_factory=list)
    next_cursor: str | None = None
    count: int = 0


# =============================================================================
# Filter criteria
# =============================================================================


class SortOrder(str, Enum):
    """Ordering of the merged result."""
    NUMBER = "number"
    NAME = "name"


class FilterCriteria(BaseModel):
    """Per-session filter state for the catalog browser.

    Numeric bounds are in display units (meters, kilograms) and ``None``
    means unbounded. Empty ``groups`` or ``tags`` mean no constraint.
    ``curated_ids`` is an externally supplied ID list (favorites, team);
    ``None`` disables it, while an empty set matches nothing.
    """
    model_config = ConfigDict(frozen=True)

    groups: frozenset[int] = Field(default_factory=frozenset, description="Selected generations")
    tags: frozenset[str] = Field(default_factory=frozenset, description="Selected category tags")
    curated_ids: frozenset[int] | None = Field(default=None, description="Curated ID list to restrict to")
    min_height: float | None = Field(default=None, ge=0)
    max_height: float | None = Field(default=None, ge=0)
    min_weight: float | None = Field(default=None, ge=0)
    max_weight: float | None = Field(default=None, ge=0)
    legendary: bool = False
    mythical: bool = False
    has_successor: bool = False
    search: str = ""
    sort: SortOrder = SortOrder.NUMBER

    @field_validator("tags")
    @classmethod
    def lowercase_tags(cls, v: frozenset[str]) -> frozenset[str]:
        return frozenset(tag.strip().lower() for tag in v if tag.strip())

    @field_validator("search")
    @classmethod
    def strip_search(cls, v: str) -> str:
        return v.strip()

    @property
    def tier_active(self) -> bool:
        return self.legendary or self.mythical

    @property
    def has_dimension_filter(self) -> bool:
        """True when the pool must be built from dimension sets instead of
        the paginated listing."""
        return bool(self.groups) or bool(self.tags) or self.tier_active or self.curated_ids is not None

    @property
    def requires_detail(self) -> bool:
        """True when a secondary filter needs fully hydrated records."""
        return any(
            bound is not None
            for bound in (self.min_height, self.max_height, self.min_weight, self.max_weight)
        )

    def storage_bounds(self) -> dict[str, float | None]:
        """Numeric bounds converted from display units to storage units."""
        return {
            name: _to_storage(getattr(self, name))
            for name in ("min_height", "max_height", "min_weight", "max_weight")
        }

    def updated(self, **changes) -> "FilterCriteria":
        """Return a validated copy with the given fields replaced."""
        return FilterCriteria.model_validate({**self.model_dump(), **changes})


def _to_storage(value: float | None) -> float | None:
    if value is None:
        return None
    # Round away float noise such as 0.3 * 10 == 3.0000000000000004
    return round(value * DISPLAY_TO_STORAGE_FACTOR, 6)


__all__ = [
    "Ability",
    "BaseStat",
    "Creature",
    "CreatureSummary",
    "CreatureDetail",
    "CreaturePlaceholder",
    "merge_records",
    "SpeciesInfo",
    "EvolutionNode",
    "TypeDetails",
    "CatalogPage",
    "SortOrder",
    "FilterCriteria",
]
