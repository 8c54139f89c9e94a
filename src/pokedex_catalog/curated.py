"""
Curated ID lists (favorites, team) kept in an external key-value store.

The catalog core does not own persistence. It reads and writes ID lists
through a minimal ``KeyValueStore`` and treats the result as one more
bounded ID set.
"""

from __future__ import annotations

import json
import logging
from typing import Protocol

from .matchups import MAX_TEAM_SIZE

logger = logging.getLogger("pokedex-catalog")

FAVORITES_KEY = "@pokedex_favorites"
TEAM_KEY = "@pokedex_team"


class KeyValueStore(Protocol):
    """String key-value persistence supplied by the host application."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


def read_id_list(store: KeyValueStore, key: str) -> list[int]:
    """Read a JSON array of IDs, preserving order and dropping duplicates.

    A missing or unreadable value yields an empty list.
    """
    raw = store.get(key)
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Corrupt curated list under '{key}', ignoring")
        return []
    if not isinstance(data, list):
        logger.warning(f"Curated list under '{key}' is not an array, ignoring")
        return []

    ids: list[int] = []
    for item in data:
        try:
            creature_id = int(item)
        except (TypeError, ValueError):
            continue
        if creature_id > 0 and creature_id not in ids:
            ids.append(creature_id)
    return ids


def write_id_list(store: KeyValueStore, key: str, ids: list[int]) -> None:
    store.set(key, json.dumps([int(i) for i in ids]))


def toggle_favorite(store: KeyValueStore, creature_id: int) -> bool:
    """Add or remove a favorite. Returns True if it is now a favorite."""
    favorites = read_id_list(store, FAVORITES_KEY)
    if creature_id in favorites:
        favorites.remove(creature_id)
        now_favorite = False
    else:
        favorites.append(creature_id)
        now_favorite = True
    write_id_list(store, FAVORITES_KEY, favorites)
    return now_favorite


def set_team_slot(store: KeyValueStore, slot: int, creature_id: int) -> list[int]:
    """Replace the member at ``slot`` or append when ``slot`` is past the end.

    Raises:
        ValueError: If the slot is out of range.
    """
    if not 0 <= slot < MAX_TEAM_SIZE:
        raise ValueError(f"Team slot must be between 0 and {MAX_TEAM_SIZE - 1}")

    team = read_id_list(store, TEAM_KEY)
    if slot < len(team):
        team[slot] = creature_id
    else:
        team.append(creature_id)
    write_id_list(store, TEAM_KEY, team)
    return team


def remove_from_team(store: KeyValueStore, creature_id: int) -> list[int]:
    team = [i for i in read_id_list(store, TEAM_KEY) if i != creature_id]
    write_id_list(store, TEAM_KEY, team)
    return team


class MemoryStore:
    """Dictionary-backed KeyValueStore for hosts without persistence."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


__all__ = [
    "FAVORITES_KEY",
    "TEAM_KEY",
    "KeyValueStore",
    "MemoryStore",
    "read_id_list",
    "write_id_list",
    "toggle_favorite",
    "set_team_slot",
    "remove_from_team",
]
