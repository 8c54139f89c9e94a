"""
In-memory registry of the best known record per creature ID.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from .models import Creature, merge_records

logger = logging.getLogger("pokedex-catalog")

RegistryListener = Callable[[set[int]], None]


class CreatureRegistry:
    """Replace-on-ID store of creature records.

    A record is created the first time any fetch returns data about an ID
    and is replaced whenever richer (or equally rich, newer) data arrives.
    Full records are never downgraded back to summaries or placeholders.
    Listeners receive the set of IDs whose record actually changed.
    """

    def __init__(self) -> None:
        self._records: dict[int, Creature] = {}
        self._listeners: list[RegistryListener] = []

    def get(self, creature_id: int) -> Creature | None:
        return self._records.get(creature_id)

    def __contains__(self, creature_id: object) -> bool:
        return creature_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def snapshot(self) -> dict[int, Creature]:
        """Copy of the current records, safe to hand to the merge engine."""
        return dict(self._records)

    def upsert(self, record: Creature) -> bool:
        """Merge a single record. Returns True if the stored record changed."""
        return bool(self.upsert_many([record]))

    def upsert_many(self, records: Iterable[Creature]) -> set[int]:
        """Merge records and notify listeners once.

        Returns:
            IDs whose stored record changed.
        """
        changed: set[int] = set()
        for record in records:
            current = self._records.get(record.id)
            merged = merge_records(current, record)
            if merged is not current and merged != current:
                self._records[record.id] = merged
                changed.add(record.id)

        if changed:
            logger.debug(f"Registry: updated {len(changed)} records")
            self._notify(changed)
        return changed

    def on_change(self, listener: RegistryListener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self, changed: set[int]) -> None:
        for listener in list(self._listeners):
            try:
                listener(set(changed))
            except Exception as e:
                logger.error(f"Error in registry listener: {e}", exc_info=True)


__all__ = ["CreatureRegistry"]
