"""
Name and ID index of the whole catalog, used for search suggestions.
"""

from __future__ import annotations

from typing import Iterable

from .models import CreatureSummary


class RosterIndex:
    """Immutable name+ID index over the global roster."""

    def __init__(self, entries: Iterable[CreatureSummary]) -> None:
        self._entries = sorted(entries, key=lambda s: s.id)

    def __len__(self) -> int:
        return len(self._entries)

    def suggest(self, query: str, limit: int = 5) -> list[CreatureSummary]:
        """First ``limit`` entries whose name contains the query or whose ID
        starts with it. Case-insensitive; an empty query suggests nothing."""
        needle = query.strip().lower()
        if not needle:
            return []

        matches: list[CreatureSummary] = []
        for entry in self._entries:
            if needle in entry.name or str(entry.id).startswith(needle):
                matches.append(entry)
                if len(matches) >= limit:
                    break
        return matches

    def lookup(self, name: str) -> CreatureSummary | None:
        """Exact name lookup."""
        wanted = name.strip().lower()
        return next((e for e in self._entries if e.name == wanted), None)


__all__ = ["RosterIndex"]
