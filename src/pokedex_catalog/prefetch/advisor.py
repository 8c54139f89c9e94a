"""
Neighbor prefetching for detail navigation.

When a creature is focused (e.g. its detail page is open), the creatures
immediately before and after it in the current ordered result are hydrated in
the background so that swiping to them is served from the cache.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from ..hydrator import DetailHydrator

logger = logging.getLogger("pokedex-catalog")


class PrefetchAdvisor:
    """Best-effort cache warming for the neighbors of a focused creature.

    Background tasks are fire-and-forget: their results and errors are
    ignored. References are kept until completion so the tasks are not
    garbage collected mid-flight.

    Usage:
        advisor = PrefetchAdvisor(hydrator, max_id=1025)
        advisor.prefetch_neighbors(25, ordered_ids=[1, 4, 7, 25, 39])
    """

    def __init__(self, hydrator: DetailHydrator, max_id: int) -> None:
        self.hydrator = hydrator
        self.max_id = max_id
        self._active_tasks: set[asyncio.Task] = set()

    def neighbors(self, focused_id: int, ordered_ids: Sequence[int] = ()) -> list[int]:
        """Return the predecessor and successor of ``focused_id``.

        Uses the ordered sequence when the focused ID is part of it;
        otherwise falls back to ``focused_id - 1`` and ``focused_id + 1``
        clamped to the valid ID range.
        """
        if ordered_ids and focused_id in ordered_ids:
            index = list(ordered_ids).index(focused_id)
            candidates = []
            if index > 0:
                candidates.append(ordered_ids[index - 1])
            if index < len(ordered_ids) - 1:
                candidates.append(ordered_ids[index + 1])
        else:
            candidates = [focused_id - 1, focused_id + 1]

        return [c for c in candidates if 1 <= c <= self.max_id and c != focused_id]

    def prefetch_neighbors(
        self,
        focused_id: int,
        ordered_ids: Sequence[int] = (),
    ) -> asyncio.Task | None:
        """Schedule background hydration of the focused creature's neighbors.

        Returns:
            The scheduled task, or None when there is nothing to prefetch or
            no running event loop.
        """
        targets = self.neighbors(focused_id, ordered_ids)
        if not targets:
            return None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running event loop, skipping prefetch around {focused_id}")
            return None

        task = loop.create_task(self._warm(targets))
        self._active_tasks.add(task)
        task.add_done_callback(self._active_tasks.discard)
        logger.debug(f"Prefetching neighbors {targets} of creature {focused_id}")
        return task

    async def _warm(self, targets: list[int]) -> None:
        try:
            await self.hydrator.hydrate(targets)
        except Exception as e:
            logger.debug(f"Prefetch of {targets} failed, ignoring: {e}")

    @property
    def active_tasks(self) -> tuple[asyncio.Task, ...]:
        """Prefetch tasks still running."""
        return tuple(self._active_tasks)

    @property
    def active_count(self) -> int:
        """Number of prefetch tasks still running."""
        return len(self._active_tasks)


__all__ = ["PrefetchAdvisor"]
