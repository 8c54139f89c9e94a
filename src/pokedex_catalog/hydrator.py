"""
Detail hydration: upgrade summary records to full records for a set of IDs.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from .cache import RequestCache, detail_key
from .client import CatalogSource
from .config import CatalogConfig
from .exceptions import CreatureNotFoundError, MalformedResponseError
from .models import Creature, CreaturePlaceholder
from .registry import CreatureRegistry

logger = logging.getLogger("pokedex-catalog")


class DetailHydrator:
    """Fetches full details for exactly the requested IDs.

    Each ID goes through the request cache on its own (the remote API has no
    batch endpoint), so concurrent hydrations of overlapping ID sets share
    the in-flight fetches instead of duplicating them. There is no worker
    pool: call sites keep each requested set small.

    A failing ID never fails the others, and the result always has one entry
    per requested ID. A permanent miss (not found, malformed record) is a
    non-loading ``CreaturePlaceholder``; a transient failure (timeout,
    connection error, server error) is a loading placeholder, meaning the ID
    may still resolve on a later attempt. Loading placeholders are never
    written to the registry.
    """

    def __init__(
        self,
        client: CatalogSource,
        cache: RequestCache,
        config: CatalogConfig | None = None,
        registry: CreatureRegistry | None = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.config = config or CatalogConfig()
        self.registry = registry

    async def hydrate(self, ids: Iterable[int]) -> dict[int, Creature]:
        """Hydrate a set of creature IDs.

        Args:
            ids: Creature IDs; duplicates are ignored.

        Returns:
            Mapping of every requested ID to its full record, or to a
            placeholder when the ID could not be fetched (``loading=True``
            when the failure was transient).
        """
        unique = sorted({int(i) for i in ids})
        if not unique:
            return {}

        records = await asyncio.gather(*(self._hydrate_one(i) for i in unique))
        patch = dict(zip(unique, records))

        failed = sum(1 for r in records if isinstance(r, CreaturePlaceholder))
        logger.debug(f"Hydrated {len(unique) - failed}/{len(unique)} creatures")

        if self.registry is not None:
            self.registry.upsert_many(
                r for r in patch.values()
                if not (isinstance(r, CreaturePlaceholder) and r.loading)
            )
        return patch

    async def _hydrate_one(self, creature_id: int) -> Creature:
        try:
            return await self.cache.get_or_fetch(
                detail_key(creature_id),
                lambda: self.client.get_entity(creature_id),
                ttl=self.config.detail_freshness,
            )
        except CreatureNotFoundError:
            logger.warning(f"Creature {creature_id} not found, using placeholder")
        except MalformedResponseError as e:
            logger.warning(f"Malformed detail for creature {creature_id}, using placeholder: {e}")
        except Exception as e:
            logger.warning(f"Failed to hydrate creature {creature_id}, will retry: {e}")
            return CreaturePlaceholder.for_id(creature_id, loading=True)

        return CreaturePlaceholder.for_id(creature_id)


__all__ = ["DetailHydrator"]
