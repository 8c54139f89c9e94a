"""
In-memory fakes shared by the test suite.
"""

import asyncio
from collections import Counter

from pokedex_catalog.exceptions import CatalogTransportError, CreatureNotFoundError
from pokedex_catalog.models import (
    CatalogPage,
    CreatureDetail,
    CreatureSummary,
    EvolutionNode,
    SpeciesInfo,
    TypeDetails,
)


# id: (name, types, height in dm, weight in hg)
CREATURES: dict[int, tuple[str, tuple[str, ...], int, int]] = {
    1: ("bulbasaur", ("grass", "poison"), 7, 69),
    2: ("ivysaur", ("grass", "poison"), 10, 130),
    3: ("venusaur", ("grass", "poison"), 20, 1000),
    4: ("charmander", ("fire",), 6, 85),
    5: ("charmeleon", ("fire",), 11, 190),
    6: ("charizard", ("fire", "flying"), 17, 905),
    7: ("squirtle", ("water",), 5, 90),
    9: ("blastoise", ("water",), 16, 855),
    25: ("pikachu", ("electric",), 4, 60),
    133: ("eevee", ("normal",), 3, 65),
    134: ("vaporeon", ("water",), 10, 290),
    135: ("jolteon", ("electric",), 8, 245),
    144: ("articuno", ("ice", "flying"), 17, 554),
    150: ("mewtwo", ("psychic",), 20, 1220),
    151: ("mew", ("psychic",), 4, 40),
    152: ("chikorita", ("grass",), 9, 64),
    155: ("cyndaquil", ("fire",), 5, 79),
    249: ("lugia", ("psychic", "flying"), 52, 2160),
    251: ("celebi", ("psychic", "grass"), 6, 50),
}


def make_summary(creature_id: int) -> CreatureSummary:
    return CreatureSummary(id=creature_id, name=CREATURES[creature_id][0])


def make_detail(creature_id: int) -> CreatureDetail:
    name, types, height, weight = CREATURES[creature_id]
    return CreatureDetail(id=creature_id, name=name, types=types, height=height, weight=weight)


class FakeCatalog:
    """In-memory catalog source that counts every remote call.

    Attributes:
        listing: IDs served by ``list_page`` in order.
        groups: Members of each category group.
        tags: Members of each tag.
        missing: IDs whose detail fetch raises CreatureNotFoundError.
        transient: Number of upcoming detail fetches per ID that raise
            CatalogTransportError before succeeding.
        failing_groups: Group IDs whose fetch raises CatalogTransportError.
        failing_tags: Tags whose fetch raises CatalogTransportError.
        page_failures: Number of upcoming ``list_page`` calls that fail.
        delay: Seconds every call sleeps before answering.
        chains: Evolution graphs by chain URL.
        chain_of: Chain URL of each creature's species.
    """

    def __init__(self, page_size: int = 3, delay: float = 0.0) -> None:
        self.page_size = page_size
        self.delay = delay
        self.listing: list[int] = sorted(CREATURES)
        self.groups: dict[int, list[int]] = {
            1: [i for i in CREATURES if i <= 151],
            2: [i for i in CREATURES if 152 <= i <= 251],
        }
        self.tags: dict[str, list[int]] = {}
        for creature_id, (_, types, _, _) in CREATURES.items():
            for tag in types:
                self.tags.setdefault(tag, []).append(creature_id)
        self.missing: set[int] = set()
        self.transient: Counter = Counter()
        self.failing_groups: set[int] = set()
        self.failing_tags: set[str] = set()
        self.page_failures = 0
        self.chains: dict[str, EvolutionNode] = {}
        self.chain_of: dict[int, str] = {}
        self.calls: Counter = Counter()

    async def _pause(self) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        else:
            await asyncio.sleep(0)

    async def list_page(self, cursor: str | None = None) -> CatalogPage:
        self.calls[("page", cursor)] += 1
        await self._pause()
        if self.page_failures > 0:
            self.page_failures -= 1
            raise CatalogTransportError("connection reset")

        offset = int(cursor) if cursor else 0
        ids = self.listing[offset:offset + self.page_size]
        end = offset + self.page_size
        return CatalogPage(
            entities=[make_summary(i) for i in ids],
            next_cursor=str(end) if end < len(self.listing) else None,
            count=len(self.listing),
        )

    async def get_entity(self, creature_id: int) -> CreatureDetail:
        self.calls[("detail", creature_id)] += 1
        await self._pause()
        if self.transient[creature_id] > 0:
            self.transient[creature_id] -= 1
            raise CatalogTransportError(f"timeout fetching creature {creature_id}")
        if creature_id in self.missing or creature_id not in CREATURES:
            raise CreatureNotFoundError(creature_id)
        return make_detail(creature_id)

    async def get_species(self, creature_id: int) -> SpeciesInfo:
        self.calls[("species", creature_id)] += 1
        await self._pause()
        if creature_id not in CREATURES:
            raise CreatureNotFoundError(creature_id)
        return SpeciesInfo(
            id=creature_id,
            name=CREATURES[creature_id][0],
            description="A test creature.",
            evolution_chain_url=self.chain_of.get(creature_id),
        )

    async def get_evolution_graph(self, chain_url: str) -> EvolutionNode:
        self.calls[("evolution", chain_url)] += 1
        await self._pause()
        return self.chains[chain_url]

    async def list_by_category_group(self, group_id: int) -> list[CreatureSummary]:
        self.calls[("group", group_id)] += 1
        await self._pause()
        if group_id in self.failing_groups:
            raise CatalogTransportError(f"group {group_id} unavailable")
        return [make_summary(i) for i in self.groups.get(group_id, [])]

    async def list_by_tag(self, tag: str) -> list[CreatureSummary]:
        self.calls[("tag", tag)] += 1
        await self._pause()
        if tag in self.failing_tags:
            raise CatalogTransportError(f"tag {tag} unavailable")
        return [make_summary(i) for i in self.tags.get(tag, [])]

    async def list_roster(self) -> list[CreatureSummary]:
        self.calls[("roster",)] += 1
        await self._pause()
        return [make_summary(i) for i in sorted(CREATURES)]

    async def get_type_details(self, type_name: str) -> TypeDetails:
        self.calls[("type", type_name)] += 1
        await self._pause()
        return TypeDetails(name=type_name)
