"""
Pokedex Catalog MCP Server
Browse, filter and inspect the creature catalog through a FastMCP server.
"""

import logging
from typing import Annotated, Literal

from dotenv import load_dotenv
from fastmcp import FastMCP
from pydantic import Field

from .client import CatalogClient
from .config import CatalogConfig
from .constants import GENERATION_NAMES, generation_of
from .curated import (
    FAVORITES_KEY,
    TEAM_KEY,
    MemoryStore,
    read_id_list,
    remove_from_team,
    set_team_slot,
    toggle_favorite,
)
from .evolution import flatten_chain, has_branches, linear_chain
from .exceptions import CatalogError, CreatureNotFoundError
from .matchups import defensive_profile, describe_matchup, attack_multiplier
from .matchups import team_coverage as analyse_team
from .models import CreatureDetail, CreaturePlaceholder, FilterCriteria, SortOrder
from .service import CatalogService, CatalogView

logger = logging.getLogger("pokedex-catalog")

logging.basicConfig(
    level=logging.DEBUG,
    )

if not load_dotenv():
    logger.warning("No .env file found, using default catalog settings")

config = CatalogConfig.from_env()
logger.debug(f"Catalog API: {config.api_base}")

client = CatalogClient(config)
service = CatalogService(client, config)
curated_store = MemoryStore()

mcp = FastMCP(
    name="pokedex-catalog"
)

logger.debug("Catalog service initialized, registering tools")


def _format_failures(view: CatalogView) -> list[str]:
    lines = []
    if view.failed_dimensions:
        lines.append(f"Warning: could not load {', '.join(view.failed_dimensions)}; results may be incomplete.")
    if view.failed_ids:
        lines.append(f"Warning: details unavailable for {', '.join(f'#{i}' for i in view.failed_ids)}.")
    if view.error is not None:
        lines.append(f"Warning: {view.error.message}")
    return lines


def _format_view(view: CatalogView, limit: int) -> str:
    if not view.items:
        if view.still_resolving:
            return "Still loading matching creatures, try again shortly."
        if view.degraded:
            return "\n".join(["Error: some filter data could not be loaded. Try again."] + _format_failures(view))
        return "No creatures match these filters."

    lines = []
    for record in view.items[:limit]:
        if isinstance(record, CreaturePlaceholder):
            label = "loading..." if record.loading else "unavailable"
            lines.append(f"#{record.id:04d} ({label})")
        elif isinstance(record, CreatureDetail):
            lines.append(f"#{record.id:04d} {record.name} [{'/'.join(record.types)}]")
        else:
            lines.append(f"#{record.id:04d} {record.name}")

    header = f"**Creatures ({len(view.items)} shown"
    header += ", more loading)**" if view.still_resolving else ")**"
    if len(view.items) > limit:
        lines.append(f"... and {len(view.items) - limit} more")
    lines.extend(_format_failures(view))
    return header + "\n" + "\n".join(lines)


async def _types_of(name_or_id: str) -> list[str]:
    creature_id = await _resolve_id(name_or_id)
    profile = await service.creature_details(creature_id)
    return list(profile.detail.types)


async def _resolve_id(name_or_id: str) -> int:
    value = name_or_id.strip().lower()
    if value.isdigit():
        return int(value)
    for suggestion in await service.suggest(value, limit=config.max_creature_id):
        if suggestion.name == value:
            return suggestion.id
    raise CreatureNotFoundError(name_or_id)


@mcp.tool
async def browse_creatures(
    generations: Annotated[list[int] | None, Field(description="Generation numbers (1-9) to include")] = None,
    types: Annotated[list[str] | None, Field(description="Creature types to include, e.g. ['fire', 'water']")] = None,
    search: Annotated[str, Field(description="Name substring or ID prefix")] = "",
    legendary: Annotated[bool, Field(description="Only legendary creatures")] = False,
    mythical: Annotated[bool, Field(description="Only mythical creatures")] = False,
    can_evolve: Annotated[bool, Field(description="Only creatures that can still evolve")] = False,
    favorites_only: Annotated[bool, Field(description="Only creatures marked as favorite")] = False,
    min_height: Annotated[float | None, Field(description="Minimum height in meters", ge=0)] = None,
    max_height: Annotated[float | None, Field(description="Maximum height in meters", ge=0)] = None,
    min_weight: Annotated[float | None, Field(description="Minimum weight in kilograms", ge=0)] = None,
    max_weight: Annotated[float | None, Field(description="Maximum weight in kilograms", ge=0)] = None,
    sort: Annotated[Literal["number", "name"], Field(description="Sort by national number or by name")] = "number",
    limit: Annotated[int, Field(description="Maximum creatures to list", ge=1, le=500)] = 50,
) -> str:
    """Browse the creature catalog with any combination of filters.

    Without generation, type, tier or favorite filters the loaded pages of
    the base listing are browsed; use `load_more_creatures` to extend them.
    """
    criteria = FilterCriteria(
        groups=frozenset(generations or ()),
        tags=frozenset(types or ()),
        curated_ids=frozenset(read_id_list(curated_store, FAVORITES_KEY)) if favorites_only else None,
        min_height=min_height,
        max_height=max_height,
        min_weight=min_weight,
        max_weight=max_weight,
        legendary=legendary,
        mythical=mythical,
        has_successor=can_evolve,
        search=search,
        sort=SortOrder(sort),
    )

    if not criteria.has_dimension_filter and service.pagination.pages_loaded == 0:
        await service.fetch_next_page()

    subscription = service.subscribe(criteria)
    try:
        view = await subscription.settle()
    finally:
        subscription.close()
    return _format_view(view, limit)


@mcp.tool
async def load_more_creatures() -> str:
    """Load the next page of the base catalog listing."""
    if not service.pagination.has_more:
        return "The whole catalog is already loaded."
    if await service.fetch_next_page():
        return f"Loaded {len(service.pagination.items)} creatures so far."
    error = service.pagination.last_error
    return f"Error: {error.message if error else 'page could not be loaded'}. Try again."


@mcp.tool
async def creature_details(
    creature: Annotated[str, Field(description="Creature name or national number")],
) -> str:
    """Get the full record of a creature, including species information."""
    try:
        creature_id = await _resolve_id(creature)
        profile = await service.creature_details(creature_id)
    except CatalogError as e:
        return f"Error: {e.message}"

    service.prefetch_neighbors(creature_id)

    detail = profile.detail
    lines = [
        f"**#{detail.id:04d} {detail.name.title()}**",
        f"Types: {', '.join(detail.types) or 'unknown'}",
        f"Height: {detail.height / 10:g} m, Weight: {detail.weight / 10:g} kg",
        f"Abilities: {', '.join(a.name for a in detail.abilities)}",
        "Stats: " + ", ".join(f"{s.name} {s.value}" for s in detail.stats)
        + f" (total {detail.total_stats})",
    ]
    generation = generation_of(detail.id)
    if generation is not None:
        lines.append(f"Generation: {GENERATION_NAMES[generation]}")
    if detail.moves:
        lines.append(f"Moves: {', '.join(detail.moves)}")
    if profile.species is not None:
        species = profile.species
        if species.is_legendary or species.is_mythical:
            lines.append("Legendary" if species.is_legendary else "Mythical")
        if species.description:
            lines.append(species.description)
    return "\n".join(lines)


@mcp.tool
async def creature_evolution(
    creature: Annotated[str, Field(description="Creature name or national number")],
) -> str:
    """Show the evolution line of a creature, including branches."""
    try:
        root = await service.evolution_line(await _resolve_id(creature))
    except CatalogError as e:
        return f"Error: {e.message}"
    if root is None:
        return "This creature has no evolution chain."

    if not has_branches(root):
        return " -> ".join(node.name for node in linear_chain(root))
    return "Branching evolution: " + ", ".join(node.name for node in flatten_chain(root))


@mcp.tool
async def type_matchup(
    attacker: Annotated[str, Field(description="Attacking creature name or number")],
    defender: Annotated[str, Field(description="Defending creature name or number")],
) -> str:
    """Compare two creatures by type effectiveness."""
    try:
        attack_types = await _types_of(attacker)
        defense_types = await _types_of(defender)
    except CatalogError as e:
        return f"Error: {e.message}"

    mult = attack_multiplier(attack_types, defense_types)
    verdict = describe_matchup(attack_types, defense_types)
    profile = defensive_profile(defense_types)
    weak = ", ".join(f"{t} x{m:g}" for t, m in profile.weaknesses) or "none"
    return f"{attacker} vs {defender}: {verdict} (x{mult:g})\nDefender weaknesses: {weak}"


@mcp.tool
async def type_relations(
    type_name: Annotated[str, Field(description="Creature type, e.g. 'fire'")],
) -> str:
    """Show which types a creature type is strong and weak against."""
    try:
        details = await service.type_details(type_name)
    except CatalogError as e:
        return f"Error: {e.message}"

    def _join(names: list[str]) -> str:
        return ", ".join(names) or "none"

    return "\n".join([
        f"**{details.name.title()}**",
        f"Super effective against: {_join(details.double_damage_to)}",
        f"Weak to: {_join(details.double_damage_from)}",
        f"Resists: {_join(details.half_damage_from)}",
        f"Immune to: {_join(details.no_damage_from)}",
    ])


@mcp.tool
async def toggle_favorite_creature(
    creature: Annotated[str, Field(description="Creature name or national number")],
) -> str:
    """Mark or unmark a creature as favorite."""
    try:
        creature_id = await _resolve_id(creature)
    except CatalogError as e:
        return f"Error: {e.message}"
    if toggle_favorite(curated_store, creature_id):
        return f"Added #{creature_id} to favorites."
    return f"Removed #{creature_id} from favorites."


@mcp.tool
async def set_team_member(
    slot: Annotated[int, Field(description="Team slot (1-6)", ge=1, le=6)],
    creature: Annotated[str | None, Field(description="Creature name or number; empty removes the member")] = None,
) -> str:
    """Place a creature in a team slot, or clear the slot."""
    try:
        if creature is None:
            team = read_id_list(curated_store, TEAM_KEY)
            if slot - 1 >= len(team):
                return f"Slot {slot} is already empty."
            team = remove_from_team(curated_store, team[slot - 1])
        else:
            team = set_team_slot(curated_store, slot - 1, await _resolve_id(creature))
    except (CatalogError, ValueError) as e:
        return f"Error: {e}"
    return f"Team: {', '.join(f'#{i}' for i in team) or 'empty'}"


@mcp.tool
async def team_coverage() -> str:
    """Analyse shared weaknesses and type coverage of the current team."""
    team_ids = read_id_list(curated_store, TEAM_KEY)
    if not team_ids:
        return "The team is empty. Use `set_team_member` first."

    members = await service.hydrate_ids(team_ids)
    coverage = analyse_team([getattr(m, "types", ()) for m in members])
    names = ", ".join(m.name for m in members)
    shared = ", ".join(coverage.shared_weaknesses) or "none"
    uncovered = ", ".join(coverage.uncovered) or "none"
    return f"**Team:** {names}\nShared weaknesses: {shared}\nNo super effective coverage against: {uncovered}"


@mcp.tool
async def suggest_creatures(
    query: Annotated[str, Field(description="Partial name or national number")],
) -> str:
    """Suggest creature names for a partial query."""
    try:
        suggestions = await service.suggest(query)
    except CatalogError as e:
        return f"Error: {e.message}"
    if not suggestions:
        return f"No creatures match '{query}'."
    return "\n".join(f"#{s.id:04d} {s.name}" for s in suggestions)


logger.debug("All tools registered, pokedex catalog server running")

def main() -> None:
    """Main entry point for the Pokedex Catalog MCP Server."""
    mcp.run()

if __name__ == "__main__":
    main()
