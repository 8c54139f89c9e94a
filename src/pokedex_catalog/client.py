"""
Remote catalog client for the PokeAPI (https://pokeapi.co/api/v2).

A thin typed wrapper: every call issues HTTP requests and normalizes the raw
response into the internal models. It has no caching of its own; caching and
request collapsing live in ``RequestCache``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol
from urllib.parse import urljoin

import httpx
from pydantic import ValidationError

from .config import CatalogConfig
from .constants import MAX_MOVES, sprite_url
from .exceptions import (
    CatalogTransportError,
    CreatureNotFoundError,
    MalformedResponseError,
)
from .models import (
    Ability,
    BaseStat,
    CatalogPage,
    CreatureDetail,
    CreatureSummary,
    EvolutionNode,
    SpeciesInfo,
    TypeDetails,
)

logger = logging.getLogger("pokedex-catalog")


class CatalogSource(Protocol):
    """The remote operations consumed by the catalog core.

    ``CatalogClient`` is the production implementation; tests substitute
    in-memory fakes.
    """

    async def list_page(self, cursor: str | None = None) -> CatalogPage: ...

    async def get_entity(self, creature_id: int) -> CreatureDetail: ...

    async def get_species(self, creature_id: int) -> SpeciesInfo: ...

    async def get_evolution_graph(self, chain_url: str) -> EvolutionNode: ...

    async def list_by_category_group(self, group_id: int) -> list[CreatureSummary]: ...

    async def list_by_tag(self, tag: str) -> list[CreatureSummary]: ...

    async def list_roster(self) -> list[CreatureSummary]: ...

    async def get_type_details(self, type_name: str) -> TypeDetails: ...


def id_from_url(url: str) -> int:
    """Extract the trailing numeric ID from a resource URL.

    ``https://pokeapi.co/api/v2/pokemon/25/`` -> ``25``

    Raises:
        MalformedResponseError: If the URL does not end in an integer
    """
    try:
        return int(url.rstrip("/").rsplit("/", 1)[-1])
    except (AttributeError, ValueError):
        raise MalformedResponseError(f"Resource URL has no numeric ID: {url!r}") from None


class CatalogClient:
    """
    HTTP client for the remote creature catalog.

    Features:
    - One fixed client-side timeout per request
    - Retries with exponential backoff on timeouts, connection errors,
      rate limiting (429) and server errors (5xx)
    - 404 mapped to CreatureNotFoundError, unexpected shapes mapped to
      MalformedResponseError

    Usage:
        async with CatalogClient(CatalogConfig()) as client:
            page = await client.list_page()
            pikachu = await client.get_entity(25)
    """

    def __init__(
        self,
        config: CatalogConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the client.

        Args:
            config: Client configuration; defaults are used when omitted
            http_client: Pre-built httpx client (e.g. with a mock transport).
                         When omitted, one is created lazily and owned here.
        """
        self.config = config or CatalogConfig()
        self._client = http_client
        self._owns_client = http_client is None

    async def __aenter__(self) -> "CatalogClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # =========================================================================
    # HTTP Helpers
    # =========================================================================

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    def _url(self, path_or_url: str) -> str:
        if path_or_url.startswith(("http://", "https://")):
            return path_or_url
        return urljoin(self.config.api_base.rstrip("/") + "/", path_or_url.lstrip("/"))

    async def _get_json(self, path_or_url: str, missing: int | str | None = None) -> dict[str, Any]:
        """
        Fetch a JSON object with retry logic.

        Args:
            path_or_url: API path relative to api_base, or an absolute URL
            missing: Identifier reported in CreatureNotFoundError on a 404

        Returns:
            Parsed JSON object

        Raises:
            CreatureNotFoundError: On HTTP 404
            MalformedResponseError: If the body is not a JSON object
            CatalogTransportError: If the fetch fails after retries
        """
        url = self._url(path_or_url)
        attempts = self.config.max_retries
        last_error: Exception | None = None

        for attempt in range(attempts):
            try:
                response = await self._http().get(url, timeout=self.config.timeout)

                if response.status_code == 404:
                    raise CreatureNotFoundError(missing if missing is not None else url)

                if response.status_code == 429:
                    logger.warning(f"Rate limited on {url}, attempt {attempt + 1}")
                    last_error = CatalogTransportError("HTTP 429 Too Many Requests")
                    await self._backoff(attempt)
                    continue

                response.raise_for_status()

            except httpx.TimeoutException as e:
                logger.warning(f"Timeout fetching {url}, attempt {attempt + 1}")
                last_error = e
                await self._backoff(attempt)
                continue

            except httpx.HTTPStatusError as e:
                if e.response.status_code >= 500:
                    logger.warning(f"Server error {e.response.status_code} on {url}, attempt {attempt + 1}")
                    last_error = e
                    await self._backoff(attempt)
                    continue
                raise CatalogTransportError(
                    f"HTTP {e.response.status_code} fetching {url}",
                    details={"status_code": e.response.status_code},
                ) from e

            except httpx.RequestError as e:
                logger.warning(f"Connection error fetching {url}: {e}, attempt {attempt + 1}")
                last_error = e
                await self._backoff(attempt)
                continue

            try:
                data = response.json()
            except ValueError as e:
                raise MalformedResponseError(f"Invalid JSON from {url}: {e}") from e

            if not isinstance(data, dict):
                raise MalformedResponseError(
                    f"Expected JSON object from {url}, got {type(data).__name__}"
                )
            return data

        logger.error(f"Failed to fetch {url} after {attempts} attempts: {last_error}")
        raise CatalogTransportError(
            f"Failed to fetch {url} after {attempts} attempts: {last_error}",
            details={"url": url},
        )

    async def _backoff(self, attempt: int) -> None:
        # No sleep after the final attempt
        if attempt + 1 >= self.config.max_retries:
            return
        delay = self.config.retry_backoff * (2 ** attempt)
        if delay > 0:
            await asyncio.sleep(delay)

    # =========================================================================
    # Listing
    # =========================================================================

    async def list_page(self, cursor: str | None = None) -> CatalogPage:
        """
        Fetch one page of the base listing.

        Args:
            cursor: Opaque cursor from the previous page; None for the first page

        Returns:
            CatalogPage with summaries in arrival (ascending ID) order
        """
        if cursor is None:
            cursor = f"/pokemon?offset=0&limit={self.config.page_size}"
        data = await self._get_json(cursor)

        try:
            entities = [_summary_from_resource(item) for item in data["results"]]
            return CatalogPage(
                entities=entities,
                next_cursor=data.get("next"),
                count=int(data.get("count") or 0),
            )
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise MalformedResponseError(f"Unexpected listing page shape: {e}") from e

    async def list_roster(self) -> list[CreatureSummary]:
        """Fetch the name+ID index of the whole catalog in one call."""
        data = await self._get_json(f"/pokemon?limit={self.config.max_creature_id}")
        try:
            roster = [_summary_from_resource(item) for item in data["results"]]
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise MalformedResponseError(f"Unexpected roster shape: {e}") from e
        return [s for s in roster if s.id <= self.config.max_creature_id]

    async def list_by_category_group(self, group_id: int) -> list[CreatureSummary]:
        """
        Fetch the full membership of one generation.

        Args:
            group_id: Generation number (1-based)

        Returns:
            Member summaries sorted by ID
        """
        data = await self._get_json(f"/generation/{group_id}/", missing=group_id)
        try:
            members = [_summary_from_resource(item) for item in data["pokemon_species"]]
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise MalformedResponseError(f"Unexpected generation shape for {group_id}: {e}") from e
        return sorted(members, key=lambda s: s.id)

    async def list_by_tag(self, tag: str) -> list[CreatureSummary]:
        """
        Fetch every creature carrying a category tag (elemental type).

        Alternate forms (IDs beyond max_creature_id) are excluded.

        Args:
            tag: Type name, e.g. "fire"

        Returns:
            Member summaries sorted by ID
        """
        data = await self._get_json(f"/type/{tag.lower()}", missing=tag)
        try:
            members = [_summary_from_resource(entry["pokemon"]) for entry in data["pokemon"]]
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise MalformedResponseError(f"Unexpected type shape for {tag}: {e}") from e
        members = [s for s in members if s.id <= self.config.max_creature_id]
        return sorted(members, key=lambda s: s.id)

    # =========================================================================
    # Details
    # =========================================================================

    async def get_entity(self, creature_id: int) -> CreatureDetail:
        """
        Fetch the full record for one creature.

        Raises:
            CreatureNotFoundError: If the ID does not exist
            MalformedResponseError: If the record cannot be normalized
        """
        data = await self._get_json(f"/pokemon/{creature_id}", missing=creature_id)
        try:
            return _detail_from_payload(data)
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise MalformedResponseError(
                f"Unexpected detail shape for creature {creature_id}: {e}",
                details={"creature_id": creature_id},
            ) from e

    async def get_species(self, creature_id: int) -> SpeciesInfo:
        """Fetch classification and narrative metadata for one creature."""
        data = await self._get_json(f"/pokemon-species/{creature_id}", missing=creature_id)
        try:
            return _species_from_payload(data)
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise MalformedResponseError(f"Unexpected species shape for {creature_id}: {e}") from e

    async def get_evolution_graph(self, chain_url: str) -> EvolutionNode:
        """Fetch and parse an evolution graph referenced by species metadata."""
        data = await self._get_json(chain_url, missing=chain_url)
        try:
            return _parse_chain_link(data["chain"])
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise MalformedResponseError(f"Unexpected evolution chain shape at {chain_url}: {e}") from e

    async def get_type_details(self, type_name: str) -> TypeDetails:
        """Fetch damage relations for a category tag."""
        data = await self._get_json(f"/type/{type_name.lower()}", missing=type_name)
        try:
            relations = data["damage_relations"]
            return TypeDetails(
                name=data["name"],
                **{
                    field: [t["name"] for t in relations.get(field, [])]
                    for field in (
                        "double_damage_from",
                        "double_damage_to",
                        "half_damage_from",
                        "half_damage_to",
                        "no_damage_from",
                        "no_damage_to",
                    )
                },
            )
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise MalformedResponseError(f"Unexpected type details for {type_name}: {e}") from e


# =============================================================================
# Normalization
# =============================================================================


def _summary_from_resource(resource: dict[str, Any]) -> CreatureSummary:
    return CreatureSummary(id=id_from_url(resource["url"]), name=resource["name"])


def _detail_from_payload(data: dict[str, Any]) -> CreatureDetail:
    creature_id = int(data["id"])
    sprites = data.get("sprites") or {}
    return CreatureDetail(
        id=creature_id,
        name=data["name"],
        types=tuple(t["type"]["name"] for t in sorted(data["types"], key=lambda t: t.get("slot", 0))),
        height=data.get("height") or 0,
        weight=data.get("weight") or 0,
        abilities=tuple(
            Ability(name=a["ability"]["name"], is_hidden=bool(a.get("is_hidden")))
            for a in data.get("abilities", [])
        ),
        stats=tuple(
            BaseStat(name=s["stat"]["name"], value=s["base_stat"])
            for s in data.get("stats", [])
        ),
        moves=tuple(m["move"]["name"] for m in data.get("moves", [])[:MAX_MOVES]),
        sprites={
            "default": sprites.get("front_default"),
            "official": sprite_url(creature_id),
            "shiny": sprites.get("front_shiny"),
        },
    )


def _species_from_payload(data: dict[str, Any]) -> SpeciesInfo:
    english = next(
        (e for e in data.get("flavor_text_entries", []) if e["language"]["name"] == "en"),
        None,
    )
    habitat = data.get("habitat") or {}
    chain = data.get("evolution_chain") or {}
    generation = data.get("generation") or {}
    return SpeciesInfo(
        id=int(data["id"]),
        name=data["name"],
        description=english["flavor_text"].replace("\f", " ") if english else "",
        generation=generation.get("name"),
        capture_rate=data.get("capture_rate"),
        gender_rate=data.get("gender_rate"),
        habitat=habitat.get("name"),
        is_legendary=bool(data.get("is_legendary")),
        is_mythical=bool(data.get("is_mythical")),
        evolution_chain_url=chain.get("url"),
    )


def _parse_chain_link(link: dict[str, Any]) -> EvolutionNode:
    species = link["species"]
    return EvolutionNode(
        id=id_from_url(species["url"]),
        name=species["name"],
        evolves_to=[_parse_chain_link(child) for child in link.get("evolves_to", [])],
    )


__all__ = [
    "CatalogClient",
    "CatalogSource",
    "id_from_url",
]
