"""
Configuration model for the catalog client.
"""

from __future__ import annotations

import logging
import math
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger("pokedex-catalog")

ENV_PREFIX = "POKEDEX_"


class CatalogConfig(BaseModel):
    """Runtime settings for the remote client, the request cache and the
    filter-merge orchestration.

    Freshness windows are expressed in seconds. ``math.inf`` means the entry
    never goes stale (immutable reference data).
    """

    # Remote API
    api_base: str = Field(
        default="https://pokeapi.co/api/v2",
        description="Base URL of the remote catalog API"
    )
    timeout: float = Field(
        default=60.0,
        gt=0.0,
        description="Client-side timeout in seconds for every remote call"
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per remote call before a transient failure is raised"
    )
    retry_backoff: float = Field(
        default=1.0,
        ge=0.0,
        description="Initial retry delay in seconds, doubled after every failed attempt"
    )

    # Catalog shape
    page_size: int = Field(
        default=20,
        ge=1,
        le=1000,
        description="Number of creatures per listing page"
    )
    max_creature_id: int = Field(
        default=1025,
        ge=1,
        description="Highest valid creature ID in the catalog"
    )

    # Orchestration
    hydration_batch_size: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Maximum number of IDs handed to the hydrator at once"
    )
    hydration_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Background hydration attempts per ID before a transient failure is given up on"
    )
    suggestion_limit: int = Field(
        default=5,
        ge=1,
        description="Maximum number of roster suggestions returned for a query"
    )

    # Freshness windows
    page_freshness: float = Field(
        default=300.0,
        ge=0.0,
        description="Seconds a listing page stays fresh"
    )
    detail_freshness: float = Field(
        default=600.0,
        ge=0.0,
        description="Seconds a creature detail record stays fresh"
    )
    reference_freshness: float = Field(
        default=math.inf,
        ge=0.0,
        description="Seconds grouping lists, rosters, species and evolution data stay fresh"
    )

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "CatalogConfig":
        """Build a configuration from ``POKEDEX_*`` environment variables.

        A ``.env`` file is loaded first when present. Unset variables keep
        their defaults.

        Args:
            env_file: Optional explicit path to a dotenv file

        Returns:
            Validated CatalogConfig
        """
        if not load_dotenv(env_file):
            logger.debug("No .env file loaded, using process environment only")

        overrides: dict[str, str] = {}
        for name in cls.model_fields:
            value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if value is not None and value != "":
                overrides[name] = value

        return cls.model_validate(overrides)


__all__ = [
    "CatalogConfig",
    "ENV_PREFIX",
]
