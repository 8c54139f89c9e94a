"""
Pokedex Catalog - paginated creature catalog client with caching, detail
hydration and multi-criteria filtering.
"""

from .cache import RequestCache
from .client import CatalogClient, CatalogSource
from .config import CatalogConfig
from .exceptions import (
    CatalogError,
    CatalogTransportError,
    CreatureNotFoundError,
    MalformedResponseError,
    PaginationError,
)
from .filters import DimensionPool, FilterMergeEngine, MergeResult
from .hydrator import DetailHydrator
from .models import *
from .pagination import PaginationController, PaginationState
from .prefetch import PrefetchAdvisor
from .registry import CreatureRegistry
from .service import CatalogService, CatalogView, CreatureProfile, Subscription

try:
    from importlib.metadata import version as _get_version
    __version__ = _get_version("pokedex-catalog")
except Exception:
    __version__ = "0.1.0"  # Fallback if metadata unavailable
__all__ = [
    "CatalogClient",
    "CatalogConfig",
    "CatalogService",
    "CatalogSource",
    "CatalogView",
    "CreatureProfile",
    "CreatureRegistry",
    "DetailHydrator",
    "DimensionPool",
    "FilterMergeEngine",
    "MergeResult",
    "PaginationController",
    "PaginationState",
    "PrefetchAdvisor",
    "RequestCache",
    "Subscription",
    "CatalogError",
    "CatalogTransportError",
    "CreatureNotFoundError",
    "MalformedResponseError",
    "PaginationError",
]
