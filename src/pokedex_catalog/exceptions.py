"""
Exception hierarchy for the catalog client.

Only pagination failures reach presentation consumers as errors. Every
other failure class is caught at the slice it affects (one creature, one
dimension pool) and degraded to a placeholder or an empty set.
"""

from __future__ import annotations

from typing import Any


class CatalogError(Exception):
    """Base exception for all catalog errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary of additional error context
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class CatalogTransportError(CatalogError):
    """Transient failure talking to the remote catalog.

    Raised after the client has exhausted its retries on timeouts,
    connection errors, rate limiting or server errors.
    """
    pass


class CreatureNotFoundError(CatalogError):
    """The remote catalog has no record for the requested ID.

    Attributes:
        creature_id: The ID that could not be found
    """

    def __init__(self, creature_id: int | str, details: dict[str, Any] | None = None):
        super().__init__(f"Creature not found: {creature_id}", details)
        self.creature_id = creature_id


class MalformedResponseError(CatalogError):
    """The remote catalog answered with an unexpected shape."""
    pass


class PaginationError(CatalogError):
    """A page of the base listing failed to load.

    The pagination controller keeps its accumulated data intact and can be
    retried by calling ``fetch_next`` again.
    """
    pass


__all__ = [
    "CatalogError",
    "CatalogTransportError",
    "CreatureNotFoundError",
    "MalformedResponseError",
    "PaginationError",
]
