"""Domain error hierarchy surfaced to callers of the link graph."""

from __future__ import annotations


class TriplinkError(Exception):
    """Base class for domain errors."""


class NotFoundError(TriplinkError):
    """A referenced trip, entity, or link does not exist (or is not visible)."""


class TripNotFoundError(NotFoundError):
    """Trip is missing or the actor has no access to it."""


class EntityNotFoundError(NotFoundError):
    """A link endpoint does not resolve to an entity in the trip."""


class LinkNotFoundError(NotFoundError):
    def __init__(self, message: str = "Link not found") -> None:
        super().__init__(message)


class ForbiddenError(TriplinkError):
    """Actor can see the trip but lacks the required permission."""


class InvalidOperationError(TriplinkError):
    """The requested mutation would break a link invariant."""


class ConflictError(TriplinkError):
    """A link with the same direction and endpoints already exists."""
