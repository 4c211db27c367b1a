"""Public domain model surface."""

from __future__ import annotations

from triplink.domain.model.entity import Entity, TripEntity
from triplink.domain.model.enums import EntityKind, PermissionLevel, Relationship, TripPrivacy
from triplink.domain.model.journal import (
    Activity,
    JournalEntry,
    Location,
    Lodging,
    Photo,
    PhotoAlbum,
    Transportation,
)
from triplink.domain.model.link import (
    EntityDetails,
    EntityLink,
    EntityRef,
    LinkEndpoints,
    utcnow,
)
from triplink.domain.model.trip import Trip, TripCollaborator

__all__ = [  # noqa: RUF022
    # base
    "Entity",
    "TripEntity",
    # links
    "EntityRef",
    "EntityDetails",
    "EntityLink",
    "LinkEndpoints",
    "utcnow",
    # trips
    "Trip",
    "TripCollaborator",
    # linkable entities
    "Photo",
    "Location",
    "Activity",
    "Lodging",
    "Transportation",
    "JournalEntry",
    "PhotoAlbum",
    # enums
    "EntityKind",
    "PermissionLevel",
    "Relationship",
    "TripPrivacy",
]
