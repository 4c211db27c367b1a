"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityKind(StrEnum):
    """Discriminator for the polymorphic endpoints of an entity link."""

    PHOTO = "PHOTO"
    LOCATION = "LOCATION"
    ACTIVITY = "ACTIVITY"
    LODGING = "LODGING"
    TRANSPORTATION = "TRANSPORTATION"
    JOURNAL_ENTRY = "JOURNAL_ENTRY"
    PHOTO_ALBUM = "PHOTO_ALBUM"


class Relationship(StrEnum):
    RELATED = "RELATED"
    TAKEN_AT = "TAKEN_AT"
    OCCURRED_AT = "OCCURRED_AT"
    PART_OF = "PART_OF"
    DOCUMENTS = "DOCUMENTS"
    FEATURED_IN = "FEATURED_IN"


class PermissionLevel(StrEnum):
    VIEW = "view"
    EDIT = "edit"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return _PERMISSION_RANK[self]

    def satisfies(self, required: PermissionLevel) -> bool:
        return self.rank >= required.rank


_PERMISSION_RANK: dict[PermissionLevel, int] = {
    PermissionLevel.VIEW: 1,
    PermissionLevel.EDIT: 2,
    PermissionLevel.ADMIN: 3,
}


class TripPrivacy(StrEnum):
    PRIVATE = "Private"
    PUBLIC = "Public"
