"""The seven kinds of trip entities that can be linked to each other."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from triplink.domain.model.entity import TripEntity
from triplink.domain.model.enums import EntityKind

if TYPE_CHECKING:
    import datetime as dt


@dataclass(eq=False, kw_only=True)
class Photo(TripEntity):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.PHOTO

    caption: str | None = None
    thumbnail_path: str | None = None
    taken_at: dt.datetime | None = None


@dataclass(eq=False, kw_only=True)
class Location(TripEntity):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.LOCATION

    name: str


@dataclass(eq=False, kw_only=True)
class Activity(TripEntity):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.ACTIVITY

    name: str


@dataclass(eq=False, kw_only=True)
class Lodging(TripEntity):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.LODGING

    name: str


@dataclass(eq=False, kw_only=True)
class Transportation(TripEntity):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.TRANSPORTATION

    type: str
    company: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.type} - {self.company}" if self.company else self.type


@dataclass(eq=False, kw_only=True)
class JournalEntry(TripEntity):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.JOURNAL_ENTRY

    title: str | None = None
    date: dt.date | None = None


@dataclass(eq=False, kw_only=True)
class PhotoAlbum(TripEntity):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.PHOTO_ALBUM

    name: str
