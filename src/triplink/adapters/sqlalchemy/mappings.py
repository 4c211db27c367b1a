"""SQLAlchemy mapping metadata for the triplink domain model."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache
from typing import Final

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    orm,
)
from sqlalchemy.orm import configure_mappers, relationship

from triplink.domain.model import (
    Activity,
    EntityKind,
    EntityLink,
    JournalEntry,
    Location,
    Lodging,
    Photo,
    PhotoAlbum,
    Relationship,
    Transportation,
    Trip,
    TripCollaborator,
    TripEntity,
    TripPrivacy,
)

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class EntityKindType(TypeDecorator[EntityKind]):
    """Stores the kind name verbatim; raw reads go through ``type_coerce(..., String)``."""

    impl = String(32)
    cache_ok = True

    def process_bind_param(self, value: EntityKind | str | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return EntityKind(value).value

    def process_result_value(self, value: str | None, dialect: Dialect) -> EntityKind | None:
        _ = dialect
        if value is None:
            return None
        return EntityKind(value)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Trips -----------------------------------------------------------------------

trip_table = Table(
    "trip",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("owner_id", Integer, nullable=False, index=True),
    Column("title", String, nullable=False),
    Column(
        "privacy",
        Enum(TripPrivacy, native_enum=False, length=16),
        nullable=False,
        default=TripPrivacy.PRIVATE,
    ),
)

trip_collaborator_table = Table(
    "trip_collaborator",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("trip_id", Integer, ForeignKey("trip.id", ondelete="CASCADE"), nullable=False),
    Column("user_id", Integer, nullable=False),
    # free-form so unknown levels written elsewhere degrade instead of failing to load
    Column("permission", String(16), nullable=False),
    UniqueConstraint("trip_id", "user_id", name="uq_trip_collaborator_user"),
)

# Linkable entities -------------------------------------------------------------


def _trip_id_column() -> Column[int]:
    return Column(
        "trip_id", Integer, ForeignKey("trip.id", ondelete="CASCADE"), nullable=False, index=True
    )


photo_table = Table(
    "photo",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    _trip_id_column(),
    Column("caption", String, nullable=True),
    Column("thumbnail_path", String, nullable=True),
    Column("taken_at", UTCDateTime(), nullable=True),
)

location_table = Table(
    "location",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    _trip_id_column(),
    Column("name", String, nullable=False),
)

activity_table = Table(
    "activity",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    _trip_id_column(),
    Column("name", String, nullable=False),
)

lodging_table = Table(
    "lodging",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    _trip_id_column(),
    Column("name", String, nullable=False),
)

transportation_table = Table(
    "transportation",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    _trip_id_column(),
    Column("type", String, nullable=False),
    Column("company", String, nullable=True),
)

journal_entry_table = Table(
    "journal_entry",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    _trip_id_column(),
    Column("title", String, nullable=True),
    Column("date", Date, nullable=True),
)

photo_album_table = Table(
    "photo_album",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    _trip_id_column(),
    Column("name", String, nullable=False),
)

# Links -------------------------------------------------------------------------

entity_link_table = Table(
    "entity_link",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("trip_id", Integer, ForeignKey("trip.id", ondelete="CASCADE"), nullable=False),
    Column("source_kind", EntityKindType(), nullable=False),
    Column("source_id", Integer, nullable=False),
    Column("target_kind", EntityKindType(), nullable=False),
    Column("target_id", Integer, nullable=False),
    Column("relationship", Enum(Relationship, native_enum=False, length=32), nullable=False),
    Column("sort_order", Integer, nullable=True),
    Column("notes", Text, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    UniqueConstraint(
        "trip_id",
        "source_kind",
        "source_id",
        "target_kind",
        "target_id",
        name="uq_entity_link_direction",
    ),
    Index("ix_entity_link_source", "trip_id", "source_kind", "source_id"),
    Index("ix_entity_link_target", "trip_id", "target_kind", "target_id"),
)

TABLE_BY_KIND: Final[dict[EntityKind, Table]] = {
    EntityKind.PHOTO: photo_table,
    EntityKind.LOCATION: location_table,
    EntityKind.ACTIVITY: activity_table,
    EntityKind.LODGING: lodging_table,
    EntityKind.TRANSPORTATION: transportation_table,
    EntityKind.JOURNAL_ENTRY: journal_entry_table,
    EntityKind.PHOTO_ALBUM: photo_album_table,
}

CLASS_BY_KIND: Final[dict[EntityKind, type[TripEntity]]] = {
    EntityKind.PHOTO: Photo,
    EntityKind.LOCATION: Location,
    EntityKind.ACTIVITY: Activity,
    EntityKind.LODGING: Lodging,
    EntityKind.TRANSPORTATION: Transportation,
    EntityKind.JOURNAL_ENTRY: JournalEntry,
    EntityKind.PHOTO_ALBUM: PhotoAlbum,
}


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(
        Trip,
        trip_table,
        properties={
            "_collaborators": relationship(
                TripCollaborator,
                cascade="all, delete-orphan",
                lazy="selectin",
            ),
        },
    )

    mapper_registry.map_imperatively(TripCollaborator, trip_collaborator_table)

    for kind, entity_cls in CLASS_BY_KIND.items():
        mapper_registry.map_imperatively(entity_cls, TABLE_BY_KIND[kind])

    mapper_registry.map_imperatively(EntityLink, entity_link_table)

    configure_mappers()
    return mapper_registry

