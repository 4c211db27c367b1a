"""SQLAlchemy accessors for each linkable entity kind."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, assert_never, cast

from sqlalchemy import delete, func, select

from triplink.adapters.sqlalchemy.mappings import TABLE_BY_KIND
from triplink.domain.catalog import EntityCatalog
from triplink.domain.model import (
    Activity,
    EntityDetails,
    EntityKind,
    JournalEntry,
    Location,
    Lodging,
    Photo,
    PhotoAlbum,
    Transportation,
    TripEntity,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Collection

    from sqlalchemy import CursorResult, Table
    from sqlalchemy.orm import Session

    from triplink.domain.ports.catalog import EntityAccessor


class SqlAlchemyEntityAccessor[TEntity: TripEntity]:
    """Existence checks and detail projections against one entity table."""

    def __init__(
        self,
        session: Session,
        entity_cls: type[TEntity],
        project: Callable[[TEntity], EntityDetails],
    ) -> None:
        self.session = session
        self._entity_cls = entity_cls
        self._table: Table = TABLE_BY_KIND[entity_cls.ENTITY_KIND]
        self._project = project

    def exists_in_trip(self, trip_id: int, entity_id: int) -> bool:
        stmt = (
            select(self._table.c.id)
            .where(self._table.c.id == entity_id)
            .where(self._table.c.trip_id == trip_id)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none() is not None

    def count_existing(self, trip_id: int, entity_ids: Collection[int]) -> int:
        if not entity_ids:
            return 0
        stmt = (
            select(func.count())
            .select_from(self._table)
            .where(self._table.c.id.in_(list(entity_ids)))
            .where(self._table.c.trip_id == trip_id)
        )
        return int(self.session.execute(stmt).scalar_one())

    def existing_ids(self, trip_id: int, entity_ids: Collection[int]) -> set[int]:
        if not entity_ids:
            return set()
        stmt = (
            select(self._table.c.id)
            .where(self._table.c.id.in_(list(entity_ids)))
            .where(self._table.c.trip_id == trip_id)
        )
        return set(self.session.execute(stmt).scalars())

    def detail(self, entity_id: int) -> EntityDetails | None:
        entity = self.session.get(self._entity_cls, entity_id)
        return self._project(entity) if entity is not None else None

    def detail_batch(self, entity_ids: Collection[int]) -> dict[int, EntityDetails]:
        return {
            entity_id: self._project(entity)
            for entity_id, entity in self.load_batch(entity_ids).items()
        }

    def load_batch(self, entity_ids: Collection[int]) -> dict[int, TEntity]:
        if not entity_ids:
            return {}
        stmt = select(self._entity_cls).where(self._table.c.id.in_(list(entity_ids)))
        return {entity.persisted_id: entity for entity in self.session.execute(stmt).scalars()}

    def delete(self, trip_id: int, entity_id: int) -> bool:
        stmt = (
            delete(self._table)
            .where(self._table.c.id == entity_id)
            .where(self._table.c.trip_id == trip_id)
        )
        result = cast("CursorResult[tuple[()]]", self.session.execute(stmt))
        return result.rowcount > 0


def _photo_details(photo: Photo) -> EntityDetails:
    return EntityDetails(
        id=photo.persisted_id,
        caption=photo.caption or None,
        thumbnail_path=photo.thumbnail_path or None,
    )


def _named_details(entity: Location | Activity | Lodging | PhotoAlbum) -> EntityDetails:
    return EntityDetails(id=entity.persisted_id, name=entity.name)


def _transportation_details(transportation: Transportation) -> EntityDetails:
    return EntityDetails(id=transportation.persisted_id, name=transportation.display_name)


def _journal_entry_details(entry: JournalEntry) -> EntityDetails:
    return EntityDetails(id=entry.persisted_id, title=entry.title or None, date=entry.date)


def entity_accessor(session: Session, kind: EntityKind) -> EntityAccessor[TripEntity]:
    """The accessor record for ``kind``; adding a kind means adding a case here."""

    accessor: EntityAccessor[Any]
    match kind:
        case EntityKind.PHOTO:
            accessor = SqlAlchemyEntityAccessor(session, Photo, _photo_details)
        case EntityKind.LOCATION:
            accessor = SqlAlchemyEntityAccessor(session, Location, _named_details)
        case EntityKind.ACTIVITY:
            accessor = SqlAlchemyEntityAccessor(session, Activity, _named_details)
        case EntityKind.LODGING:
            accessor = SqlAlchemyEntityAccessor(session, Lodging, _named_details)
        case EntityKind.TRANSPORTATION:
            accessor = SqlAlchemyEntityAccessor(session, Transportation, _transportation_details)
        case EntityKind.JOURNAL_ENTRY:
            accessor = SqlAlchemyEntityAccessor(session, JournalEntry, _journal_entry_details)
        case EntityKind.PHOTO_ALBUM:
            accessor = SqlAlchemyEntityAccessor(session, PhotoAlbum, _named_details)
        case _:
            assert_never(kind)
    return accessor


def build_entity_catalog(session: Session) -> EntityCatalog:
    return EntityCatalog({kind: entity_accessor(session, kind) for kind in EntityKind})


if TYPE_CHECKING:
    _session_stub = cast("Session", object())
    _accessor_check: EntityAccessor[Photo] = SqlAlchemyEntityAccessor(
        _session_stub, Photo, _photo_details
    )
