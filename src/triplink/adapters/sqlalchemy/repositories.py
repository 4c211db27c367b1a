"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from sqlalchemy import String, and_, delete, or_, select, type_coerce
from sqlalchemy.exc import IntegrityError

from triplink.adapters.sqlalchemy.mappings import entity_link_table, trip_table
from triplink.domain.catalog import group_ids_by_kind
from triplink.domain.errors import ConflictError
from triplink.domain.link_graph import DUPLICATE_LINK_MESSAGE
from triplink.domain.model import (
    EntityKind,
    EntityLink,
    EntityRef,
    LinkEndpoints,
    Trip,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence

    from sqlalchemy import ColumnElement, CursorResult, Select
    from sqlalchemy.orm import Session


_links = entity_link_table.c


def _ordered(stmt: Select[tuple[EntityLink]]) -> Select[tuple[EntityLink]]:
    # ascending sort_order with nulls last, then insertion order
    return stmt.order_by(
        _links.sort_order.is_(None),
        _links.sort_order,
        _links.created_at,
        _links.id,
    )


def _target_is(ref: EntityRef) -> ColumnElement[bool]:
    return and_(_links.target_kind == ref.kind, _links.target_id == ref.id)


def _source_is(ref: EntityRef) -> ColumnElement[bool]:
    return and_(_links.source_kind == ref.kind, _links.source_id == ref.id)


def _any_of(
    kind_column: ColumnElement[EntityKind],
    id_column: ColumnElement[int],
    refs: Collection[EntityRef],
) -> ColumnElement[bool]:
    # one IN list per kind keeps the match pairwise with at most one term per kind
    return or_(
        *(
            and_(kind_column == kind, id_column.in_(ids))
            for kind, ids in group_ids_by_kind(refs).items()
        )
    )


class SqlAlchemyEntityLinkRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: EntityLink) -> None:
        self.session.add(entity)
        self._flush_or_conflict()

    def add_all(self, links: Sequence[EntityLink]) -> None:
        if not links:
            return
        self.session.add_all(links)
        self._flush_or_conflict()

    def get(self, trip_id: int, link_id: int) -> EntityLink | None:
        stmt = select(EntityLink).where(_links.id == link_id).where(_links.trip_id == trip_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def find(self, trip_id: int, source: EntityRef, target: EntityRef) -> EntityLink | None:
        stmt = (
            select(EntityLink)
            .where(_links.trip_id == trip_id)
            .where(_source_is(source))
            .where(_target_is(target))
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def existing_targets(
        self, trip_id: int, source: EntityRef, targets: Collection[EntityRef]
    ) -> set[EntityRef]:
        if not targets:
            return set()
        stmt = (
            select(_links.target_kind, _links.target_id)
            .where(_links.trip_id == trip_id)
            .where(_source_is(source))
            .where(_any_of(_links.target_kind, _links.target_id, targets))
        )
        return {EntityRef(kind, target_id) for kind, target_id in self.session.execute(stmt)}

    def existing_sources(
        self, trip_id: int, sources: Collection[EntityRef], target: EntityRef
    ) -> set[EntityRef]:
        if not sources:
            return set()
        stmt = (
            select(_links.source_kind, _links.source_id)
            .where(_links.trip_id == trip_id)
            .where(_target_is(target))
            .where(_any_of(_links.source_kind, _links.source_id, sources))
        )
        return {EntityRef(kind, source_id) for kind, source_id in self.session.execute(stmt)}

    def list_from(
        self, trip_id: int, source: EntityRef, target_kind: EntityKind | None = None
    ) -> list[EntityLink]:
        stmt = select(EntityLink).where(_links.trip_id == trip_id).where(_source_is(source))
        if target_kind is not None:
            stmt = stmt.where(_links.target_kind == target_kind)
        return list(self.session.execute(_ordered(stmt)).scalars())

    def list_to(
        self, trip_id: int, target: EntityRef, source_kind: EntityKind | None = None
    ) -> list[EntityLink]:
        stmt = select(EntityLink).where(_links.trip_id == trip_id).where(_target_is(target))
        if source_kind is not None:
            stmt = stmt.where(_links.source_kind == source_kind)
        return list(self.session.execute(_ordered(stmt)).scalars())

    def list_by_target_kind(self, trip_id: int, target_kind: EntityKind) -> list[EntityLink]:
        stmt = (
            select(EntityLink)
            .where(_links.trip_id == trip_id)
            .where(_links.target_kind == target_kind)
        )
        return list(self.session.execute(_ordered(stmt)).scalars())

    def list_for_trip(self, trip_id: int, *, limit: int | None = None) -> list[EntityLink]:
        stmt = select(EntityLink).where(_links.trip_id == trip_id).order_by(_links.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars())

    def list_endpoints(self, trip_id: int) -> list[LinkEndpoints]:
        # raw strings so rows with a kind this build does not know still load
        stmt = (
            select(
                _links.id,
                type_coerce(_links.source_kind, String),
                _links.source_id,
                type_coerce(_links.target_kind, String),
                _links.target_id,
            )
            .where(_links.trip_id == trip_id)
            .order_by(_links.id)
        )
        return [
            LinkEndpoints(
                link_id=link_id,
                source_kind=source_kind,
                source_id=source_id,
                target_kind=target_kind,
                target_id=target_id,
            )
            for link_id, source_kind, source_id, target_kind, target_id in self.session.execute(
                stmt
            )
        ]

    def remove(self, link: EntityLink) -> None:
        self.session.delete(link)
        self.session.flush()

    def delete_for_entity(self, trip_id: int, ref: EntityRef) -> int:
        stmt = (
            delete(entity_link_table)
            .where(_links.trip_id == trip_id)
            .where(or_(_source_is(ref), _target_is(ref)))
            .execution_options(synchronize_session=False)
        )
        result = cast("CursorResult[tuple[()]]", self.session.execute(stmt))
        return result.rowcount

    def delete_by_ids(self, link_ids: Collection[int]) -> int:
        if not link_ids:
            return 0
        stmt = (
            delete(entity_link_table)
            .where(_links.id.in_(list(link_ids)))
            .execution_options(synchronize_session=False)
        )
        result = cast("CursorResult[tuple[()]]", self.session.execute(stmt))
        return result.rowcount

    def _flush_or_conflict(self) -> None:
        try:
            self.session.flush()
        except IntegrityError as exc:
            raise ConflictError(DUPLICATE_LINK_MESSAGE) from exc


class SqlAlchemyTripRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Trip) -> None:
        self.session.add(entity)

    def get(self, trip_id: int) -> Trip | None:
        stmt = select(Trip).where(trip_table.c.id == trip_id)
        return self.session.execute(stmt).scalar_one_or_none()


if TYPE_CHECKING:
    from triplink.domain.ports.persistence import EntityLinkRepository, TripRepository

    _session_stub = cast("Session", object())
    _link_repo_check: EntityLinkRepository = SqlAlchemyEntityLinkRepository(_session_stub)
    _trip_repo_check: TripRepository = SqlAlchemyTripRepository(_session_stub)
