"""Entity links: directed, typed edges between two entities of one trip.

Storage uses (kind, id) pairs on both ends as polymorphic references; there
is no foreign key behind either endpoint, so a link can outlive the entities
it points at.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from triplink.domain.errors import InvalidOperationError

if TYPE_CHECKING:
    import datetime as dt

    from triplink.domain.model.enums import EntityKind, Relationship


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class EntityRef:
    """Lookup key for an entity within a trip; does not own the entity."""

    kind: EntityKind
    id: int

    @property
    def key(self) -> str:
        return f"{self.kind}:{self.id}"

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True, slots=True)
class EntityDetails:
    """Label-ish projection of an entity used to enrich links."""

    id: int
    name: str | None = None
    title: str | None = None
    caption: str | None = None
    thumbnail_path: str | None = None
    date: dt.date | None = None


@dataclass(eq=False, kw_only=True)
class EntityLink:
    """A directed link ``source -> target`` inside a trip.

    Endpoints are fixed at construction; only ``relationship``, ``notes`` and
    ``sort_order`` change afterwards.
    """

    trip_id: int
    source_kind: EntityKind
    source_id: int
    target_kind: EntityKind
    target_id: int
    relationship: Relationship
    sort_order: int | None = None
    notes: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    id: int | None = None

    def __post_init__(self) -> None:
        if self.source == self.target:
            raise InvalidOperationError("Cannot link an entity to itself")

    @classmethod
    def between(
        cls,
        trip_id: int,
        source: EntityRef,
        target: EntityRef,
        relationship: Relationship,
        *,
        sort_order: int | None = None,
        notes: str | None = None,
    ) -> EntityLink:
        return cls(
            trip_id=trip_id,
            source_kind=source.kind,
            source_id=source.id,
            target_kind=target.kind,
            target_id=target.id,
            relationship=relationship,
            sort_order=sort_order,
            notes=notes,
        )

    @property
    def source(self) -> EntityRef:
        return EntityRef(self.source_kind, self.source_id)

    @property
    def target(self) -> EntityRef:
        return EntityRef(self.target_kind, self.target_id)

    def touches(self, ref: EntityRef) -> bool:
        return ref in (self.source, self.target)


@dataclass(frozen=True, slots=True)
class LinkEndpoints:
    """Raw endpoint row as stored.

    Kinds stay plain strings so rows written by a newer release with kinds this
    code does not know yet can still be inspected.
    """

    link_id: int
    source_kind: str
    source_id: int
    target_kind: str
    target_id: int
