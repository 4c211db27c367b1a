"""Ports for persisting links and trips."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from triplink.domain.model import EntityLink, Trip

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence

    from triplink.domain.model import EntityKind, EntityRef, LinkEndpoints


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class EntityLinkRepository(Repository[EntityLink], Protocol):
    """Persistence contract for entity links.

    ``add`` raises ``ConflictError`` when the directional tuple is already taken.
    """

    def add_all(self, links: Sequence[EntityLink]) -> None: ...

    def get(self, trip_id: int, link_id: int) -> EntityLink | None: ...

    def find(self, trip_id: int, source: EntityRef, target: EntityRef) -> EntityLink | None: ...

    def existing_targets(
        self, trip_id: int, source: EntityRef, targets: Collection[EntityRef]
    ) -> set[EntityRef]: ...

    def existing_sources(
        self, trip_id: int, sources: Collection[EntityRef], target: EntityRef
    ) -> set[EntityRef]: ...

    def list_from(
        self, trip_id: int, source: EntityRef, target_kind: EntityKind | None = None
    ) -> list[EntityLink]: ...

    def list_to(
        self, trip_id: int, target: EntityRef, source_kind: EntityKind | None = None
    ) -> list[EntityLink]: ...

    def list_by_target_kind(self, trip_id: int, target_kind: EntityKind) -> list[EntityLink]: ...

    def list_for_trip(self, trip_id: int, *, limit: int | None = None) -> list[EntityLink]: ...

    def list_endpoints(self, trip_id: int) -> list[LinkEndpoints]: ...

    def remove(self, link: EntityLink) -> None: ...

    def delete_for_entity(self, trip_id: int, ref: EntityRef) -> int: ...

    def delete_by_ids(self, link_ids: Collection[int]) -> int: ...


@runtime_checkable
class TripRepository(Repository[Trip], Protocol):
    """Persistence contract for trips and their collaborators."""

    def get(self, trip_id: int) -> Trip | None: ...
