"""Per-kind entity accessor port used by the entity catalog."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection

    from triplink.domain.model import EntityDetails, TripEntity


@runtime_checkable
class EntityAccessor[TEntity: TripEntity](Protocol):
    """Lookups against the backing store of one entity kind."""

    def exists_in_trip(self, trip_id: int, entity_id: int) -> bool: ...

    def count_existing(self, trip_id: int, entity_ids: Collection[int]) -> int: ...

    def existing_ids(self, trip_id: int, entity_ids: Collection[int]) -> set[int]: ...

    def detail(self, entity_id: int) -> EntityDetails | None: ...

    def detail_batch(self, entity_ids: Collection[int]) -> dict[int, EntityDetails]: ...

    def load_batch(self, entity_ids: Collection[int]) -> dict[int, TEntity]: ...

    def delete(self, trip_id: int, entity_id: int) -> bool: ...
