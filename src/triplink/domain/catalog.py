"""Kind-dispatched lookups across the seven linkable entity stores.

The catalog owns no cross-kind logic: it routes every call to the accessor
registered for the endpoint's kind and groups batch work by kind so each
kind costs one query regardless of how many ids are involved.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from triplink.domain.errors import EntityNotFoundError
from triplink.domain.model import EntityKind, EntityRef

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from triplink.domain.model import EntityDetails, TripEntity
    from triplink.domain.ports.catalog import EntityAccessor


def group_ids_by_kind(refs: Iterable[EntityRef]) -> dict[EntityKind, list[int]]:
    """Distinct ids per kind, in first-seen order."""

    grouped: dict[EntityKind, dict[int, None]] = defaultdict(dict)
    for ref in refs:
        grouped[ref.kind][ref.id] = None
    return {kind: list(ids) for kind, ids in grouped.items()}


class EntityCatalog:
    """Registry of one accessor per entity kind."""

    def __init__(self, accessors: Mapping[EntityKind, EntityAccessor[TripEntity]]) -> None:
        missing = [kind for kind in EntityKind if kind not in accessors]
        if missing:
            names = ", ".join(missing)
            raise ValueError(f"EntityCatalog is missing accessors for: {names}")
        self._accessors: dict[EntityKind, EntityAccessor[TripEntity]] = dict(accessors)

    def exists_in_trip(self, trip_id: int, ref: EntityRef) -> bool:
        return self._accessors[ref.kind].exists_in_trip(trip_id, ref.id)

    def verify_in_trip(self, trip_id: int, ref: EntityRef) -> None:
        if not self.exists_in_trip(trip_id, ref):
            raise EntityNotFoundError(f"{ref.kind} with ID {ref.id} not found in trip {trip_id}")

    def verify_all_in_trip(self, trip_id: int, refs: Iterable[EntityRef]) -> None:
        """Check every ref with one count per kind."""

        for kind, ids in group_ids_by_kind(refs).items():
            found = self._accessors[kind].count_existing(trip_id, ids)
            if found != len(ids):
                raise EntityNotFoundError(
                    f"One or more {kind} entities not found in trip {trip_id}"
                )

    def existing_ids(self, trip_id: int, kind: EntityKind, ids: Iterable[int]) -> set[int]:
        return self._accessors[kind].existing_ids(trip_id, list(dict.fromkeys(ids)))

    def detail(self, ref: EntityRef) -> EntityDetails | None:
        return self._accessors[ref.kind].detail(ref.id)

    def details_for(self, refs: Iterable[EntityRef]) -> dict[EntityRef, EntityDetails]:
        """Batch-fetch details, one query per kind; unknown ids are left out."""

        result: dict[EntityRef, EntityDetails] = {}
        for kind, ids in group_ids_by_kind(refs).items():
            for entity_id, details in self._accessors[kind].detail_batch(ids).items():
                result[EntityRef(kind, entity_id)] = details
        return result

    def load_batch(self, kind: EntityKind, ids: Iterable[int]) -> dict[int, TripEntity]:
        return self._accessors[kind].load_batch(list(dict.fromkeys(ids)))

    def delete(self, trip_id: int, ref: EntityRef) -> bool:
        return self._accessors[ref.kind].delete(trip_id, ref.id)
