"""
Base building blocks:
integer identity and the entity-kind contract for linkable trip entities.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from triplink.domain.model.link import EntityRef

if TYPE_CHECKING:
    from triplink.domain.model.enums import EntityKind


@dataclass(eq=False, kw_only=True)
class Entity:
    """Identity is assigned by the store on first flush."""

    id: int | None = None

    @property
    def persisted_id(self) -> int:
        if self.id is None:
            raise ValueError(f"{type(self).__name__} has not been persisted yet")
        return self.id


@dataclass(eq=False, kw_only=True)
class TripEntity(Entity):
    """An entity owned by a trip that can take part in entity links."""

    # class-level discriminator; subclasses must override
    ENTITY_KIND: ClassVar[EntityKind]

    trip_id: int

    @property
    def entity_kind(self) -> EntityKind:
        return self.ENTITY_KIND

    @property
    def ref(self) -> EntityRef:
        return EntityRef(self.ENTITY_KIND, self.persisted_id)
