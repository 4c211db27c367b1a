"""Trips and the people allowed to work on them."""

from __future__ import annotations

from dataclasses import dataclass, field

from triplink.domain.model.entity import Entity
from triplink.domain.model.enums import PermissionLevel, TripPrivacy


@dataclass(eq=False, kw_only=True)
class TripCollaborator:
    user_id: int
    permission: str = PermissionLevel.VIEW
    trip_id: int | None = None

    @property
    def permission_level(self) -> PermissionLevel:
        """Stored level, degrading unknown values to view."""
        try:
            return PermissionLevel(self.permission)
        except ValueError:
            return PermissionLevel.VIEW


@dataclass(eq=False, kw_only=True)
class Trip(Entity):
    owner_id: int
    title: str
    privacy: TripPrivacy = TripPrivacy.PRIVATE

    _collaborators: list[TripCollaborator] = field(
        default_factory=list["TripCollaborator"], repr=False
    )

    @property
    def collaborators(self) -> tuple[TripCollaborator, ...]:
        return tuple(self._collaborators)

    def add_collaborator(
        self, user_id: int, permission: PermissionLevel = PermissionLevel.VIEW
    ) -> TripCollaborator:
        if user_id == self.owner_id:
            raise ValueError("trip owner cannot be added as a collaborator")
        if any(existing.user_id == user_id for existing in self._collaborators):
            raise ValueError("user already collaborates on this trip")
        collaborator = TripCollaborator(user_id=user_id, permission=permission)
        self._collaborators.append(collaborator)
        return collaborator

    def permission_for(self, actor_id: int) -> PermissionLevel | None:
        """Effective permission of ``actor_id`` or ``None`` when the trip is invisible."""

        if actor_id == self.owner_id:
            return PermissionLevel.ADMIN
        for collaborator in self._collaborators:
            if collaborator.user_id == actor_id:
                return collaborator.permission_level
        if self.privacy == TripPrivacy.PUBLIC:
            return PermissionLevel.VIEW
        return None
