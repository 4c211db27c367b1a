"""Trip access control port."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from triplink.domain.model import PermissionLevel


@dataclass(frozen=True, slots=True)
class TripAccess:
    """Grant returned when an actor may act on a trip."""

    trip_id: int
    actor_id: int
    permission: PermissionLevel


@runtime_checkable
class Authorizer(Protocol):
    """Decides whether an actor holds a capability on a trip.

    Raises ``TripNotFoundError`` when the trip is missing or invisible to the
    actor and ``ForbiddenError`` when the actor's permission is too low.
    """

    def verify_trip_access(
        self, actor_id: int, trip_id: int, capability: PermissionLevel
    ) -> TripAccess: ...
