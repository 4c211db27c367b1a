"""Trip access policy: owner, collaborator, or public viewer."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from triplink.domain.errors import ForbiddenError, TripNotFoundError
from triplink.domain.ports.authorization import TripAccess

if TYPE_CHECKING:
    from collections.abc import Callable

    from triplink.domain.model import PermissionLevel
    from triplink.domain.ports.unit_of_work import TripUnitOfWork


log = getLogger(__name__)


class TripAccessAuthorizer:
    """Authorizer backed by the trip store.

    Owners hold admin, collaborators hold their stored level, and anyone may
    view a public trip.
    """

    def __init__(self, unit_of_work_factory: Callable[[], TripUnitOfWork]) -> None:
        self._unit_of_work_factory = unit_of_work_factory

    def verify_trip_access(
        self, actor_id: int, trip_id: int, capability: PermissionLevel
    ) -> TripAccess:
        with self._unit_of_work_factory() as uow:
            trip = uow.repositories.trips.get(trip_id)
            permission = trip.permission_for(actor_id) if trip is not None else None

        if permission is None:
            raise TripNotFoundError("Trip not found or access denied")
        if not permission.satisfies(capability):
            log.debug(
                "Actor %s holds %s on trip %s, %s required", actor_id, permission, trip_id, capability
            )
            raise ForbiddenError("Insufficient permissions")

        return TripAccess(trip_id=trip_id, actor_id=actor_id, permission=permission)


if TYPE_CHECKING:
    from triplink.domain.ports.authorization import Authorizer

    _authorizer_check: Authorizer = TripAccessAuthorizer(lambda: NotImplemented)
