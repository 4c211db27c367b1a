"""Deleting a trip entity together with every link that touches it."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from triplink.domain.errors import EntityNotFoundError
from triplink.domain.model import PermissionLevel

if TYPE_CHECKING:
    from collections.abc import Callable

    from triplink.domain.model import EntityRef
    from triplink.domain.ports.authorization import Authorizer
    from triplink.domain.ports.unit_of_work import LinkUnitOfWork


log = getLogger(__name__)


def remove_entity(
    actor_id: int,
    trip_id: int,
    ref: EntityRef,
    *,
    unit_of_work_factory: Callable[[], LinkUnitOfWork],
    authorizer: Authorizer,
) -> int:
    """Delete ``ref`` and its links atomically; return the number of links removed."""

    authorizer.verify_trip_access(actor_id, trip_id, PermissionLevel.EDIT)

    with unit_of_work_factory() as uow:
        repos = uow.repositories
        links_removed = repos.links.delete_for_entity(trip_id, ref)
        if not repos.entities.delete(trip_id, ref):
            raise EntityNotFoundError(f"{ref.kind} with ID {ref.id} not found in trip {trip_id}")
        uow.commit()

    log.info("Removed %s from trip %s along with %s links", ref, trip_id, links_removed)
    return links_removed
