"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from triplink.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyLinkUnitOfWork,
    SqlAlchemyTripUnitOfWork,
    is_started,
    startup,
)
from triplink.config import LinkGraphConfig, get_link_graph_config
from triplink.domain.access import TripAccessAuthorizer
from triplink.domain.entity_removal import remove_entity as remove_entity_with_links
from triplink.domain.link_graph import LinkGraphService
from triplink.domain.model import PermissionLevel
from triplink.domain.orphans import cleanup_orphaned_entity_links
from triplink.domain.ports.unit_of_work import LinkUnitOfWork

if TYPE_CHECKING:
    from triplink.domain.model import EntityRef
    from triplink.domain.ports.authorization import Authorizer

UnitOfWorkFactory = Callable[[], LinkUnitOfWork]


log = getLogger(__name__)


def _ensure_started() -> None:
    if not is_started():
        startup()


def build_authorizer() -> Authorizer:
    """Trip access policy backed by the configured database."""

    _ensure_started()
    return TripAccessAuthorizer(SqlAlchemyTripUnitOfWork)


def build_link_graph_service(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    authorizer: Authorizer | None = None,
    config: LinkGraphConfig | None = None,
) -> LinkGraphService:
    """Wire the link graph service to the configured adapters."""

    _ensure_started()
    effective_config = config or get_link_graph_config()
    return LinkGraphService(
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyLinkUnitOfWork,
        authorizer=authorizer or build_authorizer(),
        summary_safety_limit=effective_config.summary_safety_limit,
    )


def cleanup_orphaned_links(
    actor_id: int,
    trip_id: int,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    authorizer: Authorizer | None = None,
    config: LinkGraphConfig | None = None,
) -> int:
    """Run the orphan sweep for ``trip_id`` on behalf of an editor of the trip."""

    _ensure_started()
    effective_authorizer = authorizer or build_authorizer()
    effective_authorizer.verify_trip_access(actor_id, trip_id, PermissionLevel.EDIT)

    effective_config = config or get_link_graph_config()
    log.info(
        "Starting orphan cleanup: trip=%s, actor=%s, batch_size=%s",
        trip_id,
        actor_id,
        effective_config.orphan_delete_batch_size,
    )
    return cleanup_orphaned_entity_links(
        trip_id,
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyLinkUnitOfWork,
        delete_batch_size=effective_config.orphan_delete_batch_size,
    )


def remove_entity(
    actor_id: int,
    trip_id: int,
    ref: EntityRef,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    authorizer: Authorizer | None = None,
) -> int:
    """Delete an entity and every link touching it; return the links removed."""

    _ensure_started()
    return remove_entity_with_links(
        actor_id,
        trip_id,
        ref,
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyLinkUnitOfWork,
        authorizer=authorizer or build_authorizer(),
    )
