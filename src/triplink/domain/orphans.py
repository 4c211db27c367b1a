"""Safety-net sweep for links whose endpoints have disappeared.

Entity deletion paths are expected to remove their links in the same unit of
work (see ``entity_removal``). This sweep catches the ones that did not.
"""

from __future__ import annotations

from collections import defaultdict
from logging import getLogger
from typing import TYPE_CHECKING

from triplink.config.linking import DEFAULT_ORPHAN_DELETE_BATCH_SIZE
from triplink.domain.model import EntityKind

if TYPE_CHECKING:
    from collections.abc import Callable

    from triplink.domain.catalog import EntityCatalog
    from triplink.domain.model import LinkEndpoints
    from triplink.domain.ports.unit_of_work import LinkUnitOfWork


log = getLogger(__name__)


def cleanup_orphaned_entity_links(
    trip_id: int,
    *,
    unit_of_work_factory: Callable[[], LinkUnitOfWork],
    delete_batch_size: int = DEFAULT_ORPHAN_DELETE_BATCH_SIZE,
) -> int:
    """Delete links of ``trip_id`` with a missing source or target entity.

    Never raises: failures are logged and the number of links deleted before
    the failure is returned.
    """

    try:
        orphaned = _find_orphaned_link_ids(trip_id, unit_of_work_factory)
    except Exception:  # noqa: BLE001
        log.exception("Orphan scan failed for trip %s", trip_id)
        return 0

    if not orphaned:
        return 0

    deleted = 0
    for start in range(0, len(orphaned), delete_batch_size):
        chunk = orphaned[start : start + delete_batch_size]
        try:
            with unit_of_work_factory() as uow:
                removed = uow.repositories.links.delete_by_ids(chunk)
                uow.commit()
        except Exception:  # noqa: BLE001
            log.exception(
                "Orphan cleanup for trip %s stopped after %s of %s links",
                trip_id,
                deleted,
                len(orphaned),
            )
            break
        deleted += removed

    log.info("Removed %s orphaned entity links for trip %s", deleted, trip_id)
    return deleted


def _find_orphaned_link_ids(
    trip_id: int,
    unit_of_work_factory: Callable[[], LinkUnitOfWork],
) -> list[int]:
    with unit_of_work_factory() as uow:
        endpoints = uow.repositories.links.list_endpoints(trip_id)
        if not endpoints:
            return []
        existing = _existing_ids_by_kind(trip_id, endpoints, uow.repositories.entities)

    return [
        row.link_id
        for row in endpoints
        if row.source_id not in existing[row.source_kind]
        or row.target_id not in existing[row.target_kind]
    ]


def _existing_ids_by_kind(
    trip_id: int,
    endpoints: list[LinkEndpoints],
    entities: EntityCatalog,
) -> dict[str, set[int]]:
    referenced: dict[str, set[int]] = defaultdict(set)
    for row in endpoints:
        referenced[row.source_kind].add(row.source_id)
        referenced[row.target_kind].add(row.target_id)

    existing: dict[str, set[int]] = {}
    for raw_kind, ids in referenced.items():
        try:
            kind = EntityKind(raw_kind)
        except ValueError:
            log.warning(
                "Orphan cleanup for trip %s: unknown entity kind %r, keeping its links",
                trip_id,
                raw_kind,
            )
            existing[raw_kind] = ids
            continue
        existing[raw_kind] = entities.existing_ids(trip_id, kind, ids)
    return existing
