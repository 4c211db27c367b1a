"""Application service maintaining the entity link graph of a trip."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from logging import getLogger
from typing import TYPE_CHECKING, Final, Literal, cast

from triplink.config.linking import DEFAULT_SUMMARY_SAFETY_LIMIT
from triplink.domain.errors import ConflictError, InvalidOperationError, LinkNotFoundError
from triplink.domain.model import (
    EntityDetails,
    EntityKind,
    EntityLink,
    EntityRef,
    PermissionLevel,
    Photo,
    Relationship,
)
from triplink.domain.relationships import infer_relationship

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from triplink.domain.ports.authorization import Authorizer
    from triplink.domain.ports.unit_of_work import LinkRepositories, LinkUnitOfWork


log = getLogger(__name__)

SELF_LINK_MESSAGE: Final[str] = "Cannot link an entity to itself"
DUPLICATE_LINK_MESSAGE: Final[str] = "Link already exists between these entities"


class _Unset(Enum):
    TOKEN = auto()


UNSET: Final = _Unset.TOKEN
"""Marks an update field the caller did not supply (``None`` clears the field)."""

type Patch[T] = T | Literal[_Unset.TOKEN]


@dataclass(frozen=True, slots=True)
class LinkTarget:
    """One target of a bulk link request."""

    ref: EntityRef
    relationship: Relationship | None = None
    sort_order: int | None = None
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class LinkUpdate:
    relationship: Relationship | None = None
    notes: Patch[str | None] = UNSET
    sort_order: Patch[int | None] = UNSET


@dataclass(slots=True)
class BulkLinkResult:
    """Outcome of a bulk create: ``skipped`` covers self-links and existing pairs."""

    created: int
    skipped: int


@dataclass(slots=True)
class EnrichedLink:
    """A link plus the details of the entity on its far side."""

    link: EntityLink
    peer_entity: EntityDetails | None


@dataclass(slots=True)
class LinkSummary:
    kind: EntityKind
    id: int
    link_counts: dict[EntityKind, int] = field(default_factory=dict[EntityKind, int])
    total_links: int = 0

    def count(self, peer_kind: EntityKind) -> None:
        self.link_counts[peer_kind] = self.link_counts.get(peer_kind, 0) + 1
        self.total_links += 1


@dataclass(slots=True)
class EntityLinks:
    links_from: list[EnrichedLink]
    links_to: list[EnrichedLink]
    summary: LinkSummary


@dataclass(frozen=True, slots=True)
class TargetLinkRow:
    source_kind: EntityKind
    source_id: int
    target_id: int


class LinkGraphService:
    """Create, query and remove links between the entities of a trip.

    Every operation checks trip access through the authorizer before touching
    the store. Multi-row writes happen inside a single unit of work.
    """

    def __init__(
        self,
        *,
        unit_of_work_factory: Callable[[], LinkUnitOfWork],
        authorizer: Authorizer,
        summary_safety_limit: int = DEFAULT_SUMMARY_SAFETY_LIMIT,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._authorizer = authorizer
        self._summary_safety_limit = summary_safety_limit

    # Creation ----------------------------------------------------------------

    def create_link(
        self,
        actor_id: int,
        trip_id: int,
        source: EntityRef,
        target: EntityRef,
        relationship: Relationship | None = None,
        *,
        notes: str | None = None,
        sort_order: int | None = None,
    ) -> EntityLink:
        self._authorizer.verify_trip_access(actor_id, trip_id, PermissionLevel.EDIT)

        with self._unit_of_work_factory() as uow:
            repos = uow.repositories
            repos.entities.verify_in_trip(trip_id, source)
            repos.entities.verify_in_trip(trip_id, target)

            if source == target:
                raise InvalidOperationError(SELF_LINK_MESSAGE)

            if repos.links.find(trip_id, source, target) is not None:
                raise ConflictError(DUPLICATE_LINK_MESSAGE)

            link = EntityLink.between(
                trip_id,
                source,
                target,
                relationship or infer_relationship(source.kind, target.kind),
                sort_order=sort_order,
                notes=notes,
            )
            repos.links.add(link)
            uow.commit()

        log.info("Linked %s -> %s in trip %s as %s", source, target, trip_id, link.relationship)
        return link

    def bulk_create_links(
        self,
        actor_id: int,
        trip_id: int,
        source: EntityRef,
        targets: Sequence[LinkTarget],
    ) -> BulkLinkResult:
        self._authorizer.verify_trip_access(actor_id, trip_id, PermissionLevel.EDIT)

        with self._unit_of_work_factory() as uow:
            repos = uow.repositories
            repos.entities.verify_in_trip(trip_id, source)
            repos.entities.verify_all_in_trip(trip_id, (target.ref for target in targets))

            candidates = [target for target in targets if target.ref != source]
            taken = repos.links.existing_targets(
                trip_id, source, [target.ref for target in candidates]
            )

            new_links: list[EntityLink] = []
            for target in candidates:
                if target.ref in taken:
                    continue
                taken.add(target.ref)
                new_links.append(
                    EntityLink.between(
                        trip_id,
                        source,
                        target.ref,
                        target.relationship or infer_relationship(source.kind, target.ref.kind),
                        sort_order=target.sort_order,
                        notes=target.notes,
                    )
                )

            if new_links:
                repos.links.add_all(new_links)
                uow.commit()

        result = BulkLinkResult(created=len(new_links), skipped=len(targets) - len(new_links))
        log.info(
            "Bulk linked %s in trip %s: created=%s, skipped=%s",
            source,
            trip_id,
            result.created,
            result.skipped,
        )
        return result

    def bulk_link_photos(
        self,
        actor_id: int,
        trip_id: int,
        target: EntityRef,
        photo_ids: Sequence[int],
        relationship: Relationship | None = None,
    ) -> BulkLinkResult:
        self._authorizer.verify_trip_access(actor_id, trip_id, PermissionLevel.EDIT)

        photos = [EntityRef(EntityKind.PHOTO, photo_id) for photo_id in photo_ids]
        effective = relationship or infer_relationship(EntityKind.PHOTO, target.kind)

        with self._unit_of_work_factory() as uow:
            repos = uow.repositories
            repos.entities.verify_in_trip(trip_id, target)
            repos.entities.verify_all_in_trip(trip_id, photos)

            candidates = [photo for photo in photos if photo != target]
            taken = repos.links.existing_sources(trip_id, candidates, target)

            new_links: list[EntityLink] = []
            for photo in candidates:
                if photo in taken:
                    continue
                taken.add(photo)
                new_links.append(EntityLink.between(trip_id, photo, target, effective))

            if new_links:
                repos.links.add_all(new_links)
                uow.commit()

        result = BulkLinkResult(created=len(new_links), skipped=len(photos) - len(new_links))
        log.info(
            "Linked photos to %s in trip %s: created=%s, skipped=%s",
            target,
            trip_id,
            result.created,
            result.skipped,
        )
        return result

    # Queries -----------------------------------------------------------------

    def get_links_from(
        self,
        actor_id: int,
        trip_id: int,
        source: EntityRef,
        target_kind: EntityKind | None = None,
    ) -> list[EnrichedLink]:
        self._authorizer.verify_trip_access(actor_id, trip_id, PermissionLevel.VIEW)
        with self._unit_of_work_factory() as uow:
            return _links_from(uow.repositories, trip_id, source, target_kind)

    def get_links_to(
        self,
        actor_id: int,
        trip_id: int,
        target: EntityRef,
        source_kind: EntityKind | None = None,
    ) -> list[EnrichedLink]:
        self._authorizer.verify_trip_access(actor_id, trip_id, PermissionLevel.VIEW)
        with self._unit_of_work_factory() as uow:
            return _links_to(uow.repositories, trip_id, target, source_kind)

    def get_all_links_for_entity(
        self, actor_id: int, trip_id: int, ref: EntityRef
    ) -> EntityLinks:
        self._authorizer.verify_trip_access(actor_id, trip_id, PermissionLevel.VIEW)

        with self._unit_of_work_factory() as uow:
            links_from = _links_from(uow.repositories, trip_id, ref, None)
            links_to = _links_to(uow.repositories, trip_id, ref, None)

        summary = LinkSummary(kind=ref.kind, id=ref.id)
        for enriched in links_from:
            summary.count(enriched.link.target_kind)
        for enriched in links_to:
            summary.count(enriched.link.source_kind)

        return EntityLinks(links_from=links_from, links_to=links_to, summary=summary)

    def get_photos_for_entity(
        self, actor_id: int, trip_id: int, target: EntityRef
    ) -> list[Photo]:
        """Photos linked to ``target``, in link order."""

        self._authorizer.verify_trip_access(actor_id, trip_id, PermissionLevel.VIEW)

        with self._unit_of_work_factory() as uow:
            repos = uow.repositories
            links = repos.links.list_to(trip_id, target, source_kind=EntityKind.PHOTO)
            photo_ids = [link.source_id for link in links]
            if not photo_ids:
                return []
            loaded = repos.entities.load_batch(EntityKind.PHOTO, photo_ids)

        return [cast(Photo, loaded[photo_id]) for photo_id in photo_ids if photo_id in loaded]

    def get_links_by_target_type(
        self, actor_id: int, trip_id: int, target_kind: EntityKind
    ) -> list[TargetLinkRow]:
        """Unenriched rows for callers building their own lookup maps."""

        self._authorizer.verify_trip_access(actor_id, trip_id, PermissionLevel.VIEW)

        with self._unit_of_work_factory() as uow:
            links = uow.repositories.links.list_by_target_kind(trip_id, target_kind)
            return [
                TargetLinkRow(
                    source_kind=link.source_kind,
                    source_id=link.source_id,
                    target_id=link.target_id,
                )
                for link in links
            ]

    def get_trip_link_summary(self, actor_id: int, trip_id: int) -> dict[str, LinkSummary]:
        """Per-entity link counts for the whole trip, keyed by ``"KIND:id"``.

        The scan stops at the safety limit; a warning is logged when it is hit and
        the counts are then partial.
        """

        self._authorizer.verify_trip_access(actor_id, trip_id, PermissionLevel.VIEW)

        limit = self._summary_safety_limit
        with self._unit_of_work_factory() as uow:
            links = uow.repositories.links.list_for_trip(trip_id, limit=limit)

        if len(links) >= limit:
            log.warning(
                "Entity link summary for trip %s hit the %s row safety limit. "
                "Results may be incomplete.",
                trip_id,
                limit,
            )

        summaries: dict[str, LinkSummary] = {}
        for link in links:
            _summary_entry(summaries, link.source).count(link.target_kind)
            _summary_entry(summaries, link.target).count(link.source_kind)
        return summaries

    # Mutation ----------------------------------------------------------------

    def update_link(
        self,
        actor_id: int,
        trip_id: int,
        link_id: int,
        update: LinkUpdate,
    ) -> EntityLink:
        self._authorizer.verify_trip_access(actor_id, trip_id, PermissionLevel.EDIT)

        with self._unit_of_work_factory() as uow:
            link = uow.repositories.links.get(trip_id, link_id)
            if link is None:
                raise LinkNotFoundError
            if update.relationship is not None:
                link.relationship = update.relationship
            if update.notes is not UNSET:
                link.notes = update.notes
            if update.sort_order is not UNSET:
                link.sort_order = update.sort_order
            uow.commit()

        return link

    def delete_link(
        self,
        actor_id: int,
        trip_id: int,
        source: EntityRef,
        target: EntityRef,
    ) -> None:
        self._authorizer.verify_trip_access(actor_id, trip_id, PermissionLevel.EDIT)

        with self._unit_of_work_factory() as uow:
            link = uow.repositories.links.find(trip_id, source, target)
            if link is None:
                raise LinkNotFoundError
            uow.repositories.links.remove(link)
            uow.commit()

        log.info("Unlinked %s -> %s in trip %s", source, target, trip_id)

    def delete_link_by_id(self, actor_id: int, trip_id: int, link_id: int) -> None:
        self._authorizer.verify_trip_access(actor_id, trip_id, PermissionLevel.EDIT)

        with self._unit_of_work_factory() as uow:
            link = uow.repositories.links.get(trip_id, link_id)
            if link is None:
                raise LinkNotFoundError
            uow.repositories.links.remove(link)
            uow.commit()

        log.info("Deleted link %s in trip %s", link_id, trip_id)

    def delete_all_links_for_entity(self, actor_id: int, trip_id: int, ref: EntityRef) -> int:
        """Remove every link with ``ref`` on either end and return how many went."""

        self._authorizer.verify_trip_access(actor_id, trip_id, PermissionLevel.EDIT)

        with self._unit_of_work_factory() as uow:
            deleted = uow.repositories.links.delete_for_entity(trip_id, ref)
            uow.commit()

        log.info("Deleted %s links touching %s in trip %s", deleted, ref, trip_id)
        return deleted


def _links_from(
    repos: LinkRepositories,
    trip_id: int,
    source: EntityRef,
    target_kind: EntityKind | None,
) -> list[EnrichedLink]:
    links = repos.links.list_from(trip_id, source, target_kind)
    details = repos.entities.details_for(link.target for link in links)
    return [EnrichedLink(link=link, peer_entity=details.get(link.target)) for link in links]


def _links_to(
    repos: LinkRepositories,
    trip_id: int,
    target: EntityRef,
    source_kind: EntityKind | None,
) -> list[EnrichedLink]:
    links = repos.links.list_to(trip_id, target, source_kind)
    details = repos.entities.details_for(link.source for link in links)
    return [EnrichedLink(link=link, peer_entity=details.get(link.source)) for link in links]


def _summary_entry(summaries: dict[str, LinkSummary], ref: EntityRef) -> LinkSummary:
    entry = summaries.get(ref.key)
    if entry is None:
        entry = LinkSummary(kind=ref.kind, id=ref.id)
        summaries[ref.key] = entry
    return entry


def targets_for(refs: Iterable[EntityRef]) -> list[LinkTarget]:
    """Wrap plain refs as bulk targets with inferred relationships."""

    return [LinkTarget(ref=ref) for ref in refs]
