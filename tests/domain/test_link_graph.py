from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from tests.helpers.trips import (
    OWNER_ID,
    RecordingAuthorizer,
    add_entities,
    delete_out_of_band,
    seed_trip,
)
from triplink.domain.errors import (
    ConflictError,
    EntityNotFoundError,
    ForbiddenError,
    InvalidOperationError,
    LinkNotFoundError,
)
from triplink.domain.link_graph import LinkGraphService, LinkTarget, LinkUpdate, targets_for
from triplink.domain.model import (
    Activity,
    EntityKind,
    EntityRef,
    Location,
    PermissionLevel,
    Photo,
    Relationship,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from tests.helpers.trips import TripFixture
    from triplink.adapters.sqlalchemy.unit_of_work import (
        SqlAlchemyLinkUnitOfWork,
        SqlAlchemyTripUnitOfWork,
    )
    from triplink.domain.access import TripAccessAuthorizer


VIEWER_ID = 2
LARGE_BATCH = 1500


@pytest.fixture
def trip_data(
    trip_unit_of_work: Callable[[], SqlAlchemyTripUnitOfWork],
    link_unit_of_work: Callable[[], SqlAlchemyLinkUnitOfWork],
) -> TripFixture:
    return seed_trip(
        trip_unit_of_work,
        link_unit_of_work,
        collaborators={VIEWER_ID: PermissionLevel.VIEW},
    )


# Creation ----------------------------------------------------------------------


def test_create_link_infers_relationship_and_is_listed(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    photo, location = trip_data.photo.ref, trip_data.location.ref

    link = link_service.create_link(OWNER_ID, trip_data.trip_id, photo, location)

    assert link.id is not None
    assert link.relationship == Relationship.TAKEN_AT
    links = link_service.get_links_from(OWNER_ID, trip_data.trip_id, photo)
    assert len(links) == 1
    assert links[0].link.id == link.id
    assert links[0].link.relationship == Relationship.TAKEN_AT
    assert links[0].peer_entity is not None
    assert links[0].peer_entity.name == "Ribeira"


def test_create_link_keeps_explicit_relationship_and_fields(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    link = link_service.create_link(
        OWNER_ID,
        trip_data.trip_id,
        trip_data.photo.ref,
        trip_data.location.ref,
        Relationship.PART_OF,
        notes="from the bridge",
        sort_order=3,
    )

    assert link.relationship == Relationship.PART_OF
    assert link.notes == "from the bridge"
    assert link.sort_order == 3


def test_create_duplicate_link_conflicts(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    photo, location = trip_data.photo.ref, trip_data.location.ref
    link_service.create_link(OWNER_ID, trip_data.trip_id, photo, location)

    with pytest.raises(ConflictError, match="Link already exists between these entities"):
        link_service.create_link(OWNER_ID, trip_data.trip_id, photo, location)


def test_create_self_link_is_rejected(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    photo = trip_data.photo.ref

    with pytest.raises(InvalidOperationError, match="Cannot link an entity to itself"):
        link_service.create_link(OWNER_ID, trip_data.trip_id, photo, photo)


def test_reverse_direction_is_a_distinct_link(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    photo, location = trip_data.photo.ref, trip_data.location.ref

    forward = link_service.create_link(OWNER_ID, trip_data.trip_id, photo, location)
    backward = link_service.create_link(OWNER_ID, trip_data.trip_id, location, photo)

    assert forward.id != backward.id
    assert backward.relationship == Relationship.RELATED


def test_create_link_requires_endpoints_in_trip(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    missing = EntityRef(EntityKind.LOCATION, 999)

    with pytest.raises(
        EntityNotFoundError,
        match=f"LOCATION with ID 999 not found in trip {trip_data.trip_id}",
    ):
        link_service.create_link(OWNER_ID, trip_data.trip_id, trip_data.photo.ref, missing)


def test_create_link_rejects_entity_from_another_trip(
    link_service: LinkGraphService,
    trip_data: TripFixture,
    trip_unit_of_work: Callable[[], SqlAlchemyTripUnitOfWork],
    link_unit_of_work: Callable[[], SqlAlchemyLinkUnitOfWork],
) -> None:
    other = seed_trip(trip_unit_of_work, link_unit_of_work)

    with pytest.raises(EntityNotFoundError):
        link_service.create_link(
            OWNER_ID, trip_data.trip_id, trip_data.photo.ref, other.location.ref
        )


# Bulk creation -----------------------------------------------------------------


def test_bulk_create_skips_existing_self_and_repeated_targets(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    trip_id = trip_data.trip_id
    photo = trip_data.photo.ref
    link_service.create_link(OWNER_ID, trip_id, photo, trip_data.location.ref)

    result = link_service.bulk_create_links(
        OWNER_ID,
        trip_id,
        photo,
        [
            LinkTarget(ref=trip_data.location.ref),
            LinkTarget(ref=trip_data.album.ref),
            LinkTarget(ref=trip_data.journal_entry.ref, sort_order=1, notes="cover"),
            LinkTarget(ref=photo),
            LinkTarget(ref=trip_data.album.ref),
        ],
    )

    assert (result.created, result.skipped) == (2, 3)
    links = {
        enriched.link.target: enriched.link
        for enriched in link_service.get_links_from(OWNER_ID, trip_id, photo)
    }
    assert set(links) == {
        trip_data.location.ref,
        trip_data.album.ref,
        trip_data.journal_entry.ref,
    }
    assert links[trip_data.album.ref].relationship == Relationship.FEATURED_IN
    assert links[trip_data.journal_entry.ref].notes == "cover"
    assert links[trip_data.journal_entry.ref].sort_order == 1


def test_bulk_create_matches_existing_links_pairwise(
    link_service: LinkGraphService,
    trip_data: TripFixture,
    link_unit_of_work: Callable[[], SqlAlchemyLinkUnitOfWork],
) -> None:
    trip_id = trip_data.trip_id
    (second_location,) = add_entities(
        link_unit_of_work, Location(trip_id=trip_id, name="Foz")
    )
    (second_activity,) = add_entities(
        link_unit_of_work, Activity(trip_id=trip_id, name="Surf lesson")
    )
    # existing pairs: LOCATION:first and ACTIVITY:second
    source = trip_data.journal_entry.ref
    link_service.create_link(OWNER_ID, trip_id, source, trip_data.location.ref)
    link_service.create_link(OWNER_ID, trip_id, source, second_activity.ref)

    # only the crossed combinations are requested; none of them exist yet
    result = link_service.bulk_create_links(
        OWNER_ID,
        trip_id,
        source,
        targets_for([second_location.ref, trip_data.activity.ref]),
    )

    assert (result.created, result.skipped) == (2, 0)
    assert len(link_service.get_links_from(OWNER_ID, trip_id, source)) == 4


def test_bulk_create_verifies_every_target(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    trip_id = trip_data.trip_id

    with pytest.raises(
        EntityNotFoundError, match=f"One or more PHOTO_ALBUM entities not found in trip {trip_id}"
    ):
        link_service.bulk_create_links(
            OWNER_ID,
            trip_id,
            trip_data.photo.ref,
            targets_for([trip_data.location.ref, EntityRef(EntityKind.PHOTO_ALBUM, 404)]),
        )

    assert link_service.get_links_from(OWNER_ID, trip_id, trip_data.photo.ref) == []


def test_bulk_link_photos_uses_one_relationship(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    trip_id = trip_data.trip_id
    album = trip_data.album.ref
    first, second = trip_data.photo.persisted_id, trip_data.second_photo.persisted_id
    link_service.create_link(OWNER_ID, trip_id, trip_data.second_photo.ref, album)

    result = link_service.bulk_link_photos(OWNER_ID, trip_id, album, [first, second, first])

    assert (result.created, result.skipped) == (1, 2)
    links = link_service.get_links_to(OWNER_ID, trip_id, album)
    assert {enriched.link.source_id for enriched in links} == {first, second}
    assert {enriched.link.relationship for enriched in links} == {Relationship.FEATURED_IN}


def test_bulk_link_photos_with_explicit_relationship(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    trip_id = trip_data.trip_id

    link_service.bulk_link_photos(
        OWNER_ID,
        trip_id,
        trip_data.activity.ref,
        [trip_data.photo.persisted_id],
        Relationship.DOCUMENTS,
    )

    (enriched,) = link_service.get_links_to(OWNER_ID, trip_id, trip_data.activity.ref)
    assert enriched.link.relationship == Relationship.DOCUMENTS
    assert enriched.peer_entity is not None
    assert enriched.peer_entity.caption == "Ribeira at dusk"
    assert enriched.peer_entity.thumbnail_path == "thumbs/1.jpg"


def test_bulk_link_photos_requires_all_photos(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    with pytest.raises(EntityNotFoundError, match="One or more PHOTO entities not found"):
        link_service.bulk_link_photos(
            OWNER_ID,
            trip_data.trip_id,
            trip_data.location.ref,
            [trip_data.photo.persisted_id, 404],
        )


def test_bulk_create_handles_large_target_lists(
    link_service: LinkGraphService,
    trip_data: TripFixture,
    link_unit_of_work: Callable[[], SqlAlchemyLinkUnitOfWork],
) -> None:
    trip_id = trip_data.trip_id
    source = trip_data.journal_entry.ref
    locations = add_entities(
        link_unit_of_work,
        *(Location(trip_id=trip_id, name=f"Stop {index}") for index in range(LARGE_BATCH)),
    )
    link_service.create_link(OWNER_ID, trip_id, source, locations[0].ref)
    targets = [location.ref for location in locations]
    targets.append(trip_data.activity.ref)

    result = link_service.bulk_create_links(OWNER_ID, trip_id, source, targets_for(targets))

    assert (result.created, result.skipped) == (LARGE_BATCH, 1)
    assert len(link_service.get_links_from(OWNER_ID, trip_id, source)) == LARGE_BATCH + 1


def test_bulk_link_photos_handles_large_photo_lists(
    link_service: LinkGraphService,
    trip_data: TripFixture,
    link_unit_of_work: Callable[[], SqlAlchemyLinkUnitOfWork],
) -> None:
    trip_id = trip_data.trip_id
    album = trip_data.album.ref
    photos = add_entities(
        link_unit_of_work,
        *(Photo(trip_id=trip_id, caption=f"Frame {index}") for index in range(LARGE_BATCH)),
    )
    link_service.create_link(OWNER_ID, trip_id, photos[-1].ref, album)

    result = link_service.bulk_link_photos(
        OWNER_ID, trip_id, album, [photo.persisted_id for photo in photos]
    )

    assert (result.created, result.skipped) == (LARGE_BATCH - 1, 1)
    assert len(link_service.get_links_to(OWNER_ID, trip_id, album)) == LARGE_BATCH


# Queries -----------------------------------------------------------------------


def test_links_are_ordered_by_sort_order_with_nulls_last(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    trip_id = trip_data.trip_id
    source = trip_data.journal_entry.ref
    link_service.create_link(OWNER_ID, trip_id, source, trip_data.location.ref, sort_order=2)
    link_service.create_link(OWNER_ID, trip_id, source, trip_data.activity.ref)
    link_service.create_link(OWNER_ID, trip_id, source, trip_data.lodging.ref, sort_order=1)
    link_service.create_link(OWNER_ID, trip_id, source, trip_data.transportation.ref)

    links = link_service.get_links_from(OWNER_ID, trip_id, source)

    assert [enriched.link.target for enriched in links] == [
        trip_data.lodging.ref,
        trip_data.location.ref,
        trip_data.activity.ref,
        trip_data.transportation.ref,
    ]
    assert links[-1].peer_entity is not None
    assert links[-1].peer_entity.name == "Train - CP"


def test_directional_queries_filter_by_peer_kind(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    trip_id = trip_data.trip_id
    location = trip_data.location.ref
    link_service.create_link(OWNER_ID, trip_id, trip_data.photo.ref, location)
    link_service.create_link(OWNER_ID, trip_id, trip_data.activity.ref, location)

    photos_to = link_service.get_links_to(OWNER_ID, trip_id, location, EntityKind.PHOTO)
    activities_to = link_service.get_links_to(OWNER_ID, trip_id, location, EntityKind.ACTIVITY)

    assert [enriched.link.source for enriched in photos_to] == [trip_data.photo.ref]
    assert [enriched.link.source for enriched in activities_to] == [trip_data.activity.ref]
    assert activities_to[0].link.relationship == Relationship.OCCURRED_AT
    assert link_service.get_links_from(OWNER_ID, trip_id, location) == []


def test_peer_entity_is_none_when_peer_row_is_gone(
    link_service: LinkGraphService,
    trip_data: TripFixture,
    link_unit_of_work: Callable[[], SqlAlchemyLinkUnitOfWork],
) -> None:
    trip_id = trip_data.trip_id
    link_service.create_link(OWNER_ID, trip_id, trip_data.photo.ref, trip_data.location.ref)
    delete_out_of_band(link_unit_of_work, trip_data.location.ref)

    (enriched,) = link_service.get_links_from(OWNER_ID, trip_id, trip_data.photo.ref)

    assert enriched.peer_entity is None


def test_get_all_links_for_entity_summarises_both_directions(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    trip_id = trip_data.trip_id
    location = trip_data.location.ref
    link_service.create_link(OWNER_ID, trip_id, trip_data.photo.ref, location)
    link_service.create_link(OWNER_ID, trip_id, trip_data.activity.ref, location)
    link_service.create_link(OWNER_ID, trip_id, location, trip_data.album.ref)

    result = link_service.get_all_links_for_entity(OWNER_ID, trip_id, location)

    assert len(result.links_from) == 1
    assert len(result.links_to) == 2
    assert result.summary.kind == EntityKind.LOCATION
    assert result.summary.id == location.id
    assert result.summary.total_links == 3
    assert result.summary.link_counts == {
        EntityKind.PHOTO_ALBUM: 1,
        EntityKind.PHOTO: 1,
        EntityKind.ACTIVITY: 1,
    }


def test_get_photos_for_entity_follows_link_order(
    link_service: LinkGraphService,
    trip_data: TripFixture,
    link_unit_of_work: Callable[[], SqlAlchemyLinkUnitOfWork],
) -> None:
    trip_id = trip_data.trip_id
    album = trip_data.album.ref
    (third,) = add_entities(link_unit_of_work, Photo(trip_id=trip_id, caption="Gone"))
    link_service.create_link(OWNER_ID, trip_id, trip_data.photo.ref, album, sort_order=2)
    link_service.create_link(OWNER_ID, trip_id, trip_data.second_photo.ref, album, sort_order=1)
    link_service.create_link(OWNER_ID, trip_id, third.ref, album, sort_order=0)
    link_service.create_link(OWNER_ID, trip_id, trip_data.location.ref, album)
    delete_out_of_band(link_unit_of_work, third.ref)

    photos = link_service.get_photos_for_entity(OWNER_ID, trip_id, album)

    assert [photo.id for photo in photos] == [
        trip_data.second_photo.id,
        trip_data.photo.id,
    ]


def test_get_photos_for_entity_without_links(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    assert link_service.get_photos_for_entity(OWNER_ID, trip_data.trip_id, trip_data.album.ref) == []


def test_get_links_by_target_type_returns_plain_rows(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    trip_id = trip_data.trip_id
    location = trip_data.location.ref
    link_service.create_link(OWNER_ID, trip_id, trip_data.photo.ref, location)
    link_service.create_link(OWNER_ID, trip_id, trip_data.lodging.ref, location)
    link_service.create_link(OWNER_ID, trip_id, trip_data.photo.ref, trip_data.album.ref)

    rows = link_service.get_links_by_target_type(OWNER_ID, trip_id, EntityKind.LOCATION)

    assert {(row.source_kind, row.source_id, row.target_id) for row in rows} == {
        (EntityKind.PHOTO, trip_data.photo.persisted_id, location.id),
        (EntityKind.LODGING, trip_data.lodging.persisted_id, location.id),
    }


def test_trip_link_summary_counts_each_endpoint(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    trip_id = trip_data.trip_id
    photo, location = trip_data.photo.ref, trip_data.location.ref
    link_service.create_link(OWNER_ID, trip_id, photo, location)

    summary = link_service.get_trip_link_summary(OWNER_ID, trip_id)

    assert set(summary) == {photo.key, location.key}
    assert summary[photo.key].total_links == 1
    assert summary[photo.key].link_counts == {EntityKind.LOCATION: 1}
    assert summary[location.key].total_links == 1
    assert summary[location.key].link_counts == {EntityKind.PHOTO: 1}


def test_trip_link_summary_warns_at_safety_limit(
    link_unit_of_work: Callable[[], SqlAlchemyLinkUnitOfWork],
    authorizer: TripAccessAuthorizer,
    trip_data: TripFixture,
    caplog: pytest.LogCaptureFixture,
) -> None:
    service = LinkGraphService(
        unit_of_work_factory=link_unit_of_work,
        authorizer=authorizer,
        summary_safety_limit=2,
    )
    trip_id = trip_data.trip_id
    photo = trip_data.photo.ref
    service.bulk_create_links(
        OWNER_ID,
        trip_id,
        photo,
        targets_for(
            [trip_data.location.ref, trip_data.album.ref, trip_data.journal_entry.ref]
        ),
    )

    with caplog.at_level(logging.WARNING, logger="triplink.domain.link_graph"):
        summary = service.get_trip_link_summary(OWNER_ID, trip_id)

    assert summary[photo.key].total_links == 2
    assert "safety limit" in caplog.text


# Mutation ----------------------------------------------------------------------


def test_update_link_changes_only_supplied_fields(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    trip_id = trip_data.trip_id
    link = link_service.create_link(
        OWNER_ID,
        trip_id,
        trip_data.photo.ref,
        trip_data.location.ref,
        notes="first visit",
        sort_order=4,
    )
    assert link.id is not None

    updated = link_service.update_link(
        OWNER_ID, trip_id, link.id, LinkUpdate(relationship=Relationship.RELATED)
    )
    assert updated.relationship == Relationship.RELATED
    assert updated.notes == "first visit"
    assert updated.sort_order == 4

    updated = link_service.update_link(OWNER_ID, trip_id, link.id, LinkUpdate(notes=None))
    assert updated.notes is None
    assert updated.sort_order == 4
    assert updated.relationship == Relationship.RELATED

    updated = link_service.update_link(OWNER_ID, trip_id, link.id, LinkUpdate(sort_order=0))
    assert updated.sort_order == 0

    (stored,) = link_service.get_links_from(OWNER_ID, trip_id, trip_data.photo.ref)
    assert stored.link.relationship == Relationship.RELATED
    assert stored.link.notes is None
    assert stored.link.sort_order == 0


def test_update_missing_link_is_not_found(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    with pytest.raises(LinkNotFoundError, match="Link not found"):
        link_service.update_link(OWNER_ID, trip_data.trip_id, 12345, LinkUpdate(notes="x"))


def test_link_of_another_trip_is_not_found(
    link_service: LinkGraphService,
    trip_data: TripFixture,
    trip_unit_of_work: Callable[[], SqlAlchemyTripUnitOfWork],
    link_unit_of_work: Callable[[], SqlAlchemyLinkUnitOfWork],
) -> None:
    other = seed_trip(trip_unit_of_work, link_unit_of_work)
    foreign = link_service.create_link(
        OWNER_ID, other.trip_id, other.photo.ref, other.location.ref
    )
    assert foreign.id is not None

    with pytest.raises(LinkNotFoundError):
        link_service.update_link(OWNER_ID, trip_data.trip_id, foreign.id, LinkUpdate(notes="x"))
    with pytest.raises(LinkNotFoundError):
        link_service.delete_link_by_id(OWNER_ID, trip_data.trip_id, foreign.id)


def test_delete_link_by_endpoints(link_service: LinkGraphService, trip_data: TripFixture) -> None:
    trip_id = trip_data.trip_id
    photo, location = trip_data.photo.ref, trip_data.location.ref
    link_service.create_link(OWNER_ID, trip_id, photo, location)
    link_service.create_link(OWNER_ID, trip_id, location, photo)

    link_service.delete_link(OWNER_ID, trip_id, photo, location)

    assert link_service.get_links_from(OWNER_ID, trip_id, photo) == []
    assert len(link_service.get_links_from(OWNER_ID, trip_id, location)) == 1
    with pytest.raises(LinkNotFoundError, match="Link not found"):
        link_service.delete_link(OWNER_ID, trip_id, photo, location)


def test_delete_link_by_id(link_service: LinkGraphService, trip_data: TripFixture) -> None:
    trip_id = trip_data.trip_id
    link = link_service.create_link(
        OWNER_ID, trip_id, trip_data.photo.ref, trip_data.location.ref
    )
    assert link.id is not None

    link_service.delete_link_by_id(OWNER_ID, trip_id, link.id)

    assert link_service.get_links_from(OWNER_ID, trip_id, trip_data.photo.ref) == []
    with pytest.raises(LinkNotFoundError):
        link_service.delete_link_by_id(OWNER_ID, trip_id, link.id)


def test_delete_all_links_for_entity_clears_both_directions(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    trip_id = trip_data.trip_id
    location = trip_data.location.ref
    link_service.create_link(OWNER_ID, trip_id, trip_data.photo.ref, location)
    link_service.create_link(OWNER_ID, trip_id, location, trip_data.album.ref)
    link_service.create_link(OWNER_ID, trip_id, trip_data.photo.ref, trip_data.album.ref)

    deleted = link_service.delete_all_links_for_entity(OWNER_ID, trip_id, location)

    assert deleted == 2
    result = link_service.get_all_links_for_entity(OWNER_ID, trip_id, location)
    assert result.summary.total_links == 0
    assert len(link_service.get_links_from(OWNER_ID, trip_id, trip_data.photo.ref)) == 1


# Authorization -----------------------------------------------------------------


def test_every_operation_authorizes_first(
    link_unit_of_work: Callable[[], SqlAlchemyLinkUnitOfWork],
    trip_data: TripFixture,
) -> None:
    authorizer = RecordingAuthorizer(allow=False)
    service = LinkGraphService(unit_of_work_factory=link_unit_of_work, authorizer=authorizer)
    trip_id = trip_data.trip_id

    with pytest.raises(ForbiddenError):
        service.create_link(9, trip_id, trip_data.photo.ref, trip_data.location.ref)
    with pytest.raises(ForbiddenError):
        service.get_links_from(9, trip_id, trip_data.photo.ref)

    assert authorizer.calls == [
        (9, trip_id, PermissionLevel.EDIT),
        (9, trip_id, PermissionLevel.VIEW),
    ]


def test_viewer_can_read_but_not_write(
    link_service: LinkGraphService, trip_data: TripFixture
) -> None:
    trip_id = trip_data.trip_id
    link_service.create_link(OWNER_ID, trip_id, trip_data.photo.ref, trip_data.location.ref)

    assert len(link_service.get_links_from(VIEWER_ID, trip_id, trip_data.photo.ref)) == 1
    with pytest.raises(ForbiddenError, match="Insufficient permissions"):
        link_service.delete_all_links_for_entity(VIEWER_ID, trip_id, trip_data.photo.ref)
