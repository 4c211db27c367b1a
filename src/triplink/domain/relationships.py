"""Default relationship inference for links created without an explicit tag."""

from __future__ import annotations

from triplink.domain.model import EntityKind, Relationship


def infer_relationship(source: EntityKind, target: EntityKind) -> Relationship:
    """Pick the relationship implied by the endpoint kinds (first match wins)."""

    match (source, target):
        case (EntityKind.PHOTO, EntityKind.LOCATION):
            return Relationship.TAKEN_AT
        case (EntityKind.PHOTO, EntityKind.PHOTO_ALBUM | EntityKind.JOURNAL_ENTRY):
            return Relationship.FEATURED_IN
        case (EntityKind.ACTIVITY | EntityKind.LODGING, EntityKind.LOCATION):
            return Relationship.OCCURRED_AT
        case (EntityKind.JOURNAL_ENTRY, _):
            return Relationship.DOCUMENTS
        case _:
            return Relationship.RELATED
