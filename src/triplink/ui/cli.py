from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from triplink.app import build_link_graph_service, cleanup_orphaned_links, remove_entity
from triplink.config import configure_logging
from triplink.domain.errors import TriplinkError
from triplink.domain.link_graph import UNSET, LinkUpdate, targets_for
from triplink.domain.model import EntityKind, EntityRef, Relationship

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from triplink.domain.link_graph import EnrichedLink, LinkGraphService

log = logging.getLogger(__name__)


def _parse_kind(value: str) -> EntityKind:
    try:
        return EntityKind(value.strip().upper())
    except ValueError as exc:
        raise ValueError(f"Unknown entity kind: {value}") from exc


def _parse_relationship(value: str) -> Relationship:
    try:
        return Relationship(value.strip().upper())
    except ValueError as exc:
        raise ValueError(f"Unknown relationship: {value}") from exc


def _parse_ref(value: str) -> EntityRef:
    """Parse ``KIND:id`` (e.g. ``PHOTO:12``)."""

    kind, sep, raw_id = value.partition(":")
    if not sep:
        raise ValueError(f"Invalid entity reference (expected KIND:id): {value}")
    try:
        entity_id = int(raw_id)
    except ValueError as exc:
        raise ValueError(f"Invalid entity id in reference: {value}") from exc
    return EntityRef(_parse_kind(kind), entity_id)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Maintain links between trip entities")
    parser.add_argument("--actor", type=int, required=True, help="Acting user id")
    parser.add_argument("--trip", type=int, required=True, help="Trip id")
    subparsers = parser.add_subparsers(dest="command", required=True)

    link = subparsers.add_parser("link", help="Entity link commands")
    link_sub = link.add_subparsers(dest="link_command", required=True)

    create = link_sub.add_parser("create", help="Link one entity to another")
    create.add_argument("--source", type=str, required=True, help="Source as KIND:id")
    create.add_argument("--target", type=str, required=True, help="Target as KIND:id")
    create.add_argument("--relationship", type=str, help="Explicit relationship tag")
    create.add_argument("--notes", type=str, help="Free-form notes")
    create.add_argument("--sort-order", type=int, help="Position among sibling links")

    bulk = link_sub.add_parser("bulk", help="Link one source to many targets")
    bulk.add_argument("--source", type=str, required=True, help="Source as KIND:id")
    bulk.add_argument(
        "--target",
        type=str,
        action="append",
        required=True,
        help="Target as KIND:id (repeatable)",
    )

    photos = link_sub.add_parser("photos", help="Link many photos to one target")
    photos.add_argument("--target", type=str, required=True, help="Target as KIND:id")
    photos.add_argument(
        "--photo",
        type=int,
        action="append",
        required=True,
        help="Photo id (repeatable)",
    )
    photos.add_argument("--relationship", type=str, help="Relationship for every link")

    listing = link_sub.add_parser("list", help="Show links of an entity")
    listing.add_argument("--entity", type=str, required=True, help="Entity as KIND:id")
    listing.add_argument(
        "--direction",
        choices=("from", "to", "both"),
        default="both",
        help="Which links to show (default: %(default)s)",
    )
    listing.add_argument("--kind", type=str, help="Only show peers of this kind")

    update = link_sub.add_parser("update", help="Change relationship, notes or order")
    update.add_argument("--link-id", type=int, required=True, help="Link id")
    update.add_argument("--relationship", type=str, help="New relationship tag")
    notes = update.add_mutually_exclusive_group()
    notes.add_argument("--notes", type=str, help="New notes")
    notes.add_argument("--clear-notes", action="store_true", help="Remove notes")
    order = update.add_mutually_exclusive_group()
    order.add_argument("--sort-order", type=int, help="New sort order")
    order.add_argument("--clear-sort-order", action="store_true", help="Remove sort order")

    remove = link_sub.add_parser("delete", help="Delete one link or all links of an entity")
    remove.add_argument("--link-id", type=int, help="Link id")
    remove.add_argument("--source", type=str, help="Source as KIND:id")
    remove.add_argument("--target", type=str, help="Target as KIND:id")
    remove.add_argument("--entity", type=str, help="Delete every link touching KIND:id")

    link_sub.add_parser("summary", help="Per-entity link counts for the trip")
    link_sub.add_parser("cleanup", help="Delete links whose endpoints no longer exist")

    entity = subparsers.add_parser("entity", help="Entity commands")
    entity_sub = entity.add_subparsers(dest="entity_command", required=True)
    entity_remove = entity_sub.add_parser("remove", help="Delete an entity and its links")
    entity_remove.add_argument("--entity", type=str, required=True, help="Entity as KIND:id")

    return parser.parse_args(list(argv))


def _validate(args: argparse.Namespace) -> None:
    """Convert string options to domain values in place; raise ValueError on bad input."""

    for name in ("source", "target", "entity"):
        value = getattr(args, name, None)
        if isinstance(value, str):
            setattr(args, name, _parse_ref(value))
    if isinstance(getattr(args, "relationship", None), str):
        args.relationship = _parse_relationship(args.relationship)
    if isinstance(getattr(args, "kind", None), str):
        args.kind = _parse_kind(args.kind)
    if isinstance(getattr(args, "target", None), list):
        args.target = [_parse_ref(value) for value in args.target]

    if args.command == "link" and args.link_command == "delete":
        by_pair = args.source is not None or args.target is not None
        chosen = sum((args.link_id is not None, by_pair, args.entity is not None))
        if chosen != 1:
            raise ValueError("Use exactly one of --link-id, --source/--target or --entity")
        if by_pair and (args.source is None or args.target is None):
            raise ValueError("--source and --target must be given together")


def _log_links(label: str, links: list[EnrichedLink]) -> None:
    log.info("%s: %s", label, len(links))
    for enriched in links:
        link = enriched.link
        log.info(
            "  #%s %s -[%s]-> %s sort_order=%s notes=%r peer=%s",
            link.id,
            link.source,
            link.relationship,
            link.target,
            link.sort_order,
            link.notes,
            enriched.peer_entity,
        )


def _run_link_command(service: LinkGraphService, args: argparse.Namespace) -> None:
    actor, trip = args.actor, args.trip
    command = args.link_command

    if command == "create":
        link = service.create_link(
            actor,
            trip,
            args.source,
            args.target,
            args.relationship,
            notes=args.notes,
            sort_order=args.sort_order,
        )
        log.info("Created link %s (%s)", link.id, link.relationship)
    elif command == "bulk":
        result = service.bulk_create_links(actor, trip, args.source, targets_for(args.target))
        log.info("Bulk link finished: created=%s, skipped=%s", result.created, result.skipped)
    elif command == "photos":
        result = service.bulk_link_photos(
            actor, trip, args.target, args.photo, args.relationship
        )
        log.info("Photo link finished: created=%s, skipped=%s", result.created, result.skipped)
    elif command == "list":
        if args.direction in ("from", "both"):
            _log_links("Links from", service.get_links_from(actor, trip, args.entity, args.kind))
        if args.direction in ("to", "both"):
            _log_links("Links to", service.get_links_to(actor, trip, args.entity, args.kind))
    elif command == "update":
        update = LinkUpdate(
            relationship=args.relationship,
            notes=None if args.clear_notes else (args.notes if args.notes is not None else UNSET),
            sort_order=(
                None
                if args.clear_sort_order
                else (args.sort_order if args.sort_order is not None else UNSET)
            ),
        )
        link = service.update_link(actor, trip, args.link_id, update)
        log.info("Updated link %s", link.id)
    elif command == "delete":
        if args.link_id is not None:
            service.delete_link_by_id(actor, trip, args.link_id)
        elif args.entity is not None:
            deleted = service.delete_all_links_for_entity(actor, trip, args.entity)
            log.info("Deleted %s links", deleted)
        else:
            service.delete_link(actor, trip, args.source, args.target)
    elif command == "summary":
        summaries = service.get_trip_link_summary(actor, trip)
        for key, summary in sorted(summaries.items()):
            counts = ", ".join(f"{kind}={count}" for kind, count in summary.link_counts.items())
            log.info("%s total=%s %s", key, summary.total_links, counts)
    else:
        raise ValueError(f"Unsupported link command: {command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "link":
            if parsed_args.link_command == "cleanup":
                deleted = cleanup_orphaned_links(parsed_args.actor, parsed_args.trip)
                log.info("Orphan cleanup removed %s links", deleted)
            else:
                _run_link_command(build_link_graph_service(), parsed_args)
        elif parsed_args.command == "entity" and parsed_args.entity_command == "remove":
            removed = remove_entity(parsed_args.actor, parsed_args.trip, parsed_args.entity)
            log.info("Removed %s and %s links", parsed_args.entity, removed)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except TriplinkError as exc:
        log.error("%s: %s", type(exc).__name__, exc)  # noqa: TRY400
        sys.exit(1)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point: load `.env`, trap Ctrl+C, run the CLI."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
