"""initial schema: trips, linkable entities, entity links

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from __future__ import annotations

from typing import Any

import sqlalchemy as sa
from alembic import op

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _entity_table(name: str, *columns: sa.Column[Any]) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("trip_id", sa.Integer(), nullable=False),
        *columns,
        sa.ForeignKeyConstraint(
            ["trip_id"], ["trip.id"], name=f"fk_{name}_trip_id_trip", ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id", name=f"pk_{name}"),
    )
    op.create_index(f"ix_{name}_trip_id", name, ["trip_id"])


def upgrade() -> None:
    op.create_table(
        "trip",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("privacy", sa.String(length=16), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_trip"),
    )
    op.create_index("ix_trip_owner_id", "trip", ["owner_id"])

    op.create_table(
        "trip_collaborator",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("trip_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("permission", sa.String(length=16), nullable=False),
        sa.ForeignKeyConstraint(
            ["trip_id"],
            ["trip.id"],
            name="fk_trip_collaborator_trip_id_trip",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_trip_collaborator"),
        sa.UniqueConstraint("trip_id", "user_id", name="uq_trip_collaborator_user"),
    )

    _entity_table(
        "photo",
        sa.Column("caption", sa.String(), nullable=True),
        sa.Column("thumbnail_path", sa.String(), nullable=True),
        sa.Column("taken_at", sa.DateTime(timezone=True), nullable=True),
    )
    _entity_table("location", sa.Column("name", sa.String(), nullable=False))
    _entity_table("activity", sa.Column("name", sa.String(), nullable=False))
    _entity_table("lodging", sa.Column("name", sa.String(), nullable=False))
    _entity_table(
        "transportation",
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("company", sa.String(), nullable=True),
    )
    _entity_table(
        "journal_entry",
        sa.Column("title", sa.String(), nullable=True),
        sa.Column("date", sa.Date(), nullable=True),
    )
    _entity_table("photo_album", sa.Column("name", sa.String(), nullable=False))

    op.create_table(
        "entity_link",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("trip_id", sa.Integer(), nullable=False),
        sa.Column("source_kind", sa.String(length=32), nullable=False),
        sa.Column("source_id", sa.Integer(), nullable=False),
        sa.Column("target_kind", sa.String(length=32), nullable=False),
        sa.Column("target_id", sa.Integer(), nullable=False),
        sa.Column("relationship", sa.String(length=32), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["trip_id"], ["trip.id"], name="fk_entity_link_trip_id_trip", ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_entity_link"),
        sa.UniqueConstraint(
            "trip_id",
            "source_kind",
            "source_id",
            "target_kind",
            "target_id",
            name="uq_entity_link_direction",
        ),
    )
    op.create_index("ix_entity_link_source", "entity_link", ["trip_id", "source_kind", "source_id"])
    op.create_index("ix_entity_link_target", "entity_link", ["trip_id", "target_kind", "target_id"])


def downgrade() -> None:
    op.drop_index("ix_entity_link_target", table_name="entity_link")
    op.drop_index("ix_entity_link_source", table_name="entity_link")
    op.drop_table("entity_link")
    for name in (
        "photo_album",
        "journal_entry",
        "transportation",
        "lodging",
        "activity",
        "location",
        "photo",
    ):
        op.drop_index(f"ix_{name}_trip_id", table_name=name)
        op.drop_table(name)
    op.drop_table("trip_collaborator")
    op.drop_index("ix_trip_owner_id", table_name="trip")
    op.drop_table("trip")
