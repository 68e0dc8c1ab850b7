"""Baseline schema: CI items, relationships, change history.

Revision ID: 001_baseline
Revises: None
Create Date: 2026-10-12

Databases created by ``cmdbgraph init`` are stamped at this revision
without running it.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def upgrade() -> None:
    op.create_table(
        "cmdb_items",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("cmdb_id", sa.Text, nullable=False, unique=True),
        sa.Column("asset_name", sa.Text, nullable=False),
        sa.Column("asset_category", sa.Text),
        sa.Column("status", sa.Text, server_default="active"),
        sa.Column("created_at", sa.Text),
    )
    op.create_index("ix_items_asset_name", "cmdb_items", ["asset_name"])

    op.create_table(
        "cmdb_relationships",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "source_cmdb_id", sa.Integer, sa.ForeignKey("cmdb_items.id"), nullable=False
        ),
        sa.Column(
            "target_cmdb_id", sa.Integer, sa.ForeignKey("cmdb_items.id"), nullable=False
        ),
        sa.Column("relationship_type", sa.Text, nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("is_active", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created_by", sa.Text),
        sa.Column("created_at", sa.Text, nullable=False),
        sa.Column("updated_at", sa.Text),
        sa.CheckConstraint(
            "source_cmdb_id <> target_cmdb_id", name="ck_relationship_no_self_loop"
        ),
    )
    op.create_index(
        "uq_active_relationship",
        "cmdb_relationships",
        ["source_cmdb_id", "target_cmdb_id", "relationship_type"],
        unique=True,
        sqlite_where=sa.text("is_active = 1"),
    )
    op.create_index("ix_relationships_source", "cmdb_relationships", ["source_cmdb_id"])
    op.create_index("ix_relationships_target", "cmdb_relationships", ["target_cmdb_id"])
    op.create_index("ix_relationships_type", "cmdb_relationships", ["relationship_type"])

    op.create_table(
        "cmdb_change_history",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "cmdb_item_id", sa.Integer, sa.ForeignKey("cmdb_items.id"), nullable=False
        ),
        sa.Column("change_type", sa.Text, nullable=False),
        sa.Column("field_name", sa.Text),
        sa.Column("old_value", sa.Text),
        sa.Column("new_value", sa.Text),
        sa.Column("changed_by", sa.Text),
        sa.Column("created_at", sa.Text, nullable=False),
    )
    op.create_index("ix_change_history_item", "cmdb_change_history", ["cmdb_item_id"])


def downgrade() -> None:
    op.drop_table("cmdb_change_history")
    op.drop_table("cmdb_relationships")
    op.drop_table("cmdb_items")
