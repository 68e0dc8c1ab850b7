"""SQLAlchemy Core table definitions for the cmdbgraph database.

``cmdb_items`` is owned by the CMDB CRUD layer; this engine only reads it.
``cmdb_relationships`` rows are soft-deleted (``is_active = 0``) and never
physically removed. ``cmdb_change_history`` receives one row per side of
every relationship mutation.
"""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
)

metadata = MetaData()

cmdb_items = Table(
    "cmdb_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("cmdb_id", Text, nullable=False, unique=True),
    Column("asset_name", Text, nullable=False),
    Column("asset_category", Text),
    Column("status", Text, default="active", server_default="active"),
    Column("created_at", Text),
)

cmdb_relationships = Table(
    "cmdb_relationships",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("source_cmdb_id", Integer, ForeignKey("cmdb_items.id"), nullable=False),
    Column("target_cmdb_id", Integer, ForeignKey("cmdb_items.id"), nullable=False),
    Column("relationship_type", Text, nullable=False),
    Column("description", Text),
    Column("is_active", Integer, nullable=False, default=1, server_default="1"),
    Column("created_by", Text),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text),
    CheckConstraint("source_cmdb_id <> target_cmdb_id", name="ck_relationship_no_self_loop"),
)

cmdb_change_history = Table(
    "cmdb_change_history",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("cmdb_item_id", Integer, ForeignKey("cmdb_items.id"), nullable=False),
    Column("change_type", Text, nullable=False),
    Column("field_name", Text),
    Column("old_value", Text),
    Column("new_value", Text),
    Column("changed_by", Text),
    Column("created_at", Text, nullable=False),
)

# ---------------------------------------------------------------------------
# Indexes
# ---------------------------------------------------------------------------

# At most one *active* edge per (source, target, type); inactive rows are
# history and may repeat.
Index(
    "uq_active_relationship",
    cmdb_relationships.c.source_cmdb_id,
    cmdb_relationships.c.target_cmdb_id,
    cmdb_relationships.c.relationship_type,
    unique=True,
    sqlite_where=cmdb_relationships.c.is_active == 1,
)
Index("ix_relationships_source", cmdb_relationships.c.source_cmdb_id)
Index("ix_relationships_target", cmdb_relationships.c.target_cmdb_id)
Index("ix_relationships_type", cmdb_relationships.c.relationship_type)
Index("ix_items_asset_name", cmdb_items.c.asset_name)
Index("ix_change_history_item", cmdb_change_history.c.cmdb_item_id)
