"""SQLite database engine and schema via SQLAlchemy Core."""

from cmdbgraph.infrastructure.database.engine import create_db_engine, init_database
from cmdbgraph.infrastructure.database.schema import (
    cmdb_change_history,
    cmdb_items,
    cmdb_relationships,
    metadata,
)

__all__ = [
    "cmdb_change_history",
    "cmdb_items",
    "cmdb_relationships",
    "create_db_engine",
    "init_database",
    "metadata",
]
