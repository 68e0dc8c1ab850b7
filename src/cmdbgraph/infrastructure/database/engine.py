"""SQLite engines for the CMDB store.

Everything goes through SQLAlchemy Core. A command issues a few narrow
queries and exits, so an ORM session would only add bookkeeping.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from cmdbgraph.infrastructure.database.schema import metadata

# Applied to every DBAPI connection, including the ones Alembic opens.
SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA foreign_keys=ON",
)


def sqlite_url(db_path: Path) -> str:
    return f"sqlite:///{db_path}"


def apply_pragmas(dbapi_conn: Any, _record: Any) -> None:
    """``connect`` listener running :data:`SQLITE_PRAGMAS`."""
    cursor = dbapi_conn.cursor()
    try:
        for pragma in SQLITE_PRAGMAS:
            cursor.execute(pragma)
    finally:
        cursor.close()


def create_db_engine(db_path: Path, **engine_kwargs: Any) -> Engine:
    """Engine for *db_path* with WAL journaling and foreign keys on."""
    engine = create_engine(sqlite_url(db_path), echo=False, **engine_kwargs)
    event.listen(engine, "connect", apply_pragmas)
    return engine


def init_database(db_path: Path) -> Engine:
    """Create any missing parent directories and tables, then return the engine.

    Running it against an existing database only adds what is absent.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path)
    metadata.create_all(engine)
    return engine
