"""Schema versioning with Alembic, configured in code rather than alembic.ini.

Revision scripts sit in ``versions/`` next to this package's ``env.py``.
"""

from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.migration import MigrationContext
from sqlalchemy import pool

from cmdbgraph.infrastructure.database.engine import create_db_engine, sqlite_url

SCRIPT_LOCATION = Path(__file__).parent


def build_config(db_url: str) -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", str(SCRIPT_LOCATION))
    cfg.set_main_option("sqlalchemy.url", db_url)
    return cfg


def stamp_head(db_path: Path) -> None:
    """Mark *db_path* as being at the newest revision without running scripts.

    ``cmdbgraph init`` creates tables from the metadata directly, so the
    baseline only needs recording.
    """
    command.stamp(build_config(sqlite_url(db_path)), "head")


def current_revision(db_path: Path) -> str | None:
    engine = create_db_engine(db_path, poolclass=pool.NullPool)
    try:
        with engine.connect() as conn:
            return MigrationContext.configure(conn).get_current_revision()
    finally:
        engine.dispose()
