"""Alembic entry script; invoked by ``alembic.command`` with a built Config."""

from __future__ import annotations

from alembic import context
from sqlalchemy import create_engine, event, pool

from cmdbgraph.infrastructure.database.engine import apply_pragmas
from cmdbgraph.infrastructure.database.schema import metadata

# SQLite cannot ALTER most constraints in place; batch mode rebuilds tables.
_COMMON = {"target_metadata": metadata, "render_as_batch": True}


def _database_url() -> str:
    url = context.config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError("sqlalchemy.url is not set on the Alembic config")
    return url


def run_offline() -> None:
    context.configure(
        url=_database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_COMMON,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    engine = create_engine(_database_url(), poolclass=pool.NullPool)
    event.listen(engine, "connect", apply_pragmas)
    with engine.connect() as connection:
        context.configure(connection=connection, **_COMMON)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
