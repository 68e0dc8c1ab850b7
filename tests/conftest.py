"""Shared pytest fixtures and test helpers for cmdbgraph tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

import pytest
from click.testing import CliRunner
from sqlalchemy import insert

from cmdbgraph.config.settings import CmdbSettings
from cmdbgraph.infrastructure.cmdb import Cmdb
from cmdbgraph.infrastructure.database.schema import cmdb_items, cmdb_relationships
from cmdbgraph.services.telemetry import disable_telemetry

_NOW = datetime.now(UTC).isoformat()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host CMDBGRAPH_* variables from leaking into tests."""
    monkeypatch.delenv("CMDBGRAPH_CONFIG", raising=False)
    monkeypatch.delenv("CMDBGRAPH_ACTOR", raising=False)
    monkeypatch.delenv("CMDBGRAPH_DATABASE__PATH", raising=False)


@pytest.fixture(autouse=True)
def _restore_global_state() -> Iterator[None]:
    """Undo logging and telemetry setup done by CLI invocations."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    app_level = logging.getLogger("cmdbgraph").level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("cmdbgraph").setLevel(app_level)
    disable_telemetry()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def settings(tmp_path: Path) -> CmdbSettings:
    return CmdbSettings.from_cli(root=tmp_path)


@pytest.fixture
def cmdb(settings: CmdbSettings) -> Iterator[Cmdb]:
    """A Cmdb over a fresh SQLite database in a temp directory."""
    c = Cmdb(settings)
    try:
        yield c
    finally:
        c.close()


@pytest.fixture
def _isolated_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory so the CLI creates an isolated database.

    Use via ``@pytest.mark.usefixtures("_isolated_root")`` on command test
    classes. Tests that need the path can request ``tmp_path`` too (it is
    the same directory).
    """
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Shared test helpers: direct inserts, CI CRUD lives outside this package
# ---------------------------------------------------------------------------


def insert_item(
    cmdb: Cmdb,
    cmdb_id: str,
    *,
    name: str | None = None,
    category: str | None = "server",
    status: str = "active",
) -> int:
    """Insert a CI row and return its internal id."""
    with cmdb.engine.begin() as conn:
        result = conn.execute(
            insert(cmdb_items).values(
                cmdb_id=cmdb_id,
                asset_name=name or cmdb_id,
                asset_category=category,
                status=status,
                created_at=_NOW,
            )
        )
    return int(result.inserted_primary_key[0])


def insert_edge(
    cmdb: Cmdb,
    source_id: int,
    target_id: int,
    relationship_type: str = "depends_on",
    *,
    is_active: bool = True,
) -> int:
    """Insert a relationship row directly (no validation, no change log)."""
    with cmdb.engine.begin() as conn:
        result = conn.execute(
            insert(cmdb_relationships).values(
                source_cmdb_id=source_id,
                target_cmdb_id=target_id,
                relationship_type=relationship_type,
                is_active=1 if is_active else 0,
                created_by="test",
                created_at=_NOW,
            )
        )
    return int(result.inserted_primary_key[0])


def seed_items(cmdb: Cmdb, *names: str, category: str | None = "server") -> dict[str, int]:
    """Insert one CI per name (cmdb_id == asset_name); return name -> id."""
    return {name: insert_item(cmdb, name, category=category) for name in names}
