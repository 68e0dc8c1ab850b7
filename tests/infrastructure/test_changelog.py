"""Tests for the SQL change-log writer."""

from __future__ import annotations

from sqlalchemy import select

from cmdbgraph.infrastructure.changelog import ChangeLogEntry, ChangeType, SqlChangeLog
from cmdbgraph.infrastructure.cmdb import Cmdb
from cmdbgraph.infrastructure.database.schema import cmdb_change_history
from tests.conftest import insert_item


class TestSqlChangeLog:
    def test_record_writes_row(self, cmdb: Cmdb) -> None:
        item_id = insert_item(cmdb, "CMDB-APP-01")
        log = SqlChangeLog(cmdb.engine)
        log.record(
            ChangeLogEntry(
                cmdb_item_id=item_id,
                change_type=ChangeType.RELATIONSHIP_ADDED,
                field_name="depends_on",
                new_value="orders-db (CMDB-DB-01)",
                actor="alice",
            ),
            at="2026-01-01T00:00:00+00:00",
        )
        with cmdb.engine.connect() as conn:
            row = conn.execute(select(cmdb_change_history)).mappings().one()
        assert row["cmdb_item_id"] == item_id
        assert row["change_type"] == "relationship_added"
        assert row["field_name"] == "depends_on"
        assert row["old_value"] is None
        assert row["new_value"] == "orders-db (CMDB-DB-01)"
        assert row["changed_by"] == "alice"
        assert row["created_at"] == "2026-01-01T00:00:00+00:00"

    def test_cmdb_uses_sql_changelog_by_default(self, cmdb: Cmdb) -> None:
        assert isinstance(cmdb.changelog, SqlChangeLog)
