"""Tests for RelationshipService: validation, writes, change log, listing."""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy import select

from cmdbgraph.config.settings import CmdbSettings
from cmdbgraph.infrastructure.changelog import ChangeLogEntry
from cmdbgraph.infrastructure.cmdb import Cmdb
from cmdbgraph.infrastructure.database.schema import cmdb_change_history, cmdb_relationships
from cmdbgraph.services.relationships import RelationshipService
from tests.conftest import insert_edge, insert_item

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _seed_pair(cmdb: Cmdb) -> tuple[int, int]:
    app = insert_item(cmdb, "CMDB-APP-01", name="billing-api", category="application")
    db = insert_item(cmdb, "CMDB-DB-01", name="orders-db", category="database")
    return app, db


def _history(cmdb: Cmdb) -> list[dict[str, Any]]:
    with cmdb.engine.connect() as conn:
        rows = conn.execute(
            select(cmdb_change_history).order_by(cmdb_change_history.c.id)
        ).mappings()
        return [dict(r) for r in rows]


def _edge_rows(cmdb: Cmdb) -> list[dict[str, Any]]:
    with cmdb.engine.connect() as conn:
        rows = conn.execute(select(cmdb_relationships).order_by(cmdb_relationships.c.id))
        return [dict(r) for r in rows.mappings()]


class FailingChangeLog:
    """Change log whose every write fails."""

    def __init__(self) -> None:
        self.attempts: list[ChangeLogEntry] = []

    def record(self, entry: ChangeLogEntry, *, at: str) -> None:
        self.attempts.append(entry)
        raise RuntimeError("audit store unavailable")


class FlakyChangeLog:
    """Fails only for the first entry of each mutation."""

    def __init__(self) -> None:
        self.recorded: list[ChangeLogEntry] = []
        self._calls = 0

    def record(self, entry: ChangeLogEntry, *, at: str) -> None:
        self._calls += 1
        if self._calls % 2 == 1:
            raise OSError("transient")
        self.recorded.append(entry)


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


class TestCreateValidation:
    @pytest.mark.parametrize(
        ("source", "target", "rel_type"),
        [("", "CMDB-DB-01", "depends_on"), ("CMDB-APP-01", "", "uses"), ("a", "b", "")],
    )
    def test_missing_field(self, cmdb: Cmdb, source: str, target: str, rel_type: str) -> None:
        result = RelationshipService(cmdb).create(source, target, rel_type)
        assert result.error is not None
        assert result.error.code == "MISSING_FIELD"

    def test_invalid_type(self, cmdb: Cmdb) -> None:
        _seed_pair(cmdb)
        result = RelationshipService(cmdb).create("CMDB-APP-01", "CMDB-DB-01", "hosted_by")
        assert result.error is not None
        assert result.error.code == "INVALID_TYPE"
        assert "depends_on" in result.error.message
        assert _edge_rows(cmdb) == []

    def test_self_loop(self, cmdb: Cmdb) -> None:
        _seed_pair(cmdb)
        result = RelationshipService(cmdb).create("CMDB-APP-01", "CMDB-APP-01", "depends_on")
        assert result.error is not None
        assert result.error.code == "SELF_LOOP"
        assert result.error.message == "Cannot create a relationship to the same item"

    def test_self_loop_checked_before_existence(self, cmdb: Cmdb) -> None:
        result = RelationshipService(cmdb).create("ghost", "ghost", "depends_on")
        assert result.error is not None
        assert result.error.code == "SELF_LOOP"

    def test_invalid_type_checked_before_self_loop(self, cmdb: Cmdb) -> None:
        result = RelationshipService(cmdb).create("x", "x", "bogus")
        assert result.error is not None
        assert result.error.code == "INVALID_TYPE"

    def test_missing_source(self, cmdb: Cmdb) -> None:
        _seed_pair(cmdb)
        result = RelationshipService(cmdb).create("nope", "CMDB-DB-01", "uses")
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"
        assert "Source" in result.error.message

    def test_missing_target(self, cmdb: Cmdb) -> None:
        _seed_pair(cmdb)
        result = RelationshipService(cmdb).create("CMDB-APP-01", "nope", "uses")
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"
        assert "Target" in result.error.message


class TestCreate:
    def test_creates_active_edge(self, cmdb: Cmdb) -> None:
        _seed_pair(cmdb)
        result = RelationshipService(cmdb).create(
            "CMDB-APP-01", "CMDB-DB-01", "depends_on", description="orders", actor="alice"
        )
        assert result.ok
        assert result.op == "create_relationship"
        assert result.warnings == []
        rel = result.data["relationship"]
        assert rel["source_cmdb_id"] == "CMDB-APP-01"
        assert rel["target_cmdb_id"] == "CMDB-DB-01"
        assert rel["relationship_type"] == "depends_on"
        assert rel["description"] == "orders"
        assert rel["created_by"] == "alice"
        assert rel["is_active"] is True

    def test_actor_defaults_to_settings(self, tmp_path: Any) -> None:
        cmdb = Cmdb(CmdbSettings.from_cli(root=tmp_path, actor="ops-bot"))
        try:
            _seed_pair(cmdb)
            result = RelationshipService(cmdb).create("CMDB-APP-01", "CMDB-DB-01", "uses")
            assert result.data["relationship"]["created_by"] == "ops-bot"
        finally:
            cmdb.close()

    def test_duplicate(self, cmdb: Cmdb) -> None:
        _seed_pair(cmdb)
        svc = RelationshipService(cmdb)
        assert svc.create("CMDB-APP-01", "CMDB-DB-01", "uses").ok
        result = svc.create("CMDB-APP-01", "CMDB-DB-01", "uses")
        assert result.error is not None
        assert result.error.code == "DUPLICATE"
        assert result.error.message == "This relationship already exists"
        assert len(_edge_rows(cmdb)) == 1

    def test_other_type_or_direction_not_duplicate(self, cmdb: Cmdb) -> None:
        _seed_pair(cmdb)
        svc = RelationshipService(cmdb)
        assert svc.create("CMDB-APP-01", "CMDB-DB-01", "uses").ok
        assert svc.create("CMDB-APP-01", "CMDB-DB-01", "depends_on").ok
        assert svc.create("CMDB-DB-01", "CMDB-APP-01", "uses").ok

    def test_recreate_after_delete(self, cmdb: Cmdb) -> None:
        _seed_pair(cmdb)
        svc = RelationshipService(cmdb)
        first = svc.create("CMDB-APP-01", "CMDB-DB-01", "uses")
        assert svc.delete(first.data["relationship"]["id"]).ok
        second = svc.create("CMDB-APP-01", "CMDB-DB-01", "uses")
        assert second.ok
        assert second.data["relationship"]["id"] != first.data["relationship"]["id"]
        assert [r["is_active"] for r in _edge_rows(cmdb)] == [0, 1]


class TestCreateChangeLog:
    def test_two_history_rows(self, cmdb: Cmdb) -> None:
        app, db = _seed_pair(cmdb)
        RelationshipService(cmdb).create("CMDB-APP-01", "CMDB-DB-01", "depends_on", actor="bob")
        rows = _history(cmdb)
        assert [(r["cmdb_item_id"], r["field_name"]) for r in rows] == [
            (app, "depends_on"),
            (db, "depended_by"),
        ]
        assert rows[0]["new_value"] == "orders-db (CMDB-DB-01)"
        assert rows[1]["new_value"] == "billing-api (CMDB-APP-01)"
        assert all(r["change_type"] == "relationship_added" for r in rows)
        assert all(r["old_value"] is None for r in rows)
        assert all(r["changed_by"] == "bob" for r in rows)

    def test_failures_become_warnings(self, settings: CmdbSettings) -> None:
        changelog = FailingChangeLog()
        cmdb = Cmdb(settings, changelog=changelog)
        try:
            _seed_pair(cmdb)
            result = RelationshipService(cmdb).create("CMDB-APP-01", "CMDB-DB-01", "depends_on")
            assert result.ok
            assert len(result.warnings) == 2
            assert all("Change log write failed" in w for w in result.warnings)
            assert len(changelog.attempts) == 2
            assert len(_edge_rows(cmdb)) == 1
        finally:
            cmdb.close()

    def test_entries_attempted_independently(self, settings: CmdbSettings) -> None:
        changelog = FlakyChangeLog()
        cmdb = Cmdb(settings, changelog=changelog)
        try:
            app, db = _seed_pair(cmdb)
            result = RelationshipService(cmdb).create("CMDB-APP-01", "CMDB-DB-01", "hosts")
            assert result.ok
            assert result.warnings == [
                f"Change log write failed for item {app} (relationship_added)"
            ]
            assert [(e.cmdb_item_id, e.field_name) for e in changelog.recorded] == [
                (db, "hosted_by")
            ]
        finally:
            cmdb.close()

    def test_no_history_on_rejected_create(self, cmdb: Cmdb) -> None:
        _seed_pair(cmdb)
        RelationshipService(cmdb).create("CMDB-APP-01", "CMDB-APP-01", "uses")
        assert _history(cmdb) == []


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------


class TestDelete:
    def test_soft_delete(self, cmdb: Cmdb) -> None:
        app, db = _seed_pair(cmdb)
        edge_id = insert_edge(cmdb, app, db, "uses")
        result = RelationshipService(cmdb).delete(edge_id, actor="carol")
        assert result.ok
        assert result.op == "delete_relationship"
        assert result.data["id"] == edge_id
        assert result.data["relationship"]["is_active"] is False
        assert _edge_rows(cmdb)[0]["is_active"] == 0

    def test_history_uses_old_value(self, cmdb: Cmdb) -> None:
        app, db = _seed_pair(cmdb)
        edge_id = insert_edge(cmdb, app, db, "uses")
        RelationshipService(cmdb).delete(edge_id, actor="carol")
        rows = _history(cmdb)
        assert [(r["cmdb_item_id"], r["field_name"], r["old_value"]) for r in rows] == [
            (app, "uses", "orders-db (CMDB-DB-01)"),
            (db, "used_by", "billing-api (CMDB-APP-01)"),
        ]
        assert all(r["change_type"] == "relationship_removed" for r in rows)
        assert all(r["new_value"] is None for r in rows)

    def test_not_found(self, cmdb: Cmdb) -> None:
        result = RelationshipService(cmdb).delete(404)
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"
        assert result.error.message == "Relationship 404 not found"

    def test_already_inactive_is_not_found(self, cmdb: Cmdb) -> None:
        app, db = _seed_pair(cmdb)
        edge_id = insert_edge(cmdb, app, db, is_active=False)
        result = RelationshipService(cmdb).delete(edge_id)
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"
        assert _history(cmdb) == []

    def test_deleted_edge_leaves_traversal(self, cmdb: Cmdb) -> None:
        from cmdbgraph.services.analysis import AnalysisService

        app, db = _seed_pair(cmdb)
        edge_id = insert_edge(cmdb, app, db)
        analysis = AnalysisService(cmdb)
        assert analysis.impact("CMDB-DB-01").data["summary"]["total_impacted"] == 1
        RelationshipService(cmdb).delete(edge_id)
        assert analysis.impact("CMDB-DB-01").data["summary"]["total_impacted"] == 0


# ---------------------------------------------------------------------------
# list / types
# ---------------------------------------------------------------------------


class TestListForItem:
    def test_both_directions(self, cmdb: Cmdb) -> None:
        app, db = _seed_pair(cmdb)
        vm = insert_item(cmdb, "CMDB-VM-01", name="vm-01", category="server")
        insert_edge(cmdb, app, db, "depends_on")
        insert_edge(cmdb, vm, app, "hosts")

        result = RelationshipService(cmdb).list_for_item("CMDB-APP-01")
        assert result.ok
        data = result.data
        assert data["item"]["cmdb_id"] == "CMDB-APP-01"
        assert data["total"] == 2

        (out,) = data["outgoing"]
        assert out["direction"] == "outgoing"
        assert out["relationship_type"] == "depends_on"
        assert out["relationship_label"] == "Depends On"
        assert out["related_item"]["cmdb_id"] == "CMDB-DB-01"
        assert "inverse_type" not in out

        (inc,) = data["incoming"]
        assert inc["direction"] == "incoming"
        assert inc["relationship_type"] == "hosts"
        assert inc["inverse_type"] == "hosted_by"
        assert inc["related_item"]["cmdb_id"] == "CMDB-VM-01"

        assert len(data["relationship_types"]) == 8

    def test_all_types_listed_not_only_traversal(self, cmdb: Cmdb) -> None:
        app, db = _seed_pair(cmdb)
        insert_edge(cmdb, app, db, "monitors")
        result = RelationshipService(cmdb).list_for_item("CMDB-DB-01")
        assert [e["inverse_type"] for e in result.data["incoming"]] == ["monitored_by"]

    def test_not_found(self, cmdb: Cmdb) -> None:
        result = RelationshipService(cmdb).list_for_item("missing")
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"


class TestTypes:
    def test_registry(self, cmdb: Cmdb) -> None:
        result = RelationshipService(cmdb).types()
        assert result.ok
        assert result.op == "relationship_types"
        assert result.data["count"] == 8
        assert result.data["traversal_types"] == ["depends_on", "uses", "hosted_by"]
        values = [item["value"] for item in result.data["items"]]
        assert values[0] == "depends_on"
