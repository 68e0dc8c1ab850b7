"""Relationship store adapter: narrow SQL over CI and edge tables.

Only active edges are visible to reads. Writes are one transaction each.
SQLAlchemy errors propagate unchanged; the service layer maps them to
``STORE_ERROR`` results.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlalchemy import Select, select, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError

from cmdbgraph.domain.items import ConfigItem, RelatedEdge, Relationship
from cmdbgraph.infrastructure.database.schema import cmdb_items, cmdb_relationships

_src = cmdb_items.alias("src")
_tgt = cmdb_items.alias("tgt")
_rel = cmdb_relationships


class DuplicateRelationshipError(Exception):
    """An active edge with the same source, target, and type already exists."""

    def __init__(self, source_id: int, target_id: int, relationship_type: str) -> None:
        super().__init__(
            f"Active {relationship_type} edge already exists: {source_id} -> {target_id}"
        )
        self.source_id = source_id
        self.target_id = target_id
        self.relationship_type = relationship_type


def _item_from_row(row: Any, prefix: str = "") -> ConfigItem:
    return ConfigItem(
        id=int(row[f"{prefix}id"]),
        cmdb_id=str(row[f"{prefix}cmdb_id"]),
        asset_name=str(row[f"{prefix}asset_name"]),
        asset_category=row[f"{prefix}asset_category"],
        status=row[f"{prefix}status"],
    )


def _relationship_select() -> Select[Any]:
    """Edge columns joined with both endpoint items, prefixed src_/tgt_."""
    return (
        select(
            _rel.c.id,
            _rel.c.relationship_type,
            _rel.c.description,
            _rel.c.created_by,
            _rel.c.created_at,
            _rel.c.is_active,
            _src.c.id.label("src_id"),
            _src.c.cmdb_id.label("src_cmdb_id"),
            _src.c.asset_name.label("src_asset_name"),
            _src.c.asset_category.label("src_asset_category"),
            _src.c.status.label("src_status"),
            _tgt.c.id.label("tgt_id"),
            _tgt.c.cmdb_id.label("tgt_cmdb_id"),
            _tgt.c.asset_name.label("tgt_asset_name"),
            _tgt.c.asset_category.label("tgt_asset_category"),
            _tgt.c.status.label("tgt_status"),
        )
        .select_from(_rel)
        .join(_src, _rel.c.source_cmdb_id == _src.c.id)
        .join(_tgt, _rel.c.target_cmdb_id == _tgt.c.id)
    )


def _relationship_from_row(row: Any) -> Relationship:
    return Relationship(
        id=int(row["id"]),
        source=_item_from_row(row, "src_"),
        target=_item_from_row(row, "tgt_"),
        relationship_type=str(row["relationship_type"]),
        description=row["description"],
        created_by=row["created_by"],
        created_at=str(row["created_at"]),
        is_active=bool(row["is_active"]),
    )


class RelationshipRepository:
    """Encapsulates SQL for CI lookups and relationship edges."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def find_item_by_external_id(self, cmdb_id: str) -> ConfigItem | None:
        """Look up a CI by its external ``cmdb_id``."""
        stmt = select(
            cmdb_items.c.id,
            cmdb_items.c.cmdb_id,
            cmdb_items.c.asset_name,
            cmdb_items.c.asset_category,
            cmdb_items.c.status,
        ).where(cmdb_items.c.cmdb_id == cmdb_id)
        with self._engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        return _item_from_row(row) if row is not None else None

    # ------------------------------------------------------------------
    # Neighbor queries (one per expanded traversal node)
    # ------------------------------------------------------------------

    def list_outgoing_edges(
        self, item_id: int, type_filter: Iterable[str] | None = None
    ) -> list[RelatedEdge]:
        """Active edges where *item_id* is the source; yields the targets."""
        return self._neighbors(
            item_id,
            anchor=_rel.c.source_cmdb_id,
            other=_rel.c.target_cmdb_id,
            type_filter=type_filter,
        )

    def list_incoming_edges(
        self, item_id: int, type_filter: Iterable[str] | None = None
    ) -> list[RelatedEdge]:
        """Active edges where *item_id* is the target; yields the sources."""
        return self._neighbors(
            item_id,
            anchor=_rel.c.target_cmdb_id,
            other=_rel.c.source_cmdb_id,
            type_filter=type_filter,
        )

    def _neighbors(
        self,
        item_id: int,
        *,
        anchor: Any,
        other: Any,
        type_filter: Iterable[str] | None,
    ) -> list[RelatedEdge]:
        stmt = (
            select(
                cmdb_items.c.id,
                cmdb_items.c.cmdb_id,
                cmdb_items.c.asset_name,
                cmdb_items.c.asset_category,
                cmdb_items.c.status,
                _rel.c.relationship_type,
            )
            .select_from(_rel)
            .join(cmdb_items, other == cmdb_items.c.id)
            .where(anchor == item_id, _rel.c.is_active == 1)
            .order_by(
                cmdb_items.c.asset_name.collate("NOCASE"),
                cmdb_items.c.cmdb_id,
                _rel.c.relationship_type,
            )
        )
        if type_filter is not None:
            stmt = stmt.where(_rel.c.relationship_type.in_(list(type_filter)))

        with self._engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [
            RelatedEdge(item=_item_from_row(row), relationship_type=str(row["relationship_type"]))
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def get_edge(self, edge_id: int, *, active_only: bool = False) -> Relationship | None:
        """Fetch one edge joined with its endpoints."""
        with self._engine.connect() as conn:
            return self._get_edge(conn, edge_id, active_only=active_only)

    @staticmethod
    def _get_edge(conn: Connection, edge_id: int, *, active_only: bool) -> Relationship | None:
        stmt = _relationship_select().where(_rel.c.id == edge_id)
        if active_only:
            stmt = stmt.where(_rel.c.is_active == 1)
        row = conn.execute(stmt).mappings().first()
        return _relationship_from_row(row) if row is not None else None

    def create_edge(
        self,
        source: ConfigItem,
        target: ConfigItem,
        relationship_type: str,
        *,
        description: str | None,
        actor: str | None,
        created_at: str,
    ) -> Relationship:
        """Insert an active edge.

        Raises:
            DuplicateRelationshipError: an active edge with the same
                ``(source, target, relationship_type)`` already exists.
        """
        with self._engine.begin() as conn:
            existing = conn.execute(
                select(_rel.c.id).where(
                    _rel.c.source_cmdb_id == source.id,
                    _rel.c.target_cmdb_id == target.id,
                    _rel.c.relationship_type == relationship_type,
                    _rel.c.is_active == 1,
                )
            ).first()
            if existing is not None:
                raise DuplicateRelationshipError(source.id, target.id, relationship_type)

            try:
                result = conn.execute(
                    _rel.insert().values(
                        source_cmdb_id=source.id,
                        target_cmdb_id=target.id,
                        relationship_type=relationship_type,
                        description=description,
                        created_by=actor,
                        created_at=created_at,
                        updated_at=created_at,
                        is_active=1,
                    )
                )
            except IntegrityError as exc:
                # Lost a race with a concurrent writer on the unique index.
                if "UNIQUE" in str(exc.orig):
                    raise DuplicateRelationshipError(
                        source.id, target.id, relationship_type
                    ) from exc
                raise

            edge_id = int(result.inserted_primary_key[0])
            created = self._get_edge(conn, edge_id, active_only=True)
        assert created is not None
        return created

    def deactivate_edge(self, edge_id: int, *, updated_at: str) -> Relationship | None:
        """Soft-delete an active edge.

        Returns the edge as it was before deactivation (endpoints included,
        ``is_active`` False), or None if no active edge has *edge_id*.
        """
        with self._engine.begin() as conn:
            edge = self._get_edge(conn, edge_id, active_only=True)
            if edge is None:
                return None
            result = conn.execute(
                update(_rel)
                .where(_rel.c.id == edge_id, _rel.c.is_active == 1)
                .values(is_active=0, updated_at=updated_at)
            )
            if result.rowcount == 0:
                return None
        return Relationship(
            id=edge.id,
            source=edge.source,
            target=edge.target,
            relationship_type=edge.relationship_type,
            description=edge.description,
            created_by=edge.created_by,
            created_at=edge.created_at,
            is_active=False,
        )

    def list_relationships(self, item_id: int) -> tuple[list[Relationship], list[Relationship]]:
        """All active edges touching *item_id*, as ``(outgoing, incoming)``.

        Each side is ordered by relationship type, then the other CI's name.
        """
        outgoing_stmt = (
            _relationship_select()
            .where(_rel.c.source_cmdb_id == item_id, _rel.c.is_active == 1)
            .order_by(
                _rel.c.relationship_type,
                _tgt.c.asset_name.collate("NOCASE"),
                _tgt.c.cmdb_id,
            )
        )
        incoming_stmt = (
            _relationship_select()
            .where(_rel.c.target_cmdb_id == item_id, _rel.c.is_active == 1)
            .order_by(
                _rel.c.relationship_type,
                _src.c.asset_name.collate("NOCASE"),
                _src.c.cmdb_id,
            )
        )
        with self._engine.connect() as conn:
            outgoing = [
                _relationship_from_row(r) for r in conn.execute(outgoing_stmt).mappings()
            ]
            incoming = [
                _relationship_from_row(r) for r in conn.execute(incoming_stmt).mappings()
            ]
        return outgoing, incoming
