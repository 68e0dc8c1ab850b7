"""RelationshipService: create, delete, and list CI relationships.

Validation runs before any write. Each successful mutation is followed by
two change-log entries (source side under the relationship type, target
side under its inverse label). Change-log failures become warnings and
never undo the committed mutation.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from cmdbgraph.domain import relationships as registry
from cmdbgraph.domain.items import Relationship
from cmdbgraph.infrastructure.changelog import ChangeLogEntry, ChangeType
from cmdbgraph.infrastructure.repositories.relationships import DuplicateRelationshipError
from cmdbgraph.services._helpers import now_iso
from cmdbgraph.services.base import BaseService
from cmdbgraph.services.result import ErrorCode, ServiceResult
from cmdbgraph.services.telemetry import traced

logger = logging.getLogger(__name__)


class RelationshipService(BaseService):
    """Manages the directed, typed edges between configuration items."""

    # ------------------------------------------------------------------
    # create
    # ------------------------------------------------------------------

    @traced
    def create(
        self,
        source_cmdb_id: str,
        target_cmdb_id: str,
        relationship_type: str,
        *,
        description: str | None = None,
        actor: str | None = None,
    ) -> ServiceResult:
        """Create an active edge ``source --relationship_type--> target``.

        Errors: ``MISSING_FIELD``, ``INVALID_TYPE``, ``SELF_LOOP``,
        ``NOT_FOUND`` (either endpoint), ``DUPLICATE``, ``STORE_ERROR``.
        """
        op = "create_relationship"
        actor = actor or self._cmdb.settings.actor

        if not source_cmdb_id or not target_cmdb_id or not relationship_type:
            return ServiceResult.failure(
                op,
                ErrorCode.MISSING_FIELD,
                "source_cmdb_id, target_cmdb_id, and relationship_type are required",
            )
        if not registry.is_valid(relationship_type):
            valid = ", ".join(str(rt) for rt in registry.RelationshipType)
            return ServiceResult.failure(
                op,
                ErrorCode.INVALID_TYPE,
                f"Invalid relationship_type '{relationship_type}'. Must be one of: {valid}",
                relationship_type=relationship_type,
            )
        if source_cmdb_id == target_cmdb_id:
            return ServiceResult.failure(
                op,
                ErrorCode.SELF_LOOP,
                "Cannot create a relationship to the same item",
                cmdb_id=source_cmdb_id,
            )

        store = self._cmdb.relationships
        try:
            source = store.find_item_by_external_id(source_cmdb_id)
            if source is None:
                return ServiceResult.failure(
                    op,
                    ErrorCode.NOT_FOUND,
                    f"Source CMDB item '{source_cmdb_id}' not found",
                    cmdb_id=source_cmdb_id,
                )
            target = store.find_item_by_external_id(target_cmdb_id)
            if target is None:
                return ServiceResult.failure(
                    op,
                    ErrorCode.NOT_FOUND,
                    f"Target CMDB item '{target_cmdb_id}' not found",
                    cmdb_id=target_cmdb_id,
                )
            relationship = store.create_edge(
                source,
                target,
                relationship_type,
                description=description,
                actor=actor,
                created_at=now_iso(),
            )
        except DuplicateRelationshipError:
            return ServiceResult.failure(
                op,
                ErrorCode.DUPLICATE,
                "This relationship already exists",
                source_cmdb_id=source_cmdb_id,
                target_cmdb_id=target_cmdb_id,
                relationship_type=relationship_type,
            )
        except SQLAlchemyError as exc:
            return self._store_failure(op, exc)

        logger.info(
            "Created relationship %s: %s %s %s",
            relationship.id,
            source_cmdb_id,
            relationship_type,
            target_cmdb_id,
        )
        warnings: list[str] = []
        self._record_changes(
            _change_entries(relationship, ChangeType.RELATIONSHIP_ADDED, actor),
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"relationship": relationship.to_dict()},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # delete (soft)
    # ------------------------------------------------------------------

    @traced
    def delete(self, edge_id: int, *, actor: str | None = None) -> ServiceResult:
        """Deactivate an edge. Already inactive edges count as not found."""
        op = "delete_relationship"
        actor = actor or self._cmdb.settings.actor

        try:
            relationship = self._cmdb.relationships.deactivate_edge(
                edge_id, updated_at=now_iso()
            )
        except SQLAlchemyError as exc:
            return self._store_failure(op, exc)

        if relationship is None:
            return ServiceResult.failure(
                op,
                ErrorCode.NOT_FOUND,
                f"Relationship {edge_id} not found",
                id=edge_id,
            )

        logger.info("Deactivated relationship %s", edge_id)
        warnings: list[str] = []
        self._record_changes(
            _change_entries(relationship, ChangeType.RELATIONSHIP_REMOVED, actor),
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": edge_id, "relationship": relationship.to_dict()},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # list
    # ------------------------------------------------------------------

    @traced
    def list_for_item(self, cmdb_id: str) -> ServiceResult:
        """All active relationships of a CI, split into outgoing and incoming."""
        op = "list_relationships"
        store = self._cmdb.relationships
        try:
            item = store.find_item_by_external_id(cmdb_id)
            if item is None:
                return ServiceResult.failure(
                    op,
                    ErrorCode.NOT_FOUND,
                    f"CMDB item '{cmdb_id}' not found",
                    cmdb_id=cmdb_id,
                )
            outgoing, incoming = store.list_relationships(item.id)
        except SQLAlchemyError as exc:
            return self._store_failure(op, exc)

        outgoing_items = [_edge_view(rel, incoming=False) for rel in outgoing]
        incoming_items = [_edge_view(rel, incoming=True) for rel in incoming]
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "item": item.to_dict(),
                "outgoing": outgoing_items,
                "incoming": incoming_items,
                "total": len(outgoing_items) + len(incoming_items),
                "relationship_types": registry.all_types(),
            },
        )

    def types(self) -> ServiceResult:
        """The relationship type registry and the traversal filter set."""
        items = registry.all_types()
        return ServiceResult(
            ok=True,
            op="relationship_types",
            data={
                "count": len(items),
                "items": items,
                "traversal_types": list(registry.TRAVERSAL_TYPES),
            },
        )

    # ------------------------------------------------------------------
    # change log
    # ------------------------------------------------------------------

    def _record_changes(self, entries: list[ChangeLogEntry], warnings: list[str]) -> None:
        """Write change-log entries, best effort.

        INVARIANT: a failed entry is a warning, never an error. Each entry is
        attempted independently.
        """
        at = now_iso()
        for entry in entries:
            try:
                self._cmdb.changelog.record(entry, at=at)
            except Exception:
                logger.warning(
                    "Change log write failed for item %s (%s)",
                    entry.cmdb_item_id,
                    entry.change_type,
                    exc_info=True,
                )
                warnings.append(
                    f"Change log write failed for item {entry.cmdb_item_id} ({entry.change_type})"
                )


def _change_entries(
    relationship: Relationship,
    change_type: ChangeType,
    actor: str | None,
) -> list[ChangeLogEntry]:
    """Source-side and target-side entries for one mutation."""
    value_key = "new_value" if change_type is ChangeType.RELATIONSHIP_ADDED else "old_value"
    rel_type = relationship.relationship_type
    return [
        ChangeLogEntry(
            cmdb_item_id=relationship.source.id,
            change_type=change_type,
            field_name=rel_type,
            actor=actor,
            **{value_key: relationship.target.display},
        ),
        ChangeLogEntry(
            cmdb_item_id=relationship.target.id,
            change_type=change_type,
            field_name=registry.inverse_label(rel_type),
            actor=actor,
            **{value_key: relationship.source.display},
        ),
    ]


def _edge_view(relationship: Relationship, *, incoming: bool) -> dict[str, Any]:
    rel_type = relationship.relationship_type
    view: dict[str, Any] = {
        "id": relationship.id,
        "direction": "incoming" if incoming else "outgoing",
        "relationship_type": rel_type,
        "relationship_label": registry.label(rel_type),
        "related_item": (relationship.source if incoming else relationship.target).to_dict(),
        "description": relationship.description,
        "created_by": relationship.created_by,
        "created_at": relationship.created_at,
    }
    if incoming:
        view["inverse_type"] = registry.inverse_label(rel_type)
    return view
