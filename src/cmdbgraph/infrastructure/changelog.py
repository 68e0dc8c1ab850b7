"""Change-log port: one history row per side of a relationship mutation.

The port is a side effect: the relationship service calls it only after the
graph mutation has committed, and catches its failures at the call site.
Nothing here may roll back or fail the mutation itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from sqlalchemy import insert
from sqlalchemy.engine import Engine

from cmdbgraph.infrastructure.database.schema import cmdb_change_history

logger = logging.getLogger(__name__)


class ChangeType(StrEnum):
    """Change kinds recorded by the relationship engine."""

    RELATIONSHIP_ADDED = "relationship_added"
    RELATIONSHIP_REMOVED = "relationship_removed"


@dataclass(frozen=True)
class ChangeLogEntry:
    """A single change-history record for one CI."""

    cmdb_item_id: int  # internal id, not the external cmdb_id
    change_type: ChangeType
    field_name: str | None = None
    old_value: str | None = None
    new_value: str | None = None
    actor: str | None = None


class ChangeLog(Protocol):
    """Anything that can persist a :class:`ChangeLogEntry`."""

    def record(self, entry: ChangeLogEntry, *, at: str) -> None: ...


class SqlChangeLog:
    """Writes entries to ``cmdb_change_history``, one transaction per entry."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def record(self, entry: ChangeLogEntry, *, at: str) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                insert(cmdb_change_history).values(
                    cmdb_item_id=entry.cmdb_item_id,
                    change_type=str(entry.change_type),
                    field_name=entry.field_name,
                    old_value=entry.old_value,
                    new_value=entry.new_value,
                    changed_by=entry.actor,
                    created_at=at,
                )
            )
        logger.debug(
            "Recorded %s for item %s (%s)",
            entry.change_type,
            entry.cmdb_item_id,
            entry.field_name,
        )
