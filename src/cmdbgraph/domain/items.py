"""Configuration items and relationship value types.

Pure data, no infrastructure dependencies. The store adapter builds these
from rows; services and the traversal engine consume them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ConfigItem:
    """A configuration item as seen by the graph engine (read-only)."""

    id: int  # internal numeric id, used for edges and visited tracking
    cmdb_id: str  # stable external identifier
    asset_name: str
    asset_category: str | None = None
    status: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "cmdb_id": self.cmdb_id,
            "asset_name": self.asset_name,
            "asset_category": self.asset_category,
            "status": self.status,
        }

    @property
    def display(self) -> str:
        """``"<asset_name> (<cmdb_id>)"``, the change-history value format."""
        return f"{self.asset_name} ({self.cmdb_id})"


@dataclass(frozen=True)
class RelatedEdge:
    """One neighbor of a CI: the CI at the other end and the edge type."""

    item: ConfigItem
    relationship_type: str


@dataclass(frozen=True)
class Relationship:
    """A stored directed edge joined with both endpoint CIs."""

    id: int
    source: ConfigItem
    target: ConfigItem
    relationship_type: str
    description: str | None
    created_by: str | None
    created_at: str
    is_active: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source_cmdb_id": self.source.cmdb_id,
            "source_asset_name": self.source.asset_name,
            "target_cmdb_id": self.target.cmdb_id,
            "target_asset_name": self.target.asset_name,
            "relationship_type": self.relationship_type,
            "description": self.description,
            "created_by": self.created_by,
            "created_at": self.created_at,
            "is_active": self.is_active,
        }
