"""Relationship type registry: labels and inverse labels.

A relationship is stored once, directed from source to target. The inverse
label is display-only: it phrases the same single edge from the target's
point of view and never implies a second stored edge.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class RelationshipType(StrEnum):
    """The closed set of creatable relationship types."""

    DEPENDS_ON = "depends_on"
    HOSTS = "hosts"
    CONNECTS_TO = "connects_to"
    PART_OF = "part_of"
    USES = "uses"
    PROVIDES = "provides"
    BACKS_UP = "backs_up"
    MONITORS = "monitors"


class TraversalDirection(StrEnum):
    """Which side of an edge a traversal follows."""

    IMPACT = "impact"  # follow incoming edges: who points at this CI
    DEPENDENCY = "dependency"  # follow outgoing edges: what this CI points at


_LABELS: dict[str, str] = {
    RelationshipType.DEPENDS_ON: "Depends On",
    RelationshipType.HOSTS: "Hosts",
    RelationshipType.CONNECTS_TO: "Connects To",
    RelationshipType.PART_OF: "Part Of",
    RelationshipType.USES: "Uses",
    RelationshipType.PROVIDES: "Provides",
    RelationshipType.BACKS_UP: "Backs Up",
    RelationshipType.MONITORS: "Monitors",
}

_INVERSE_LABELS: dict[str, str] = {
    RelationshipType.DEPENDS_ON: "depended_by",
    RelationshipType.HOSTS: "hosted_by",
    RelationshipType.CONNECTS_TO: "connected_from",
    RelationshipType.PART_OF: "contains",
    RelationshipType.USES: "used_by",
    RelationshipType.PROVIDES: "provided_to",
    RelationshipType.BACKS_UP: "backed_up_by",
    RelationshipType.MONITORS: "monitored_by",
}

# Edge types followed by impact and dependency traversals.
# "hosted_by" is not a creatable type; kept so existing rows that carry it
# are still traversed.
TRAVERSAL_TYPES: tuple[str, ...] = ("depends_on", "uses", "hosted_by")


def is_valid(relationship_type: str) -> bool:
    """Return True if *relationship_type* may be stored on an edge."""
    return relationship_type in _LABELS


def label(relationship_type: str) -> str:
    """Display label for a relationship type (raw type if unknown)."""
    return _LABELS.get(relationship_type, relationship_type)


def inverse_label(relationship_type: str) -> str:
    """Inverse phrasing used when rendering an edge from its target side.

    Examples:
        >>> inverse_label("hosts")
        'hosted_by'
        >>> inverse_label("unknown")
        'unknown'
    """
    return _INVERSE_LABELS.get(relationship_type, relationship_type)


def all_types() -> list[dict[str, Any]]:
    """Every registered type with its labels, in declaration order."""
    return [
        {"value": str(rt), "label": _LABELS[rt], "inverse_label": _INVERSE_LABELS[rt]}
        for rt in RelationshipType
    ]
