"""Aggregation over traversal trees: flat listing and summary counts.

Pure functions. The root (level 0) is never part of the flattened view.
Circular leaves are counted at the level and category where they were
re-encountered; they simply contribute no children.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from cmdbgraph.domain.items import ConfigItem
from cmdbgraph.domain.tree import CircularLeaf, ExpandedNode, TreeNode


@dataclass(frozen=True)
class FlatEntry:
    """One non-root tree node with its depth level."""

    item: ConfigItem
    level: int
    relationship_type: str | None
    circular_reference: bool

    def to_dict(self, *, level_key: str = "level") -> dict[str, Any]:
        return {
            **self.item.to_dict(),
            level_key: self.level,
            "relationship_type": self.relationship_type,
            "circular_reference": self.circular_reference,
        }


@dataclass(frozen=True)
class TreeSummary:
    """Counts derived from a flattened tree."""

    total: int
    by_category: list[dict[str, Any]]
    by_level: list[dict[str, int]]


def flatten_tree(root: TreeNode) -> list[FlatEntry]:
    """Pre-order walk of *root*, excluding the root itself."""
    entries: list[FlatEntry] = []
    stack: list[tuple[TreeNode, int]] = [(root, 0)]
    while stack:
        node, level = stack.pop()
        if level > 0:
            entries.append(
                FlatEntry(
                    item=node.item,
                    level=level,
                    relationship_type=node.relationship_type,
                    circular_reference=isinstance(node, CircularLeaf),
                )
            )
        if isinstance(node, ExpandedNode):
            # Reversed push keeps left-to-right pre-order on pop.
            for child in reversed(node.children):
                stack.append((child, level + 1))
    return entries


def summarize(entries: list[FlatEntry], max_depth: int) -> TreeSummary:
    """Group flattened entries by category and by level.

    ``by_category`` keeps first-seen order. ``by_level`` covers levels
    ``1..max_depth`` and omits levels with no nodes.
    """
    category_counts: dict[str | None, int] = {}
    level_counts: dict[int, int] = {}
    for entry in entries:
        category = entry.item.asset_category
        category_counts[category] = category_counts.get(category, 0) + 1
        level_counts[entry.level] = level_counts.get(entry.level, 0) + 1

    by_level = [
        {"level": level, "count": level_counts[level]}
        for level in range(1, max_depth + 1)
        if level_counts.get(level, 0) > 0
    ]
    return TreeSummary(
        total=len(entries),
        by_category=[
            {"category": category, "count": count} for category, count in category_counts.items()
        ],
        by_level=by_level,
    )
