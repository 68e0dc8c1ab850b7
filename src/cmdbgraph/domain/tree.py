"""Traversal tree nodes and the depth bound.

A node is either expanded (its neighbors were queried, possibly none) or a
circular leaf (its CI was already seen earlier in the same traversal and was
not expanded again). The two variants keep the terminal states explicit
instead of hanging a boolean off one node shape.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, TypeAlias

from cmdbgraph.domain.items import ConfigItem

DEFAULT_DEPTH = 3
MAX_DEPTH = 10

# Optional sign and ASCII digits at the start; anything after them is ignored.
_LEADING_INT = re.compile(r"^\s*([+-]?[0-9]+)")


@dataclass(frozen=True)
class ExpandedNode:
    """A CI visited for the first time in the traversal."""

    item: ConfigItem
    relationship_type: str | None  # None for the root
    children: tuple[TreeNode, ...] = ()


@dataclass(frozen=True)
class CircularLeaf:
    """A CI already visited elsewhere in the traversal; never expanded."""

    item: ConfigItem
    relationship_type: str | None


TreeNode: TypeAlias = ExpandedNode | CircularLeaf


def clamp_depth(raw: object, *, default: int = DEFAULT_DEPTH, ceiling: int = MAX_DEPTH) -> int:
    """Normalize a caller-supplied depth to ``[1, ceiling]``.

    Only the leading integer counts, so ``"2.5"`` and ``"7abc"`` read as 2 and
    7. Missing, non-numeric, zero, and negative values fall back to
    *default*. Values above *ceiling* are capped.

    Examples:
        >>> clamp_depth(None)
        3
        >>> clamp_depth("abc")
        3
        >>> clamp_depth(-1)
        3
        >>> clamp_depth(50)
        10
        >>> clamp_depth("4")
        4
        >>> clamp_depth(2.5)
        2
    """
    if raw is None or isinstance(raw, bool):
        return default
    match = _LEADING_INT.match(str(raw))
    if match is None:
        return default
    depth = int(match.group(1))
    if depth <= 0:
        return default
    return min(depth, ceiling)


def node_to_dict(node: TreeNode) -> dict[str, Any]:
    """Serialize a tree into nested dicts (JSON-ready).

    Iterative: children are attached to their parent's dict as the walk
    reaches them, so deep trees never touch the recursion limit.
    """
    root_dict = _node_fields(node)
    stack: list[tuple[TreeNode, dict[str, Any]]] = [(node, root_dict)]
    while stack:
        current, out = stack.pop()
        if isinstance(current, ExpandedNode):
            for child in current.children:
                child_dict = _node_fields(child)
                out["children"].append(child_dict)
                stack.append((child, child_dict))
    return root_dict


def _node_fields(node: TreeNode) -> dict[str, Any]:
    return {
        **node.item.to_dict(),
        "relationship_type": node.relationship_type,
        "circular_reference": isinstance(node, CircularLeaf),
        "children": [],
    }
