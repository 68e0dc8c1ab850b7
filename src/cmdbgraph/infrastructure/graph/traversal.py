"""TraversalEngine: bounded, cycle-safe impact and dependency trees.

Depth-first, one store query per expanded node, siblings left to right by
CI name. The walk uses an explicit stack over an index arena instead of
recursion. Slots are appended in sibling order and children always get
higher indices than their parent, so the final tree is assembled in one
reverse sweep.

Visited tracking has two scopes:

- ``traversal`` (default): one visited set shared by the whole call. The
  first sighting of a CI expands; every later sighting anywhere in the
  tree becomes a :class:`CircularLeaf`, including the second arm of a
  diamond that is not a real cycle.
- ``path``: a CI is a circular leaf only if it already appears among its
  own ancestors. Diamonds expand on every arm.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol

from cmdbgraph.domain.items import ConfigItem, RelatedEdge
from cmdbgraph.domain.relationships import TRAVERSAL_TYPES, TraversalDirection
from cmdbgraph.domain.tree import CircularLeaf, ExpandedNode, TreeNode

logger = logging.getLogger(__name__)


class VisitedScope(StrEnum):
    """How far a visited mark reaches within one traversal."""

    TRAVERSAL = "traversal"
    PATH = "path"


class EdgeSource(Protocol):
    """The neighbor queries the engine needs from the store."""

    def list_outgoing_edges(
        self, item_id: int, type_filter: Iterable[str] | None = None
    ) -> list[RelatedEdge]: ...

    def list_incoming_edges(
        self, item_id: int, type_filter: Iterable[str] | None = None
    ) -> list[RelatedEdge]: ...


@dataclass
class _Slot:
    item: ConfigItem
    relationship_type: str | None
    depth: int
    parent: int | None
    children: list[int] = field(default_factory=list)
    circular: bool = False


@dataclass(frozen=True)
class Traversal:
    """A finished traversal with a few counters for telemetry."""

    tree: TreeNode
    direction: TraversalDirection
    max_depth: int
    node_count: int
    queries: int


def _sibling_key(edge: RelatedEdge) -> tuple[str, str, str]:
    # Names compare case-insensitively, matching the store's NOCASE ordering.
    return (edge.item.asset_name.casefold(), edge.item.cmdb_id, edge.relationship_type)


class TraversalEngine:
    """Builds impact and dependency trees from an :class:`EdgeSource`."""

    def __init__(
        self,
        source: EdgeSource,
        *,
        type_filter: Iterable[str] = TRAVERSAL_TYPES,
        visited_scope: VisitedScope | str = VisitedScope.TRAVERSAL,
    ) -> None:
        self._source = source
        self._type_filter = tuple(type_filter)
        self._scope = VisitedScope(visited_scope)

    def build_impact_tree(self, root: ConfigItem, max_depth: int) -> TreeNode:
        """Everything that depends on *root*, transitively (incoming edges)."""
        return self.traverse(root, TraversalDirection.IMPACT, max_depth).tree

    def build_dependency_tree(self, root: ConfigItem, max_depth: int) -> TreeNode:
        """Everything *root* depends on, transitively (outgoing edges)."""
        return self.traverse(root, TraversalDirection.DEPENDENCY, max_depth).tree

    def traverse(
        self,
        root: ConfigItem,
        direction: TraversalDirection,
        max_depth: int,
    ) -> Traversal:
        """Walk from *root* in *direction* down to *max_depth* levels.

        *max_depth* must already be clamped by the caller. Store errors
        propagate immediately; no partial tree is returned.
        """
        if max_depth < 1:
            msg = f"max_depth must be >= 1, got {max_depth}"
            raise ValueError(msg)

        fetch = (
            self._source.list_incoming_edges
            if direction is TraversalDirection.IMPACT
            else self._source.list_outgoing_edges
        )

        arena: list[_Slot] = [_Slot(item=root, relationship_type=None, depth=0, parent=None)]
        visited: set[int] = set()
        stack: list[int] = [0]
        queries = 0

        while stack:
            index = stack.pop()
            slot = arena[index]

            if self._seen(arena, slot, visited):
                slot.circular = True
                continue
            visited.add(slot.item.id)

            if slot.depth >= max_depth:
                continue

            neighbors = fetch(slot.item.id, self._type_filter)
            queries += 1
            for edge in sorted(neighbors, key=_sibling_key):
                arena.append(
                    _Slot(
                        item=edge.item,
                        relationship_type=edge.relationship_type,
                        depth=slot.depth + 1,
                        parent=index,
                    )
                )
                slot.children.append(len(arena) - 1)
            # First child must be popped (and fully expanded) first.
            stack.extend(reversed(slot.children))

        logger.debug(
            "Traversed %s from %s: %d nodes, %d queries, depth %d",
            direction,
            root.cmdb_id,
            len(arena),
            queries,
            max_depth,
        )
        return Traversal(
            tree=_assemble(arena),
            direction=direction,
            max_depth=max_depth,
            node_count=len(arena),
            queries=queries,
        )

    def _seen(self, arena: list[_Slot], slot: _Slot, visited: set[int]) -> bool:
        if self._scope is VisitedScope.TRAVERSAL:
            return slot.item.id in visited
        parent = slot.parent
        while parent is not None:
            ancestor = arena[parent]
            if ancestor.item.id == slot.item.id:
                return True
            parent = ancestor.parent
        return False


def _assemble(arena: list[_Slot]) -> TreeNode:
    """Turn the arena into immutable tree nodes, leaves first."""
    built: list[TreeNode | None] = [None] * len(arena)
    for index in range(len(arena) - 1, -1, -1):
        slot = arena[index]
        if slot.circular:
            built[index] = CircularLeaf(item=slot.item, relationship_type=slot.relationship_type)
        else:
            children = tuple(built[c] for c in slot.children)
            built[index] = ExpandedNode(
                item=slot.item,
                relationship_type=slot.relationship_type,
                children=children,  # type: ignore[arg-type]
            )
    root = built[0]
    assert root is not None
    return root
