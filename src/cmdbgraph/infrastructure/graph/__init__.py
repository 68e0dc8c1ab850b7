"""Graph traversal over the relationship store."""

from cmdbgraph.infrastructure.graph.traversal import (
    EdgeSource,
    Traversal,
    TraversalEngine,
    VisitedScope,
)

__all__ = ["EdgeSource", "Traversal", "TraversalEngine", "VisitedScope"]
