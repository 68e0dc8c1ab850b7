"""AnalysisService: impact and dependency trees with summary views.

Both queries share one pipeline: resolve the root CI, clamp the depth,
traverse, flatten, summarize. Only the traversal direction and the
response key names differ.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from cmdbgraph.domain.relationships import TraversalDirection
from cmdbgraph.domain.summary import flatten_tree, summarize
from cmdbgraph.domain.tree import clamp_depth, node_to_dict
from cmdbgraph.services.base import BaseService
from cmdbgraph.services.result import ErrorCode, ServiceResult
from cmdbgraph.services.telemetry import trace_span, traced


@dataclass(frozen=True)
class _Shape:
    """Response key names for one direction."""

    op: str
    total_key: str
    items_key: str
    level_key: str


_SHAPES: dict[TraversalDirection, _Shape] = {
    TraversalDirection.IMPACT: _Shape(
        op="impact_analysis",
        total_key="total_impacted",
        items_key="impacted_items",
        level_key="impact_level",
    ),
    TraversalDirection.DEPENDENCY: _Shape(
        op="dependency_analysis",
        total_key="total_dependencies",
        items_key="dependencies",
        level_key="dependency_level",
    ),
}


class AnalysisService(BaseService):
    """Answers "what breaks if X fails" and "what does X depend on"."""

    @traced
    def impact(self, cmdb_id: str, *, depth: object = None) -> ServiceResult:
        """Downstream impact: every CI that depends on *cmdb_id*, transitively.

        Args:
            cmdb_id: External identifier of the root CI.
            depth: Requested depth; clamped to ``[1, analysis.max_depth]``,
                with missing or invalid values falling back to
                ``analysis.default_depth``.
        """
        return self._analyze(cmdb_id, depth, TraversalDirection.IMPACT)

    @traced
    def dependencies(self, cmdb_id: str, *, depth: object = None) -> ServiceResult:
        """Upstream dependencies: every CI *cmdb_id* depends on, transitively."""
        return self._analyze(cmdb_id, depth, TraversalDirection.DEPENDENCY)

    def _analyze(
        self,
        cmdb_id: str,
        depth: object,
        direction: TraversalDirection,
    ) -> ServiceResult:
        shape = _SHAPES[direction]
        config = self._cmdb.settings.analysis
        max_depth = clamp_depth(depth, default=config.default_depth, ceiling=config.max_depth)

        try:
            root = self._cmdb.relationships.find_item_by_external_id(cmdb_id)
            if root is None:
                return ServiceResult.failure(
                    shape.op,
                    ErrorCode.NOT_FOUND,
                    f"CMDB item '{cmdb_id}' not found",
                    cmdb_id=cmdb_id,
                )
            with trace_span("traverse") as span:
                traversal = self._cmdb.traversal().traverse(root, direction, max_depth)
                if span:
                    span.annotate("nodes", traversal.node_count)
                    span.annotate("queries", traversal.queries)
        except SQLAlchemyError as exc:
            return self._store_failure(shape.op, exc)

        with trace_span("summarize"):
            entries = flatten_tree(traversal.tree)
            summary = summarize(entries, max_depth)

        return ServiceResult(
            ok=True,
            op=shape.op,
            data={
                "root": root.to_dict(),
                "direction": str(direction),
                "tree": node_to_dict(traversal.tree),
                "summary": {
                    shape.total_key: summary.total,
                    "max_depth_reached": max_depth,
                    "by_category": summary.by_category,
                    "by_level": summary.by_level,
                },
                shape.items_key: [e.to_dict(level_key=shape.level_key) for e in entries],
            },
        )
