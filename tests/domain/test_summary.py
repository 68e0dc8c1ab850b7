"""Tests for tree flattening and summary aggregation."""

from __future__ import annotations

from cmdbgraph.domain.items import ConfigItem
from cmdbgraph.domain.summary import flatten_tree, summarize
from cmdbgraph.domain.tree import CircularLeaf, ExpandedNode


def _item(n: int, category: str | None = "server") -> ConfigItem:
    return ConfigItem(id=n, cmdb_id=f"CI-{n}", asset_name=f"item-{n}", asset_category=category)


def _sample_tree() -> ExpandedNode:
    """root(1) -> [2 (app) -> [4 (db), 1 circular], 3 (server)]"""
    return ExpandedNode(
        item=_item(1),
        relationship_type=None,
        children=(
            ExpandedNode(
                item=_item(2, "application"),
                relationship_type="depends_on",
                children=(
                    ExpandedNode(item=_item(4, "database"), relationship_type="uses"),
                    CircularLeaf(item=_item(1), relationship_type="depends_on"),
                ),
            ),
            ExpandedNode(item=_item(3, "server"), relationship_type="hosted_by"),
        ),
    )


class TestFlattenTree:
    def test_excludes_root(self) -> None:
        assert flatten_tree(ExpandedNode(item=_item(1), relationship_type=None)) == []

    def test_pre_order_with_levels(self) -> None:
        entries = flatten_tree(_sample_tree())
        assert [(e.item.id, e.level) for e in entries] == [(2, 1), (4, 2), (1, 2), (3, 1)]

    def test_circular_flag_carried(self) -> None:
        entries = flatten_tree(_sample_tree())
        assert [e.circular_reference for e in entries] == [False, False, True, False]

    def test_to_dict_uses_level_key(self) -> None:
        entry = flatten_tree(_sample_tree())[0]
        d = entry.to_dict(level_key="impact_level")
        assert d["impact_level"] == 1
        assert "level" not in d
        assert d["cmdb_id"] == "CI-2"
        assert d["relationship_type"] == "depends_on"
        assert d["circular_reference"] is False


class TestSummarize:
    def test_counts(self) -> None:
        entries = flatten_tree(_sample_tree())
        summary = summarize(entries, max_depth=3)
        assert summary.total == 4
        assert summary.by_level == [{"level": 1, "count": 2}, {"level": 2, "count": 2}]

    def test_categories_in_first_seen_order(self) -> None:
        summary = summarize(flatten_tree(_sample_tree()), max_depth=3)
        assert summary.by_category == [
            {"category": "application", "count": 1},
            {"category": "database", "count": 1},
            {"category": "server", "count": 2},
        ]

    def test_level_counts_sum_to_total(self) -> None:
        summary = summarize(flatten_tree(_sample_tree()), max_depth=3)
        assert sum(row["count"] for row in summary.by_level) == summary.total

    def test_empty_tree(self) -> None:
        summary = summarize([], max_depth=3)
        assert summary.total == 0
        assert summary.by_level == []
        assert summary.by_category == []

    def test_missing_category_is_counted_under_none(self) -> None:
        tree = ExpandedNode(
            item=_item(1),
            relationship_type=None,
            children=(ExpandedNode(item=_item(2, None), relationship_type="uses"),),
        )
        summary = summarize(flatten_tree(tree), max_depth=1)
        assert summary.by_category == [{"category": None, "count": 1}]
