"""Human-readable output for service results.

:func:`render_result` picks a renderer from ``result.op``. Ops without a
dedicated renderer get a plain key/value listing.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from cmdbgraph.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from cmdbgraph.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Styled text for *result*; ANSI codes appear only on a real terminal."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode: one CI id per line."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    for key in ("impacted_items", "dependencies"):
        items = result.data.get(key)
        if isinstance(items, list):
            return "\n".join(str(item["cmdb_id"]) for item in items)

    if result.op == "list_relationships":
        edges = [*result.data.get("outgoing", []), *result.data.get("incoming", [])]
        return "\n".join(str(edge["id"]) for edge in edges)

    relationship = result.data.get("relationship")
    if isinstance(relationship, dict):
        return str(relationship["id"])

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="cmdb.ok"), Text(f"  {result.op}", style="cmdb.op"))


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="cmdb.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="cmdb.id")
    elif key.endswith("name"):
        v = Text(str(value), style="cmdb.name")
    else:
        v = Text(str(value))
    console.print(k, v, sep="")


def _item_text(item: dict[str, Any]) -> Text:
    """One-line label for a CI: name, id, relationship, category, status."""
    text = Text()
    text.append(str(item.get("asset_name", "")), style="cmdb.name")
    text.append(f" ({item.get('cmdb_id', '')})", style="cmdb.id")
    rel = item.get("relationship_type")
    if rel:
        text.append(f"  [{rel}]", style="cmdb.rel")
    category = item.get("asset_category")
    if category:
        text.append(f"  {category}", style="cmdb.key")
    status = item.get("status")
    if status:
        text.append(f"  {status}", style=style_for_status(status))
    if item.get("circular_reference"):
        text.append("  (already visited)", style="cmdb.circular")
    return text


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))
    for key, value in result.meta.items():
        if key == "telemetry":
            _render_telemetry_tree(console, value, indent=4)
        else:
            console.print(f"    {key}: {value}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    duration = span_data.get("duration_ms", 0.0)
    style = "bold red" if duration > 1000 else "yellow" if duration > 100 else "dim"

    line = Text(prefix)
    line.append(f"{duration:>8.2f}ms", style=style)
    line.append(f"  {span_data.get('name', '?')}")
    annotations = span_data.get("annotations") or {}
    if annotations:
        line.append("  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")")
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _render_warnings(console: Console, result: ServiceResult) -> None:
    for warning in result.warnings:
        console.print(Text("  warning: ", style="cmdb.warning"), Text(warning), sep="")


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    console.print(
        Text("ERROR", style="cmdb.error"),
        Text(f"  {result.op}{code}", style="cmdb.op"),
        Text(": "),
        Text(msg),
        sep="",
    )

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Analysis renderer ─────────────────────────────────────────────────


def _build_tree(node: dict[str, Any]) -> Tree:
    """Mirror a serialized traversal tree as a Rich Tree (iterative)."""
    root = Tree(_item_text(node), guide_style="dim")
    stack: list[tuple[dict[str, Any], Tree]] = [(node, root)]
    while stack:
        current, branch = stack.pop()
        for child in current.get("children", []):
            stack.append((child, branch.add(_item_text(child))))
    return root


def _render_analysis(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render impact/dependency results: tree, then summary tables."""
    _status_line(console, result)
    data = result.data
    summary = data.get("summary", {})

    console.print(_build_tree(data["tree"]))
    console.print()

    total_key = "total_impacted" if "total_impacted" in summary else "total_dependencies"
    _field(console, total_key, summary.get(total_key, 0))
    _field(console, "max_depth", summary.get("max_depth_reached"))

    by_level = summary.get("by_level") or []
    by_category = summary.get("by_category") or []
    if by_level:
        table = Table(show_header=True, pad_edge=False, expand=False)
        table.add_column("Level", justify="right")
        table.add_column("Count", justify="right")
        for row in by_level:
            table.add_row(str(row["level"]), str(row["count"]))
        console.print(table)
    if by_category:
        table = Table(show_header=True, pad_edge=False, expand=False)
        table.add_column("Category")
        table.add_column("Count", justify="right")
        for row in by_category:
            table.add_row(str(row["category"] or "-"), str(row["count"]))
        console.print(table)

    if verbose:
        _render_meta(console, result)


# ── Relationship renderers ────────────────────────────────────────────


def _render_relationship_mutation(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    _status_line(console, result)
    rel = result.data.get("relationship", {})
    for key in (
        "id",
        "source_cmdb_id",
        "relationship_type",
        "target_cmdb_id",
        "description",
        "created_by",
    ):
        if rel.get(key) is not None:
            _field(console, key, rel[key])
    _render_warnings(console, result)
    if verbose:
        _render_meta(console, result)


def _edge_table(title: str, edges: list[dict[str, Any]], *, incoming: bool) -> Table:
    table = Table(title=title, show_header=True, pad_edge=False, expand=False)
    table.add_column("Edge", style="cmdb.id", justify="right")
    table.add_column("Relationship", style="cmdb.rel")
    table.add_column("CI", style="cmdb.id", no_wrap=True)
    table.add_column("Name", style="cmdb.name")
    table.add_column("Category")
    table.add_column("Status")
    for edge in edges:
        item = edge["related_item"]
        rel = edge["inverse_type"] if incoming else edge["relationship_type"]
        table.add_row(
            str(edge["id"]),
            rel,
            str(item["cmdb_id"]),
            str(item["asset_name"]),
            str(item.get("asset_category") or ""),
            str(item.get("status") or ""),
        )
    return table


def _render_relationship_list(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    _status_line(console, result)
    data = result.data
    console.print(_item_text(data["item"]))
    _field(console, "total", data.get("total", 0))
    if data.get("outgoing"):
        console.print(_edge_table("Outgoing", data["outgoing"], incoming=False))
    if data.get("incoming"):
        console.print(_edge_table("Incoming", data["incoming"], incoming=True))
    if verbose:
        _render_meta(console, result)


def _render_types(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Type", style="cmdb.rel")
    table.add_column("Label")
    table.add_column("Inverse")
    table.add_column("Traversed", justify="center")
    traversed = set(result.data.get("traversal_types", []))
    for item in result.data.get("items", []):
        table.add_row(
            item["value"],
            item["label"],
            item["inverse_label"],
            "yes" if item["value"] in traversed else "",
        )
    console.print(table)


# ── Fallback ──────────────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)
    _render_warnings(console, result)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "impact_analysis": _render_analysis,
    "dependency_analysis": _render_analysis,
    "create_relationship": _render_relationship_mutation,
    "delete_relationship": _render_relationship_mutation,
    "list_relationships": _render_relationship_list,
    "relationship_types": _render_types,
}
