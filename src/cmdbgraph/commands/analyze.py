"""Command group: impact and dependency analysis."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from cmdbgraph.commands._base import CmdbGroup
from cmdbgraph.services.analysis import AnalysisService

if TYPE_CHECKING:
    from cmdbgraph.commands._context import AppContext

_ANALYZE_EXAMPLES = """\
  cmdbgraph analyze impact CMDB-DB-01
  cmdbgraph analyze impact CMDB-DB-01 --depth 5
  cmdbgraph analyze deps CMDB-APP-01
  cmdbgraph --json analyze deps CMDB-APP-01 --depth 2"""

# Depth is taken as text: invalid values fall back to the default depth
# instead of failing argument parsing.
_depth_option = click.option(
    "--depth",
    default=None,
    help="Levels to expand (1-10, default 3). Invalid values use the default.",
)


@click.group(cls=CmdbGroup, examples=_ANALYZE_EXAMPLES)
def analyze() -> None:
    """Trace impact and dependencies through CI relationships."""


@analyze.command(
    examples="""\
  cmdbgraph analyze impact CMDB-DB-01
  cmdbgraph analyze impact CMDB-DB-01 --depth 5
  cmdbgraph -q analyze impact CMDB-DB-01"""
)
@click.argument("cmdb_id")
@_depth_option
@click.pass_obj
def impact(app: AppContext, cmdb_id: str, depth: str | None) -> None:
    """Show everything that breaks if CMDB_ID fails."""
    app.emit(AnalysisService(app.cmdb).impact(cmdb_id, depth=depth))


@analyze.command(
    examples="""\
  cmdbgraph analyze deps CMDB-APP-01
  cmdbgraph --json analyze deps CMDB-APP-01 --depth 2"""
)
@click.argument("cmdb_id")
@_depth_option
@click.pass_obj
def deps(app: AppContext, cmdb_id: str, depth: str | None) -> None:
    """Show everything CMDB_ID depends on."""
    app.emit(AnalysisService(app.cmdb).dependencies(cmdb_id, depth=depth))
