"""Command group: create, remove, and list CI relationships."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from cmdbgraph.commands._base import CmdbGroup
from cmdbgraph.services.relationships import RelationshipService

if TYPE_CHECKING:
    from cmdbgraph.commands._context import AppContext

_REL_EXAMPLES = """\
  cmdbgraph rel add CMDB-APP-01 CMDB-DB-01 depends_on
  cmdbgraph rel add CMDB-VM-01 CMDB-APP-01 hosts --description "prod VM"
  cmdbgraph rel list CMDB-DB-01
  cmdbgraph rel remove 42
  cmdbgraph rel types"""


@click.group(cls=CmdbGroup, examples=_REL_EXAMPLES)
def rel() -> None:
    """Manage relationships between configuration items."""


@rel.command(
    examples="""\
  cmdbgraph rel add CMDB-APP-01 CMDB-DB-01 depends_on
  cmdbgraph --actor alice rel add CMDB-APP-01 CMDB-CACHE-01 uses -d "session store\""""
)
@click.argument("source_cmdb_id")
@click.argument("target_cmdb_id")
@click.argument("relationship_type")
@click.option("-d", "--description", default=None, help="Free-text description.")
@click.pass_obj
def add(
    app: AppContext,
    source_cmdb_id: str,
    target_cmdb_id: str,
    relationship_type: str,
    description: str | None,
) -> None:
    """Create SOURCE --RELATIONSHIP_TYPE--> TARGET."""
    app.emit(
        RelationshipService(app.cmdb).create(
            source_cmdb_id,
            target_cmdb_id,
            relationship_type,
            description=description,
        )
    )


@rel.command(
    examples="""\
  cmdbgraph rel remove 42
  cmdbgraph --json rel remove 42"""
)
@click.argument("edge_id", type=int)
@click.pass_obj
def remove(app: AppContext, edge_id: int) -> None:
    """Deactivate relationship EDGE_ID (kept for history)."""
    app.emit(RelationshipService(app.cmdb).delete(edge_id))


@rel.command(
    name="list",
    examples="""\
  cmdbgraph rel list CMDB-DB-01
  cmdbgraph --json rel list CMDB-DB-01""",
)
@click.argument("cmdb_id")
@click.pass_obj
def list_cmd(app: AppContext, cmdb_id: str) -> None:
    """List outgoing and incoming relationships of CMDB_ID."""
    app.emit(RelationshipService(app.cmdb).list_for_item(cmdb_id))


@rel.command(
    examples="""\
  cmdbgraph rel types
  cmdbgraph --json rel types"""
)
@click.pass_obj
def types(app: AppContext) -> None:
    """Show relationship types, labels, and inverse labels."""
    app.emit(RelationshipService(app.cmdb).types())
