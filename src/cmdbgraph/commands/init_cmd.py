"""Standalone command: create and stamp the CMDB database."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from cmdbgraph.commands._base import CmdbCommand
from cmdbgraph.services.database import DatabaseService

if TYPE_CHECKING:
    from cmdbgraph.commands._context import AppContext


@click.command(
    "init",
    cls=CmdbCommand,
    examples="""\
  cmdbgraph init
  CMDBGRAPH_DATABASE__PATH=/var/lib/cmdb.db cmdbgraph init""",
)
@click.pass_obj
def init_cmd(app: AppContext) -> None:
    """Create the database tables and stamp the schema revision."""
    app.emit(DatabaseService(app.cmdb).initialize())
