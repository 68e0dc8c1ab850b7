"""Entry point for the ``cmdbgraph`` command.

The root group resolves settings once (flags over env over TOML) and hands
an :class:`AppContext` to every subcommand. The database is only opened
when a subcommand asks for it.
"""

from __future__ import annotations

from typing import Any

import click

from cmdbgraph import __version__
from cmdbgraph.commands import register_commands
from cmdbgraph.commands._base import CmdbGroup
from cmdbgraph.commands._context import AppContext
from cmdbgraph.config.settings import CmdbSettings

_ROOT_EXAMPLES = """\
  cmdbgraph init
  cmdbgraph rel add CMDB-APP-01 CMDB-DB-01 depends_on
  cmdbgraph analyze impact CMDB-DB-01 --depth 4
  cmdbgraph --json analyze deps CMDB-APP-01"""


@click.group(cls=CmdbGroup, invoke_without_command=True, examples=_ROOT_EXAMPLES)
@click.version_option(__version__, "-V", "--version", prog_name="cmdbgraph")
@click.option("--json", "json_output", is_flag=True, help="Emit results as JSON.")
@click.option("-q", "--quiet", is_flag=True, help="Only print CI or edge ids.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and timing spans.")
@click.option("--log-json", is_flag=True, help="Write logs to stderr as JSON lines.")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Use this cmdbgraph.toml instead of searching for one.",
)
@click.option("--actor", default=None, help="Name recorded on relationship changes.")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, **flags: Any) -> None:
    """cmdbgraph: CI relationship graph and impact analysis."""
    # Unset flags stay None/False so env and TOML values can apply.
    overrides = {name: value for name, value in flags.items() if value}
    app = AppContext(CmdbSettings.from_cli(config_path=config_path, **overrides))
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
