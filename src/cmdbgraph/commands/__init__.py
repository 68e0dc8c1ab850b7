"""Subcommand modules for cmdbgraph.

Provides register_commands() which uses deferred imports to keep
``cmdbgraph --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the command groups and standalone commands on the root group."""
    from cmdbgraph.commands.analyze import analyze
    from cmdbgraph.commands.init_cmd import init_cmd
    from cmdbgraph.commands.relationship import rel

    cli.add_command(analyze)
    cli.add_command(rel)
    cli.add_command(init_cmd)
