"""Click command classes that carry usage examples.

Examples stay out of ``--help``; ``--help`` only mentions that they exist.
Passing ``--examples`` prints them and exits before any argument checks, so
``cmdbgraph rel add --examples`` works without SOURCE/TARGET/TYPE.
"""

from __future__ import annotations

from typing import Any

import click


class _ExamplesMixin:
    """Adds an ``examples`` keyword and the eager ``--examples`` flag."""

    examples: str | None
    params: list[click.Parameter]

    def _init_examples(self, examples: str | None) -> None:
        self.examples = examples
        if examples:
            self.params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=self._print_examples,
                    help="Show usage examples and exit.",
                )
            )

    def _print_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(self.examples)
        ctx.exit(0)

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        super().format_epilog(ctx, formatter)  # type: ignore[misc]
        if self.examples:
            formatter.write_paragraph()
            formatter.write_text(f"Run '{ctx.command_path} --examples' for usage examples.")


class CmdbCommand(_ExamplesMixin, click.Command):
    """A command with optional ``examples`` text."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)


class CmdbGroup(_ExamplesMixin, click.Group):
    """A group whose subcommands and subgroups also accept ``examples``."""

    command_class = CmdbCommand
    group_class = type

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)
