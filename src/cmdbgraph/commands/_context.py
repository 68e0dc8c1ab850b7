"""The object every command receives through ``@click.pass_obj``."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from cmdbgraph.config.logging import configure_logging
from cmdbgraph.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from cmdbgraph.config.settings import CmdbSettings
    from cmdbgraph.infrastructure.cmdb import Cmdb
    from cmdbgraph.services.result import ServiceResult


class AppContext:
    """Settings, a lazily opened :class:`Cmdb`, and result output.

    Nothing touches the database until a command reads :attr:`cmdb`, so
    ``--help``, ``--version`` and ``--examples`` work anywhere.
    """

    def __init__(self, settings: CmdbSettings) -> None:
        self.settings = settings
        self._cmdb: Cmdb | None = None
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        if settings.verbose:
            from cmdbgraph.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def output_settings(self) -> OutputSettings:
        return OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )

    @property
    def cmdb(self) -> Cmdb:
        if self._cmdb is None:
            from cmdbgraph.infrastructure.cmdb import Cmdb

            self._cmdb = Cmdb(self.settings)
        return self._cmdb

    def close(self) -> None:
        cmdb, self._cmdb = self._cmdb, None
        if cmdb is not None:
            cmdb.close()

    def emit(self, result: ServiceResult) -> None:
        """Write *result* out and set the exit status.

        Successes go to stdout. Failures go to stderr and end the process
        with exit code 1. Quiet text output has no room for warnings, so
        they are repeated on stderr; JSON and the full renderer include them.
        """
        out = self.output_settings
        text = format_result(result, settings=out)
        if not result.ok:
            click.echo(text, err=True)
            raise SystemExit(1)

        click.echo(text)
        if out.quiet and not out.json_output:
            for warning in result.warnings:
                click.echo(f"WARNING: {warning}", err=True)
