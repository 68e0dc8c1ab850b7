"""Buffered Rich consoles and the ``cmdb.*`` style theme.

Renderers draw into a console backed by ``StringIO`` and hand back the text,
so ``format_result`` stays a pure ``ServiceResult -> str`` function. Rich
drops color codes on its own when the buffer is not a terminal.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

DEFAULT_WIDTH = 120

# CI status -> colour; each becomes a ``cmdb.status.<name>`` theme style.
_STATUS_COLOURS = {
    "active": "green",
    "inactive": "dim",
    "maintenance": "yellow",
}

CMDB_THEME = Theme(
    {
        "cmdb.ok": "bold green",
        "cmdb.error": "bold red",
        "cmdb.warning": "bold yellow",
        "cmdb.op": "bold cyan",
        "cmdb.key": "dim",
        "cmdb.id": "bold blue",
        "cmdb.name": "bold",
        "cmdb.rel": "magenta",
        "cmdb.circular": "yellow",
        **{f"cmdb.status.{status}": colour for status, colour in _STATUS_COLOURS.items()},
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Console writing into a private buffer; read it back with :func:`get_output`."""
    return Console(
        file=StringIO(),
        theme=CMDB_THEME,
        no_color=no_color,
        highlight=False,
        width=width or DEFAULT_WIDTH,
    )


def get_output(console: Console) -> str:
    buffer = console.file
    if not isinstance(buffer, StringIO):
        raise TypeError("console was not created by create_console()")
    return buffer.getvalue()


def style_for_status(status: str | None) -> str:
    """Theme style for a CI status; empty for unknown or missing statuses."""
    key = (status or "").lower()
    return f"cmdb.status.{key}" if key in _STATUS_COLOURS else ""
