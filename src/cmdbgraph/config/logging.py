"""Routing of log output to stderr through structlog.

Both structlog loggers and plain ``logging.getLogger(__name__)`` loggers end
up on one stderr handler whose :class:`structlog.stdlib.ProcessorFormatter`
renders either a console line or a JSON object (``--log-json``).
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.types import Processor

APP_LOGGER = "cmdbgraph"

# Chatty dependencies pinned to WARNING even under --verbose.
_QUIET_LIBRARIES = ("alembic", "sqlalchemy")


def _pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _final_processors(log_json: bool) -> list[Processor]:
    strip_meta = structlog.stdlib.ProcessorFormatter.remove_processors_meta
    if log_json:
        return [strip_meta, structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [strip_meta, structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]


def _stderr_handler(log_json: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_pre_chain(),
            processors=_final_processors(log_json),
        )
    )
    return handler


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Install the stderr handler and set logger levels.

    Safe to call repeatedly; the root logger keeps a single handler.

    Args:
        verbose: DEBUG for ``cmdbgraph.*``. Otherwise WARNING, which still
            lets change-log failures through.
        log_json: Render JSON lines instead of console text.
    """
    structlog.configure(
        processors=[*_pre_chain(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.handlers[:] = [_stderr_handler(log_json)]
    root.setLevel(logging.WARNING)

    logging.getLogger(APP_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)
