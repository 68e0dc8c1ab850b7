"""Locating ``cmdbgraph.toml``.

Precedence: an explicit ``--config`` path, then ``CMDBGRAPH_CONFIG``, then
the nearest ``cmdbgraph.toml`` in the start directory or any parent (the
way git finds ``.git/``). A path that is named explicitly but does not exist
disables discovery instead of falling through to walk-up.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "cmdbgraph.toml"
CONFIG_ENV_VAR = "CMDBGRAPH_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return ``CMDBGRAPH_CONFIG`` if set, else walk up from *start* (default: cwd)."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return _existing(Path(env_path))

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def resolve_config(explicit: str | Path | None, start: Path | None = None) -> Path | None:
    """Pick the config file for one invocation.

    *explicit* comes from ``--config``; when given, no other source is
    consulted.
    """
    if explicit:
        return _existing(Path(explicit))
    return find_config(start)


def _existing(path: Path) -> Path | None:
    return path if path.is_file() else None
