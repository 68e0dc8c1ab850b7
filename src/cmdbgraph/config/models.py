"""Pydantic configuration section models with code-baked defaults.

Sparse TOML contract: defaults baked here, ``cmdbgraph.toml`` only contains
overrides. An empty file (or no file at all) is a valid configuration.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from cmdbgraph.domain.tree import DEFAULT_DEPTH, MAX_DEPTH


class DatabaseConfig(BaseModel):
    """[database] section."""

    model_config = {"frozen": True}

    # Relative paths resolve against the directory holding cmdbgraph.toml.
    path: Path = Path(".cmdbgraph") / "cmdb.db"


class AnalysisConfig(BaseModel):
    """[analysis] section."""

    model_config = {"frozen": True}

    default_depth: int = Field(default=DEFAULT_DEPTH, ge=1, le=MAX_DEPTH)
    max_depth: int = Field(default=MAX_DEPTH, ge=1, le=MAX_DEPTH)
    # "traversal": one visited set per call (diamonds truncate on second
    # sighting). "path": only ancestors count as visited.
    visited_scope: Literal["traversal", "path"] = "traversal"

    @model_validator(mode="after")
    def _default_within_max(self) -> AnalysisConfig:
        if self.default_depth > self.max_depth:
            msg = (
                f"analysis.default_depth ({self.default_depth}) exceeds "
                f"analysis.max_depth ({self.max_depth})"
            )
            raise ValueError(msg)
        return self

