"""One frozen settings object built from every configuration layer.

Layers, strongest first: CLI flags, ``CMDBGRAPH_*`` environment variables
(``__`` reaches into sections, e.g. ``CMDBGRAPH_DATABASE__PATH``), the
``cmdbgraph.toml`` picked by :func:`~cmdbgraph.config.discovery.resolve_config`,
and finally the defaults on the section models.
"""

from __future__ import annotations

import tomllib
from contextvars import ContextVar
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from cmdbgraph.config.discovery import resolve_config
from cmdbgraph.config.models import AnalysisConfig, DatabaseConfig

# TOML file for the settings object currently being constructed.
_active_toml: ContextVar[Path | None] = ContextVar("_active_toml", default=None)


def load_toml(path: Path | None) -> dict[str, Any]:
    """Parse *path*, or return an empty mapping when there is no file."""
    if path is None or not path.is_file():
        return {}
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise click.ClickException(f"Invalid TOML in {path}: {exc}") from exc


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Settings layer backed by a parsed ``cmdbgraph.toml``."""

    def __init__(self, settings_cls: type[BaseSettings], data: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._data = data

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return dict(self._data)


class CmdbSettings(BaseSettings):
    """Settings shared by the CLI and the service layer.

    Attributes:
        root: Directory relative paths resolve against (parent of
            ``cmdbgraph.toml``, or CWD if no config was found).
        config_path: The TOML file in effect, if any.
        actor: Name recorded as ``created_by`` / ``changed_by``.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "CMDBGRAPH_",
        "env_nested_delimiter": "__",
    }

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    actor: str = "cmdbgraph"

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)

    @property
    def db_path(self) -> Path:
        """``database.path``, anchored at ``root`` when relative."""
        if self.database.path.is_absolute():
            return self.database.path
        return self.root / self.database.path

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml_source = TomlSettingsSource(settings_cls, load_toml(_active_toml.get()))
        return init_settings, env_settings, toml_source

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        **cli_flags: Any,
    ) -> CmdbSettings:
        """Build settings for one CLI invocation.

        Without an explicit *root*, the directory holding the config file
        becomes the root (or the CWD when none was found). Flags passed as
        None are dropped so they never mask env or TOML values.
        """
        toml_path = resolve_config(config_path, root)
        if root is None:
            root = toml_path.parent if toml_path is not None else Path.cwd()
        flags = {key: value for key, value in cli_flags.items() if value is not None}

        token = _active_toml.set(toml_path)
        try:
            return cls(root=root, config_path=toml_path, **flags)
        finally:
            _active_toml.reset(token)
