"""Cmdb: the single dependency injected into every service.

Owns the SQLAlchemy engine and hands out the narrow collaborators the
services work through: the relationship store adapter, the change-log
port, and a traversal engine configured from settings.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cmdbgraph.infrastructure.changelog import ChangeLog, SqlChangeLog
from cmdbgraph.infrastructure.database.engine import init_database
from cmdbgraph.infrastructure.graph.traversal import TraversalEngine
from cmdbgraph.infrastructure.repositories.relationships import RelationshipRepository

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.engine import Engine

    from cmdbgraph.config.settings import CmdbSettings

logger = logging.getLogger(__name__)


class Cmdb:
    """Repository encapsulating database access for the relationship graph.

    Constructed once per CLI invocation from :class:`CmdbSettings`.
    Services receive it via their :class:`BaseService` constructor.

    *changelog* replaces the SQL change-log writer, e.g. to forward history
    to an external audit service.
    """

    def __init__(self, settings: CmdbSettings, *, changelog: ChangeLog | None = None) -> None:
        self._settings = settings
        self._engine: Engine = init_database(settings.db_path)
        self._relationships = RelationshipRepository(self._engine)
        self._changelog: ChangeLog = changelog or SqlChangeLog(self._engine)
        logger.debug("Opened CMDB database at %s", settings.db_path)

    @property
    def settings(self) -> CmdbSettings:
        return self._settings

    @property
    def db_path(self) -> Path:
        return self._settings.db_path

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def relationships(self) -> RelationshipRepository:
        """The relationship store adapter."""
        return self._relationships

    @property
    def changelog(self) -> ChangeLog:
        return self._changelog

    def traversal(self) -> TraversalEngine:
        """A fresh traversal engine; its state never outlives one call."""
        return TraversalEngine(
            self._relationships,
            visited_scope=self._settings.analysis.visited_scope,
        )

    def close(self) -> None:
        """Dispose of pooled connections."""
        self._engine.dispose()
