"""DatabaseService: initialize and stamp the CMDB database."""

from __future__ import annotations

from alembic.util import CommandError
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from cmdbgraph.infrastructure.database.migrations import current_revision, stamp_head
from cmdbgraph.services.base import BaseService
from cmdbgraph.services.result import ServiceResult


class DatabaseService(BaseService):
    """Database lifecycle operations."""

    def initialize(self) -> ServiceResult:
        """Stamp the (already created) schema at the Alembic head revision.

        Idempotent: re-running on an initialized database re-stamps head.
        """
        op = "init_database"
        try:
            stamp_head(self._cmdb.db_path)
            revision = current_revision(self._cmdb.db_path)
            tables = sorted(inspect(self._cmdb.engine).get_table_names())
        except (SQLAlchemyError, CommandError) as exc:
            return self._store_failure(op, exc)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "db_path": str(self._cmdb.db_path),
                "revision": revision,
                "tables": [t for t in tables if t != "alembic_version"],
            },
        )
