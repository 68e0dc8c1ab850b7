"""BaseService: shared foundation for cmdbgraph services.

Every service receives a :class:`Cmdb` at construction time and reaches
the store adapter, change log, and traversal engine through it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from alembic.util import CommandError
from sqlalchemy.exc import SQLAlchemyError

from cmdbgraph.services.result import ErrorCode, ServiceResult

if TYPE_CHECKING:
    from cmdbgraph.infrastructure.cmdb import Cmdb

logger = logging.getLogger(__name__)


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class AnalysisService(BaseService):
            def impact(self, cmdb_id: str, ...) -> ServiceResult:
                root = self._cmdb.relationships.find_item_by_external_id(cmdb_id)
                ...
    """

    def __init__(self, cmdb: Cmdb) -> None:
        self._cmdb = cmdb

    @staticmethod
    def _store_failure(op: str, exc: SQLAlchemyError | CommandError) -> ServiceResult:
        """Map a store exception to a generic ``STORE_ERROR`` result.

        The full traceback goes to the log; callers only see a generic
        message. Nothing partial is returned.
        """
        logger.error("Store error during %s", op, exc_info=exc)
        return ServiceResult.failure(
            op,
            ErrorCode.STORE_ERROR,
            "Internal store error",
            exception=type(exc).__name__,
        )
