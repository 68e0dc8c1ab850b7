"""Service layer: impact/dependency analysis and relationship management.

Every public service method returns a :class:`ServiceResult`.
"""

from cmdbgraph.services.analysis import AnalysisService
from cmdbgraph.services.relationships import RelationshipService
from cmdbgraph.services.result import ErrorCode, ServiceError, ServiceResult

__all__ = [
    "AnalysisService",
    "ErrorCode",
    "RelationshipService",
    "ServiceError",
    "ServiceResult",
]
