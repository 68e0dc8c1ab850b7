"""ServiceResult and ServiceError: the universal service contract.

INVARIANT: All service-layer methods return ServiceResult.
The CLI and any other front end (HTTP, RPC) consume this type; expected
failures travel as ``error`` codes, never as exceptions.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(StrEnum):
    """Error taxonomy shared by all services."""

    NOT_FOUND = "NOT_FOUND"  # root CI, referenced CI, or edge missing
    MISSING_FIELD = "MISSING_FIELD"
    SELF_LOOP = "SELF_LOOP"
    INVALID_TYPE = "INVALID_TYPE"
    DUPLICATE = "DUPLICATE"  # active edge with same (source, target, type)
    STORE_ERROR = "STORE_ERROR"


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Universal return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"impact_analysis"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues (e.g. change-log write failures).
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (telemetry spans, counts).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls,
        op: str,
        code: ErrorCode,
        message: str,
        **detail: Any,
    ) -> ServiceResult:
        """Shorthand for an ``ok=False`` result with a single error."""
        return cls(
            ok=False,
            op=op,
            error=ServiceError(code=code, message=message, detail=detail),
        )
