"""ServiceResult and ServiceError: the contract every service returns.

INVARIANT: All service-layer methods return ServiceResult. Domain
exceptions raised inside a service are converted with :func:`failure`.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from tradelink.domain.errors import RelationshipError


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
        op: Name of the operation (e.g. ``"send_request"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues, including failed derived effects.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (telemetry spans, timing).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None


def failure(op: str, exc: RelationshipError, warnings: list[str] | None = None) -> ServiceResult:
    """Build a failed result from a domain exception."""
    return ServiceResult(
        ok=False,
        op=op,
        warnings=list(warnings or []),
        error=ServiceError(code=exc.code, message=exc.message, detail=exc.detail),
    )
