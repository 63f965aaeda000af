"""Error taxonomy for the relationship engine.

Each exception carries a stable ``code`` that the service boundary copies
into :class:`~tradelink.services.result.ServiceError`. Client faults
(validation, conflict, not-found, permission) are distinct from server
faults (store unavailable) so adapters can map them to exit codes or
status codes without parsing messages.

INVARIANT: ``SyncFailure`` is never surfaced as a failed result. It is
logged and reported as a warning on the triggering operation.
"""

from __future__ import annotations

from typing import Any


class RelationshipError(Exception):
    """Base class for all engine errors."""

    code: str = "ERROR"

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = detail or {}


class ValidationError(RelationshipError):
    """Malformed or missing identifiers, self-targeting operations."""

    code = "VALIDATION_FAILED"


class ConflictError(RelationshipError):
    """Duplicate edge, already connected/blocked, or invalid transition."""

    code = "CONFLICT"


class BlockedError(ConflictError):
    """The operation is refused because the pair is blocked."""

    code = "BLOCKED"


class NotFoundError(RelationshipError):
    """Missing account, edge, or contact."""

    code = "NOT_FOUND"


class PermissionDeniedError(RelationshipError):
    """The acting account is not a valid party to the edge or operation."""

    code = "PERMISSION_DENIED"


class SyncFailure(RelationshipError):
    """A derived side effect (follows, contacts) failed after commit."""

    code = "SYNC_FAILED"


class StoreFailure(RelationshipError):
    """The underlying persistence layer is unavailable. Retryable."""

    code = "STORE_FAILURE"

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message, detail={"retryable": True, **(detail or {})})
