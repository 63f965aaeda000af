"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import UTC, datetime


def now_iso() -> str:
    """Current UTC time as ISO 8601 (edge and contact timestamps)."""
    return datetime.now(UTC).isoformat()


def normalize_email(email: str | None) -> str:
    """Trim and lowercase an email address; ``""`` when missing.

    Examples:
        >>> normalize_email("  Ann@Example.COM ")
        'ann@example.com'
        >>> normalize_email(None)
        ''
    """
    return (email or "").strip().lower()


def clamp(value: int, low: int, high: int) -> int:
    """Clamp *value* into ``[low, high]``."""
    return max(low, min(value, high))
