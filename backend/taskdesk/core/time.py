"""Clock helpers shared by models and services."""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC instant as a naive datetime (storage convention)."""
    return datetime.now(UTC).replace(tzinfo=None)
