"""Shared helpers for Whisperer models."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4


def generate_id() -> str:
    """Generate a row identifier compatible with Postgres ``uuid`` columns.

    Examples:
        generate_id() -> "5b0f4f8e-2c0a-4b61-9d1e-7f6f3b1f0a52"
    """
    return str(uuid4())


def utc_now() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(UTC)


def truncate(text: str | None, limit: int) -> str | None:
    """Trim ``text`` to at most ``limit`` characters, keeping None as None."""
    if text is None:
        return None
    return text[:limit]
