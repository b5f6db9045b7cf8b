"""
Token and timestamp utilities.

STDLIB ONLY - NO PYDANTIC.
"""

import uuid
from datetime import UTC, datetime


def utc_now() -> datetime:
    """Get current UTC datetime.

    Truncated to milliseconds, the precision document stores keep, so a
    value read back from the store compares equal to the one written.
    """
    now = datetime.now(UTC)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def new_token() -> str:
    """Generate a fresh entity token (random UUID4 string)."""
    return str(uuid.uuid4())


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes returned by some drivers."""
    if dt is None or dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=UTC)
