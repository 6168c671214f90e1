"""Helper functions for incremental change extraction.

Timestamp handling shared by the log reader, the backlog planner and the
marker utilities. Commit timestamps in the Delta log are epoch milliseconds;
everything above the reader works with timezone-aware UTC datetimes.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Union

from conversion_sdk.constants import MARKER_TIMESTAMP_FORMAT
from conversion_sdk.observability.logger_adaptor import get_logger

logger = get_logger(__name__)

InstantLike = Union[datetime, int, float, str]

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def epoch_millis_to_datetime(millis: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return EPOCH + timedelta(milliseconds=millis)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_marker_timestamp(marker: str) -> str:
    """Truncate fractional seconds of a ``Z`` marker to milliseconds (.123456789Z -> .123Z)."""
    normalized = re.sub(r"(\.\d{3})\d{1,6}(?=Z$)", r"\1", marker.strip())
    if normalized != marker:
        logger.debug(f"Normalized marker: '{marker}' → '{normalized}'")
    return normalized


def prepone_timestamp(value: datetime, hours: float) -> datetime:
    """Move a timestamp back by the given number of hours.

    Re-scanning a few commits before the last sync is harmless since
    extraction is idempotent, and protects against clock skew at the boundary.
    """
    adjusted = value - timedelta(hours=hours)
    logger.info(f"Preponed instant by {hours}h: '{value.isoformat()}' → '{adjusted.isoformat()}'")
    return adjusted


def to_instant(value: InstantLike) -> datetime:
    """Coerce a datetime, epoch milliseconds or ISO-8601 string to a UTC datetime.

    Args:
        value: ``datetime`` (naive values are taken as UTC), ``int``/``float``
            epoch milliseconds, or a string in ISO-8601 form. Strings made only
            of digits are read as epoch milliseconds.

    Returns:
        Timezone-aware UTC datetime.

    Raises:
        ValueError: If the string cannot be parsed.
        TypeError: If the value has an unsupported type.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, bool):
        raise TypeError(f"Unsupported instant type: {type(value).__name__}")
    if isinstance(value, (int, float)):
        return epoch_millis_to_datetime(int(value))
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return epoch_millis_to_datetime(int(text))
        try:
            return datetime.strptime(text, MARKER_TIMESTAMP_FORMAT).replace(
                tzinfo=timezone.utc
            )
        except ValueError:
            pass
        # fromisoformat before 3.11 wants exactly 3 or 6 fraction digits and no Z
        text = re.sub(
            r"\.(\d+)", lambda match: "." + (match.group(1) + "000000")[:6], text
        )
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return ensure_utc(datetime.fromisoformat(text))
    raise TypeError(f"Unsupported instant type: {type(value).__name__}")


def format_marker(value: datetime) -> str:
    """Render an instant as a UTC ``Z`` marker, keeping milliseconds when present."""
    value = ensure_utc(value)
    if value.microsecond:
        return f"{value.strftime('%Y-%m-%dT%H:%M:%S')}.{value.microsecond // 1000:03d}Z"
    return value.strftime(MARKER_TIMESTAMP_FORMAT)
