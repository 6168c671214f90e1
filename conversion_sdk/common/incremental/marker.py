"""Incremental sync marker management.

Markers are timestamps persisted by the caller after a successful sync. They
mark the commit that was processed last, so the next run can plan its backlog
from there.

Marker workflow:
1. process_marker_timestamp() - Parse, normalize and optionally prepone a stored marker
2. instants_from_marker() - Wrap it for DeltaConversionSource.get_commits_backlog()
3. create_next_marker() - Marker string for the last commit that was processed

Example:
    >>> instants = instants_from_marker("2025-01-15T10:30:00.123Z")
    >>> backlog = source.get_commits_backlog(instants)
    >>> # ... process every commit in backlog.commits_to_process ...
    >>> marker = create_next_marker(last_processed_commit)
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from conversion_sdk.common.incremental.helpers import (
    InstantLike,
    format_marker,
    normalize_marker_timestamp,
    prepone_timestamp,
    to_instant,
)
from conversion_sdk.common.incremental.models import Commit, InstantsForIncrementalSync
from conversion_sdk.constants import DEFAULT_PREPONE_MARKER_HOURS
from conversion_sdk.observability.logger_adaptor import get_logger

logger = get_logger(__name__)


def parse_marker_timestamp(marker: InstantLike) -> datetime:
    """Parse a stored marker into an aware UTC datetime.

    Accepts ISO-8601 strings (``Z`` or explicit offsets, any fraction length;
    fractions beyond milliseconds are dropped), epoch milliseconds, or datetimes.
    """
    if isinstance(marker, str):
        marker = normalize_marker_timestamp(marker)
    return to_instant(marker)


def process_marker_timestamp(
    marker: InstantLike,
    prepone_enabled: bool = False,
    prepone_hours: float = 0,
) -> datetime:
    """Process and optionally prepone a marker timestamp.

    Normalizes the marker and optionally moves it back in time so commits
    sitting right at the boundary are processed again rather than skipped.

    Args:
        marker: Raw marker (string, epoch milliseconds or datetime)
        prepone_enabled: Whether to prepone the marker
        prepone_hours: Number of hours to prepone (move back in time)

    Returns:
        Processed marker instant

    Example:
        >>> process_marker_timestamp(
        ...     "2024-01-15T10:00:00Z",
        ...     prepone_enabled=True,
        ...     prepone_hours=2
        ... )
        datetime.datetime(2024, 1, 15, 8, 0, tzinfo=datetime.timezone.utc)
    """
    instant = parse_marker_timestamp(marker)

    if prepone_enabled and prepone_hours > 0:
        adjusted = prepone_timestamp(instant, prepone_hours)
        logger.info(
            f"Marker preponed: original={format_marker(instant)}, "
            f"adjusted={format_marker(adjusted)} (preponed by {prepone_hours}h)"
        )
        return adjusted

    return instant


def instants_from_marker(
    marker: InstantLike,
    prepone_hours: Optional[float] = None,
) -> InstantsForIncrementalSync:
    """Build the incremental sync instants from a stored marker.

    Args:
        marker: Marker persisted after the previous successful sync.
        prepone_hours: Hours to move the marker back; defaults to
            ``CONVERSION_PREPONE_MARKER_HOURS`` (0 disables preponing).
    """
    hours = DEFAULT_PREPONE_MARKER_HOURS if prepone_hours is None else prepone_hours
    instant = process_marker_timestamp(
        marker, prepone_enabled=hours > 0, prepone_hours=hours
    )
    logger.info(f"Incremental sync from marker={format_marker(instant)}")
    return InstantsForIncrementalSync(last_sync_instant=instant)


def create_next_marker(commit: Commit) -> str:
    """Marker string for a processed commit.

    The marker is the commit timestamp itself, so planning from it resolves
    back to the same commit and the backlog starts right after it.
    """
    return format_marker(commit.timestamp)
