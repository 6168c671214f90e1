"""Tests for incremental sync marker management.

Tests cover public functions with real business logic:
- process_marker_timestamp: Conditional normalization and preponing
- instants_from_marker: Default prepone hours from configuration
- create_next_marker: Marker for the last processed commit
"""

from datetime import datetime, timezone
from unittest.mock import patch

from conversion_sdk.common.incremental.marker import (
    create_next_marker,
    instants_from_marker,
    parse_marker_timestamp,
    process_marker_timestamp,
)
from conversion_sdk.common.incremental.models import Commit, InstantsForIncrementalSync

UTC = timezone.utc

# ---------------------------------------------------------------------------
# process_marker_timestamp
# ---------------------------------------------------------------------------


class TestProcessMarkerTimestamp:
    """Tests for process_marker_timestamp (conditional normalization + preponing)."""

    def test_normalizes_without_prepone(self):
        """When prepone is disabled, only normalization is applied."""
        result = process_marker_timestamp(
            "2025-01-15T10:30:00.123456789Z",
            prepone_enabled=False,
        )
        assert result == datetime(2025, 1, 15, 10, 30, 0, 123000, tzinfo=UTC)

    def test_normalizes_and_prepones(self):
        """When prepone is enabled, normalizes first then moves back."""
        result = process_marker_timestamp(
            "2025-01-15T10:30:00.123456789Z",
            prepone_enabled=True,
            prepone_hours=3,
        )
        assert result == datetime(2025, 1, 15, 7, 30, 0, 123000, tzinfo=UTC)

    def test_prepone_enabled_but_zero_hours(self):
        """When prepone is enabled but hours=0, no preponing occurs."""
        result = process_marker_timestamp(
            "2025-01-15T10:30:00Z",
            prepone_enabled=True,
            prepone_hours=0,
        )
        assert result == datetime(2025, 1, 15, 10, 30, tzinfo=UTC)

    def test_defaults_no_prepone(self):
        """Default parameters disable preponing."""
        result = process_marker_timestamp("2025-01-15T10:30:00Z")
        assert result == datetime(2025, 1, 15, 10, 30, tzinfo=UTC)

    def test_epoch_millis_marker(self):
        """Markers stored as epoch milliseconds are accepted."""
        assert parse_marker_timestamp(1_736_937_000_000) == datetime(
            2025, 1, 15, 10, 30, tzinfo=UTC
        )


# ---------------------------------------------------------------------------
# instants_from_marker
# ---------------------------------------------------------------------------


class TestInstantsFromMarker:
    """Tests for instants_from_marker."""

    def test_wraps_parsed_marker(self):
        instants = instants_from_marker("2025-01-15T10:30:00Z", prepone_hours=0)
        assert isinstance(instants, InstantsForIncrementalSync)
        assert instants.last_sync_instant == datetime(2025, 1, 15, 10, 30, tzinfo=UTC)

    def test_explicit_prepone_hours(self):
        instants = instants_from_marker("2025-01-15T10:30:00Z", prepone_hours=2)
        assert instants.last_sync_instant == datetime(2025, 1, 15, 8, 30, tzinfo=UTC)

    def test_default_prepone_hours_from_configuration(self):
        """Without explicit hours the configured default applies."""
        with patch(
            "conversion_sdk.common.incremental.marker.DEFAULT_PREPONE_MARKER_HOURS", 1
        ):
            instants = instants_from_marker("2025-01-15T10:30:00Z")
        assert instants.last_sync_instant == datetime(2025, 1, 15, 9, 30, tzinfo=UTC)


# ---------------------------------------------------------------------------
# create_next_marker
# ---------------------------------------------------------------------------


class TestCreateNextMarker:
    """Tests for create_next_marker."""

    def test_marker_is_commit_timestamp(self):
        commit = Commit(
            version=10, timestamp=datetime(2025, 1, 15, 10, 30, 0, 250000, tzinfo=UTC)
        )
        assert create_next_marker(commit) == "2025-01-15T10:30:00.250Z"

    def test_marker_resolves_back_to_commit_timestamp(self):
        commit = Commit(version=3, timestamp=datetime(2025, 1, 15, 10, 30, tzinfo=UTC))
        marker = create_next_marker(commit)
        assert (
            instants_from_marker(marker, prepone_hours=0).last_sync_instant
            == commit.timestamp
        )
