"""Tests for constants module."""

import importlib

import conversion_sdk.constants as constants


class TestDeltaLogConstants:
    """Test suite for the transaction log constants."""

    def test_defaults(self):
        assert constants.DELTA_LOG_DIR_NAME == "_delta_log"
        assert constants.DELTA_COMMIT_FILE_DIGITS == 20
        assert constants.DEFAULT_TABLE_FORMAT == "DELTA"

    def test_commit_cache_size_default(self):
        assert constants.DELTA_COMMIT_CACHE_SIZE == 128


class TestPreponeMarkerHours:
    """Test suite for CONVERSION_PREPONE_MARKER_HOURS."""

    def test_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("CONVERSION_PREPONE_MARKER_HOURS", "2.5")
        try:
            assert importlib.reload(constants).DEFAULT_PREPONE_MARKER_HOURS == 2.5
        finally:
            monkeypatch.delenv("CONVERSION_PREPONE_MARKER_HOURS")
            importlib.reload(constants)
