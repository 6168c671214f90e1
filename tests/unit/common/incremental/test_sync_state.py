"""Tests for IncrementalSyncState.

Tests cover:
- Version range pinned at creation
- Membership checks on per-version action lookups
- Caching of fetched action lists
"""

from unittest.mock import Mock

import pytest

from conversion_sdk.common.error_codes import IncrementalStateError
from conversion_sdk.common.incremental.models import AddAction, RemoveAction
from conversion_sdk.common.incremental.state import IncrementalSyncState
from conversion_sdk.sources.interfaces import DeltaLogReader


@pytest.fixture
def log_reader():
    reader = Mock(spec=DeltaLogReader)
    reader.latest_version.return_value = 12
    reader.actions_for_version.side_effect = lambda version: [
        AddAction(path=f"add-{version}.parquet"),
        RemoveAction(path=f"remove-{version}.parquet"),
    ]
    return reader


class TestIncrementalSyncState:
    """Tests for IncrementalSyncState."""

    def test_create_pins_latest_version(self, log_reader):
        state = IncrementalSyncState.create(log_reader, 11)
        log_reader.latest_version.return_value = 20
        assert state.get_versions_in_sorted_order() == [11, 12]
        assert state.latest_version == 12

    def test_up_to_date_backlog_is_empty(self, log_reader):
        state = IncrementalSyncState.create(log_reader, 13)
        assert state.get_versions_in_sorted_order() == []
        assert not state.contains(13)

    def test_actions_fetched_once_per_version(self, log_reader):
        state = IncrementalSyncState.create(log_reader, 10)
        first = state.get_actions_for_version(11)
        second = state.get_actions_for_version(11)
        assert first == second
        log_reader.actions_for_version.assert_called_once_with(11)
        assert state.cached_versions == [11]

    def test_returned_list_does_not_alias_cache(self, log_reader):
        state = IncrementalSyncState.create(log_reader, 10)
        state.get_actions_for_version(10).clear()
        assert len(state.get_actions_for_version(10)) == 2

    @pytest.mark.parametrize("version", [9, 13])
    def test_version_outside_backlog_raises(self, log_reader, version):
        state = IncrementalSyncState.create(log_reader, 10)
        with pytest.raises(IncrementalStateError) as exc_info:
            state.get_actions_for_version(version)
        assert exc_info.value.error_code is IncrementalStateError.VERSION_NOT_IN_BACKLOG
        log_reader.actions_for_version.assert_not_called()
