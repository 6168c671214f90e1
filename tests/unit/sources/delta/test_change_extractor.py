"""Tests for VersionChangeExtractor.

Tests cover:
- Plain adds and removes
- Deletion vector Remove/Add pairs reconciled away
- Deletion vector Adds without a Remove kept and reported
- Properties over generated action lists
"""

from datetime import datetime, timezone

from hypothesis import given

from conversion_sdk.common.incremental.models import (
    AddAction,
    DeletionVector,
    InternalTable,
    RemoveAction,
)
from conversion_sdk.sources.delta.change_extractor import (
    RECONCILIATION_ANOMALY,
    VersionChangeExtractor,
)
from conversion_sdk.test_utils.hypothesis.strategies.delta import version_actions

BASE_PATH = "/data/events"


def _table(version: int) -> InternalTable:
    return InternalTable(
        name="events",
        base_path=BASE_PATH,
        version=version,
        latest_commit_time=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )


def _full(path: str) -> str:
    return f"{BASE_PATH}/{path}"


def _dv(name: str) -> DeletionVector:
    return DeletionVector(storage_type="u", path_or_inline_dv=name, offset=1)


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestExtractChange:
    """Tests for extract_change."""

    def test_plain_add_and_remove(self):
        """An Add and a Remove of different files are reported as such."""
        change = VersionChangeExtractor().extract_change(
            5, _table(5), [AddAction(path="p1"), RemoveAction(path="p0")]
        )
        assert set(change.files_diff.added) == {_full("p1")}
        assert set(change.files_diff.removed) == {_full("p0")}
        assert change.anomalies == []
        assert change.source_identifier == "5"
        assert change.table_as_of_change.version == 5

    def test_deletion_vector_pair_is_not_a_change(self):
        """Attaching a deletion vector to a file yields an empty diff."""
        change = VersionChangeExtractor().extract_change(
            6,
            _table(6),
            [RemoveAction(path="p1"), AddAction(path="p1", deletion_vector=_dv("m1"))],
        )
        assert change.files_diff.is_empty()
        assert change.anomalies == []

    def test_deletion_vector_pair_in_reverse_order(self):
        change = VersionChangeExtractor().extract_change(
            6,
            _table(6),
            [AddAction(path="p1", deletion_vector=_dv("m1")), RemoveAction(path="p1")],
        )
        assert change.files_diff.is_empty()

    def test_deletion_vector_without_remove_is_kept(self, log_records):
        """An unpaired deletion vector Add stays an addition and is reported."""
        change = VersionChangeExtractor().extract_change(
            7, _table(7), [AddAction(path="p2", deletion_vector=_dv("m2"))]
        )
        assert set(change.files_diff.added) == {_full("p2")}
        assert change.files_diff.removed == {}
        assert len(change.anomalies) == 1
        anomaly = change.anomalies[0]
        assert anomaly.version == 7
        assert anomaly.physical_path == _full("p2")
        assert anomaly.deletion_vector_ref == "um2@1"
        assert anomaly.error_code == RECONCILIATION_ANOMALY.code

        warnings = [r for r in log_records if r["level"].name == "WARNING"]
        assert len(warnings) == 1
        assert RECONCILIATION_ANOMALY.code in warnings[0]["message"]
        assert warnings[0]["extra"]["version"] == 7

    def test_mixed_version(self):
        change = VersionChangeExtractor().extract_change(
            8,
            _table(8),
            [
                AddAction(path="new"),
                RemoveAction(path="old"),
                RemoveAction(path="masked"),
                AddAction(path="masked", deletion_vector=_dv("m")),
            ],
        )
        assert set(change.files_diff.added) == {_full("new")}
        assert set(change.files_diff.removed) == {_full("old")}

    def test_empty_version(self):
        change = VersionChangeExtractor().extract_change(9, _table(9), [])
        assert change.files_diff.is_empty()
        assert change.anomalies == []

    def test_reconcile_mutates_maps(self):
        added = {"a": object(), "b": object()}
        removed = {"a": object()}
        anomalies = VersionChangeExtractor.reconcile_deletion_vectors(
            1, added, removed, {"a": "ref"}
        )
        assert anomalies == []
        assert set(added) == {"b"}
        assert removed == {}


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class TestExtractChangeProperties:
    """Properties over generated per-version action lists."""

    @given(case=version_actions())
    def test_diff_matches_expected_sets(self, case):
        change = VersionChangeExtractor().extract_change(3, _table(3), case["actions"])
        assert set(change.files_diff.added) == {_full(p) for p in case["added"]}
        assert set(change.files_diff.removed) == {_full(p) for p in case["removed"]}
        assert {a.physical_path for a in change.anomalies} == {
            _full(p) for p in case["anomalies"]
        }

    @given(case=version_actions())
    def test_no_path_both_added_and_removed(self, case):
        change = VersionChangeExtractor().extract_change(3, _table(3), case["actions"])
        overlap = set(change.files_diff.added) & set(change.files_diff.removed)
        anomalous = {a.physical_path for a in change.anomalies}
        assert overlap <= anomalous

    @given(case=version_actions())
    def test_extraction_is_idempotent(self, case):
        extractor = VersionChangeExtractor()
        first = extractor.extract_change(3, _table(3), case["actions"])
        second = extractor.extract_change(3, _table(3), case["actions"])
        assert first.files_diff == second.files_diff
        assert first.anomalies == second.anomalies
