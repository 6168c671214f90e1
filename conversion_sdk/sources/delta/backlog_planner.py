"""Planning of incremental syncs from the instant of the last sync."""

from __future__ import annotations

from datetime import datetime
from typing import Tuple

from conversion_sdk.common.incremental.helpers import ensure_utc
from conversion_sdk.common.incremental.models import CommitsBacklog
from conversion_sdk.common.incremental.state.sync_state import IncrementalSyncState
from conversion_sdk.observability.logger_adaptor import get_logger
from conversion_sdk.sources.interfaces import DeltaLogReader

logger = get_logger(__name__)


class IncrementalBacklogPlanner:
    """Resolves a wall-clock instant to the commits still to be processed."""

    def __init__(self, log_reader: DeltaLogReader) -> None:
        self.log_reader = log_reader

    def plan_backlog(
        self, last_sync_instant: datetime
    ) -> Tuple[IncrementalSyncState, CommitsBacklog]:
        """Fresh sync state and backlog for everything after ``last_sync_instant``.

        The instant resolves to the latest commit at or before it (inclusive);
        the backlog starts at the next version and runs through the latest
        version committed now. The returned state is meant to replace any
        previous one wholesale.
        """
        last_sync_instant = ensure_utc(last_sync_instant)
        commit = self.log_reader.active_commit_at_or_before(
            last_sync_instant, inclusive=True
        )
        state = IncrementalSyncState.create(self.log_reader, commit.version + 1)
        backlog = CommitsBacklog(
            commits_to_process=state.get_versions_in_sorted_order()
        )
        logger.info(
            f"Last sync instant {last_sync_instant.isoformat()} resolved to version "
            f"{commit.version}; {len(backlog.commits_to_process)} commits to process"
        )
        return state, backlog

    def is_incremental_sync_safe_from(self, instant: datetime) -> bool:
        """Whether an incremental sync can resume from ``instant``.

        Every Delta commit is self-describing: it lists the files it added and
        the files it removed. Vacuum therefore cannot invalidate the history
        between two commits, and the only check needed is that a commit exists
        at or before the instant. The earliest commit is returned for instants
        preceding the table, hence the timestamp comparison.
        """
        instant = ensure_utc(instant)
        commit = self.log_reader.active_commit_at_or_before(instant, inclusive=True)
        return commit.timestamp <= instant
