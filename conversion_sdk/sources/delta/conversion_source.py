"""Delta Lake conversion source.

``DeltaConversionSource`` composes the table projector, the change extractor
and the backlog planner into the public conversion source contract.

Example:
    >>> with DeltaConversionSource.for_table("/data/events") as source:
    ...     backlog = source.get_commits_backlog(instants_from_marker(marker))
    ...     for version in backlog.commits_to_process:
    ...         change = source.get_table_change_for_commit(version)
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from conversion_sdk.common.error_codes import IncrementalStateError
from conversion_sdk.common.incremental.helpers import ensure_utc
from conversion_sdk.common.incremental.models import (
    Commit,
    CommitsBacklog,
    InstantsForIncrementalSync,
    InternalSnapshot,
    InternalTable,
    TableChange,
)
from conversion_sdk.common.incremental.state.sync_state import IncrementalSyncState
from conversion_sdk.observability.logger_adaptor import get_logger
from conversion_sdk.sources.delta.actions_converter import DeltaActionsConverter
from conversion_sdk.sources.delta.backlog_planner import IncrementalBacklogPlanner
from conversion_sdk.sources.delta.change_extractor import VersionChangeExtractor
from conversion_sdk.sources.delta.log_reader import LocalDeltaLog
from conversion_sdk.sources.delta.table_projector import TableStateProjector
from conversion_sdk.sources.interfaces import (
    ConversionSource,
    DataFileEnumerator,
    DeltaLogReader,
)

logger = get_logger(__name__)


class SourceState(str, Enum):
    """Lifecycle of a :class:`DeltaConversionSource`."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    BACKLOG_READY = "backlog_ready"
    CLOSED = "closed"


class DeltaConversionSource(ConversionSource[int]):
    """Conversion source over a Delta table's transaction log.

    Not safe for concurrent use: a single thread of control per instance.
    Independent instances over the same log may be used from different
    threads.

    Args:
        log_reader: Reader for the table's transaction log.
        file_enumerator: Lists the live data files at a version; defaults to
            ``log_reader`` when it is also an enumerator.
        base_path: Table root; defaults to ``log_reader.base_path``.
        table_name: Name reported on tables and snapshots.
        actions_converter: Shared converter for actions and file formats.
    """

    def __init__(
        self,
        log_reader: DeltaLogReader,
        file_enumerator: Optional[DataFileEnumerator] = None,
        base_path: Optional[str] = None,
        table_name: Optional[str] = None,
        actions_converter: Optional[DeltaActionsConverter] = None,
    ) -> None:
        if file_enumerator is None:
            if not isinstance(log_reader, DataFileEnumerator):
                raise ValueError(
                    "file_enumerator is required when log_reader cannot enumerate data files"
                )
            file_enumerator = log_reader
        if base_path is None:
            base_path = getattr(log_reader, "base_path", None)
            if base_path is None:
                raise ValueError("base_path is required for this log reader")

        self.log_reader = log_reader
        self.base_path = base_path
        self.table_name = table_name
        self.actions_converter = actions_converter or DeltaActionsConverter()
        self.table_projector = TableStateProjector(
            log_reader=log_reader,
            file_enumerator=file_enumerator,
            base_path=base_path,
            table_name=table_name,
            actions_converter=self.actions_converter,
        )
        self.change_extractor = VersionChangeExtractor(self.actions_converter)
        self.backlog_planner = IncrementalBacklogPlanner(log_reader)

        self._state = SourceState.UNINITIALIZED
        self._incremental_sync_state: Optional[IncrementalSyncState] = None

    @classmethod
    def for_table(
        cls, base_path: Union[str, Path], table_name: Optional[str] = None
    ) -> "DeltaConversionSource":
        """Conversion source over a local table directory with a ``_delta_log``."""
        log = LocalDeltaLog(base_path)
        return cls(log_reader=log, base_path=log.base_path, table_name=table_name)

    @property
    def state(self) -> SourceState:
        return self._state

    def _ensure_open(self) -> None:
        if self._state == SourceState.CLOSED:
            raise IncrementalStateError(
                IncrementalStateError.SOURCE_CLOSED,
                f"Conversion source for {self.base_path} is closed",
            )
        if self._state == SourceState.UNINITIALIZED:
            self._state = SourceState.READY

    def _get_changes_state(self) -> IncrementalSyncState:
        self._ensure_open()
        if (
            self._state != SourceState.BACKLOG_READY
            or self._incremental_sync_state is None
        ):
            raise IncrementalStateError(
                IncrementalStateError.SYNC_STATE_NOT_INITIALIZED,
                "IncrementalSyncState is not initialized: "
                "get_commits_backlog must be called before per-commit changes",
            )
        return self._incremental_sync_state

    def _reset_state(self, state: IncrementalSyncState) -> None:
        self._incremental_sync_state = state
        self._state = SourceState.BACKLOG_READY

    # ------------------------------------------------------------------
    # Full table state
    # ------------------------------------------------------------------

    def get_table(self, commit: int) -> InternalTable:
        self._ensure_open()
        return self.table_projector.project_table(commit)

    def get_current_table(self) -> InternalTable:
        self._ensure_open()
        # Resolved on every call; the projection is pinned to this version
        return self.get_table(self.log_reader.latest_version())

    def get_current_snapshot(self) -> InternalSnapshot:
        self._ensure_open()
        version = self.log_reader.latest_version()
        logger.info(f"Building snapshot of {self.base_path} at version {version}")
        return self.table_projector.project_snapshot(
            version, source_identifier=self.get_commit_identifier(version)
        )

    # ------------------------------------------------------------------
    # Incremental sync
    # ------------------------------------------------------------------

    def get_table_change_for_commit(self, commit: int) -> TableChange:
        changes_state = self._get_changes_state()
        actions = changes_state.get_actions_for_version(commit)
        table_at_version = self.table_projector.project_table(commit)
        return self.change_extractor.extract_change(commit, table_at_version, actions)

    def get_commits_backlog(
        self,
        instants_for_incremental_sync: Union[InstantsForIncrementalSync, datetime],
    ) -> CommitsBacklog:
        self._ensure_open()
        if isinstance(instants_for_incremental_sync, InstantsForIncrementalSync):
            last_sync_instant = instants_for_incremental_sync.last_sync_instant
        else:
            last_sync_instant = instants_for_incremental_sync
        state, backlog = self.backlog_planner.plan_backlog(
            ensure_utc(last_sync_instant)
        )
        self._reset_state(state)
        return backlog

    def is_incremental_sync_safe_from(self, instant: datetime) -> bool:
        self._ensure_open()
        return self.backlog_planner.is_incremental_sync_safe_from(instant)

    def get_commit_identifier(self, commit: int) -> str:
        return str(commit)

    def get_commit(self, commit: int) -> Commit:
        """Commit (version and timestamp) for ``commit``, e.g. to persist a marker."""
        self._ensure_open()
        return self.log_reader.commit_at(commit)

    def close(self) -> None:
        if self._state == SourceState.CLOSED:
            return
        self._incremental_sync_state = None
        self._state = SourceState.CLOSED
        self.log_reader.close()
        logger.debug(f"Closed conversion source for {self.base_path}")
