"""Read-only access to a local Delta transaction log.

Reads ``<table>/_delta_log/<version>.json`` commit files, one JSON action per
line. Parquet checkpoints are not read, so the log must still start at
version 0.
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import orjson

from conversion_sdk.common.error_codes import ReadError
from conversion_sdk.common.incremental.helpers import (
    epoch_millis_to_datetime,
    ensure_utc,
)
from conversion_sdk.common.incremental.models import (
    Action,
    AddAction,
    Commit,
    DataFile,
    DeletionVector,
    InternalTable,
    RemoveAction,
    TableMetadata,
)
from conversion_sdk.constants import (
    DEFAULT_FILE_FORMAT_PROVIDER,
    DELTA_COMMIT_CACHE_SIZE,
    DELTA_COMMIT_FILE_DIGITS,
    DELTA_LOG_DIR_NAME,
)
from conversion_sdk.observability.logger_adaptor import get_logger
from conversion_sdk.sources.delta.actions_converter import DeltaActionsConverter
from conversion_sdk.sources.interfaces import (
    DataFileEnumerator,
    DataFileIterator,
    DeltaLogReader,
)

logger = get_logger(__name__)

CommitPayload = Tuple[Dict[str, Any], ...]


def commit_file_name(version: int) -> str:
    return f"{version:0{DELTA_COMMIT_FILE_DIGITS}d}.json"


def _parse_add(payload: Dict[str, Any]) -> AddAction:
    dv = payload.get("deletionVector")
    return AddAction(
        path=payload["path"],
        partition_values=payload.get("partitionValues") or {},
        size=payload.get("size") or 0,
        modification_time=payload.get("modificationTime"),
        data_change=payload.get("dataChange", True),
        stats=payload.get("stats"),
        deletion_vector=DeletionVector.model_validate(dv) if dv else None,
    )


def _parse_remove(payload: Dict[str, Any]) -> RemoveAction:
    dv = payload.get("deletionVector")
    return RemoveAction(
        path=payload["path"],
        partition_values=payload.get("partitionValues") or {},
        size=payload.get("size"),
        deletion_timestamp=payload.get("deletionTimestamp"),
        data_change=payload.get("dataChange", True),
        deletion_vector=DeletionVector.model_validate(dv) if dv else None,
    )


def _parse_metadata(payload: Dict[str, Any]) -> TableMetadata:
    provider = (payload.get("format") or {}).get(
        "provider", DEFAULT_FILE_FORMAT_PROVIDER
    )
    return TableMetadata(
        table_id=payload.get("id"),
        name=payload.get("name"),
        schema_string=payload.get("schemaString"),
        partition_columns=payload.get("partitionColumns") or [],
        format_provider=provider,
        configuration=payload.get("configuration") or {},
    )


class _ReplayDataFileIterator(DataFileIterator):
    """Iterates over data files produced by replaying add/remove actions."""

    def __init__(self, files: Iterator[DataFile]) -> None:
        self._files: Optional[Iterator[DataFile]] = files

    def __next__(self) -> DataFile:
        if self._files is None:
            raise StopIteration
        return next(self._files)

    def close(self) -> None:
        self._files = None


class LocalDeltaLog(DeltaLogReader, DataFileEnumerator):
    """Delta log reader and data file enumerator over a local table directory.

    Committed versions are immutable, so the monotonised commit history and
    the metadata changes are computed once per version and extended as the
    log grows. Parsed commit files are kept in a bounded LRU cache
    (``DELTA_COMMIT_CACHE_SIZE`` versions).

    Args:
        base_path: Table root directory (``file://`` URIs are accepted).
        actions_converter: Converter used when enumerating data files.
    """

    def __init__(
        self,
        base_path: Union[str, Path],
        actions_converter: Optional[DeltaActionsConverter] = None,
    ) -> None:
        base = str(base_path)
        if base.startswith("file://"):
            base = base[len("file://") :]
        self._base_path = Path(base)
        self.log_dir = self._base_path / DELTA_LOG_DIR_NAME
        self.actions_converter = actions_converter or DeltaActionsConverter()
        self._read_commit = lru_cache(maxsize=DELTA_COMMIT_CACHE_SIZE)(
            self._load_commit
        )
        self._reset_history()

    @property
    def base_path(self) -> str:
        return str(self._base_path)

    def _reset_history(self) -> None:
        self._commits: List[Commit] = []
        self._commit_millis: List[int] = []
        self._index_by_version: Dict[int, int] = {}
        self._metadata_versions: List[int] = []
        self._metadata_by_version: Dict[int, TableMetadata] = {}

    # ------------------------------------------------------------------
    # Log listing and parsing
    # ------------------------------------------------------------------

    def list_versions(self) -> List[int]:
        if not self.log_dir.is_dir():
            raise ReadError(
                ReadError.LOG_READ_ERROR,
                f"Delta log directory not found: {self.log_dir}",
            )
        versions = [
            int(path.stem)
            for path in self.log_dir.glob("*.json")
            if path.stem.isdigit() and len(path.stem) == DELTA_COMMIT_FILE_DIGITS
        ]
        if not versions:
            raise ReadError(
                ReadError.EMPTY_LOG_ERROR, f"No commits found in {self.log_dir}"
            )
        return sorted(versions)

    def _load_commit(self, version: int) -> CommitPayload:
        commit_path = self.log_dir / commit_file_name(version)
        if not commit_path.exists():
            raise ReadError(
                ReadError.VERSION_NOT_FOUND,
                f"Commit file not found: {commit_path}",
                version=version,
            )
        actions: List[Dict[str, Any]] = []
        try:
            with commit_path.open("rb") as handle:
                for line in handle:
                    line = line.strip()
                    if line:
                        actions.append(orjson.loads(line))
        except (OSError, orjson.JSONDecodeError) as e:
            raise ReadError(
                ReadError.LOG_READ_ERROR,
                f"Failed to read commit file {commit_path}: {str(e)}",
                version=version,
            ) from e
        return tuple(actions)

    def _raw_commit_millis(self, version: int) -> int:
        """Commit time as Delta's history manager reads it.

        ``commitInfo.inCommitTimestamp`` when the writer recorded one (tables
        with in-commit timestamps enabled), otherwise the modification time
        of the commit file. ``commitInfo.timestamp`` is writer-local wall
        clock and is not used.
        """
        for payload in self._read_commit(version):
            commit_info = payload.get("commitInfo")
            if commit_info:
                ts = commit_info.get("inCommitTimestamp")
                if isinstance(ts, int) and not isinstance(ts, bool):
                    return ts
        commit_path = self.log_dir / commit_file_name(version)
        try:
            return commit_path.stat().st_mtime_ns // 1_000_000
        except OSError as e:
            raise ReadError(
                ReadError.LOG_READ_ERROR,
                f"Failed to stat commit file {commit_path}: {str(e)}",
                version=version,
            ) from e

    def _refresh_history(self) -> List[int]:
        """Extend the commit history with versions committed since the last call."""
        versions = self.list_versions()
        if self._commits and (
            versions[0] != self._commits[0].version
            or self._commits[-1].version not in versions
        ):
            # Log was truncated (e.g. by log retention); start over
            logger.debug(
                f"Delta log {self.log_dir} changed its first version, rebuilding history"
            )
            self._reset_history()

        known = self._commits[-1].version if self._commits else -1
        for version in versions[bisect_right(versions, known) :]:
            millis = self._raw_commit_millis(version)
            if self._commit_millis and millis <= self._commit_millis[-1]:
                logger.debug(
                    f"Adjusting commit timestamp of version {version}: "
                    f"{millis} -> {self._commit_millis[-1] + 1}"
                )
                millis = self._commit_millis[-1] + 1
            self._index_by_version[version] = len(self._commits)
            self._commit_millis.append(millis)
            self._commits.append(
                Commit(version=version, timestamp=epoch_millis_to_datetime(millis))
            )
            for payload in self._read_commit(version):
                metadata = payload.get("metaData")
                if metadata:
                    self._metadata_versions.append(version)
                    self._metadata_by_version[version] = _parse_metadata(metadata)
        return versions

    def commits(self) -> List[Commit]:
        """Every commit with timestamps monotonised as Delta's history does.

        A commit whose timestamp is not later than its predecessor's is
        adjusted to predecessor + 1 ms, so timestamps strictly increase.
        """
        self._refresh_history()
        return list(self._commits)

    # ------------------------------------------------------------------
    # DeltaLogReader
    # ------------------------------------------------------------------

    def actions_for_version(self, version: int) -> List[Action]:
        actions: List[Action] = []
        for payload in self._read_commit(version):
            if "add" in payload:
                actions.append(_parse_add(payload["add"]))
            elif "remove" in payload:
                actions.append(_parse_remove(payload["remove"]))
        return actions

    def active_commit_at_or_before(
        self, timestamp: datetime, inclusive: bool = True
    ) -> Commit:
        timestamp = ensure_utc(timestamp)
        self._refresh_history()
        commit_times = [commit.timestamp for commit in self._commits]
        if inclusive:
            position = bisect_right(commit_times, timestamp)
        else:
            position = bisect_left(commit_times, timestamp)
        # Instants preceding the log resolve to the earliest commit
        return self._commits[max(position - 1, 0)]

    def latest_version(self) -> int:
        return self.list_versions()[-1]

    def commit_at(self, version: int) -> Commit:
        if version not in self._index_by_version:
            self._refresh_history()
        index = self._index_by_version.get(version)
        if index is None:
            raise ReadError(
                ReadError.VERSION_NOT_FOUND,
                f"Version {version} is not in the log",
                version=version,
            )
        return self._commits[index]

    def table_metadata(self, version: int) -> TableMetadata:
        self.commit_at(version)
        position = bisect_right(self._metadata_versions, version)
        if position == 0:
            raise ReadError(
                ReadError.LOG_READ_ERROR,
                "No metaData action found in the log",
                version=version,
            )
        return self._metadata_by_version[self._metadata_versions[position - 1]]

    # ------------------------------------------------------------------
    # DataFileEnumerator
    # ------------------------------------------------------------------

    def iterator(self, version: int, table: InternalTable) -> DataFileIterator:
        """Live data files at ``version``, replayed from version 0.

        Files are keyed by full physical path and deletion vector reference,
        as Delta reconciles its log: a Remove only drops the entry carrying
        the same deletion vector, so attaching a vector never loses the file
        whatever order the Remove and the Add appear in. Within a version,
        Removes are applied before Adds.
        """
        versions = [v for v in self.list_versions() if v <= version]
        if not versions or versions[0] != 0:
            raise ReadError(
                ReadError.LOG_READ_ERROR,
                "Log does not start at version 0; checkpoint replay is not supported",
                version=version,
            )

        converter = self.actions_converter
        live: Dict[Tuple[str, Optional[str]], AddAction] = {}
        for replayed in versions:
            actions = self.actions_for_version(replayed)
            for action in actions:
                if isinstance(action, RemoveAction):
                    live.pop(self._file_key(action), None)
            for action in actions:
                if isinstance(action, AddAction):
                    live[self._file_key(action)] = action

        def _data_files() -> Iterator[DataFile]:
            for add in sorted(
                live.values(),
                key=lambda a: (
                    sorted((k, v or "") for k, v in a.partition_values.items()),
                    a.path,
                ),
            ):
                yield converter.convert_add_action_to_data_file(
                    add, table.base_path, table.file_format, table.partition_fields
                )

        return _ReplayDataFileIterator(_data_files())

    def _file_key(
        self, action: Union[AddAction, RemoveAction]
    ) -> Tuple[str, Optional[str]]:
        dv = action.deletion_vector
        return (
            self.actions_converter.get_full_path_to_file(self.base_path, action.path),
            dv.reference if dv else None,
        )

    def close(self) -> None:
        self._read_commit.cache_clear()
        self._reset_history()
