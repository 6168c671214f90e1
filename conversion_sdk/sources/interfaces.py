"""Base interfaces for conversion sources and the collaborators they consume.

This module defines abstract base classes for reading a table's transaction
log and enumerating its data files, plus the public ``ConversionSource``
contract implemented by concrete sources.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from types import TracebackType
from typing import Generic, Iterator, List, Optional, Type, TypeVar

from conversion_sdk.common.incremental.models import (
    Action,
    Commit,
    CommitsBacklog,
    DataFile,
    InstantsForIncrementalSync,
    InternalSnapshot,
    InternalTable,
    TableChange,
    TableMetadata,
)

CommitT = TypeVar("CommitT")


class DeltaLogReader(ABC):
    """Read-only access to a versioned, append-only transaction log.

    Implementations must be safe for concurrent read-only use when several
    conversion sources share one reader.
    """

    @abstractmethod
    def actions_for_version(self, version: int) -> List[Action]:
        """Ordered add/remove actions committed in exactly ``version``.

        Raises:
            ReadError: If the version does not exist or cannot be parsed.
        """

        raise NotImplementedError

    @abstractmethod
    def active_commit_at_or_before(
        self, timestamp: datetime, inclusive: bool = True
    ) -> Commit:
        """Latest commit whose timestamp is at or before ``timestamp``.

        With ``inclusive=False`` a commit exactly at ``timestamp`` is not a
        candidate. The earliest commit is returned when ``timestamp`` precedes
        the whole log.
        """

        raise NotImplementedError

    @abstractmethod
    def latest_version(self) -> int:
        """Latest committed version, resolved at call time."""

        raise NotImplementedError

    @abstractmethod
    def commit_at(self, version: int) -> Commit:
        """Commit (version and timestamp) for ``version``."""

        raise NotImplementedError

    @abstractmethod
    def table_metadata(self, version: int) -> TableMetadata:
        """Table metadata in effect as of ``version``."""

        raise NotImplementedError

    def close(self) -> None:
        """Release reader resources. The default implementation does nothing."""

        return None


class DataFileIterator(ABC):
    """Lazy, finite, single-pass iterator over data files.

    Used as a context manager so the underlying resources are released on
    every exit path, whether or not the iterator was drained.
    """

    def __iter__(self) -> Iterator[DataFile]:
        return self

    @abstractmethod
    def __next__(self) -> DataFile:
        raise NotImplementedError

    def close(self) -> None:
        return None

    def __enter__(self) -> "DataFileIterator":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        self.close()


class DataFileEnumerator(ABC):
    """Enumerates the live data files of a table at a version."""

    @abstractmethod
    def iterator(self, version: int, table: InternalTable) -> DataFileIterator:
        """Iterator over every data file live at ``version``, grouped by partition."""

        raise NotImplementedError


class ConversionSource(ABC, Generic[CommitT]):
    """Public contract of a source that feeds table state and changes to a sync."""

    @abstractmethod
    def get_table(self, commit: CommitT) -> InternalTable:
        raise NotImplementedError

    @abstractmethod
    def get_current_table(self) -> InternalTable:
        raise NotImplementedError

    @abstractmethod
    def get_current_snapshot(self) -> InternalSnapshot:
        raise NotImplementedError

    @abstractmethod
    def get_table_change_for_commit(self, commit: CommitT) -> TableChange:
        raise NotImplementedError

    @abstractmethod
    def get_commits_backlog(
        self, instants_for_incremental_sync: InstantsForIncrementalSync
    ) -> CommitsBacklog:
        raise NotImplementedError

    @abstractmethod
    def is_incremental_sync_safe_from(self, instant: datetime) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get_commit_identifier(self, commit: CommitT) -> str:
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    def __enter__(self) -> "ConversionSource[CommitT]":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        self.close()
