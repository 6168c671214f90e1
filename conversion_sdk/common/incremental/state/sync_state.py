"""Session state for one incremental sync over a Delta transaction log.

An ``IncrementalSyncState`` is created for every backlog request and replaced
wholesale by the next one; it is never merged. It pins the versions pending
at creation time and caches the action lists fetched for them.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from conversion_sdk.common.error_codes import IncrementalStateError
from conversion_sdk.common.incremental.models import Action
from conversion_sdk.observability.logger_adaptor import get_logger
from conversion_sdk.sources.interfaces import DeltaLogReader

logger = get_logger(__name__)


class IncrementalSyncState:
    """Versions pending for an incremental sync and their cached actions.

    Attributes:
        version_to_start_from: First version of the backlog (last synced + 1).
        latest_version: Latest committed version when the state was created.
    """

    def __init__(
        self,
        log_reader: DeltaLogReader,
        version_to_start_from: int,
        latest_version: int,
    ) -> None:
        self._log_reader = log_reader
        self.version_to_start_from = version_to_start_from
        self.latest_version = latest_version
        self._actions_by_version: Dict[int, Tuple[Action, ...]] = {}

    @classmethod
    def create(
        cls, log_reader: DeltaLogReader, version_to_start_from: int
    ) -> "IncrementalSyncState":
        """Create a state pinned to the latest version committed right now."""
        latest_version = log_reader.latest_version()
        state = cls(log_reader, version_to_start_from, latest_version)
        logger.info(
            f"Incremental sync state created: start={version_to_start_from}, "
            f"latest={latest_version}, pending={len(state.get_versions_in_sorted_order())}"
        )
        return state

    def get_versions_in_sorted_order(self) -> List[int]:
        """Pending versions, strictly increasing (empty when already up to date)."""
        return list(range(self.version_to_start_from, self.latest_version + 1))

    def contains(self, version: int) -> bool:
        return self.version_to_start_from <= version <= self.latest_version

    def get_actions_for_version(self, version: int) -> List[Action]:
        """Action list for exactly ``version``, fetched once and then cached.

        Raises:
            IncrementalStateError: If ``version`` is not part of this backlog.
            ReadError: If the log reader cannot read the version.
        """
        if not self.contains(version):
            raise IncrementalStateError(
                IncrementalStateError.VERSION_NOT_IN_BACKLOG,
                f"Version {version} not found in the incremental sync state "
                f"(pending versions {self.version_to_start_from}..{self.latest_version})",
            )
        if version not in self._actions_by_version:
            self._actions_by_version[version] = tuple(
                self._log_reader.actions_for_version(version)
            )
        return list(self._actions_by_version[version])

    @property
    def cached_versions(self) -> List[int]:
        return sorted(self._actions_by_version)
