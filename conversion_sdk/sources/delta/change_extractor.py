"""Per-version file diffs from Delta log actions."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from conversion_sdk.common.error_codes import RECONCILIATION_ERRORS
from conversion_sdk.common.incremental.models import (
    Action,
    AddAction,
    DataFile,
    FilesDiff,
    InternalTable,
    ReconciliationAnomaly,
    RemoveAction,
    TableChange,
)
from conversion_sdk.observability.logger_adaptor import get_logger
from conversion_sdk.sources.delta.actions_converter import DeltaActionsConverter

logger = get_logger(__name__)

RECONCILIATION_ANOMALY = RECONCILIATION_ERRORS["RECONCILIATION_ANOMALY"]


class VersionChangeExtractor:
    """Builds the :class:`TableChange` of a single version.

    The diff is a pure function of the version's action list: running the
    extraction again over the same actions yields the same ``FilesDiff``.
    """

    def __init__(self, actions_converter: Optional[DeltaActionsConverter] = None):
        self.actions_converter = actions_converter or DeltaActionsConverter()

    def extract_change(
        self,
        version: int,
        table_at_version: InternalTable,
        actions: Sequence[Action],
    ) -> TableChange:
        """Classify the actions of ``version`` and reconcile deletion vector updates.

        Args:
            version: The log version the actions belong to.
            table_at_version: Table definition as of ``version``.
            actions: Every add/remove action committed in ``version``, in log order.

        Returns:
            TableChange whose diff holds genuinely added and removed files,
            plus any reconciliation anomalies found.
        """
        converter = self.actions_converter
        base_path = table_at_version.base_path
        file_format = table_at_version.file_format
        partition_fields = table_at_version.partition_fields

        # All three structures are keyed by the data file's absolute path
        added_files: Dict[str, DataFile] = {}
        removed_files: Dict[str, DataFile] = {}
        deletion_vectors: Dict[str, Optional[str]] = {}

        for action in actions:
            if isinstance(action, AddAction):
                data_file = converter.convert_add_action_to_data_file(
                    action, base_path, file_format, partition_fields
                )
                added_files[data_file.physical_path] = data_file
                deletion_vector_file = converter.extract_deletion_vector_file(
                    base_path, action
                )
                if deletion_vector_file is not None:
                    deletion_vectors[deletion_vector_file] = (
                        data_file.deletion_vector_ref
                    )
            elif isinstance(action, RemoveAction):
                data_file = converter.convert_remove_action_to_data_file(
                    action, base_path, file_format, partition_fields
                )
                removed_files[data_file.physical_path] = data_file

        anomalies = self.reconcile_deletion_vectors(
            version, added_files, removed_files, deletion_vectors
        )

        if anomalies or added_files or removed_files:
            logger.debug(
                f"Version {version}: {len(added_files)} added, "
                f"{len(removed_files)} removed, {len(anomalies)} anomalies"
            )

        return TableChange(
            table_as_of_change=table_at_version,
            files_diff=FilesDiff(added=added_files, removed=removed_files),
            source_identifier=str(version),
            anomalies=anomalies,
        )

    @staticmethod
    def reconcile_deletion_vectors(
        version: int,
        added_files: Dict[str, DataFile],
        removed_files: Dict[str, DataFile],
        deletion_vectors: Dict[str, Optional[str]],
    ) -> List[ReconciliationAnomaly]:
        """Drop remove/add pairs that only attach a deletion vector.

        When a delete attaches a deletion vector to an existing data file, the
        log removes the old entry for that file and adds it back with the
        vector. The file set does not change, so the pair is removed from both
        maps. A vector Add without its Remove is kept as an addition and
        reported as an anomaly.

        Mutates ``added_files`` and ``removed_files`` in place.
        """
        anomalies: List[ReconciliationAnomaly] = []
        for data_file_path, deletion_vector_ref in deletion_vectors.items():
            if data_file_path in removed_files:
                added_files.pop(data_file_path, None)
                removed_files.pop(data_file_path, None)
                continue
            logger.warning(
                f"{RECONCILIATION_ANOMALY.code}: No Remove action found for the data "
                f"file for which deletion vector is added {data_file_path} "
                f"(version={version}). This is unexpected.",
                version=version,
                physical_path=data_file_path,
            )
            anomalies.append(
                ReconciliationAnomaly(
                    version=version,
                    physical_path=data_file_path,
                    deletion_vector_ref=deletion_vector_ref,
                    error_code=RECONCILIATION_ANOMALY.code,
                )
            )
        return anomalies
