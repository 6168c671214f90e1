"""Point-in-time projection of a Delta table from its transaction log."""

from __future__ import annotations

import os
from typing import List, Optional

import orjson

from conversion_sdk.common.error_codes import ReadError
from conversion_sdk.common.incremental.models import (
    DataFile,
    InternalSnapshot,
    InternalTable,
    PartitionFileGroup,
)
from conversion_sdk.observability.logger_adaptor import get_logger
from conversion_sdk.sources.delta.actions_converter import DeltaActionsConverter
from conversion_sdk.sources.interfaces import DataFileEnumerator, DeltaLogReader

logger = get_logger(__name__)


class TableStateProjector:
    """Projects the table definition and file listing as of a version.

    Both projections are pure functions of the version: nothing is cached
    between calls, and committed versions never change.

    Args:
        log_reader: Source of table metadata and commit timestamps.
        file_enumerator: Lists the live data files at a version.
        base_path: Table root used to resolve relative data file paths.
        table_name: Name reported on the table; defaults to the name recorded
            in the log, then to the last component of ``base_path``.
        actions_converter: Maps the format provider to a file format.
    """

    def __init__(
        self,
        log_reader: DeltaLogReader,
        file_enumerator: DataFileEnumerator,
        base_path: str,
        table_name: Optional[str] = None,
        actions_converter: Optional[DeltaActionsConverter] = None,
    ) -> None:
        self.log_reader = log_reader
        self.file_enumerator = file_enumerator
        self.base_path = base_path
        self.table_name = table_name
        self.actions_converter = actions_converter or DeltaActionsConverter()

    def project_table(self, version: int) -> InternalTable:
        metadata = self.log_reader.table_metadata(version)
        commit = self.log_reader.commit_at(version)
        read_schema = None
        if metadata.schema_string:
            try:
                read_schema = orjson.loads(metadata.schema_string)
            except orjson.JSONDecodeError as e:
                raise ReadError(
                    ReadError.LOG_READ_ERROR,
                    f"Invalid schemaString in table metadata: {str(e)}",
                    version=version,
                ) from e
        name = (
            self.table_name
            or metadata.name
            or os.path.basename(self.base_path.rstrip("/"))
        )
        return InternalTable(
            name=name,
            base_path=self.base_path,
            version=version,
            read_schema=read_schema,
            partition_fields=list(metadata.partition_columns),
            file_format=self.actions_converter.convert_to_file_format(
                metadata.format_provider
            ),
            latest_commit_time=commit.timestamp,
        )

    def project_snapshot(
        self, version: int, source_identifier: Optional[str] = None
    ) -> InternalSnapshot:
        table = self.project_table(version)
        return InternalSnapshot(
            table=table,
            partitioned_data_files=self.get_data_files(version, table),
            source_identifier=source_identifier or str(version),
        )

    def get_data_files(
        self, version: int, table: InternalTable
    ) -> List[PartitionFileGroup]:
        """Drain the file listing at ``version`` and group it by partition.

        Raises:
            ReadError: If the listing cannot be iterated to completion. The
                iterator is closed before the error propagates.
        """
        try:
            with self.file_enumerator.iterator(version, table) as file_iterator:
                data_files: List[DataFile] = list(file_iterator)
        except Exception as e:
            logger.error(f"Failed to iterate through Delta data files: {str(e)}")
            raise ReadError(
                ReadError.DATA_FILE_ITERATION_ERROR,
                f"Failed to iterate through Delta data files: {str(e)}",
                version=version,
            ) from e
        logger.debug(f"Listed {len(data_files)} data files at version {version}")
        return PartitionFileGroup.from_files(data_files)
