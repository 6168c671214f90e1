"""Conversion of Delta log actions into data files."""

from __future__ import annotations

from typing import List, Optional
from urllib.parse import unquote

from conversion_sdk.common.error_codes import ReadError
from conversion_sdk.common.incremental.models import (
    AddAction,
    DataFile,
    FileFormat,
    RemoveAction,
)
from conversion_sdk.sources.delta.extractors import (
    DeltaPartitionExtractor,
    DeltaStatsExtractor,
)

_FORMATS_BY_PROVIDER = {
    "parquet": FileFormat.PARQUET,
    "orc": FileFormat.ORC,
    "avro": FileFormat.AVRO,
}


def _is_absolute(path: str) -> bool:
    return "://" in path or path.startswith("/") or path.startswith("file:")


class DeltaActionsConverter:
    """Turns add/remove actions into :class:`DataFile` values.

    Every conversion is a pure function of the action and the table context,
    invoked once per action.
    """

    def __init__(
        self,
        partition_extractor: Optional[DeltaPartitionExtractor] = None,
        stats_extractor: Optional[DeltaStatsExtractor] = None,
    ) -> None:
        self.partition_extractor = partition_extractor or DeltaPartitionExtractor()
        self.stats_extractor = stats_extractor or DeltaStatsExtractor()

    def convert_to_file_format(self, provider: str) -> FileFormat:
        """Map a Delta format provider (``metaData.format.provider``) to a file format.

        Raises:
            ReadError: If the provider is not a supported file format.
        """
        file_format = _FORMATS_BY_PROVIDER.get((provider or "").lower())
        if file_format is None:
            raise ReadError(
                ReadError.UNSUPPORTED_FILE_FORMAT,
                f"Unsupported file format provider: {provider!r}",
            )
        return file_format

    @staticmethod
    def get_full_path_to_file(base_path: str, data_file_path: str) -> str:
        """Absolute location of a data file referenced by the log.

        Log paths are URL-encoded and relative to the table root unless they
        already carry a scheme or are absolute.
        """
        if _is_absolute(data_file_path):
            return data_file_path
        return f"{base_path.rstrip('/')}/{unquote(data_file_path)}"

    def convert_add_action_to_data_file(
        self,
        add: AddAction,
        base_path: str,
        file_format: FileFormat,
        partition_fields: List[str],
    ) -> DataFile:
        record_count = add.record_count
        if record_count is None:
            record_count = self.stats_extractor.record_count(add.stats)
        return DataFile(
            physical_path=self.get_full_path_to_file(base_path, add.path),
            file_format=file_format,
            partition_values=self.partition_extractor.partition_values(
                partition_fields, add.partition_values
            ),
            file_size_bytes=add.size,
            record_count=record_count,
            last_modified=add.modification_time,
            deletion_vector_ref=(
                add.deletion_vector.reference if add.deletion_vector else None
            ),
        )

    def convert_remove_action_to_data_file(
        self,
        remove: RemoveAction,
        base_path: str,
        file_format: FileFormat,
        partition_fields: List[str],
    ) -> DataFile:
        # Removes carry no stats, so the record count is unknown (0)
        return DataFile(
            physical_path=self.get_full_path_to_file(base_path, remove.path),
            file_format=file_format,
            partition_values=self.partition_extractor.partition_values(
                partition_fields, remove.partition_values
            ),
            file_size_bytes=remove.size or 0,
            record_count=0,
            last_modified=remove.deletion_timestamp,
        )

    def extract_deletion_vector_file(
        self, base_path: str, add: AddAction
    ) -> Optional[str]:
        """Full path of the data file a deletion vector is attached to, if any.

        The path returned is the data file's own path, which is what a paired
        Remove action for the replaced log entry is keyed by.
        """
        if add.deletion_vector is None:
            return None
        return self.get_full_path_to_file(base_path, add.path)
