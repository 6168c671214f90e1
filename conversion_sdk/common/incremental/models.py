"""Pydantic models for incremental change extraction over a Delta transaction log.

This module provides the typed representation of log actions, data files,
per-commit diffs and the backlog of commits still to be processed.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from conversion_sdk.constants import DEFAULT_TABLE_FORMAT


class FileFormat(str, Enum):
    """Physical format of the data files referenced by the log."""

    PARQUET = "parquet"
    ORC = "orc"
    AVRO = "avro"


class DeletionVector(BaseModel):
    """Descriptor of a row-level delete mask attached to a data file.

    Attributes:
        storage_type: ``u`` (relative uuid path), ``p`` (absolute path) or
            ``i`` (inline bitmap).
        path_or_inline_dv: Encoded location or inline payload of the mask.
        offset: Byte offset of the mask inside the deletion vector file.
        size_in_bytes: Size of the serialized mask.
        cardinality: Number of rows masked out.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    storage_type: str = Field(alias="storageType")
    path_or_inline_dv: str = Field(alias="pathOrInlineDv")
    offset: Optional[int] = None
    size_in_bytes: int = Field(default=0, alias="sizeInBytes")
    cardinality: int = 0

    @property
    def reference(self) -> str:
        """Stable textual id of the mask, unique per data file and revision."""
        if self.offset is None:
            return f"{self.storage_type}{self.path_or_inline_dv}"
        return f"{self.storage_type}{self.path_or_inline_dv}@{self.offset}"


class AddAction(BaseModel):
    """A file-add log action.

    ``deletion_vector`` is populated only when the action attaches a row-level
    delete mask to an already existing physical file.
    """

    model_config = ConfigDict(frozen=True)

    action_type: Literal["add"] = "add"
    path: str
    partition_values: Dict[str, Optional[str]] = Field(default_factory=dict)
    size: int = 0
    record_count: Optional[int] = None
    modification_time: Optional[int] = None
    data_change: bool = True
    stats: Optional[str] = None
    deletion_vector: Optional[DeletionVector] = None


class RemoveAction(BaseModel):
    """A file-remove log action."""

    model_config = ConfigDict(frozen=True)

    action_type: Literal["remove"] = "remove"
    path: str
    partition_values: Dict[str, Optional[str]] = Field(default_factory=dict)
    size: Optional[int] = None
    deletion_timestamp: Optional[int] = None
    data_change: bool = True
    deletion_vector: Optional[DeletionVector] = None


Action = Annotated[Union[AddAction, RemoveAction], Field(discriminator="action_type")]


class Commit(BaseModel):
    """A committed log version and its (monotonised) commit timestamp."""

    model_config = ConfigDict(frozen=True)

    version: int = Field(ge=0)
    timestamp: datetime


class TableMetadata(BaseModel):
    """Table level metadata as of a version, as recorded by ``metaData`` actions."""

    model_config = ConfigDict(frozen=True)

    table_id: Optional[str] = None
    name: Optional[str] = None
    schema_string: Optional[str] = None
    partition_columns: List[str] = Field(default_factory=list)
    format_provider: str = "parquet"
    configuration: Dict[str, str] = Field(default_factory=dict)


class DataFile(BaseModel):
    """A physical data file, keyed by its absolute path within a version."""

    model_config = ConfigDict(frozen=True)

    physical_path: str
    file_format: FileFormat = FileFormat.PARQUET
    partition_values: Dict[str, Optional[str]] = Field(default_factory=dict)
    file_size_bytes: int = 0
    record_count: int = 0
    last_modified: Optional[int] = None
    deletion_vector_ref: Optional[str] = None


class PartitionFileGroup(BaseModel):
    """Data files sharing the same partition values."""

    model_config = ConfigDict(frozen=True)

    partition_values: Dict[str, Optional[str]] = Field(default_factory=dict)
    files: List[DataFile] = Field(default_factory=list)

    @classmethod
    def from_files(cls, files: Iterable[DataFile]) -> List["PartitionFileGroup"]:
        """Group files by partition values, keeping first-seen partition order."""
        grouped: Dict[tuple, List[DataFile]] = {}
        values_by_key: Dict[tuple, Dict[str, Optional[str]]] = {}
        for data_file in files:
            key = tuple(sorted(data_file.partition_values.items()))
            if key not in grouped:
                grouped[key] = []
                values_by_key[key] = dict(data_file.partition_values)
            grouped[key].append(data_file)
        return [
            cls(partition_values=values_by_key[key], files=group)
            for key, group in grouped.items()
        ]


class InternalTable(BaseModel):
    """Logical definition of the table as of a version."""

    model_config = ConfigDict(frozen=True)

    name: str
    table_format: str = DEFAULT_TABLE_FORMAT
    base_path: str
    version: int
    read_schema: Optional[Dict[str, Any]] = None
    partition_fields: List[str] = Field(default_factory=list)
    file_format: FileFormat = FileFormat.PARQUET
    latest_commit_time: datetime


class InternalSnapshot(BaseModel):
    """Full table state: definition plus every live data file."""

    model_config = ConfigDict(frozen=True)

    table: InternalTable
    partitioned_data_files: List[PartitionFileGroup] = Field(default_factory=list)
    source_identifier: str

    @property
    def data_files(self) -> List[DataFile]:
        return [f for group in self.partitioned_data_files for f in group.files]


class FilesDiff(BaseModel):
    """Data files added and removed by a single version, keyed by physical path."""

    model_config = ConfigDict(frozen=True)

    added: Dict[str, DataFile] = Field(default_factory=dict)
    removed: Dict[str, DataFile] = Field(default_factory=dict)

    @property
    def files_added(self) -> List[DataFile]:
        return list(self.added.values())

    @property
    def files_removed(self) -> List[DataFile]:
        return list(self.removed.values())

    def is_empty(self) -> bool:
        return not self.added and not self.removed


class ReconciliationAnomaly(BaseModel):
    """A deletion vector Add without the Remove it should be paired with.

    The Add is kept as a genuine addition: the data file still physically
    exists and must not disappear from the reported state.
    """

    model_config = ConfigDict(frozen=True)

    version: int
    physical_path: str
    deletion_vector_ref: Optional[str] = None
    error_code: str


class TableChange(BaseModel):
    """Table state as of a version plus the files that version changed."""

    model_config = ConfigDict(frozen=True)

    table_as_of_change: InternalTable
    files_diff: FilesDiff
    source_identifier: str
    anomalies: List[ReconciliationAnomaly] = Field(default_factory=list)


class CommitsBacklog(BaseModel):
    """Ordered versions still to be processed by an incremental sync."""

    model_config = ConfigDict(frozen=True)

    commits_to_process: List[int] = Field(default_factory=list)

    @field_validator("commits_to_process")
    @classmethod
    def _strictly_increasing(cls, value: List[int]) -> List[int]:
        for previous, current in zip(value, value[1:]):
            if current <= previous:
                raise ValueError(
                    f"commits_to_process must be strictly increasing, got {previous} then {current}"
                )
        return value


class InstantsForIncrementalSync(BaseModel):
    """The instant of the last successful sync, used to plan the next backlog."""

    model_config = ConfigDict(frozen=True)

    last_sync_instant: datetime
