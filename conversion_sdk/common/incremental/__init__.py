"""Incremental change extraction utilities.

This module provides common utilities for incremental syncs over a Delta log:
- models: Pydantic models for actions, data files, diffs and backlogs
- helpers: Timestamp coercion shared by the reader, planner and markers
- marker: Parsing, preponing and creating sync markers
- state: The per-backlog incremental sync session state
"""

from conversion_sdk.common.incremental.models import (
    AddAction,
    Commit,
    CommitsBacklog,
    DataFile,
    DeletionVector,
    FileFormat,
    FilesDiff,
    InstantsForIncrementalSync,
    InternalSnapshot,
    InternalTable,
    PartitionFileGroup,
    ReconciliationAnomaly,
    RemoveAction,
    TableChange,
    TableMetadata,
)

__all__ = [
    # Models
    "AddAction",
    "Commit",
    "CommitsBacklog",
    "DataFile",
    "DeletionVector",
    "FileFormat",
    "FilesDiff",
    "InstantsForIncrementalSync",
    "InternalSnapshot",
    "InternalTable",
    "PartitionFileGroup",
    "ReconciliationAnomaly",
    "RemoveAction",
    "TableChange",
    "TableMetadata",
]
