"""Builders for on-disk Delta transaction logs used by tests.

Example:
    >>> log = DeltaLogBuilder(tmp_path)
    >>> log.commit([metadata_action(), add_action("part-0.parquet")], timestamp_ms=1000)
    0
    >>> log.commit([remove_action("part-0.parquet")], timestamp_ms=2000)
    1
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import orjson

from conversion_sdk.constants import DELTA_LOG_DIR_NAME
from conversion_sdk.sources.delta.log_reader import commit_file_name

DEFAULT_SCHEMA = {
    "type": "struct",
    "fields": [
        {"name": "id", "type": "long", "nullable": False, "metadata": {}},
        {"name": "region", "type": "string", "nullable": True, "metadata": {}},
    ],
}


def metadata_action(
    partition_columns: Optional[List[str]] = None,
    name: Optional[str] = None,
    provider: str = "parquet",
    schema: Optional[Dict[str, Any]] = None,
    table_id: str = "00000000-0000-0000-0000-000000000000",
) -> Dict[str, Any]:
    return {
        "metaData": {
            "id": table_id,
            "name": name,
            "format": {"provider": provider, "options": {}},
            "schemaString": orjson.dumps(schema or DEFAULT_SCHEMA).decode(),
            "partitionColumns": partition_columns or [],
            "configuration": {},
        }
    }


def deletion_vector(
    path_or_inline_dv: str = "ab^-aqEH.-t@S}K{vb[*k^",
    storage_type: str = "u",
    offset: Optional[int] = 1,
    cardinality: int = 1,
) -> Dict[str, Any]:
    dv: Dict[str, Any] = {
        "storageType": storage_type,
        "pathOrInlineDv": path_or_inline_dv,
        "sizeInBytes": 36,
        "cardinality": cardinality,
    }
    if offset is not None:
        dv["offset"] = offset
    return dv


def add_action(
    path: str,
    partition_values: Optional[Dict[str, Optional[str]]] = None,
    size: int = 1024,
    num_records: Optional[int] = 10,
    modification_time: int = 0,
    dv: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    add: Dict[str, Any] = {
        "path": path,
        "partitionValues": partition_values or {},
        "size": size,
        "modificationTime": modification_time,
        "dataChange": True,
    }
    if num_records is not None:
        add["stats"] = orjson.dumps({"numRecords": num_records}).decode()
    if dv is not None:
        add["deletionVector"] = dv
    return {"add": add}


def remove_action(
    path: str,
    partition_values: Optional[Dict[str, Optional[str]]] = None,
    size: Optional[int] = 1024,
    deletion_timestamp: int = 0,
    dv: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    remove: Dict[str, Any] = {
        "path": path,
        "partitionValues": partition_values or {},
        "deletionTimestamp": deletion_timestamp,
        "dataChange": True,
    }
    if size is not None:
        remove["size"] = size
    if dv is not None:
        remove["deletionVector"] = dv
    return {"remove": remove}


class DeltaLogBuilder:
    """Writes sequential commit files under ``<base_path>/_delta_log``."""

    def __init__(self, base_path: Union[str, Path]) -> None:
        self.base_path = Path(base_path)
        self.log_dir = self.base_path / DELTA_LOG_DIR_NAME
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.next_version = 0

    def commit(
        self,
        actions: List[Dict[str, Any]],
        timestamp_ms: Optional[int] = None,
        operation: str = "WRITE",
        version: Optional[int] = None,
    ) -> int:
        """Write one commit file and return its version.

        When a timestamp is given, a ``commitInfo`` line carrying it is written
        first and the commit file's modification time is set to it, which is
        the commit time Delta reads for tables without in-commit timestamps.
        """
        if version is None:
            version = self.next_version
        lines = []
        if timestamp_ms is not None:
            lines.append(
                {"commitInfo": {"timestamp": timestamp_ms, "operation": operation}}
            )
        lines.extend(actions)
        commit_path = self.log_dir / commit_file_name(version)
        commit_path.write_bytes(b"\n".join(orjson.dumps(line) for line in lines) + b"\n")
        if timestamp_ms is not None:
            mtime_ns = timestamp_ms * 1_000_000
            os.utime(commit_path, ns=(mtime_ns, mtime_ns))
        self.next_version = version + 1
        return version

    def write_raw(self, version: int, content: bytes) -> Path:
        """Write arbitrary bytes as the commit file of ``version``."""
        commit_path = self.log_dir / commit_file_name(version)
        commit_path.write_bytes(content)
        self.next_version = max(self.next_version, version + 1)
        return commit_path
