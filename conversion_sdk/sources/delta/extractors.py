"""Pure per-action extractors for partition values and file statistics."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

import orjson

from conversion_sdk.observability.logger_adaptor import get_logger

logger = get_logger(__name__)


class DeltaPartitionExtractor:
    """Partition values of an action, restricted to the table's partition fields."""

    def partition_values(
        self,
        partition_fields: List[str],
        action_partition_values: Optional[Mapping[str, Optional[str]]],
    ) -> Dict[str, Optional[str]]:
        values = action_partition_values or {}
        # Delta serializes null partition values as missing keys or JSON null
        return {field: values.get(field) for field in partition_fields}


class DeltaStatsExtractor:
    """Reads the record count out of an Add action's ``stats`` JSON string.

    Column level statistics are not extracted.
    """

    def parse_stats(self, stats: Optional[str]) -> Dict[str, Any]:
        if not stats:
            return {}
        try:
            parsed = orjson.loads(stats)
        except orjson.JSONDecodeError:
            logger.warning(f"Ignoring unparseable file stats: {stats[:200]}")
            return {}
        return parsed if isinstance(parsed, dict) else {}

    def record_count(self, stats: Optional[str], default: int = 0) -> int:
        value = self.parse_stats(stats).get("numRecords")
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return default
