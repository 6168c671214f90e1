"""Delta Lake implementation of the conversion source contract."""

from conversion_sdk.sources.delta.actions_converter import DeltaActionsConverter
from conversion_sdk.sources.delta.backlog_planner import IncrementalBacklogPlanner
from conversion_sdk.sources.delta.change_extractor import VersionChangeExtractor
from conversion_sdk.sources.delta.conversion_source import (
    DeltaConversionSource,
    SourceState,
)
from conversion_sdk.sources.delta.extractors import (
    DeltaPartitionExtractor,
    DeltaStatsExtractor,
)
from conversion_sdk.sources.delta.log_reader import LocalDeltaLog
from conversion_sdk.sources.delta.table_projector import TableStateProjector

__all__ = [
    "DeltaActionsConverter",
    "DeltaConversionSource",
    "DeltaPartitionExtractor",
    "DeltaStatsExtractor",
    "IncrementalBacklogPlanner",
    "LocalDeltaLog",
    "SourceState",
    "TableStateProjector",
    "VersionChangeExtractor",
]
