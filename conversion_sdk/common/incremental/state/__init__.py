from conversion_sdk.common.incremental.state.sync_state import IncrementalSyncState

__all__ = ["IncrementalSyncState"]
