# campaigner_tui/Sync/__init__.py
from .aggregate_cache import AggregateCache
from .delete_orchestrator import AggregateLink, DeleteOrchestrator, DeleteOutcome, DeleteState
from .entity_registry import EntityRegistry
from .invalidation_bus import InvalidationBus, InvalidationEvent
from .pending_tracker import PendingOperationTracker
from .refresh_scheduler import RefreshScheduler
from .snapshot_store import InMemorySnapshotStore, JsonFileSnapshotStore, SQLiteSnapshotStore, SnapshotStore
from .sync_engine import SyncEngine, SyncError, SyncFaultError, build_snapshot_store

__all__ = [
    "AggregateCache",
    "AggregateLink", "DeleteOrchestrator", "DeleteOutcome", "DeleteState",
    "EntityRegistry",
    "InvalidationBus", "InvalidationEvent",
    "PendingOperationTracker",
    "RefreshScheduler",
    "InMemorySnapshotStore", "JsonFileSnapshotStore", "SQLiteSnapshotStore", "SnapshotStore",
    "SyncEngine", "SyncError", "SyncFaultError", "build_snapshot_store",
]
