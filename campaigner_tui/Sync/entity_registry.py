# entity_registry.py
# Description: In-memory authoritative list of one entity type, mirrored to the snapshot store.
#
# Imports
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence
#
# Local Imports
from .pending_tracker import PendingOperationTracker
from .snapshot_store import SnapshotStore
#
#######################################################################################################################
#
# Functions:

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
RegistryListener = Callable[["EntityRegistry"], None]


class EntityRegistry:
    """
    Holds the current list for one entity type (conversations or campaigns).

    Every mutation is synchronous, so nothing can interleave inside one on the
    event loop. After each mutation the new list is written to every snapshot
    key this registry mirrors and listeners are notified.
    """

    def __init__(self,
                 entity_type: str,
                 store: SnapshotStore,
                 tracker: PendingOperationTracker,
                 snapshot_keys: Sequence[str]):
        if not snapshot_keys:
            raise ValueError("EntityRegistry needs at least one snapshot key")
        self.entity_type = entity_type
        self.store = store
        self.tracker = tracker
        self.snapshot_keys = tuple(snapshot_keys)
        self._items: List[Record] = []
        self._hydrated = False
        self._listeners: List[RegistryListener] = []

    # --- Read access ---

    @property
    def items(self) -> List[Record]:
        return list(self._items)

    @property
    def ids(self) -> List[int]:
        return [item["id"] for item in self._items]

    @property
    def is_hydrated(self) -> bool:
        return self._hydrated

    def get(self, entity_id: int) -> Optional[Record]:
        for item in self._items:
            if item["id"] == entity_id:
                return item
        return None

    def find(self, predicate: Callable[[Record], bool]) -> Optional[Record]:
        return self._first_match(self._items, predicate)

    def lookup(self, predicate: Callable[[Record], bool]) -> Optional[Record]:
        """Like find(), but falls back to the persisted snapshot while the registry is not hydrated."""
        if self._hydrated:
            return self.find(predicate)
        return self._first_match(self._snapshot_items(), predicate)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, entity_id: object) -> bool:
        return any(item["id"] == entity_id for item in self._items)

    # --- Lifecycle ---

    def hydrate(self) -> bool:
        """Loads the first snapshot key into memory. Absent/corrupt snapshots mean a cold start."""
        cached = self.store.read(self.snapshot_keys[0])
        if not isinstance(cached, list):
            logger.debug(f"No usable snapshot for {self.entity_type}; cold start")
            return False
        pending = self.tracker.pending_ids(self.entity_type)
        self._items = self._dedupe(
            item for item in cached if self._has_valid_id(item) and item["id"] not in pending
        )
        self._hydrated = True
        logger.info(f"Hydrated {len(self._items)} {self.entity_type} from snapshot")
        self._notify()
        return True

    def clear(self) -> None:
        self._items = []
        self._hydrated = False
        for key in self.snapshot_keys:
            self.store.clear(key)
        self._notify()

    # --- Mutations ---

    def reconcile(self, server_items: Sequence[Record]) -> List[Record]:
        """
        Replaces the list with the server's, minus anything with a delete in flight.

        The server response is authoritative for every field of every entity it
        returns; nothing is merged with the previous value.
        """
        pending = self.tracker.pending_ids(self.entity_type)
        accepted = []
        suppressed = []
        for item in server_items:
            if not self._has_valid_id(item):
                logger.warning(f"Ignoring {self.entity_type} record without an integer id: {item!r}")
                continue
            if item["id"] in pending:
                suppressed.append(item["id"])
                continue
            accepted.append(item)
        if suppressed:
            logger.debug(f"Reconcile of {self.entity_type} suppressed pending ids {suppressed}")

        self._items = self._dedupe(accepted)
        self._hydrated = True
        self._persist()
        return self.items

    def optimistic_remove(self, entity_id: int) -> Optional[Record]:
        """
        Removes one entity and rewrites the snapshot. Returns the removed record.

        A registry that was never hydrated edits its persisted snapshot directly,
        so a view opened later does not show the deleted entity.
        """
        if not self._hydrated:
            return self._remove_from_snapshot(entity_id)
        for index, item in enumerate(self._items):
            if item["id"] == entity_id:
                removed = self._items.pop(index)
                self._persist()
                logger.debug(f"Optimistically removed {self.entity_type} #{entity_id}")
                return removed
        return None

    def optimistic_restore(self, entity: Record) -> None:
        """Re-inserts a record removed earlier. Position is not preserved; the next reconcile re-sorts."""
        if not self._has_valid_id(entity):
            logger.warning(f"Cannot restore {self.entity_type} record without an integer id: {entity!r}")
            return
        if not self._hydrated:
            self._restore_to_snapshot(entity)
            return
        if entity["id"] in self:
            logger.debug(f"{self.entity_type} #{entity['id']} already present; restore skipped")
            return
        self._items.append(entity)
        self._persist()
        logger.debug(f"Restored {self.entity_type} #{entity['id']}")

    # --- Observers ---

    def add_listener(self, callback: RegistryListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def remove() -> None:
            try:
                self._listeners.remove(callback)
            except ValueError:
                pass

        return remove

    # --- Internals ---

    @staticmethod
    def _has_valid_id(item: Any) -> bool:
        return isinstance(item, dict) and isinstance(item.get("id"), int) and not isinstance(item.get("id"), bool)

    @staticmethod
    def _dedupe(items) -> List[Record]:
        seen = set()
        unique = []
        for item in items:
            if item["id"] in seen:
                continue
            seen.add(item["id"])
            unique.append(item)
        return unique

    @staticmethod
    def _first_match(items, predicate: Callable[[Record], bool]) -> Optional[Record]:
        for item in items:
            try:
                if predicate(item):
                    return item
            except (KeyError, TypeError, ValueError):
                continue
        return None

    def _snapshot_items(self) -> List[Record]:
        cached = self.store.read(self.snapshot_keys[0])
        if not isinstance(cached, list):
            return []
        return [item for item in cached if self._has_valid_id(item)]

    def _write_snapshot(self, items: List[Record]) -> None:
        for key in self.snapshot_keys:
            self.store.write(key, items)

    def _remove_from_snapshot(self, entity_id: int) -> Optional[Record]:
        cached = self._snapshot_items()
        removed = self._first_match(cached, lambda item: item["id"] == entity_id)
        if removed is None:
            return None
        self._write_snapshot([item for item in cached if item["id"] != entity_id])
        logger.debug(f"Removed {self.entity_type} #{entity_id} from unhydrated snapshot")
        return removed

    def _restore_to_snapshot(self, entity: Record) -> None:
        cached = self.store.read(self.snapshot_keys[0])
        if not isinstance(cached, list):
            logger.debug(f"No snapshot for {self.entity_type}; restore of #{entity['id']} skipped")
            return
        if any(self._has_valid_id(item) and item["id"] == entity["id"] for item in cached):
            return
        self._write_snapshot(cached + [entity])
        logger.debug(f"Restored {self.entity_type} #{entity['id']} into unhydrated snapshot")

    def _persist(self) -> None:
        self._write_snapshot(self._items)
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(f"{self.entity_type} registry listener failed: {e}", exc_info=True)

#
# End of entity_registry.py
########################################################################################################################
