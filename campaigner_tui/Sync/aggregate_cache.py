# aggregate_cache.py
# Description: Last-known value of a single JSON document (credits, dashboard stats) mirrored to the snapshot store.
#
# Imports
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional
#
# Local Imports
from .snapshot_store import SnapshotStore
#
#######################################################################################################################
#
# Functions:

logger = logging.getLogger(__name__)

AggregateFetcher = Callable[[], Awaitable[Dict[str, Any]]]


class AggregateCache:
    def __init__(self, name: str, key: str, store: SnapshotStore, fetcher: AggregateFetcher):
        self.name = name
        self.key = key
        self.store = store
        self.fetcher = fetcher
        self._value: Optional[Dict[str, Any]] = None
        self._listeners: List[Callable[["AggregateCache"], None]] = []

    @property
    def value(self) -> Optional[Dict[str, Any]]:
        return self._value

    def hydrate(self) -> bool:
        cached = self.store.read(self.key)
        if not isinstance(cached, dict):
            return False
        self._value = cached
        self._notify()
        return True

    async def refresh(self) -> Dict[str, Any]:
        """Fetches a fresh document. Errors propagate; the caller decides whether they are silent."""
        value = await self.fetcher()
        self.set(value)
        return value

    def set(self, value: Dict[str, Any]) -> None:
        self._value = value
        self.store.write(self.key, value)
        self._notify()

    def clear(self) -> None:
        self._value = None
        self.store.clear(self.key)
        self._notify()

    def add_listener(self, callback: Callable[["AggregateCache"], None]) -> Callable[[], None]:
        self._listeners.append(callback)

        def remove() -> None:
            try:
                self._listeners.remove(callback)
            except ValueError:
                pass

        return remove

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(f"{self.name} aggregate listener failed: {e}", exc_info=True)

#
# End of aggregate_cache.py
########################################################################################################################
