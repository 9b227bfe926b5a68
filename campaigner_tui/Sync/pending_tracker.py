# pending_tracker.py
# Description: Per-entity-type sets of ids currently under an in-flight destructive mutation.
#
# Imports
import logging
from typing import Dict, FrozenSet, Set
#
#######################################################################################################################
#
# Functions:

logger = logging.getLogger(__name__)


class PendingOperationTracker:
    """
    An id enters its type's set the instant a delete is initiated and leaves it
    only when that delete call terminates. Nothing here is persisted.
    """

    def __init__(self):
        self._pending: Dict[str, Set[int]] = {}

    def mark(self, entity_type: str, entity_id: int) -> bool:
        """Marks an id as pending. Returns False if it was already pending."""
        ids = self._pending.setdefault(entity_type, set())
        if entity_id in ids:
            logger.debug(f"{entity_type} #{entity_id} already pending")
            return False
        ids.add(entity_id)
        logger.debug(f"Marked {entity_type} #{entity_id} pending")
        return True

    def unmark(self, entity_type: str, entity_id: int) -> None:
        ids = self._pending.get(entity_type)
        if ids is not None:
            ids.discard(entity_id)
            logger.debug(f"Unmarked {entity_type} #{entity_id}")

    def is_pending(self, entity_type: str, entity_id: int) -> bool:
        return entity_id in self._pending.get(entity_type, ())

    def pending_ids(self, entity_type: str) -> FrozenSet[int]:
        return frozenset(self._pending.get(entity_type, ()))

    def clear(self) -> None:
        self._pending.clear()

    def __len__(self) -> int:
        return sum(len(ids) for ids in self._pending.values())

#
# End of pending_tracker.py
########################################################################################################################
