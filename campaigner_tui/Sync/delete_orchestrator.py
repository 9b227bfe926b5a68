# delete_orchestrator.py
# Description: Optimistic delete of one entity together with its linked companion, with rollback on failure.
#
# Imports
import asyncio
import enum
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional
#
# Local Imports
from ..Constants import TARGET_CAMPAIGNS, TARGET_CONVERSATIONS
from ..Metrics.metrics_logger import sync_metrics
from ..campaigner_api.faults import ConnectivityProbe, NetworkFault, classify_exception
from .entity_registry import EntityRegistry, Record
from .invalidation_bus import InvalidationBus
from .pending_tracker import PendingOperationTracker
#
#######################################################################################################################
#
# Functions:

logger = logging.getLogger(__name__)

RemoteDelete = Callable[[int], Awaitable[Any]]
ConfirmCallback = Callable[[], Awaitable[bool]]
ErrorNotifier = Callable[[NetworkFault, str], None]
SessionExpiredHandler = Callable[[], Any]


class DeleteState(str, enum.Enum):
    IDLE = "idle"
    OPTIMISTIC = "optimistic"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"
    # Terminal no-ops: nothing was mutated and no request was issued.
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


@dataclass
class DeleteOutcome:
    state: DeleteState
    entity_type: str
    entity_id: int
    companion_id: Optional[int] = None
    fault: Optional[NetworkFault] = None
    message: str = ""

    @property
    def succeeded(self) -> bool:
        return self.state is DeleteState.CONFIRMED


@dataclass(frozen=True)
class AggregateLink:
    """
    Describes how a primary record points at its companion.

    `primary_field` names a field on the primary holding the companion's id
    (campaign.conversation_id). `companion_field` names a field on the
    companion holding the primary's id (the same link seen from the
    conversation side). Exactly one is normally set.
    """
    primary_field: Optional[str] = None
    companion_field: Optional[str] = None

    def find_companion(self, primary_id: int, primary_record: Optional[Record],
                       companion: EntityRegistry) -> Optional[Record]:
        if self.primary_field:
            if not primary_record or primary_record.get(self.primary_field) is None:
                return None
            try:
                companion_id = int(primary_record[self.primary_field])
            except (TypeError, ValueError):
                logger.warning(f"Unusable {self.primary_field}={primary_record[self.primary_field]!r} "
                               f"on {primary_record!r}")
                return None
            return companion.lookup(lambda item: item["id"] == companion_id)
        if self.companion_field:
            field = self.companion_field
            return companion.lookup(lambda item: item.get(field) is not None and int(item[field]) == primary_id)
        return None


class DeleteOrchestrator:
    """
    IDLE -> OPTIMISTIC -> CONFIRMED | ROLLED_BACK.

    Only the primary delete goes over the wire; the companion disappears with
    it server-side. Both ids stay pending for the whole remote call so no
    reconcile can bring either back.
    """

    def __init__(self,
                 primary: EntityRegistry,
                 companion: EntityRegistry,
                 tracker: PendingOperationTracker,
                 link: AggregateLink,
                 remote_delete: RemoteDelete,
                 bus: InvalidationBus,
                 is_online: Optional[ConnectivityProbe] = None,
                 on_error: Optional[ErrorNotifier] = None,
                 on_session_expired: Optional[SessionExpiredHandler] = None):
        self.primary = primary
        self.companion = companion
        self.tracker = tracker
        self.link = link
        self.remote_delete = remote_delete
        self.bus = bus
        self.is_online = is_online
        self.on_error = on_error
        self.on_session_expired = on_session_expired

    @property
    def entity_type(self) -> str:
        return self.primary.entity_type

    def _label(self) -> str:
        return self.entity_type[:-1] if self.entity_type.endswith("s") else self.entity_type

    async def delete(self, entity_id: int, confirm: Optional[ConfirmCallback] = None) -> DeleteOutcome:
        entity_type = self.entity_type
        if self.tracker.is_pending(entity_type, entity_id):
            logger.info(f"Delete of {entity_type} #{entity_id} already in flight; skipping")
            return self._finish(DeleteOutcome(DeleteState.SKIPPED, entity_type, entity_id))

        if confirm is not None:
            confirmed = await confirm()
            if not confirmed:
                logger.debug(f"Delete of {entity_type} #{entity_id} cancelled by user")
                return self._finish(DeleteOutcome(DeleteState.CANCELLED, entity_type, entity_id))
            # The dialog is a suspension point; another delete may have started meanwhile.
            if self.tracker.is_pending(entity_type, entity_id):
                logger.info(f"Delete of {entity_type} #{entity_id} started elsewhere during confirmation")
                return self._finish(DeleteOutcome(DeleteState.SKIPPED, entity_type, entity_id))

        # --- Optimistic phase (synchronous, nothing can interleave) ---
        primary_record = self.primary.lookup(lambda item: item["id"] == entity_id)
        companion_record = self.link.find_companion(entity_id, primary_record, self.companion)
        companion_id = companion_record["id"] if companion_record else None

        self.tracker.mark(entity_type, entity_id)
        owns_companion = False
        if companion_id is not None:
            owns_companion = self.tracker.mark(self.companion.entity_type, companion_id)
            if not owns_companion:
                logger.debug(f"Companion {self.companion.entity_type} #{companion_id} already pending elsewhere")

        removed_primary = self.primary.optimistic_remove(entity_id)
        removed_companion = self.companion.optimistic_remove(companion_id) if owns_companion else None
        outcome = DeleteOutcome(DeleteState.OPTIMISTIC, entity_type, entity_id,
                                companion_id=companion_id if owns_companion else None)
        logger.info(f"Deleting {entity_type} #{entity_id}"
                    + (f" with {self.companion.entity_type} #{companion_id}" if owns_companion else ""))

        try:
            await self.remote_delete(entity_id)
        except asyncio.CancelledError:
            self._rollback(entity_id, removed_primary, companion_id if owns_companion else None, removed_companion)
            raise
        except Exception as e:
            self._rollback(entity_id, removed_primary, companion_id if owns_companion else None, removed_companion)
            fault = classify_exception(e, self.is_online)
            outcome.state = DeleteState.ROLLED_BACK
            outcome.fault = fault
            outcome.message = fault.user_message()
            logger.warning(f"Delete of {entity_type} #{entity_id} failed ({fault}); rolled back")
            self._notify_error(fault)
            if fault.requires_reauthentication:
                await self._expire_session()
            return self._finish(outcome)

        # --- Confirmed ---
        self.tracker.unmark(entity_type, entity_id)
        if owns_companion:
            self.tracker.unmark(self.companion.entity_type, companion_id)
        outcome.state = DeleteState.CONFIRMED
        logger.info(f"Deleted {entity_type} #{entity_id}")
        self.bus.publish(TARGET_CONVERSATIONS)
        self.bus.publish(TARGET_CAMPAIGNS)
        return self._finish(outcome)

    def _rollback(self, entity_id: int, removed_primary: Optional[Record],
                  companion_id: Optional[int], removed_companion: Optional[Record]) -> None:
        self.tracker.unmark(self.entity_type, entity_id)
        if companion_id is not None:
            self.tracker.unmark(self.companion.entity_type, companion_id)
        if removed_primary is not None:
            self.primary.optimistic_restore(removed_primary)
        if removed_companion is not None:
            self.companion.optimistic_restore(removed_companion)

    def _notify_error(self, fault: NetworkFault) -> None:
        if self.on_error is None:
            return
        try:
            self.on_error(fault, f"Failed to delete {self._label()}")
        except Exception as e:
            logger.error(f"Delete error notifier failed: {e}", exc_info=True)

    async def _expire_session(self) -> None:
        if self.on_session_expired is None:
            return
        try:
            result = self.on_session_expired()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Session expiry handler failed: {e}", exc_info=True)

    def _finish(self, outcome: DeleteOutcome) -> DeleteOutcome:
        sync_metrics.record_delete(outcome.entity_type, outcome.state.value)
        return outcome

#
# End of delete_orchestrator.py
########################################################################################################################
