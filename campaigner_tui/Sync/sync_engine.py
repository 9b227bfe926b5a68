# sync_engine.py
# Description: Composition root wiring the snapshot store, registries, scheduler, bus and delete orchestrators.
#
# Imports
import asyncio
import inspect
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional
#
# Local Imports
from ..Constants import (
    DEFAULT_REFRESH_INTERVAL_SECONDS, DEFAULT_SNAPSHOT_TTL_SECONDS, ENTITY_CAMPAIGNS, ENTITY_CONVERSATIONS,
    REFRESH_TARGETS, SNAPSHOT_KEY_CAMPAIGNS, SNAPSHOT_KEY_CONVERSATIONS_PAGE, SNAPSHOT_KEY_CONVERSATIONS_SIDEBAR,
    SNAPSHOT_KEY_CREDITS, SNAPSHOT_KEY_DASHBOARD, TARGET_ALL, TARGET_CAMPAIGNS, TARGET_CONVERSATIONS,
    TARGET_DASHBOARD,
)
from ..campaigner_api.client import CampaignerAPIClient
from ..campaigner_api.faults import ConnectivityProbe, NetworkFault, classify_exception
from .aggregate_cache import AggregateCache
from .delete_orchestrator import AggregateLink, ConfirmCallback, DeleteOrchestrator, DeleteOutcome, ErrorNotifier
from .entity_registry import EntityRegistry
from .invalidation_bus import InvalidationBus
from .pending_tracker import PendingOperationTracker
from .refresh_scheduler import RefreshScheduler
from .snapshot_store import (
    InMemorySnapshotStore, JsonFileSnapshotStore, SQLiteSnapshotStore, SnapshotStore, UserIdProvider
)
#
#######################################################################################################################
#
# Functions:

logger = logging.getLogger(__name__)


class SyncError(Exception):
    """Base exception for the sync engine."""
    pass


class SyncFaultError(SyncError):
    """A foreground refresh failed; carries the classified fault."""
    def __init__(self, fault: NetworkFault):
        self.fault = fault
        super().__init__(fault.user_message())


def build_snapshot_store(sync_settings: Dict[str, Any],
                         user_id_provider: Optional[UserIdProvider] = None) -> SnapshotStore:
    """Creates the snapshot backend named by the [sync] config section."""
    backend = str(sync_settings.get("snapshot_backend", "sqlite")).lower()
    ttl = sync_settings.get("snapshot_ttl_seconds", DEFAULT_SNAPSHOT_TTL_SECONDS)
    if backend == "memory":
        store = InMemorySnapshotStore(ttl_seconds=ttl, user_id_provider=user_id_provider)
    elif backend == "json":
        directory = Path(sync_settings["snapshot_dir"]).expanduser()
        store = JsonFileSnapshotStore(directory, ttl_seconds=ttl, user_id_provider=user_id_provider)
    elif backend == "sqlite":
        db_path = Path(sync_settings["snapshot_db_path"]).expanduser()
        store = SQLiteSnapshotStore(db_path, ttl_seconds=ttl, user_id_provider=user_id_provider)
    else:
        raise ValueError(f"Unknown snapshot backend: {backend!r}")
    logger.info(f"Using {type(store).__name__} for snapshots (ttl={ttl}s)")
    return store


class SyncEngine:
    """
    Owns every piece of client-side sync state. Build one per session; there
    are no module-level singletons, so tests construct as many as they like.
    """

    def __init__(self,
                 api_client: CampaignerAPIClient,
                 store: SnapshotStore,
                 refresh_interval_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS,
                 connectivity_probe: Optional[ConnectivityProbe] = None,
                 on_session_expired: Optional[Callable[[], Any]] = None,
                 on_error: Optional[ErrorNotifier] = None):
        self.api_client = api_client
        self.store = store
        self.connectivity_probe = connectivity_probe
        self.on_session_expired = on_session_expired
        self.on_error = on_error
        self._expiring_session = False
        # Bumped by reset(); a fetch that started under an older session is discarded.
        self._session_generation = 0

        self.tracker = PendingOperationTracker()
        self.bus = InvalidationBus()
        self.scheduler = RefreshScheduler(self.bus, interval_seconds=refresh_interval_seconds)

        self.conversations = EntityRegistry(
            ENTITY_CONVERSATIONS, store, self.tracker,
            [SNAPSHOT_KEY_CONVERSATIONS_SIDEBAR, SNAPSHOT_KEY_CONVERSATIONS_PAGE],
        )
        self.campaigns = EntityRegistry(ENTITY_CAMPAIGNS, store, self.tracker, [SNAPSHOT_KEY_CAMPAIGNS])
        self.credits = AggregateCache("credits", SNAPSHOT_KEY_CREDITS, store, api_client.get_credits)
        self.dashboard = AggregateCache("dashboard", SNAPSHOT_KEY_DASHBOARD, store, api_client.get_dashboard)

        self.campaign_deletes = DeleteOrchestrator(
            primary=self.campaigns,
            companion=self.conversations,
            tracker=self.tracker,
            link=AggregateLink(primary_field="conversation_id"),
            remote_delete=api_client.delete_campaign,
            bus=self.bus,
            is_online=connectivity_probe,
            on_error=self._report_error,
            on_session_expired=self.handle_session_expired,
        )
        self.conversation_deletes = DeleteOrchestrator(
            primary=self.conversations,
            companion=self.campaigns,
            tracker=self.tracker,
            link=AggregateLink(companion_field="conversation_id"),
            remote_delete=api_client.delete_conversation,
            bus=self.bus,
            is_online=connectivity_probe,
            on_error=self._report_error,
            on_session_expired=self.handle_session_expired,
        )

        for target in REFRESH_TARGETS:
            self.scheduler.register(target, self._make_refresher(target))

    # --- Lifecycle ---

    def hydrate(self) -> None:
        """Shows the last-known state before any network call completes."""
        self.conversations.hydrate()
        self.campaigns.hydrate()
        self.credits.hydrate()
        self.dashboard.hydrate()

    async def start(self) -> None:
        self.hydrate()
        self.scheduler.start()
        self.scheduler.trigger_all("startup")

    def reset(self) -> None:
        """Logout / new session: drop all state and snapshots. The scheduler keeps running."""
        logger.info("Resetting sync state")
        self._session_generation += 1
        self.tracker.clear()
        self.conversations.clear()
        self.campaigns.clear()
        self.credits.clear()
        self.dashboard.clear()
        self.store.clear_all()

    async def shutdown(self) -> None:
        await self.scheduler.stop()
        self.bus.clear()
        await self.api_client.close()
        close_store = getattr(self.store, "close", None)
        if callable(close_store):
            close_store()
        logger.info("Sync engine shut down")

    # --- Refresh ---

    async def refresh(self, target: str = TARGET_ALL, silent: bool = True) -> bool:
        """
        Runs a refresh now. Silent refreshes swallow classified faults; foreground
        ones raise SyncFaultError. Returns False if a refresh was already in flight.
        """
        if target != TARGET_ALL:
            return await self.scheduler.refresh_now(target, silent=silent)
        results = []
        first_error: Optional[SyncFaultError] = None
        for each_target in self.scheduler.targets:
            try:
                results.append(await self.scheduler.refresh_now(each_target, silent=silent))
            except SyncFaultError as e:
                first_error = first_error or e
                if e.fault.requires_reauthentication:
                    # The session is gone; the remaining targets would only be rejected too.
                    break
        if first_error is not None:
            raise first_error
        return all(results)

    def invalidate(self, target: str) -> None:
        self.bus.publish(target)

    def notify_focus(self) -> None:
        self.scheduler.notify_focus()

    def _make_refresher(self, target: str):
        async def refresher(silent: bool) -> None:
            await self._refresh_target(target, silent)
        return refresher

    async def _refresh_target(self, target: str, silent: bool) -> None:
        generation = self._session_generation
        try:
            await self._fetch_and_apply(target, generation)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if generation != self._session_generation:
                logger.info(f"Discarding failed refresh of '{target}' from a previous session: {e}")
                return
            fault = classify_exception(e, self.connectivity_probe)
            if fault.requires_reauthentication:
                logger.warning(f"Refresh of '{target}' rejected as unauthorized; expiring session")
                await self.handle_session_expired()
                if silent:
                    return
                raise SyncFaultError(fault) from e
            if silent:
                # Keep the last good snapshot; the next trigger retries.
                logger.info(f"Silent refresh of '{target}' failed: {fault}")
                return
            logger.warning(f"Refresh of '{target}' failed: {fault}")
            raise SyncFaultError(fault) from e

    def _is_stale(self, target: str, generation: int) -> bool:
        if generation == self._session_generation:
            return False
        logger.info(f"Discarding refresh of '{target}' that started before a session reset")
        return True

    async def _fetch_and_apply(self, target: str, generation: int) -> None:
        if target == TARGET_CONVERSATIONS:
            items = await self.api_client.list_conversations()
            if not self._is_stale(target, generation):
                self.conversations.reconcile(items)
        elif target == TARGET_CAMPAIGNS:
            items = await self.api_client.list_campaigns()
            if not self._is_stale(target, generation):
                self.campaigns.reconcile(items)
        elif target == TARGET_DASHBOARD:
            aggregates = (self.credits, self.dashboard)
            results = await asyncio.gather(*(aggregate.fetcher() for aggregate in aggregates),
                                           return_exceptions=True)
            if self._is_stale(target, generation):
                return
            for aggregate, result in zip(aggregates, results):
                if not isinstance(result, BaseException):
                    aggregate.set(result)
            for result in results:
                if isinstance(result, BaseException):
                    raise result
        else:
            raise ValueError(f"Unknown refresh target: {target!r}")

    # --- Deletes ---

    async def delete_campaign(self, campaign_id: int,
                              confirm: Optional[ConfirmCallback] = None) -> DeleteOutcome:
        return await self.campaign_deletes.delete(campaign_id, confirm=confirm)

    async def delete_conversation(self, conversation_id: int,
                                  confirm: Optional[ConfirmCallback] = None) -> DeleteOutcome:
        return await self.conversation_deletes.delete(conversation_id, confirm=confirm)

    # --- Session ---

    async def handle_session_expired(self) -> None:
        """Clears snapshots and local state, then hands off to the auth collaborator. Never retries."""
        if self._expiring_session:
            return
        self._expiring_session = True
        try:
            logger.warning("Session expired; clearing local sync state")
            self.reset()
            if self.on_session_expired is not None:
                result = self.on_session_expired()
                if inspect.isawaitable(result):
                    await result
        finally:
            self._expiring_session = False

    def _report_error(self, fault: NetworkFault, context: str) -> None:
        if self.on_error is not None:
            self.on_error(fault, context)

#
# End of sync_engine.py
########################################################################################################################
