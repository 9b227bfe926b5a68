# refresh_scheduler.py
# Description: Runs silent reconciliation passes per target on an interval, on focus, and on invalidation.
#
# Imports
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional
#
# Local Imports
from ..Constants import DEFAULT_REFRESH_INTERVAL_SECONDS, TARGET_ALL
from ..Metrics.metrics_logger import sync_metrics
from .invalidation_bus import InvalidationBus, InvalidationEvent
#
#######################################################################################################################
#
# Functions:

logger = logging.getLogger(__name__)

# A refresher receives `silent` and performs one fetch + reconcile for its target.
Refresher = Callable[[bool], Awaitable[Any]]


class RefreshScheduler:
    """
    At most one refresh per target is in flight. A trigger that fires while one
    is outstanding is dropped, not queued; the outstanding one always runs to
    completion and its result is applied even if it arrives late.
    """

    def __init__(self, bus: InvalidationBus, interval_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS):
        self.bus = bus
        self.interval_seconds = interval_seconds
        self._refreshers: Dict[str, Refresher] = {}
        self._in_flight: Dict[str, asyncio.Task] = {}
        self._interval_task: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    # --- Setup ---

    def register(self, target: str, refresher: Refresher) -> None:
        if target == TARGET_ALL:
            raise ValueError("'all' is a broadcast target and cannot have its own refresher")
        self._refreshers[target] = refresher

    @property
    def targets(self):
        return list(self._refreshers)

    @property
    def is_running(self) -> bool:
        return self._interval_task is not None and not self._interval_task.done()

    def start(self) -> None:
        """Subscribes to the invalidation bus and starts the periodic timer. Needs a running loop."""
        if self.is_running:
            return
        if self._unsubscribe is None:
            self._unsubscribe = self.bus.subscribe(self._on_invalidation)
        if self.interval_seconds and self.interval_seconds > 0:
            self._interval_task = asyncio.get_running_loop().create_task(
                self._interval_loop(), name="RefreshSchedulerInterval"
            )
        logger.info(f"Refresh scheduler started (interval={self.interval_seconds}s, targets={self.targets})")

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._interval_task is not None:
            self._interval_task.cancel()
            try:
                await self._interval_task
            except asyncio.CancelledError:
                pass
            self._interval_task = None
        in_flight = list(self._in_flight.values())
        for task in in_flight:
            task.cancel()
        if in_flight:
            await asyncio.gather(*in_flight, return_exceptions=True)
        self._in_flight.clear()
        logger.info("Refresh scheduler stopped")

    # --- Triggers ---

    def is_in_flight(self, target: str) -> bool:
        task = self._in_flight.get(target)
        return task is not None and not task.done()

    def trigger(self, target: str, reason: str = "manual") -> Optional[asyncio.Task]:
        """Starts a silent refresh for `target` unless one is already in flight."""
        if target not in self._refreshers:
            logger.warning(f"No refresher registered for '{target}'; trigger ({reason}) ignored")
            return None
        if self.is_in_flight(target):
            logger.debug(f"Refresh of '{target}' already in flight; dropping {reason} trigger")
            sync_metrics.record_dropped_refresh(target, reason)
            return None
        return self._start(target, silent=True, reason=reason)

    def trigger_all(self, reason: str = "manual") -> Dict[str, Optional[asyncio.Task]]:
        return {target: self.trigger(target, reason) for target in self.targets}

    def notify_focus(self) -> None:
        """Host calls this when the window regains foreground focus."""
        self.trigger_all("focus")

    async def refresh_now(self, target: str, silent: bool = False) -> bool:
        """
        Foreground refresh. Obeys the overlap policy: returns False without
        fetching if a refresh for `target` is already in flight. With
        silent=False, failures propagate to the caller.
        """
        if target not in self._refreshers:
            raise KeyError(f"No refresher registered for '{target}'")
        if self.is_in_flight(target):
            logger.debug(f"Refresh of '{target}' already in flight; foreground request dropped")
            sync_metrics.record_dropped_refresh(target, "foreground")
            return False
        task = self._start(target, silent=silent, reason="foreground")
        if task is None:
            return False
        await task
        return True

    async def wait_idle(self) -> None:
        """Waits until no refresh is in flight (tests and shutdown paths)."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight.values()), return_exceptions=True)

    # --- Internals ---

    def _start(self, target: str, silent: bool, reason: str) -> Optional[asyncio.Task]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop; cannot refresh '{target}' ({reason})")
            return None
        task = loop.create_task(self._run(target, silent, reason), name=f"refresh-{target}")
        self._in_flight[target] = task
        return task

    async def _run(self, target: str, silent: bool, reason: str) -> None:
        logger.debug(f"Refreshing '{target}' (reason={reason}, silent={silent})")
        start_time = time.perf_counter()
        outcome = "success"
        try:
            await self._refreshers[target](silent)
        except asyncio.CancelledError:
            outcome = "cancelled"
            raise
        except Exception as e:
            outcome = "error"
            if not silent:
                raise
            logger.warning(f"Silent refresh of '{target}' failed: {e}", exc_info=True)
        finally:
            if self._in_flight.get(target) is asyncio.current_task():
                del self._in_flight[target]
            sync_metrics.record_refresh(target, outcome, time.perf_counter() - start_time)

    def _on_invalidation(self, event: InvalidationEvent) -> None:
        if event.target == TARGET_ALL:
            self.trigger_all("invalidation")
        elif event.target in self._refreshers:
            self.trigger(event.target, "invalidation")
        else:
            logger.debug(f"Invalidation for unregistered target '{event.target}' ignored")

    async def _interval_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            logger.debug("Periodic refresh tick")
            self.trigger_all("interval")

#
# End of refresh_scheduler.py
########################################################################################################################
