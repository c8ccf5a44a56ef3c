from __future__ import annotations

from typing import Callable, Optional

from core.log import get_logger
from core.settings import QUEUE
from datetime_utils import utc_now
from models.sync_state import SyncState
from services.action_store import ActionStore
from services.connectivity import ConnectivityMonitor
from services.delivery import ActionDeliverer, DeliveryReport
from services.platform import BackgroundSync


logger = get_logger("sync")


class SyncCoordinator:
    """Decides when to deliver queued actions and reconciles the counters.

    Cycles are started only by discrete triggers (enqueue, reconnect, manual);
    a trigger arriving while a cycle is in flight is dropped.
    """

    def __init__(
        self,
        store: ActionStore,
        state: SyncState,
        connectivity: ConnectivityMonitor,
        deliverer: Optional[ActionDeliverer] = None,
        background: Optional[BackgroundSync] = None,
        *,
        sync_tag: str = QUEUE.sync_tag,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self.store = store
        self.state = state
        self.connectivity = connectivity
        self.deliverer = deliverer or ActionDeliverer(store)
        self.background = background
        self.sync_tag = sync_tag
        self._on_change = on_change
        if self.background is not None:
            self.background.on_sync(sync_tag, self._background_delivery)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def reset(self) -> None:
        """Clear a stale in-flight flag left by a previous run."""

        if self.state.is_syncing:
            logger.info("Resetting stale syncing flag")
        self.state.is_syncing = False
        self._changed()

    # ------------------------------------------------------------------
    async def trigger(self, reason: str = "manual") -> bool:
        """Run one sync cycle; returns ``False`` when the trigger was dropped."""

        if self.state.is_syncing:
            logger.debug("Sync already in progress, dropping %s trigger", reason)
            return False
        if not self.connectivity.is_online:
            logger.debug("Offline, skipping %s trigger", reason)
            return False

        # set before the first await so a concurrent trigger sees it
        self.state.is_syncing = True
        self._changed()
        logger.info("Sync cycle started (%s)", reason)
        try:
            await self._dispatch()
            self.state.pending_count = await self.store.count()
            self.state.last_sync_time = utc_now()
            logger.info("Sync cycle finished, %s pending", self.state.pending_count)
        except Exception as exc:
            logger.error("Sync cycle failed: %s", exc)
        finally:
            self.state.is_syncing = False
            self._changed()
        return True

    async def _dispatch(self) -> None:
        if self.background is not None and self.background.is_supported():
            await self.background.register(self.sync_tag)
        else:
            await self.deliverer.deliver_pending()

    async def _background_delivery(self) -> DeliveryReport:
        report = await self.deliverer.deliver_pending()
        self.state.pending_count = await self.store.count()
        self._changed()
        return report


__all__ = ["SyncCoordinator"]
