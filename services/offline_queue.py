from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Callable, List, Optional, Set

from core.log import get_logger
from core.settings import QUEUE
from models.sync_state import SyncState
from services.action_store import ActionStore
from services.connectivity import ConnectivityMonitor
from services.delivery import ActionDeliverer
from services.errors import StorageUnavailable
from services.platform import BackgroundSync
from services.sync_coordinator import SyncCoordinator


logger = get_logger("queue")

StateListener = Callable[[SyncState], None]


class OfflineQueue:
    """Public entry point: enqueue actions and observe the queue status."""

    def __init__(
        self,
        store: ActionStore,
        connectivity: ConnectivityMonitor,
        deliverer: Optional[ActionDeliverer] = None,
        background: Optional[BackgroundSync] = None,
        *,
        sync_tag: str = QUEUE.sync_tag,
    ) -> None:
        self.store = store
        self.connectivity = connectivity
        self.background = background
        self._state = SyncState()
        self._listeners: List[StateListener] = []
        self._tasks: Set[asyncio.Task] = set()
        self._started = False
        self.coordinator = SyncCoordinator(
            store,
            self._state,
            connectivity,
            deliverer,
            background,
            sync_tag=sync_tag,
            on_change=self._notify,
        )

    # ------------------------------------------------------------------
    # Observables
    @property
    def pending_count(self) -> int:
        return self._state.pending_count

    @property
    def is_syncing(self) -> bool:
        return self._state.is_syncing

    @property
    def last_sync_time(self) -> Optional[datetime]:
        return self._state.last_sync_time

    @property
    def state(self) -> SyncState:
        return self._state.snapshot()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        snapshot = self._state.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as exc:  # pragma: no cover - defensive
                logger.error("State listener failed: %s", exc)

    # ------------------------------------------------------------------
    # Lifecycle
    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        self.coordinator.reset()
        await self.refresh()
        self.connectivity.add_listener(self._on_connectivity_change)

    async def close(self) -> None:
        self.connectivity.remove_listener(self._on_connectivity_change)
        self._started = False
        await self.wait_idle()

    async def wait_idle(self) -> None:
        """Wait for scheduled sync triggers and background deliveries."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        if self.background is not None:
            await self.background.drain()

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _on_connectivity_change(self, online: bool) -> None:
        if online:
            await self.coordinator.trigger("reconnect")

    # ------------------------------------------------------------------
    # Operations
    async def refresh(self) -> int:
        self._state.pending_count = await self.store.count()
        self._notify()
        return self._state.pending_count

    async def enqueue(self, payload: Any) -> Optional[int]:
        """Store ``payload`` for delivery.

        Returns the new action id once it is durable, or ``None`` when the
        store is unavailable. Delivery is attempted in the background when
        online and never delays the return.
        """

        try:
            action_id = await self.store.add(payload)
        except StorageUnavailable as exc:
            logger.error("Action dropped, storage unavailable: %s", exc)
            await self.refresh()
            return None
        await self.refresh()
        if self.connectivity.is_online:
            self._spawn(self.coordinator.trigger("enqueue"))
        return action_id

    async def sync_now(self) -> bool:
        return await self.coordinator.trigger("manual")


__all__ = ["OfflineQueue", "StateListener"]
