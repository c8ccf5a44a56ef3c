from __future__ import annotations

import asyncio
from typing import Dict, Set

from core.log import get_logger
from services.errors import UnsupportedPlatform
from services.platform import SyncHandler


logger = get_logger("background")


class TaskBackgroundSync:
    """Runs registered sync handlers in tasks that outlive the caller.

    At most one task runs per tag. Registering a tag whose handler is
    already running schedules exactly one more run after it finishes, so
    deliveries for the same tag never overlap.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, SyncHandler] = {}
        self._running: Dict[str, asyncio.Task] = {}
        self._rerun: Set[str] = set()

    def is_supported(self) -> bool:
        return True

    def on_sync(self, tag: str, handler: SyncHandler) -> None:
        self._handlers[tag] = handler

    def is_running(self, tag: str) -> bool:
        task = self._running.get(tag)
        return task is not None and not task.done()

    async def register(self, tag: str) -> None:
        if tag not in self._handlers:
            raise UnsupportedPlatform(f"no background handler for tag {tag!r}")
        if self.is_running(tag):
            logger.debug("Background sync %s already running, coalescing", tag)
            self._rerun.add(tag)
            return
        logger.info("Background sync registered: %s", tag)
        self._running[tag] = asyncio.create_task(self._run(tag), name=f"background-sync:{tag}")

    async def _run(self, tag: str) -> None:
        try:
            while True:
                self._rerun.discard(tag)
                try:
                    await self._handlers[tag]()
                except Exception as exc:  # pragma: no cover - defensive
                    logger.error("Background sync %s failed: %s", tag, exc)
                if tag not in self._rerun:
                    break
        finally:
            self._running.pop(tag, None)

    async def drain(self) -> None:
        """Wait until no background sync task is running."""

        while self._running:
            await asyncio.gather(*list(self._running.values()), return_exceptions=True)


__all__ = ["TaskBackgroundSync"]
