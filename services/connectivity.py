from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional

import httpx

from core.log import get_logger
from core.settings import REMOTE


logger = get_logger("connectivity")

ConnectivityListener = Callable[[bool], Awaitable[None]]


class ConnectivityMonitor:
    """Tracks whether the remote side is reachable and reports transitions."""

    def __init__(
        self,
        initial: bool = False,
        *,
        probe_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        interval: float = REMOTE.probe_interval_sec,
        timeout: float = REMOTE.timeout_sec,
    ) -> None:
        self._online = bool(initial)
        self._listeners: List[ConnectivityListener] = []
        self.probe_url = probe_url
        self.interval = interval
        self.timeout = timeout
        self._client = client

    @property
    def is_online(self) -> bool:
        return self._online

    def add_listener(self, listener: ConnectivityListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: ConnectivityListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def set_online(self, online: bool) -> None:
        online = bool(online)
        if online == self._online:
            return
        self._online = online
        logger.info("Connectivity changed: %s", "online" if online else "offline")
        for listener in list(self._listeners):
            try:
                await listener(online)
            except Exception as exc:  # pragma: no cover - defensive
                logger.error("Connectivity listener failed: %s", exc)

    async def probe(self) -> bool:
        if not self.probe_url:
            return self._online
        try:
            if self._client is not None:
                response = await self._client.head(self.probe_url, timeout=self.timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.head(self.probe_url, timeout=self.timeout)
            reachable = response.status_code < 500
        except httpx.HTTPError as exc:
            logger.debug("Connectivity probe failed: %s", exc)
            reachable = False
        await self.set_online(reachable)
        return reachable

    async def watch(self) -> None:
        """Probe forever; only state transitions reach the listeners."""

        while True:
            await self.probe()
            await asyncio.sleep(self.interval)


__all__ = ["ConnectivityListener", "ConnectivityMonitor"]
