from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import httpx

from core.log import get_logger
from core.settings import QUEUE, REMOTE
from models.pending_action import PendingAction
from services.action_store import ActionStore
from services.errors import DeliveryFailed


logger = get_logger("delivery")


@dataclass
class DeliveryReport:
    attempted: int = 0
    delivered: List[int] = field(default_factory=list)
    failed: List[DeliveryFailed] = field(default_factory=list)


class ActionDeliverer:
    """Sends pending actions to the remote endpoint.

    A record is removed from the store only after the server acknowledged it
    with a 2xx response; anything else leaves it for the next sync cycle.
    """

    def __init__(
        self,
        store: ActionStore,
        endpoint_url: Optional[str] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = REMOTE.timeout_sec,
        batch_limit: Optional[int] = QUEUE.delivery_batch_limit,
    ) -> None:
        self.store = store
        self.endpoint_url = endpoint_url or REMOTE.base_url.rstrip("/") + REMOTE.action_path
        self.timeout = timeout
        self.batch_limit = batch_limit
        self._client = client

    async def _send(self, client: httpx.AsyncClient, action: PendingAction) -> None:
        try:
            response = await client.post(self.endpoint_url, json=action.to_json(), timeout=self.timeout)
        except httpx.HTTPError as exc:
            raise DeliveryFailed(action.id, str(exc) or exc.__class__.__name__) from exc
        if not response.is_success:
            raise DeliveryFailed(action.id, f"HTTP {response.status_code}")

    async def _deliver_with(self, client: httpx.AsyncClient) -> DeliveryReport:
        report = DeliveryReport()
        for action in await self.store.list_pending(limit=self.batch_limit):
            report.attempted += 1
            try:
                await self._send(client, action)
            except DeliveryFailed as exc:
                logger.warning("Delivery failed, keeping for retry: %s", exc)
                report.failed.append(exc)
                continue
            await self.store.remove_delivered({action.id})
            report.delivered.append(action.id)
            logger.info("Action synced: %s", action.id)
        return report

    async def deliver_pending(self) -> DeliveryReport:
        if self._client is not None:
            report = await self._deliver_with(self._client)
        else:
            async with httpx.AsyncClient() as client:
                report = await self._deliver_with(client)
        if report.attempted:
            logger.info(
                "Delivery finished: %s attempted, %s delivered, %s failed",
                report.attempted,
                len(report.delivered),
                len(report.failed),
            )
        return report


__all__ = ["ActionDeliverer", "DeliveryReport"]
