from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from core.log import get_logger
from core.settings import REMOTE
from models.push_subscription import PushSubscriptionRecord
from services.errors import RemoteMirrorFailed


logger = get_logger("registrar")


class RemoteRegistrar:
    """Mirrors the local push subscription on the application server."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        installation_id: Optional[str] = None,
        timeout: float = REMOTE.timeout_sec,
    ) -> None:
        self.base_url = (base_url or REMOTE.base_url).rstrip("/")
        self.installation_id = installation_id
        self.timeout = timeout
        self._client = client

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.installation_id:
            headers["X-Installation-Id"] = self.installation_id
        return headers

    async def _post(self, path: str, body: Dict[str, Any]) -> None:
        url = self.base_url + path
        try:
            if self._client is not None:
                response = await self._client.post(url, json=body, headers=self._headers(), timeout=self.timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(url, json=body, headers=self._headers(), timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise RemoteMirrorFailed(f"{path}: {exc}") from exc

    async def save(self, subscription: PushSubscriptionRecord) -> None:
        await self._post(REMOTE.save_subscription_path, {"subscription": subscription.to_json()})
        logger.info("Subscription registered on server")

    async def remove(self, endpoint: str) -> None:
        await self._post(REMOTE.remove_subscription_path, {"endpoint": endpoint})
        logger.info("Subscription removed from server")


__all__ = ["RemoteRegistrar"]
