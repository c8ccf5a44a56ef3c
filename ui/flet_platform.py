# ui/flet_platform.py
"""Push capability for the desktop shell.

Permission is asked with a modal dialog and remembered in ``config.json``.
Subscriptions are issued by an HTTP push relay (``PUSH.service_url``); without
a relay the platform reports itself as unsupported. Local notifications are
shown as a snack bar.
"""
from __future__ import annotations

import asyncio
import base64
from pathlib import Path
from typing import Optional

import flet as ft
import httpx

from core.settings import PUSH, REMOTE
from models.push_subscription import Notification, Permission, PushSubscriptionRecord
from services.errors import PermissionDeniedError, UnsupportedPlatform
from storage.config import load_config, update_config
from ui.dialogs import close_alert_dialog, open_alert_dialog, show_snack


class FletPushPlatform:
    def __init__(
        self,
        page: ft.Page,
        service_url: Optional[str] = PUSH.service_url,
        *,
        client: Optional[httpx.AsyncClient] = None,
        installation_id: Optional[str] = None,
        config_path: Optional[Path] = None,
    ) -> None:
        self.page = page
        self.service_url = service_url.rstrip("/") if service_url else None
        self.installation_id = installation_id
        self.config_path = config_path
        self._client = client

    def is_supported(self) -> bool:
        return bool(self.service_url)

    # ---------- permission ----------
    async def permission(self) -> Permission:
        raw = load_config(self.config_path).notification_permission
        try:
            return Permission(raw)
        except ValueError:
            return Permission.DEFAULT

    async def request_permission(self) -> Permission:
        """Ask the user unless permission was already granted.

        A stored "Block" answer is asked again here: this is only reached when
        the user turns notifications on, and the app is the only place the
        answer lives.
        """

        current = await self.permission()
        if current is Permission.GRANTED:
            return current

        result = await self._ask()
        if result is not Permission.DEFAULT:
            update_config(self.config_path, notification_permission=result.value)
        return result if result is not Permission.DEFAULT else current

    async def _ask(self) -> Permission:
        answer: asyncio.Future = asyncio.get_running_loop().create_future()

        def _resolve(value: Permission):
            def handler(_):
                if not answer.done():
                    answer.set_result(value)

            return handler

        dlg = open_alert_dialog(
            self.page,
            title="Notifications",
            content=ft.Text(f"Allow {PUSH.notification_title} to show notifications?"),
            actions=[
                ft.TextButton("Block", on_click=_resolve(Permission.DENIED)),
                ft.ElevatedButton("Allow", on_click=_resolve(Permission.GRANTED)),
            ],
            on_dismiss=_resolve(Permission.DEFAULT),
        )
        try:
            return await answer
        finally:
            close_alert_dialog(self.page, dlg)

    # ---------- subscription ----------
    async def _post(self, path: str, body: dict) -> httpx.Response:
        url = f"{self.service_url}{path}"
        if self._client is not None:
            response = await self._client.post(url, json=body, timeout=REMOTE.timeout_sec)
        else:
            async with httpx.AsyncClient() as client:
                response = await client.post(url, json=body, timeout=REMOTE.timeout_sec)
        response.raise_for_status()
        return response

    async def subscribe(self, application_server_key: bytes) -> PushSubscriptionRecord:
        if not self.is_supported():
            raise UnsupportedPlatform("no push relay configured")
        if await self.permission() is not Permission.GRANTED:
            raise PermissionDeniedError("notification permission not granted")

        key = base64.urlsafe_b64encode(application_server_key).decode("ascii").rstrip("=")
        response = await self._post(
            "/subscriptions",
            {"applicationServerKey": key, "installationId": self.installation_id},
        )
        record = PushSubscriptionRecord.from_json(response.json())
        if record is None:
            raise UnsupportedPlatform("push relay returned no endpoint")
        update_config(self.config_path, push_endpoint=record.endpoint, push_keys=record.to_json()["keys"])
        return record

    async def unsubscribe(self, subscription: PushSubscriptionRecord) -> None:
        await self._post("/subscriptions/delete", {"endpoint": subscription.endpoint})
        update_config(self.config_path, push_endpoint=None, push_keys=None)

    async def get_current_subscription(self) -> Optional[PushSubscriptionRecord]:
        cfg = load_config(self.config_path)
        if not cfg.push_endpoint:
            return None
        return PushSubscriptionRecord.from_json({"endpoint": cfg.push_endpoint, "keys": cfg.push_keys or {}})

    # ---------- local notifications ----------
    async def show_notification(self, notification: Notification) -> None:
        content = ft.Row(
            [
                ft.Icon(ft.Icons.NOTIFICATIONS),
                ft.Column(
                    [
                        ft.Text(notification.title, weight=ft.FontWeight.BOLD),
                        ft.Text(notification.body),
                    ],
                    spacing=2,
                    tight=True,
                ),
            ],
            spacing=12,
        )
        show_snack(self.page, content)


__all__ = ["FletPushPlatform"]
