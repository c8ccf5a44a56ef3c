# ui/app_shell.py
from __future__ import annotations

import asyncio

import flet as ft
import httpx

from core.log import get_logger, read_log_tail
from core.settings import PUSH, REMOTE, UI
from services.action_store import ActionStore
from services.background import TaskBackgroundSync
from services.connectivity import ConnectivityMonitor
from services.delivery import ActionDeliverer
from services.offline_queue import OfflineQueue
from services.registrar import RemoteRegistrar
from services.subscription_manager import SubscriptionManager
from storage.config import load_config
from storage.db import get_engine
from storage.device import get_installation_id

from .flet_platform import FletPushPlatform
from .pages.sync_status import SyncStatusPage


logger = get_logger("app")


class AppShell:
    def __init__(self, page: ft.Page):
        self.page = page
        self.page.title = UI.app_title
        self.page.horizontal_alignment = ft.CrossAxisAlignment.STRETCH
        self.page.vertical_alignment = ft.MainAxisAlignment.START

        config = load_config()
        base_url = (config.remote_base_url or REMOTE.base_url).rstrip("/")
        installation_id = get_installation_id()
        self.http = httpx.AsyncClient(timeout=REMOTE.timeout_sec)

        # --- queue ---
        self.store = ActionStore(get_engine())
        self.connectivity = ConnectivityMonitor(
            probe_url=base_url + REMOTE.probe_path,
            client=self.http,
        )
        self.background = TaskBackgroundSync()
        self.queue = OfflineQueue(
            self.store,
            self.connectivity,
            ActionDeliverer(self.store, base_url + REMOTE.action_path, client=self.http),
            self.background,
        )

        # --- push ---
        platform = FletPushPlatform(
            page,
            PUSH.service_url,
            client=self.http,
            installation_id=installation_id,
        )
        registrar = RemoteRegistrar(base_url, client=self.http, installation_id=installation_id)
        self.push = SubscriptionManager(platform, registrar)

        self._status = SyncStatusPage(self)
        self._unsubscribe_state = self.queue.subscribe(self._status.on_state)
        self._watch_task: asyncio.Task | None = None

    # ---------- mount ----------
    def mount(self):
        self.page.controls.clear()
        self.page.add(self._status.view)
        self.page.on_disconnect = self._on_disconnect
        self.page.pubsub.subscribe_topic(PUSH.message_topic, self._on_push_message)
        self.page.update()
        self.page.run_task(self._start)

    async def _start(self):
        await self.queue.start()
        await self.push.initialize()
        self._status.render_push()
        self._status.refresh_log(None)
        # probing only reports transitions; retries follow the reconnect trigger
        self._watch_task = asyncio.create_task(self.connectivity.watch())

    def _on_push_message(self, _topic, message):
        self.page.run_task(self.push.on_push, message)

    async def _on_disconnect(self, _):
        if self._watch_task:
            self._watch_task.cancel()
            self._watch_task = None
        self._unsubscribe_state()
        self.page.pubsub.unsubscribe_all()
        try:
            await self.queue.close()
        finally:
            await self.http.aclose()
        logger.info("Shell closed")

    # ---------- helpers for pages ----------
    async def enqueue(self, payload) -> int | None:
        return await self.queue.enqueue(payload)

    def read_sync_log(self) -> str:
        return read_log_tail(UI.log_lines)
