# ui/pages/sync_status.py
import flet as ft

from datetime_utils import format_local
from models.push_subscription import Permission, SubscriptionState
from models.sync_state import SyncState
from ui.dialogs import show_snack


_PUSH_LABELS = {
    SubscriptionState.UNSUPPORTED: "Push notifications are not available",
    SubscriptionState.UNSUBSCRIBED: "Notifications are off",
    SubscriptionState.PERMISSION_DENIED: "Notifications are blocked",
    SubscriptionState.SUBSCRIBED: "Notifications are on",
}


class SyncStatusPage:
    def __init__(self, app):
        self.app = app

        self.pending_text = ft.Text(size=18, weight=ft.FontWeight.W_600)
        self.last_sync_text = ft.Text()
        self.connectivity_text = ft.Text()
        self.progress = ft.ProgressRing(width=18, height=18, stroke_width=2, visible=False)

        self.sync_btn = ft.ElevatedButton("Sync now", icon=ft.Icons.SYNC, on_click=self.sync_now)

        self.push_text = ft.Text()
        self.push_switch = ft.Switch(label="Push notifications", on_change=self.toggle_push)
        self.test_btn = ft.OutlinedButton(
            "Send test notification",
            icon=ft.Icons.NOTIFICATIONS_ACTIVE_OUTLINED,
            on_click=self.send_test,
        )

        self.log_view = ft.Text("", selectable=True, size=12)
        self.refresh_log_btn = ft.TextButton("Refresh log", icon=ft.Icons.ARTICLE, on_click=self.refresh_log)

        content = ft.Column(
            controls=[
                ft.Text("Offline queue", size=24, weight=ft.FontWeight.BOLD),
                ft.Row([self.pending_text, self.progress], spacing=12),
                self.last_sync_text,
                self.connectivity_text,
                self.sync_btn,
                ft.Divider(),
                self.push_text,
                ft.Row([self.push_switch, self.test_btn], spacing=12),
                ft.Divider(),
                ft.Column(
                    [
                        ft.Text("Sync log", size=18, weight=ft.FontWeight.W_600),
                        ft.Container(self.log_view, height=200, padding=10, bgcolor=ft.Colors.SURFACE_CONTAINER_HIGHEST),
                        self.refresh_log_btn,
                    ],
                    spacing=8,
                ),
            ],
            expand=True,
            spacing=16,
            scroll=ft.ScrollMode.AUTO,
        )

        self.view = ft.Container(content=content, expand=True, padding=20)
        self.render_queue(self.app.queue.state)
        self.render_push()

    # ---------- rendering ----------
    def render_queue(self, state: SyncState):
        self.pending_text.value = f"Pending actions: {state.pending_count}"
        self.last_sync_text.value = "Last sync: " + format_local(state.last_sync_time)
        online = self.app.connectivity.is_online
        self.connectivity_text.value = "Online" if online else "Offline: actions are kept until the connection returns"
        self.progress.visible = state.is_syncing
        self.sync_btn.disabled = state.is_syncing or not online

    def render_push(self):
        manager = self.app.push
        state = manager.state
        if state is None:
            self.push_text.value = "Checking notification support..."
        else:
            self.push_text.value = _PUSH_LABELS.get(state, state.value)
        self.push_switch.value = state is SubscriptionState.SUBSCRIBED
        self.push_switch.disabled = not manager.is_supported or manager.is_busy
        self.test_btn.disabled = manager.permission is not Permission.GRANTED

    def on_state(self, state: SyncState):
        self.render_queue(state)
        self.app.page.update()

    # ---------- actions ----------
    async def sync_now(self, _):
        if not await self.app.queue.sync_now():
            show_snack(self.app.page, "Sync skipped: offline or already running")
        self.refresh_log(None)

    async def toggle_push(self, e: ft.ControlEvent):
        manager = self.app.push
        self.push_switch.disabled = True
        self.app.page.update()
        if e.control.value:
            ok = await manager.subscribe()
            message = "Subscribed to notifications" if ok else "Could not enable notifications"
        else:
            ok = await manager.unsubscribe()
            message = "Notifications disabled" if ok else "Could not disable notifications"
        show_snack(self.app.page, message)
        self.render_push()
        self.app.page.update()

    async def send_test(self, _):
        if not await self.app.push.send_local_test():
            show_snack(self.app.page, "Notification permission has not been granted")

    def refresh_log(self, _):
        self.log_view.value = self.app.read_sync_log()
        self.app.page.update()
