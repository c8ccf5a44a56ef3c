"""Capabilities the queue expects from the host platform.

The subscription manager and the sync coordinator only talk to these
protocols, so a desktop shell, a test fake or any other host can provide
them.
"""
from __future__ import annotations

from typing import Awaitable, Callable, Optional, Protocol

from models.push_subscription import Notification, Permission, PushSubscriptionRecord
from services.errors import UnsupportedPlatform


SyncHandler = Callable[[], Awaitable[object]]


class PushPlatform(Protocol):
    def is_supported(self) -> bool: ...

    async def permission(self) -> Permission: ...

    async def request_permission(self) -> Permission: ...

    async def subscribe(self, application_server_key: bytes) -> PushSubscriptionRecord: ...

    async def unsubscribe(self, subscription: PushSubscriptionRecord) -> None: ...

    async def get_current_subscription(self) -> Optional[PushSubscriptionRecord]: ...

    async def show_notification(self, notification: Notification) -> None: ...


class BackgroundSync(Protocol):
    def is_supported(self) -> bool: ...

    def on_sync(self, tag: str, handler: SyncHandler) -> None: ...

    async def register(self, tag: str) -> None: ...

    async def drain(self) -> None: ...


class UnsupportedPushPlatform:
    """Host without push support; the subscription manager stays ``unsupported``."""

    def is_supported(self) -> bool:
        return False

    async def permission(self) -> Permission:
        return Permission.DEFAULT

    async def request_permission(self) -> Permission:
        return Permission.DEFAULT

    async def subscribe(self, application_server_key: bytes) -> PushSubscriptionRecord:
        raise UnsupportedPlatform("push notifications are not available")

    async def unsubscribe(self, subscription: PushSubscriptionRecord) -> None:
        return None

    async def get_current_subscription(self) -> Optional[PushSubscriptionRecord]:
        return None

    async def show_notification(self, notification: Notification) -> None:
        return None


__all__ = ["BackgroundSync", "PushPlatform", "SyncHandler", "UnsupportedPushPlatform"]
