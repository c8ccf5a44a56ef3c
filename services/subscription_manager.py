from __future__ import annotations

import asyncio
import base64
import json
from typing import Optional, Union

from core.log import get_logger
from core.settings import PUSH
from models.push_subscription import (
    Notification,
    Permission,
    PushSubscriptionRecord,
    SubscriptionState,
)
from services.errors import RemoteMirrorFailed
from services.platform import PushPlatform
from services.registrar import RemoteRegistrar


logger = get_logger("push")


def url_base64_to_bytes(value: str) -> bytes:
    """Decode a URL-safe base64 string whose padding may have been stripped."""

    padding = "=" * ((4 - len(value) % 4) % 4)
    return base64.urlsafe_b64decode(value + padding)


def default_test_notification() -> Notification:
    return Notification(
        title=PUSH.notification_title,
        body=PUSH.notification_body,
        icon=PUSH.notification_icon,
        badge=PUSH.notification_badge,
        tag=PUSH.test_tag,
    )


def notification_from_push(payload: Union[bytes, str, None]) -> Notification:
    """Build the notification for an incoming push message.

    A JSON object payload is merged over the defaults; any other payload
    becomes the body as plain text.
    """

    data = {
        "title": PUSH.notification_title,
        "body": PUSH.incoming_body,
        "icon": PUSH.notification_icon,
        "badge": PUSH.notification_badge,
        "tag": PUSH.incoming_tag,
    }
    if payload:
        text = payload.decode("utf-8", errors="replace") if isinstance(payload, bytes) else str(payload)
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            data.update({k: v for k, v in parsed.items() if k in data})
        else:
            data["body"] = text
    return Notification(
        title=str(data["title"]),
        body=str(data["body"]),
        icon=data["icon"],
        badge=data["badge"],
        tag=data["tag"],
    )


class SubscriptionManager:
    """Owns the single push subscription of this installation.

    States: ``unsupported``, ``unsubscribed``, ``permission_denied`` and
    ``subscribed``. Failures come back as ``False``; on a platform error the
    state reverts to what it was before the attempt.
    """

    def __init__(
        self,
        platform: PushPlatform,
        registrar: RemoteRegistrar,
        *,
        application_server_key: str = PUSH.vapid_public_key,
        test_notification: Optional[Notification] = None,
    ) -> None:
        self.platform = platform
        self.registrar = registrar
        self.application_server_key = application_server_key
        self.test_notification = test_notification or default_test_notification()
        self._state: Optional[SubscriptionState] = None
        self._subscription: Optional[PushSubscriptionRecord] = None
        self._permission: Optional[Permission] = None
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    @property
    def state(self) -> Optional[SubscriptionState]:
        """Current state, ``None`` until :meth:`initialize` has probed the platform."""
        return self._state

    @property
    def permission(self) -> Optional[Permission]:
        return self._permission

    @property
    def subscription(self) -> Optional[PushSubscriptionRecord]:
        return self._subscription

    @property
    def is_busy(self) -> bool:
        return self._lock.locked()

    @property
    def is_supported(self) -> bool:
        return self._state is not None and self._state is not SubscriptionState.UNSUPPORTED

    async def initialize(self) -> SubscriptionState:
        if self._state is not None:
            return self._state
        if not self.platform.is_supported():
            logger.info("Push notifications are not supported on this platform")
            self._state = SubscriptionState.UNSUPPORTED
            return self._state
        try:
            permission = await self.platform.permission()
            existing = await self.platform.get_current_subscription()
        except Exception as exc:
            logger.error("Push capability probe failed: %s", exc)
            self._state = SubscriptionState.UNSUBSCRIBED
            return self._state

        self._permission = permission
        if permission == Permission.DENIED:
            self._state = SubscriptionState.PERMISSION_DENIED
        elif existing is not None and permission == Permission.GRANTED:
            self._subscription = existing
            self._state = SubscriptionState.SUBSCRIBED
        else:
            self._state = SubscriptionState.UNSUBSCRIBED
        logger.info("Push subscription state: %s", self._state.value)
        return self._state

    # ------------------------------------------------------------------
    async def subscribe(self) -> bool:
        state = await self.initialize()
        if state is SubscriptionState.UNSUPPORTED:
            return False
        if state is SubscriptionState.SUBSCRIBED:
            return True
        if self._lock.locked():
            logger.warning("Subscribe rejected: another subscription change is in progress")
            return False

        async with self._lock:
            previous = self._state
            try:
                permission = await self.platform.request_permission()
                self._permission = permission
                if permission != Permission.GRANTED:
                    logger.info("Push permission denied")
                    self._state = SubscriptionState.PERMISSION_DENIED
                    return False
                record = await self.platform.subscribe(url_base64_to_bytes(self.application_server_key))
            except Exception as exc:
                logger.error("Subscription failed: %s", exc)
                self._state = previous
                return False

            try:
                await self.registrar.save(record)
            except RemoteMirrorFailed as exc:
                logger.warning("Failed to save subscription on server: %s", exc)

            self._subscription = record
            self._state = SubscriptionState.SUBSCRIBED
            logger.info("Subscribed successfully")
            return True

    async def unsubscribe(self) -> bool:
        state = await self.initialize()
        if state is not SubscriptionState.SUBSCRIBED:
            logger.info("Unsubscribe ignored in state %s", state.value)
            return False
        if self._lock.locked():
            logger.warning("Unsubscribe rejected: another subscription change is in progress")
            return False

        async with self._lock:
            previous = self._state
            try:
                record = self._subscription or await self.platform.get_current_subscription()
                if record is not None:
                    await self.platform.unsubscribe(record)
            except Exception as exc:
                logger.error("Unsubscription failed: %s", exc)
                self._state = previous
                return False

            if record is not None:
                try:
                    await self.registrar.remove(record.endpoint)
                except RemoteMirrorFailed as exc:
                    logger.warning("Failed to remove subscription on server: %s", exc)

            self._subscription = None
            self._state = SubscriptionState.UNSUBSCRIBED
            logger.info("Unsubscribed successfully")
            return True

    async def send_local_test(self) -> bool:
        try:
            permission = await self.platform.permission()
            self._permission = permission
            if permission != Permission.GRANTED:
                logger.info("Test notification skipped, permission is %s", getattr(permission, "value", permission))
                return False
            await self.platform.show_notification(self.test_notification)
        except Exception as exc:
            logger.error("Test notification failed: %s", exc)
            return False
        return True

    async def on_push(self, payload: Union[bytes, str, None]) -> Optional[Notification]:
        """Show an incoming push message; returns what was shown."""

        logger.info("Push message received")
        notification = notification_from_push(payload)
        try:
            await self.platform.show_notification(notification)
        except Exception as exc:
            logger.error("Showing push message failed: %s", exc)
            return None
        return notification


__all__ = [
    "SubscriptionManager",
    "default_test_notification",
    "notification_from_push",
    "url_base64_to_bytes",
]
