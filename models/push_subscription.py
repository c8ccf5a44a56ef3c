"""Value objects exchanged with the push platform and the registrar."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional


class SubscriptionState(str, Enum):
    UNSUPPORTED = "unsupported"
    UNSUBSCRIBED = "unsubscribed"
    PERMISSION_DENIED = "permission_denied"
    SUBSCRIBED = "subscribed"


class Permission(str, Enum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


@dataclass(frozen=True)
class SubscriptionKeys:
    p256dh: str
    auth: str


@dataclass(frozen=True)
class PushSubscriptionRecord:
    endpoint: str
    keys: SubscriptionKeys

    def to_json(self) -> dict:
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.keys.p256dh, "auth": self.keys.auth},
        }

    @classmethod
    def from_json(cls, data: Optional[Mapping[str, Any]]) -> Optional["PushSubscriptionRecord"]:
        if not data or not data.get("endpoint"):
            return None
        keys = data.get("keys") or {}
        return cls(
            endpoint=str(data["endpoint"]),
            keys=SubscriptionKeys(p256dh=str(keys.get("p256dh", "")), auth=str(keys.get("auth", ""))),
        )


@dataclass(frozen=True)
class Notification:
    title: str
    body: str
    icon: Optional[str] = None
    badge: Optional[str] = None
    tag: Optional[str] = None


__all__ = [
    "Notification",
    "Permission",
    "PushSubscriptionRecord",
    "SubscriptionKeys",
    "SubscriptionState",
]
