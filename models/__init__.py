"""Data models exposed by the offline queue."""
from .pending_action import PendingAction, PendingActionRecord
from .push_subscription import (
    Notification,
    Permission,
    PushSubscriptionRecord,
    SubscriptionKeys,
    SubscriptionState,
)
from .sync_state import SyncState

__all__ = [
    "Notification",
    "PendingAction",
    "PendingActionRecord",
    "Permission",
    "PushSubscriptionRecord",
    "SubscriptionKeys",
    "SubscriptionState",
    "SyncState",
]
