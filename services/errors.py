"""Failure kinds raised inside the queue components.

Each component converts these into a plain outcome (``bool``, ``None`` or an
empty result) before returning to its caller.
"""
from __future__ import annotations


class OfflineQueueError(Exception):
    """Base class for offline queue failures."""


class UnsupportedPlatform(OfflineQueueError):
    """Push or background-delivery capability is absent."""


class PermissionDeniedError(OfflineQueueError):
    """The user declined notification permission."""


class StorageUnavailable(OfflineQueueError):
    """The durable store could not be opened or written."""


class DeliveryFailed(OfflineQueueError):
    """A pending action was not acknowledged by the remote server."""

    def __init__(self, action_id: int, reason: str):
        super().__init__(f"action {action_id}: {reason}")
        self.action_id = action_id
        self.reason = reason


class RemoteMirrorFailed(OfflineQueueError):
    """Registering or removing a subscription on the server failed."""


__all__ = [
    "DeliveryFailed",
    "OfflineQueueError",
    "PermissionDeniedError",
    "RemoteMirrorFailed",
    "StorageUnavailable",
    "UnsupportedPlatform",
]
