from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional


@dataclass
class SyncState:
    """Observable queue status; lives on a single queue instance, never persisted."""

    pending_count: int = 0
    is_syncing: bool = False
    last_sync_time: Optional[datetime] = None

    def snapshot(self) -> "SyncState":
        return replace(self)


__all__ = ["SyncState"]
