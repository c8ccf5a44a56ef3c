"""SQLModel table for actions waiting to be delivered."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from sqlmodel import Field, SQLModel

from datetime_utils import epoch_millis


class PendingActionRecord(SQLModel, table=True):
    __tablename__ = "pending_actions"
    # AUTOINCREMENT keeps ids monotonic: SQLite never hands out a deleted id again
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    payload: str
    enqueued_at: int = Field(default_factory=epoch_millis)


@dataclass(frozen=True)
class PendingAction:
    id: int
    payload: Any
    enqueued_at: int

    def to_json(self) -> dict:
        return {"id": self.id, "action": self.payload, "timestamp": self.enqueued_at}


__all__ = ["PendingAction", "PendingActionRecord"]
