"""Versioned schema migrations for the offline queue database."""

from __future__ import annotations

from typing import Callable, List, Tuple

from sqlalchemy import text
from sqlmodel import SQLModel

from models.pending_action import PendingActionRecord


SCHEMA_VERSION = 1


def current_version(conn) -> int:
    return int(conn.execute(text("PRAGMA user_version")).scalar() or 0)


def _set_version(conn, version: int) -> None:
    # PRAGMA does not accept bound parameters
    conn.execute(text(f"PRAGMA user_version = {int(version)}"))


def create_pending_actions(conn) -> None:
    SQLModel.metadata.create_all(conn, tables=[PendingActionRecord.__table__], checkfirst=True)
    conn.execute(
        text(
            """
            CREATE INDEX IF NOT EXISTS ix_pending_actions_enqueued_at
            ON pending_actions (enqueued_at)
            """
        )
    )


UPGRADES: List[Tuple[int, Callable]] = [
    (1, create_pending_actions),
]


def run_all(engine) -> int:
    """Bring the schema up to ``SCHEMA_VERSION`` and return the resulting version."""

    with engine.begin() as conn:
        version = current_version(conn)
        for target, upgrade in UPGRADES:
            if version < target:
                upgrade(conn)
                _set_version(conn, target)
                version = target
    return version


__all__ = ["SCHEMA_VERSION", "current_version", "run_all"]
