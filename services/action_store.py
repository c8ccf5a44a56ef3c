from __future__ import annotations

import asyncio
import json
import threading
from typing import Any, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from core.log import get_logger
from datetime_utils import epoch_millis
from models.pending_action import PendingAction, PendingActionRecord
from services.errors import StorageUnavailable
from storage.db import get_engine, get_session, init_db


logger = get_logger("store")


class ActionStore:
    """Durable log of actions accepted locally but not yet delivered.

    Every operation is a coroutine; the SQLite work runs in a worker thread.
    The schema is created or upgraded the first time the database is opened.
    A failed open is retried on the next call.
    """

    def __init__(self, engine: Optional[Engine] = None) -> None:
        self._engine = engine
        self._opened = False
        self._open_lock = threading.Lock()

    # ------------------------------------------------------------------
    def _open(self) -> Engine:
        engine = self._engine or get_engine()
        if self._opened:
            return engine
        with self._open_lock:
            if not self._opened:
                try:
                    init_db(engine)
                except (SQLAlchemyError, OSError) as exc:
                    raise StorageUnavailable(f"cannot open action store: {exc}") from exc
                self._opened = True
        return engine

    def _session(self) -> Session:
        return get_session(self._open())

    # ------------------------------------------------------------------
    # Blocking implementations
    def _add_sync(self, payload: str) -> int:
        try:
            with self._session() as session:
                record = PendingActionRecord(payload=payload, enqueued_at=epoch_millis())
                session.add(record)
                session.commit()
                session.refresh(record)
                return int(record.id)
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"cannot store action: {exc}") from exc

    def _count_sync(self) -> int:
        with self._session() as session:
            return int(session.exec(select(func.count()).select_from(PendingActionRecord)).one())

    def _list_sync(self, limit: Optional[int]) -> List[PendingAction]:
        with self._session() as session:
            stmt = select(PendingActionRecord).order_by(PendingActionRecord.id.asc())
            if limit:
                stmt = stmt.limit(limit)
            rows = list(session.exec(stmt))

        result: List[PendingAction] = []
        for row in rows:
            try:
                payload = json.loads(row.payload)
            except json.JSONDecodeError:
                logger.warning("Pending action %s has an unreadable payload", row.id)
                payload = None
            result.append(PendingAction(id=row.id, payload=payload, enqueued_at=row.enqueued_at))
        return result

    def _remove_sync(self, ids: List[int]) -> int:
        with self._session() as session:
            stmt = select(PendingActionRecord).where(PendingActionRecord.id.in_(ids))
            rows = list(session.exec(stmt))
            for row in rows:
                session.delete(row)
            session.commit()
            return len(rows)

    # ------------------------------------------------------------------
    # Public API
    async def add(self, payload: Any) -> int:
        """Persist ``payload`` and return its id.

        Raises :class:`StorageUnavailable` when the database cannot be used;
        the action is then lost, not queued.
        """

        encoded = json.dumps(payload, ensure_ascii=False)
        action_id = await asyncio.to_thread(self._add_sync, encoded)
        logger.debug("Queued action %s", action_id)
        return action_id

    async def count(self) -> int:
        try:
            return await asyncio.to_thread(self._count_sync)
        except (StorageUnavailable, SQLAlchemyError) as exc:
            logger.warning("Pending count unavailable: %s", exc)
            return 0

    async def list_pending(self, limit: Optional[int] = None) -> List[PendingAction]:
        try:
            return await asyncio.to_thread(self._list_sync, limit)
        except (StorageUnavailable, SQLAlchemyError) as exc:
            logger.warning("Pending actions unavailable: %s", exc)
            return []

    async def remove_delivered(self, ids: Iterable[int]) -> int:
        """Delete the given ids; unknown ids are ignored."""

        targets = sorted({int(i) for i in ids})
        if not targets:
            return 0
        try:
            removed = await asyncio.to_thread(self._remove_sync, targets)
        except (StorageUnavailable, SQLAlchemyError) as exc:
            logger.error("Failed to remove delivered actions %s: %s", targets, exc)
            return 0
        logger.debug("Removed %s of %s delivered actions", removed, len(targets))
        return removed


__all__ = ["ActionStore"]
