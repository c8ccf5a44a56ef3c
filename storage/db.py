# storage/db.py
from __future__ import annotations

from pathlib import Path

from sqlalchemy.engine import Engine
from sqlmodel import Session, create_engine

from core.settings import DB_PATH
from storage import migrations


_engine: Engine | None = None


def create_store_engine(path: Path | str = DB_PATH) -> Engine:
    # sessions are opened from worker threads
    return create_engine(
        f"sqlite:///{Path(path).as_posix()}",
        echo=False,
        connect_args={"check_same_thread": False},
    )


def init_db(engine: Engine | None = None) -> int:
    actual = engine or get_engine()
    url_path = actual.url.database
    if url_path and url_path != ":memory:":
        Path(url_path).parent.mkdir(parents=True, exist_ok=True)
    return migrations.run_all(actual)


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_store_engine(DB_PATH)
    return _engine


def get_session(engine: Engine | None = None) -> Session:
    return Session(engine or get_engine())


__all__ = ["create_store_engine", "get_engine", "get_session", "init_db"]
