"""Stable identifier for this client installation."""
from __future__ import annotations

import os
import uuid
from pathlib import Path
from typing import Optional

from core.settings import DEVICE_ID_PATH


def _read_existing(path: Path) -> str | None:
    try:
        if path.exists():
            value = path.read_text(encoding="utf-8").strip()
            if value:
                return value
    except OSError:
        return None
    return None


def _write_value(path: Path, value: str) -> None:
    tmp = path.with_suffix(".tmp")
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, path)
    finally:
        if tmp.exists():
            try:
                tmp.unlink()
            except OSError:
                pass


def get_installation_id(path: Optional[Path] = None) -> str:
    """Return the id sent to the registrar; generated once per installation."""

    target = Path(path or DEVICE_ID_PATH)
    existing = _read_existing(target)
    if existing:
        return existing

    new_id = uuid.uuid4().hex
    try:
        _write_value(target, new_id)
    except OSError:
        # unpersisted ids are regenerated on the next start
        return new_id
    return new_id


__all__ = ["get_installation_id"]
