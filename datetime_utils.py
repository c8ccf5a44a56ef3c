from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


UTC = timezone.utc


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def epoch_millis(dt: Optional[datetime] = None) -> int:
    """Milliseconds since the Unix epoch for ``dt`` (now when omitted)."""

    value = ensure_utc(dt) or utc_now()
    return int(value.timestamp() * 1000)


def format_local(dt: Optional[datetime], placeholder: str = "never") -> str:
    if dt is None:
        return placeholder
    return ensure_utc(dt).astimezone().strftime("%Y-%m-%d %H:%M:%S %Z")


__all__ = [
    "UTC",
    "ensure_utc",
    "epoch_millis",
    "format_local",
    "utc_now",
]
