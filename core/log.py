"""Logger setup shared by the queue services."""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from core.settings import SYNC_LOG_PATH


ROOT_LOGGER = "offline_queue"


def _ensure_root_logger() -> logging.Logger:
    logger = logging.getLogger(ROOT_LOGGER)
    if not logger.handlers:
        Path(SYNC_LOG_PATH).parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(SYNC_LOG_PATH, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``offline_queue.<name>``, attaching the rotating sync log on first use."""

    _ensure_root_logger()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def read_log_tail(lines: int = 100, path: Path | str = SYNC_LOG_PATH) -> str:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            content = fh.readlines()
    except FileNotFoundError:
        return "Sync log has not been created yet."
    content = [line.rstrip("\n") for line in content[-lines:]]
    return "\n".join(content)


__all__ = ["ROOT_LOGGER", "get_logger", "read_log_tail"]
