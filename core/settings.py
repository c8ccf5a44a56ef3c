"""Centralized application configuration."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os
import sys


def get_default_data_dir(
    app_name: str,
    *,
    platform: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """Return an OS-specific user data directory for ``app_name``."""

    platform_id = (platform or sys.platform).lower()
    environ = dict(os.environ if env is None else env)
    home_dir = Path(home or Path.home())
    sanitized = app_name.strip() or "app"
    sanitized = sanitized.replace("/", "-").replace("\\", "-")

    if platform_id.startswith("win"):
        base = Path(environ.get("APPDATA") or home_dir / "AppData" / "Roaming")
    elif platform_id == "darwin":
        base = Path(environ.get("APPDATA") or home_dir / "Library" / "Application Support")
    else:
        base = Path(environ.get("XDG_DATA_HOME") or home_dir / ".local" / "share")

    return (base.expanduser() / sanitized)


APP_NAME = "OfflineQueue"


DATA_DIR = get_default_data_dir(APP_NAME)
STORAGE_DIR = DATA_DIR / "storage"
LOG_DIR = DATA_DIR / "logs"

for _dir in (DATA_DIR, STORAGE_DIR, LOG_DIR):
    _dir.mkdir(parents=True, exist_ok=True)


DB_PATH = STORAGE_DIR / "offline_queue.db"
CONFIG_PATH = DATA_DIR / "config.json"
DEVICE_ID_PATH = DATA_DIR / "device_id.txt"
SYNC_LOG_PATH = LOG_DIR / "sync.log"


@dataclass(frozen=True)
class RemoteSettings:
    base_url: str = os.environ.get("OFFLINE_QUEUE_REMOTE_URL", "http://localhost:3000")
    action_path: str = "/api/trpc/ai.approveAction"
    save_subscription_path: str = "/api/trpc/ai.savePushSubscription"
    remove_subscription_path: str = "/api/trpc/ai.removePushSubscription"
    probe_path: str = "/"
    probe_interval_sec: int = 15
    timeout_sec: float = 10.0


REMOTE = RemoteSettings()


@dataclass(frozen=True)
class QueueSettings:
    sync_tag: str = "sync-actions"
    delivery_batch_limit: Optional[int] = None


QUEUE = QueueSettings()


@dataclass(frozen=True)
class PushSettings:
    # application-wide VAPID public key (URL-safe base64)
    vapid_public_key: str = (
        "BEl62iUYgUivxIkv69yViEuiBIa-Ib9-SkvMeAtA3LFgDzkrxZJjSgSnfckjBJuBkr3qBUYIHBQFLXYp5Nksh8U"
    )
    service_url: Optional[str] = os.environ.get("OFFLINE_QUEUE_PUSH_URL") or None
    notification_title: str = "Coco Litorâneo"
    notification_body: str = "Notificações push estão funcionando!"
    notification_icon: str = "/icons/icon-192x192.png"
    notification_badge: str = "/icons/badge-72x72.png"
    test_tag: str = "test"
    # fallback contents for incoming messages
    incoming_body: str = "Nova notificação"
    incoming_tag: str = "default"
    # pubsub topic a relay listener publishes incoming payloads on
    message_topic: str = "push-message"


PUSH = PushSettings()


@dataclass(frozen=True)
class UISettings:
    app_title: str = APP_NAME
    theme_mode: str = "system"
    color_scheme_seed: str = "#4F46E5"
    window_min_width: int = 520
    window_min_height: int = 480
    log_lines: int = 100


UI = UISettings()


__all__ = [
    "APP_NAME",
    "DATA_DIR",
    "STORAGE_DIR",
    "LOG_DIR",
    "DB_PATH",
    "CONFIG_PATH",
    "DEVICE_ID_PATH",
    "SYNC_LOG_PATH",
    "REMOTE",
    "QUEUE",
    "PUSH",
    "UI",
    "get_default_data_dir",
]
