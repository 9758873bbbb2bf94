from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv

from relay.services.formatter import MAX_ATTACHMENT_SIZE
from relay.services.presence_service import DEFAULT_COOLDOWN, DEFAULT_PRESENCE_URL
from wire import DEFAULT_PORT, ConfigError

DEFAULT_RELAY_CONFIG: Dict[str, Any] = {
    "host": "0.0.0.0",
    "port": DEFAULT_PORT,
    "log_level": "INFO",
    "health_check_channel_id": None,
    "cloud_server": False,
    "presence_cooldown": DEFAULT_COOLDOWN,
    "presence_url": DEFAULT_PRESENCE_URL,
    "max_attachment_size": MAX_ATTACHMENT_SIZE,
    "max_frame_size": 0,  # 0 = no cap
    "read_timeout": 0,  # 0 = wait forever
    "adapter": None,
}

RELAY_CONFIG = DEFAULT_RELAY_CONFIG.copy()


def load_relay_config(env_path: str = ".env") -> Dict[str, Any]:
    """Load relay settings from env/.env. Raises ``ConfigError`` on bad values."""
    if Path(env_path).exists():
        load_dotenv(env_path)
    RELAY_CONFIG["host"] = os.getenv("RELAY_HOST", RELAY_CONFIG["host"])
    RELAY_CONFIG["port"] = _int("RELAY_PORT", RELAY_CONFIG["port"])
    RELAY_CONFIG["log_level"] = os.getenv("RELAY_LOG_LEVEL", RELAY_CONFIG["log_level"])
    RELAY_CONFIG["cloud_server"] = "CLOUD_SERVER" in os.environ
    RELAY_CONFIG["presence_cooldown"] = _float("RELAY_PRESENCE_COOLDOWN", RELAY_CONFIG["presence_cooldown"])
    RELAY_CONFIG["presence_url"] = os.getenv("RELAY_PRESENCE_URL", RELAY_CONFIG["presence_url"])
    RELAY_CONFIG["max_attachment_size"] = _int("RELAY_MAX_ATTACHMENT_SIZE", RELAY_CONFIG["max_attachment_size"])
    RELAY_CONFIG["max_frame_size"] = _int("RELAY_MAX_FRAME_SIZE", RELAY_CONFIG["max_frame_size"])
    RELAY_CONFIG["read_timeout"] = _float("RELAY_READ_TIMEOUT", RELAY_CONFIG["read_timeout"])
    RELAY_CONFIG["adapter"] = os.getenv("RELAY_ADAPTER", RELAY_CONFIG["adapter"])

    channel = os.getenv("HEALTH_CHECK_CHANNEL_ID")
    if not channel:
        raise ConfigError("HEALTH_CHECK_CHANNEL_ID is required")
    RELAY_CONFIG["health_check_channel_id"] = _int("HEALTH_CHECK_CHANNEL_ID", 0)

    if RELAY_CONFIG["max_attachment_size"] <= 0:
        raise ConfigError("RELAY_MAX_ATTACHMENT_SIZE must be positive")
    return RELAY_CONFIG


def _int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc


def _float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {value!r}") from exc


__all__ = ["DEFAULT_RELAY_CONFIG", "RELAY_CONFIG", "load_relay_config"]
