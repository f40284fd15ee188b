"""Runtime configuration helpers for composer engines."""
from __future__ import annotations

import logging
import os
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_TICK_HZ = 60
DEFAULT_TRANSFER_CHUNK_BYTES = 256 * 1024
DEFAULT_TRANSFER_YIELD_EVERY = 4
DEFAULT_GESTURE_SYNC_INTERVAL_MS = 100
DEFAULT_GESTURE_LONG_PRESS_MS = 1000
DEFAULT_PLACEMENT_RETRY_ATTEMPTS = 5
DEFAULT_PLACEMENT_RETRY_BACKOFF_MS = 200


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def _get_int(name: str, default: int, minimum: int = 1) -> int:
    raw = _get_env(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}, using {default}")
        return default
    if value < minimum:
        logger.warning(f"Ignoring {name}={value} below minimum {minimum}, using {default}")
        return default
    return value


def _get_bool(name: str, default: bool) -> bool:
    raw = _get_env(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def get_env() -> Optional[str]:
    return _get_env("ENV") or _get_env("APP_ENV")


def get_tick_hz() -> int:
    return _get_int("ANIMATION_TICK_HZ", DEFAULT_TICK_HZ)


def get_transfer_chunk_bytes() -> int:
    return _get_int("TRANSFER_CHUNK_BYTES", DEFAULT_TRANSFER_CHUNK_BYTES)


def get_transfer_yield_every() -> int:
    return _get_int("TRANSFER_YIELD_EVERY", DEFAULT_TRANSFER_YIELD_EVERY)


def get_gesture_sync_interval_ms() -> int:
    return _get_int("GESTURE_SYNC_INTERVAL_MS", DEFAULT_GESTURE_SYNC_INTERVAL_MS, minimum=0)


def get_gesture_long_press_ms() -> int:
    return _get_int("GESTURE_LONG_PRESS_MS", DEFAULT_GESTURE_LONG_PRESS_MS)


def get_placement_retry_attempts() -> int:
    return _get_int("PLACEMENT_RETRY_ATTEMPTS", DEFAULT_PLACEMENT_RETRY_ATTEMPTS)


def get_placement_retry_backoff_ms() -> int:
    return _get_int("PLACEMENT_RETRY_BACKOFF_MS", DEFAULT_PLACEMENT_RETRY_BACKOFF_MS, minimum=0)


def forward_logs_to_host() -> bool:
    return _get_bool("BRIDGE_FORWARD_LOGS", True)


def config_snapshot() -> Dict[str, Union[int, bool, str, None]]:
    return {
        "env": get_env(),
        "tick_hz": get_tick_hz(),
        "transfer_chunk_bytes": get_transfer_chunk_bytes(),
        "transfer_yield_every": get_transfer_yield_every(),
        "gesture_sync_interval_ms": get_gesture_sync_interval_ms(),
        "gesture_long_press_ms": get_gesture_long_press_ms(),
        "placement_retry_attempts": get_placement_retry_attempts(),
        "placement_retry_backoff_ms": get_placement_retry_backoff_ms(),
        "forward_logs": forward_logs_to_host(),
    }
