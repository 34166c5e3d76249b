"""Environment-driven settings for PitchSync."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from .utils.constants import MONITOR_POLL_SECONDS, SYNC_INTERVAL_SECONDS


def _float_env(name: str, default: float, lower: float, upper: float) -> float:
    try:
        v = float(str(os.getenv(name, str(default)) or "").strip())
    except ValueError:
        v = default
    if v < lower:
        v = lower
    if v > upper:
        v = upper
    return v


def state_dir() -> Path:
    return Path(os.getenv("PITCHSYNC_STATE_DIR", "data/session")).resolve()


def remote_url() -> Optional[str]:
    url = str(os.getenv("PITCHSYNC_REMOTE_URL", "") or "").strip()
    return url.rstrip("/") or None


def remote_key() -> Optional[str]:
    return str(os.getenv("PITCHSYNC_REMOTE_KEY", "") or "").strip() or None


def user_id() -> Optional[str]:
    return str(os.getenv("PITCHSYNC_USER_ID", "") or "").strip() or None


def monitor_poll_seconds() -> float:
    return _float_env("PITCHSYNC_MONITOR_POLL_SECONDS", MONITOR_POLL_SECONDS, 1.0, 60.0)


def sync_interval_seconds() -> float:
    return _float_env("PITCHSYNC_SYNC_INTERVAL_SECONDS", SYNC_INTERVAL_SECONDS, 2.0, 300.0)


def http_timeout_seconds() -> float:
    return _float_env("PITCHSYNC_HTTP_TIMEOUT", 10.0, 1.0, 60.0)
