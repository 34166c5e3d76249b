"""
Utilities package for PitchSync.

This package contains utility functions and constants used throughout the application.
"""
from .time_utils import fmt_mmss, now_ts, ts_to_ms, ms_to_ts
from .constants import (
    APP_TITLE, TIMER_STORAGE_KEY, PITCH_STATE_KEY, PITCH_BOARD_OPEN_KEY,
    STORAGE_KEYS, DEFAULT_MINUTES_PER_HALF, MIN_MINUTES_PER_HALF,
    MAX_MINUTES_PER_HALF, MIN_SUB_INTERVAL_SECONDS,
    FULL_PLAN_MIN_WINDOW_SECONDS, DEFAULT_ROTATION_SPEED, MONITOR_POLL_SECONDS,
    SYNC_INTERVAL_SECONDS, SUPPORTED_TEAM_SIZES, DEFAULT_TEAM_SIZE
)

__all__ = [
    "fmt_mmss", "now_ts", "ts_to_ms", "ms_to_ts", "APP_TITLE",
    "TIMER_STORAGE_KEY", "PITCH_STATE_KEY", "PITCH_BOARD_OPEN_KEY", "STORAGE_KEYS",
    "DEFAULT_MINUTES_PER_HALF", "MIN_MINUTES_PER_HALF", "MAX_MINUTES_PER_HALF",
    "MIN_SUB_INTERVAL_SECONDS",
    "FULL_PLAN_MIN_WINDOW_SECONDS", "DEFAULT_ROTATION_SPEED",
    "MONITOR_POLL_SECONDS", "SYNC_INTERVAL_SECONDS", "SUPPORTED_TEAM_SIZES",
    "DEFAULT_TEAM_SIZE"
]
