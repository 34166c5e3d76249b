"""
Constants for the PitchSync live game engine.

This module contains configuration constants used throughout the application.
"""

# Application metadata
APP_TITLE = "PitchSync"

# Local record keys (one JSON blob per key)
TIMER_STORAGE_KEY = "pitch-board-timer-state"
PITCH_STATE_KEY = "pitch-board-state"
PITCH_BOARD_OPEN_KEY = "pitch-board-open"
STORAGE_KEYS = (TIMER_STORAGE_KEY, PITCH_STATE_KEY, PITCH_BOARD_OPEN_KEY)

# Game timing defaults
DEFAULT_MINUTES_PER_HALF = 25
MIN_MINUTES_PER_HALF = 1
MAX_MINUTES_PER_HALF = 60

# Substitution planning
MIN_SUB_INTERVAL_SECONDS = 120  # spacing used when recalculating mid-game
FULL_PLAN_MIN_WINDOW_SECONDS = 45  # spacing between windows of a full plan
DEFAULT_ROTATION_SPEED = 2  # 1 = slow, 2 = medium, 3 = fast

# Polling cadence
MONITOR_POLL_SECONDS = 5
SYNC_INTERVAL_SECONDS = 10

# Team sizes (size code -> players on pitch)
SUPPORTED_TEAM_SIZES = ["4", "7", "9", "11"]
DEFAULT_TEAM_SIZE = 11

# Remote table names
ACTIVE_GAMES_TABLE = "active_games"
NOTIFICATIONS_TABLE = "notifications"
NOTIFICATION_PREFERENCES_TABLE = "notification_preferences"
