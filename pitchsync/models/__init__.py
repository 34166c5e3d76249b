"""
Models package for PitchSync.

This package contains the core data models used throughout the application.
"""
from .player import Player, PitchCoordinate, PitchPosition
from .substitution import SubstitutionEvent, PositionSwap, Goal
from .timer_state import TimerState
from .pitch_state import PitchBoardState
from .formation import (
    Formation, FORMATIONS, apply_formation, get_formation, normalize_team_size,
    position_from_coords, team_size_number
)
from .game_summary import DuePrompt, FinishedGameSummary, PlayerTimeForecast

__all__ = [
    "Player", "PitchCoordinate", "PitchPosition", "SubstitutionEvent",
    "PositionSwap", "Goal", "TimerState", "PitchBoardState", "Formation",
    "FORMATIONS", "apply_formation", "get_formation", "normalize_team_size",
    "position_from_coords", "team_size_number", "DuePrompt",
    "FinishedGameSummary", "PlayerTimeForecast"
]
