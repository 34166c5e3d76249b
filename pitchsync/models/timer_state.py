"""
TimerState model for the PitchSync live game engine.

The timer never relies on a live interval: "now" is always reconstructed from
the stored elapsed seconds, the running flag and the time of the last write.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..utils import DEFAULT_MINUTES_PER_HALF, ms_to_ts, ts_to_ms


@dataclass
class TimerState:
    """
    Represents the half/elapsed-time timer of a game.

    Attributes:
        minutes_per_half: Configured half length in minutes
        current_half: Active half (1 or 2)
        elapsed_seconds: Seconds accumulated in the active half at the last write
        is_running: Whether the clock is running
        sound_enabled: Whether audible cues are wanted
        last_update_time: Epoch seconds of the last write
        team_id: Team the timer belongs to
        team_name: Display name for notifications
    """
    minutes_per_half: int = DEFAULT_MINUTES_PER_HALF
    current_half: int = 1
    elapsed_seconds: int = 0
    is_running: bool = False
    sound_enabled: bool = True
    last_update_time: float = 0.0
    team_id: Optional[str] = None
    team_name: Optional[str] = None

    @property
    def half_duration_seconds(self) -> int:
        return int(self.minutes_per_half) * 60

    def current_elapsed(self, now: float) -> int:
        """
        Reconstruct elapsed seconds in the active half.

        A paused timer reports ``elapsed_seconds`` no matter how much wall
        time has passed since the last write.
        """
        if not self.is_running:
            return self.elapsed_seconds
        delta = int(now - self.last_update_time)
        return self.elapsed_seconds + max(0, delta)

    def game_seconds(self, now: float) -> int:
        """Total game seconds: active half capped at its length, plus half one if in half two."""
        seconds = min(self.current_elapsed(now), self.half_duration_seconds)
        if self.current_half == 2:
            seconds += self.half_duration_seconds
        return seconds

    def is_full_time(self, now: float) -> bool:
        return self.current_half == 2 and self.current_elapsed(now) >= self.half_duration_seconds

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the stored timer record layout (times in epoch milliseconds)."""
        return {
            "minutesPerHalf": self.minutes_per_half,
            "currentHalf": self.current_half,
            "elapsedSeconds": self.elapsed_seconds,
            "isRunning": self.is_running,
            "soundEnabled": self.sound_enabled,
            "lastUpdateTime": ts_to_ms(self.last_update_time),
            "teamId": self.team_id,
            "teamName": self.team_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimerState":
        """
        Create TimerState from a stored record.

        Raises:
            ValueError: If the half is not 1 or 2 or numbers are malformed
        """
        half = int(data.get("currentHalf", 1))
        if half not in (1, 2):
            raise ValueError(f"Invalid half: {half}")
        return cls(
            minutes_per_half=int(data.get("minutesPerHalf", DEFAULT_MINUTES_PER_HALF)),
            current_half=half,
            elapsed_seconds=max(0, int(data.get("elapsedSeconds", 0))),
            is_running=bool(data.get("isRunning", False)),
            sound_enabled=bool(data.get("soundEnabled", True)),
            last_update_time=ms_to_ts(data.get("lastUpdateTime")),
            team_id=data.get("teamId"),
            team_name=data.get("teamName"),
        )
