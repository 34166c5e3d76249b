"""Timer service for the PitchSync live game engine."""

from typing import Dict, Optional, Tuple

from ..models import TimerState
from ..utils import MAX_MINUTES_PER_HALF, MIN_MINUTES_PER_HALF, now_ts


class TimerService:
    """
    Service for controlling the two-half game timer.

    Every control folds the running time into ``elapsed_seconds`` and stamps
    ``last_update_time``, so readers can always reconstruct "now" from the
    stored record alone.
    """

    def __init__(self, timer_state: TimerState):
        self.timer_state = timer_state

    # ------------------------------------------------------------------
    # Configuration helpers
    # ------------------------------------------------------------------
    def configure(
        self,
        *,
        minutes_per_half: Optional[int] = None,
        team_id: Optional[str] = None,
        team_name: Optional[str] = None,
        sound_enabled: Optional[bool] = None,
    ) -> None:
        """Configure half length, team and sound preference.

        Raises:
            ValueError: If changing the half length after the game has started
                        or with an out-of-range value.
        """

        if minutes_per_half is not None:
            if self.has_started():
                raise ValueError("Cannot change half length after the game has started")
            minutes = int(minutes_per_half)
            if not MIN_MINUTES_PER_HALF <= minutes <= MAX_MINUTES_PER_HALF:
                raise ValueError(
                    f"Half length must be between {MIN_MINUTES_PER_HALF} "
                    f"and {MAX_MINUTES_PER_HALF} minutes"
                )
            self.timer_state.minutes_per_half = minutes

        if team_id is not None:
            self.timer_state.team_id = team_id
        if team_name is not None:
            self.timer_state.team_name = team_name
        if sound_enabled is not None:
            self.timer_state.sound_enabled = bool(sound_enabled)

    def has_started(self) -> bool:
        return (
            self.timer_state.is_running
            or self.timer_state.elapsed_seconds > 0
            or self.timer_state.current_half == 2
        )

    # ------------------------------------------------------------------
    # Core timer controls
    # ------------------------------------------------------------------
    def start(self) -> None:
        """Start or resume the clock in the current half."""

        if self.timer_state.is_running:
            return
        self.timer_state.last_update_time = now_ts()
        self.timer_state.is_running = True

    def pause(self) -> None:
        """Pause the clock, keeping the seconds played so far."""

        self.tick()
        self.timer_state.is_running = False

    def tick(self) -> None:
        """Fold running time into the stored elapsed seconds."""

        current_time = now_ts()
        self.timer_state.elapsed_seconds = self.timer_state.current_elapsed(current_time)
        self.timer_state.last_update_time = current_time

    def start_second_half(self, auto_start: bool = True) -> None:
        """Move to the second half; elapsed seconds restart from zero."""

        if self.timer_state.current_half == 2:
            return
        self.timer_state.current_half = 2
        self.timer_state.elapsed_seconds = 0
        self.timer_state.last_update_time = now_ts()
        self.timer_state.is_running = auto_start

    def reset(self) -> None:
        """Reset to the start of the first half, keeping configuration."""

        self.timer_state.current_half = 1
        self.timer_state.elapsed_seconds = 0
        self.timer_state.is_running = False
        self.timer_state.last_update_time = now_ts()

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------
    def get_elapsed_seconds(self) -> int:
        """Reconstructed elapsed seconds in the current half."""

        return self.timer_state.current_elapsed(now_ts())

    def get_remaining_seconds(self) -> int:
        """Seconds left in the current half."""

        return max(0, self.timer_state.half_duration_seconds - self.get_elapsed_seconds())

    def get_game_seconds(self) -> int:
        return self.timer_state.game_seconds(now_ts())

    def get_half_info(self) -> Tuple[int, bool]:
        """Return the active half and whether the clock is running."""

        return (self.timer_state.current_half, self.timer_state.is_running)

    def should_suggest_halftime(self) -> bool:
        """True once the first half has run its full length."""

        return (
            self.timer_state.current_half == 1
            and self.get_elapsed_seconds() >= self.timer_state.half_duration_seconds
        )

    def is_game_over(self) -> bool:
        return self.timer_state.is_full_time(now_ts())

    def get_timer_summary(self) -> Dict[str, object]:
        """Return the timer figures for display purposes."""

        return {
            "minutes_per_half": self.timer_state.minutes_per_half,
            "half_duration_seconds": self.timer_state.half_duration_seconds,
            "current_half": self.timer_state.current_half,
            "elapsed_seconds": self.get_elapsed_seconds(),
            "remaining_seconds": self.get_remaining_seconds(),
            "game_seconds": self.get_game_seconds(),
            "is_running": self.timer_state.is_running,
            "sound_enabled": self.timer_state.sound_enabled,
            "team_id": self.timer_state.team_id,
            "team_name": self.timer_state.team_name,
        }
