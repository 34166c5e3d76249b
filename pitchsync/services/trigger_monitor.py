"""
Trigger monitor for the PitchSync live game engine.

No clock runs here: every poll reloads the stored records, reconstructs the
elapsed time and compares it with the plan.
"""
import logging
from typing import NamedTuple, Optional, Tuple

from ..models import DuePrompt, FinishedGameSummary, PitchBoardState, TimerState
from ..utils import now_ts
from .persistence_service import PersistenceService

_log = logging.getLogger("pitchsync.monitor")


class MonitorEvents(NamedTuple):
    """What one poll newly detected."""
    prompt: Optional[DuePrompt] = None
    finished: Optional[FinishedGameSummary] = None
    sound_enabled: bool = True


def due_key(prompt_half: int, prompt_time: int, batch_size: int) -> str:
    return f"{prompt_half}-{prompt_time}-batch-{batch_size}"


class TriggerMonitor:
    """
    Detects due substitutions and full time for one observer.

    Deduplication state (the last signalled batch key and the full-time flag)
    is local to this instance.
    """

    def __init__(self, persistence: PersistenceService):
        self.persistence = persistence
        self.last_due_key: Optional[str] = None
        self.pending_prompt: Optional[DuePrompt] = None
        self.finished_shown = False
        self.finished_summary: Optional[FinishedGameSummary] = None

    def _load(self) -> Tuple[Optional[TimerState], Optional[PitchBoardState]]:
        return self.persistence.load_timer_state(), self.persistence.load_pitch_state()

    def has_active_game(self) -> bool:
        """True while the timer runs, or while an unpaused plan has entries."""
        timer_state, pitch_state = self._load()
        if timer_state is None or pitch_state is None:
            return False
        if timer_state.is_running:
            return True
        return pitch_state.is_plan_running()

    def check_for_pending_subs(self) -> Optional[DuePrompt]:
        """
        Find the earliest batch of due substitutions.

        Returns:
            A new prompt, or None when nothing is due or the batch was
            already signalled
        """
        timer_state, pitch_state = self._load()
        if timer_state is None or pitch_state is None:
            return None
        if not timer_state.is_running or not pitch_state.is_plan_running():
            return None

        elapsed = timer_state.current_elapsed(now_ts())
        current_half = timer_state.current_half
        due = [
            sub for sub in pitch_state.auto_sub_plan
            if not sub.executed and sub.half == current_half and elapsed >= sub.time
        ]
        if not due:
            return None

        earliest = min(sub.time for sub in due)
        batch = [sub for sub in due if sub.time == earliest]
        key = due_key(batch[0].half, batch[0].time, len(batch))
        if key == self.last_due_key:
            return None

        self.last_due_key = key
        self.pending_prompt = DuePrompt(
            key=key, primary=batch[0], additional=batch[1:], players=pitch_state.players
        )
        _log.info("Substitution due at half %d, %ds (%d in batch)", current_half, earliest, len(batch))
        return self.pending_prompt

    def check_for_game_finished(self) -> Optional[FinishedGameSummary]:
        """
        Emit the finished-game summary once per session.

        Returns:
            The summary the first time full time is observed, otherwise None
        """
        if self.finished_shown:
            return None
        timer_state, pitch_state = self._load()
        if timer_state is None or pitch_state is None:
            return None
        if not timer_state.is_full_time(now_ts()):
            return None

        self.finished_shown = True
        half_duration = timer_state.half_duration_seconds
        executed_subs = pitch_state.executed_subs or [
            sub for sub in pitch_state.auto_sub_plan if sub.executed
        ]
        self.finished_summary = FinishedGameSummary(
            players=pitch_state.players,
            total_game_time=half_duration * 2,
            half_duration=half_duration,
            team_size=pitch_state.team_size_number,
            team_id=pitch_state.team_id,
            team_name=timer_state.team_name,
            linked_event_id=pitch_state.linked_event_id,
            executed_subs=executed_subs,
            goals=pitch_state.goals,
        )
        _log.info("Full time reached for team %s", pitch_state.team_id)
        return self.finished_summary

    def poll(self) -> MonitorEvents:
        """Run both checks unless the editor view is open and owns checking."""
        if self.persistence.is_editor_open():
            _log.debug("Editor open, monitor standing down")
            return MonitorEvents()
        prompt = self.check_for_pending_subs()
        finished = self.check_for_game_finished()
        if prompt is None and finished is None:
            return MonitorEvents()
        return MonitorEvents(prompt, finished, self.persistence.is_sound_enabled())

    def resolve_prompt(self) -> None:
        """Forget the pending prompt once it was confirmed or skipped."""
        self.pending_prompt = None
        self.last_due_key = None

    def dismiss_finished(self) -> None:
        """Close the completion dialog; full time may be signalled again."""
        self.finished_shown = False
        self.finished_summary = None
