"""
Notification dispatcher for the PitchSync live game engine.

Each due substitution or full-time produces two independent signals: a
best-effort on-device notification and a durable notification record that an
external push-delivery process consumes.
"""
import logging
from typing import Optional, Protocol

from ..models import DuePrompt, FinishedGameSummary, SubstitutionEvent
from .remote_client import RemoteStore, RemoteStoreError

_log = logging.getLogger("pitchsync.notifications")

PENDING_SUB = "pending_sub"
GAME_FINISHED = "game_finished"

SUB_ALERT_TITLE = "Substitution Alert"
GAME_FINISHED_TITLE = "Game Finished!"

SUB_ALERT_CUE = "sub_alert"
FULL_TIME_CUE = "full_time"


class LocalNotifier(Protocol):
    """On-device notification surface supplied by the host."""

    def show(self, title: str, body: str) -> None:
        ...

    def play_sound(self, cue: str) -> None:
        ...


class LoggingNotifier:
    """Default notifier for headless hosts: writes notifications to the log."""

    def show(self, title: str, body: str) -> None:
        _log.info("[%s] %s", title, body)

    def play_sound(self, cue: str) -> None:
        _log.debug("Sound cue: %s", cue)


def pending_sub_message(primary: SubstitutionEvent, batch_size: int) -> str:
    if batch_size > 1:
        return f"Time for {batch_size} substitutions"
    position = primary.player_out.current_pitch_position
    target = position.value if position is not None else "Pitch"
    return f"{primary.player_out.label()} → Bench. {primary.player_in.label()} → {target}"


def game_finished_message(team_name: Optional[str]) -> str:
    return f"{team_name} - Full Time" if team_name else "Full Time"


class NotificationDispatcher:
    """
    Fans a due event out to the local notifier and the durable record.

    The user's pitch-board preference gates only local notifications and
    the substitution sound; the durable record is always written.
    """

    def __init__(self, remote: RemoteStore, user_id: Optional[str],
                 notifier: Optional[LocalNotifier] = None):
        self.remote = remote
        self.user_id = user_id
        self.notifier = notifier or LoggingNotifier()

    def local_notifications_enabled(self) -> bool:
        """Stored preference; enabled when unset or when the lookup fails."""
        if not self.user_id:
            return True
        try:
            enabled = self.remote.get_pitch_board_notifications_enabled(self.user_id)
        except RemoteStoreError as e:
            _log.debug("Preference lookup failed, assuming enabled: %s", e)
            return True
        return True if enabled is None else enabled

    def _show_local(self, title: str, body: str, cue: Optional[str]) -> None:
        try:
            if cue:
                self.notifier.play_sound(cue)
            self.notifier.show(title, body)
        except Exception as e:  # noqa: BLE001
            _log.debug("Local notification failed: %s", e)

    def _write_durable(self, kind: str, message: str) -> bool:
        if not self.user_id:
            return False
        try:
            self.remote.insert_notification({
                "user_id": self.user_id,
                "type": kind,
                "message": message,
                "related_id": None,
            })
        except RemoteStoreError as e:
            _log.warning("Failed to write %s notification: %s", kind, e)
            return False
        return True

    def notify_pending_sub(self, prompt: DuePrompt, sound_enabled: bool = True) -> str:
        """
        Signal a due substitution batch.

        Returns:
            The notification message
        """
        message = pending_sub_message(prompt.primary, len(prompt.batch))
        if self.local_notifications_enabled():
            self._show_local(SUB_ALERT_TITLE, message, SUB_ALERT_CUE if sound_enabled else None)
        self._write_durable(PENDING_SUB, message)
        return message

    def notify_game_finished(self, summary: FinishedGameSummary,
                             sound_enabled: bool = True) -> str:
        """
        Signal full time.

        The full-time cue follows the timer's sound setting alone.

        Returns:
            The notification message
        """
        message = game_finished_message(summary.team_name)
        if sound_enabled:
            try:
                self.notifier.play_sound(FULL_TIME_CUE)
            except Exception as e:  # noqa: BLE001
                _log.debug("Full-time cue failed: %s", e)
        if self.local_notifications_enabled():
            self._show_local(GAME_FINISHED_TITLE, message, None)
        self._write_durable(GAME_FINISHED, message)
        return message
