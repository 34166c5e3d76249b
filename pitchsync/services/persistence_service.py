"""
Persistence service for the PitchSync live game engine.

This module stores the session records (timer, pitch board, editor-open flag)
as independent keyed JSON blobs in a directory and notifies subscribers when a
record changes. It is the single source of truth read by both polling loops.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from ..models import PitchBoardState, TimerState
from ..utils import (
    PITCH_BOARD_OPEN_KEY, PITCH_STATE_KEY, STORAGE_KEYS, TIMER_STORAGE_KEY, now_ts
)

_log = logging.getLogger("pitchsync.persistence")

StorageListener = Callable[[str], None]


class StateStoreError(Exception):
    """Raised when a local record cannot be written."""
    pass


class PersistenceService:
    """
    Keyed record store backed by one JSON file per key.

    Loaders never raise: a missing or malformed record is reported as None
    (treated as "no session"). Writers replace the whole file atomically, so a
    reader never observes a half-written record.
    """

    def __init__(self, state_dir: Union[str, Path]):
        """
        Initialize the store.

        Args:
            state_dir: Directory holding the record files (created on demand)
        """
        self.state_dir = Path(state_dir)
        self._listeners: List[StorageListener] = []
        self._seen_mtimes: Dict[str, Optional[float]] = {}

    # ---------- Raw keyed records ---------- #

    def _path(self, key: str) -> Path:
        return self.state_dir / f"{key}.json"

    def read_raw(self, key: str) -> Optional[str]:
        """Return the stored text for a key, or None if absent or unreadable."""
        path = self._path(key)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            _log.warning("Failed to read %s: %s", key, e)
            return None

    def write_raw(self, key: str, text: str) -> None:
        """
        Atomically replace the record for a key and notify subscribers.

        Raises:
            StateStoreError: If the file cannot be written
        """
        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(self.state_dir), prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(text)
                os.replace(tmp_path, self._path(key))
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StateStoreError(f"Failed to write {key}: {e}") from e
        self._seen_mtimes[key] = self._mtime(key)
        self._notify(key)

    def remove(self, key: str) -> None:
        """Delete the record for a key (no-op if absent)."""
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise StateStoreError(f"Failed to remove {key}: {e}") from e
        self._seen_mtimes[key] = None
        self._notify(key)

    def _load_json(self, key: str) -> Optional[dict]:
        text = self.read_raw(key)
        if not text:
            return None
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            _log.warning("Malformed %s record ignored: %s", key, e)
            return None
        return data if isinstance(data, dict) else None

    # ---------- Change notification ---------- #

    def subscribe(self, listener: StorageListener) -> Callable[[], None]:
        """
        Register a callback invoked with the key of every changed record.

        Returns:
            Function that removes the subscription
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, key: str) -> None:
        for listener in list(self._listeners):
            listener(key)

    def _mtime(self, key: str) -> Optional[float]:
        try:
            return self._path(key).stat().st_mtime
        except OSError:
            return None

    def check_external_changes(self) -> List[str]:
        """
        Detect records rewritten by another process since last seen.

        Subscribers are notified for each changed key.

        Returns:
            Keys that changed
        """
        changed = []
        for key in STORAGE_KEYS:
            current = self._mtime(key)
            if key not in self._seen_mtimes:
                self._seen_mtimes[key] = current
                continue
            if current != self._seen_mtimes[key]:
                self._seen_mtimes[key] = current
                changed.append(key)
        for key in changed:
            self._notify(key)
        return changed

    # ---------- Timer record ---------- #

    def load_timer_state(self) -> Optional[TimerState]:
        """Load the timer record, or None if absent or malformed."""
        data = self._load_json(TIMER_STORAGE_KEY)
        if data is None:
            return None
        try:
            return TimerState.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            _log.warning("Malformed timer record ignored: %s", e)
            return None

    def save_timer_state(self, timer_state: TimerState) -> None:
        self.write_raw(TIMER_STORAGE_KEY, json.dumps(timer_state.to_dict()))

    def clear_timer_state(self) -> None:
        self.remove(TIMER_STORAGE_KEY)

    def is_sound_enabled(self) -> bool:
        """Sound preference from the timer record, enabled when unknown."""
        timer_state = self.load_timer_state()
        return timer_state.sound_enabled if timer_state else True

    # ---------- Pitch board record ---------- #

    def load_pitch_state(self, team_id: Optional[str] = None,
                         catch_up: bool = True) -> Optional[PitchBoardState]:
        """
        Load the pitch record.

        Args:
            team_id: When given, a record for another team is treated as absent
            catch_up: Credit on-pitch players with game seconds elapsed since
                the record was last written

        Returns:
            The session snapshot, or None if absent, malformed or for another team
        """
        data = self._load_json(PITCH_STATE_KEY)
        if data is None:
            return None
        try:
            state = PitchBoardState.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            _log.warning("Malformed pitch record ignored: %s", e)
            return None
        if team_id is not None and state.team_id != team_id:
            _log.debug("Stored pitch record is for team %s, not %s", state.team_id, team_id)
            return None
        if catch_up:
            self._apply_minutes_catch_up(state)
        return state

    def _apply_minutes_catch_up(self, state: PitchBoardState) -> None:
        timer_state = self.load_timer_state()
        if timer_state is None or state.last_timer_seconds is None:
            return
        game_seconds_elapsed = timer_state.game_seconds(now_ts()) - state.last_timer_seconds
        if game_seconds_elapsed <= 0:
            return
        for player in state.on_pitch_players():
            player.minutes_played += game_seconds_elapsed
        _log.debug("Added %d seconds to on-pitch players", game_seconds_elapsed)

    def save_pitch_state(self, state: PitchBoardState) -> None:
        """
        Persist the pitch record in one write.

        Stamps the write time and the current game seconds so the next load
        can credit on-pitch players with the time played in between.
        """
        current_time = now_ts()
        timer_state = self.load_timer_state()
        state.last_update_time = current_time
        state.last_timer_seconds = timer_state.game_seconds(current_time) if timer_state else 0
        self.write_raw(PITCH_STATE_KEY, json.dumps(state.to_dict()))
        _log.debug("Saved pitch state for team %s (%d players)", state.team_id, len(state.players))

    def clear_pitch_state(self) -> None:
        self.remove(PITCH_STATE_KEY)

    # ---------- Editor-open flag ---------- #

    def is_editor_open(self) -> bool:
        return (self.read_raw(PITCH_BOARD_OPEN_KEY) or "").strip() == "true"

    def set_editor_open(self, is_open: bool) -> None:
        self.write_raw(PITCH_BOARD_OPEN_KEY, "true" if is_open else "false")
