"""
State synchronizer for the PitchSync live game engine.

Mirrors the local timer and pitch records to one remote record per user so a
server-side process can push notifications while the client is closed.
"""
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from .persistence_service import PersistenceService
from .remote_client import RemoteStore, RemoteStoreError
from ..utils import now_ts

_log = logging.getLogger("pitchsync.sync")

DEFAULT_TEAM_NAME = "Your team"


class SyncStatus(Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    SYNCED = "synced"
    ERROR = "error"


class StateSynchronizer:
    """
    Keeps at most one active remote record per user.

    The record id is cached between ticks. A failed update drops the cached
    id so the next tick resolves the record again by lookup, then insert.
    """

    def __init__(self, persistence: PersistenceService, remote: RemoteStore,
                 user_id: Optional[str]):
        self.persistence = persistence
        self.remote = remote
        self.user_id = user_id
        self.active_game_id: Optional[str] = None
        self.status = SyncStatus.IDLE
        self.last_sync_time: Optional[float] = None
        self.last_error: Optional[str] = None

    def _build_record(self, timer_state, pitch_state) -> Dict[str, Any]:
        timer_data = timer_state.to_dict()
        timer_data["teamName"] = timer_state.team_name or DEFAULT_TEAM_NAME
        return {
            "user_id": self.user_id,
            "team_id": timer_state.team_id or pitch_state.team_id,
            "timer_state": timer_data,
            "pitch_state": pitch_state.to_dict(),
            "is_active": True,
            "updated_at": datetime.fromtimestamp(now_ts(), tz=timezone.utc).isoformat(),
        }

    def deactivate(self) -> None:
        """Mark the cached remote record inactive and forget it."""
        if self.active_game_id is not None:
            record_id = self.active_game_id
            self.active_game_id = None
            try:
                self.remote.deactivate_active_game(record_id)
                _log.info("Deactivated active game %s", record_id)
            except RemoteStoreError as e:
                _log.warning("Failed to deactivate active game %s: %s", record_id, e)
        self.status = SyncStatus.IDLE

    def sync(self) -> SyncStatus:
        """
        Run one synchronization tick.

        Returns:
            Resulting status; remote failures are reported here and never raised
        """
        if not self.user_id:
            self.status = SyncStatus.IDLE
            return self.status

        timer_state = self.persistence.load_timer_state()
        pitch_state = self.persistence.load_pitch_state(catch_up=False)
        if (timer_state is None or pitch_state is None
                or not timer_state.is_running or not pitch_state.auto_sub_active):
            self.deactivate()
            return self.status

        record = self._build_record(timer_state, pitch_state)
        self.status = SyncStatus.SYNCING

        try:
            if self.active_game_id is not None:
                self.remote.update_active_game(self.active_game_id, record)
                _log.debug("Updated active game %s", self.active_game_id)
            else:
                existing_id = self.remote.find_active_game(self.user_id)
                if existing_id is not None:
                    self.remote.update_active_game(existing_id, record)
                    self.active_game_id = existing_id
                    _log.info("Resumed active game %s", existing_id)
                else:
                    self.active_game_id = self.remote.insert_active_game(record)
                    _log.info("Created active game %s", self.active_game_id)
        except RemoteStoreError as e:
            _log.warning("Sync failed: %s", e)
            self.active_game_id = None
            self.status = SyncStatus.ERROR
            self.last_error = str(e)
            return self.status

        self.status = SyncStatus.SYNCED
        self.last_sync_time = now_ts()
        self.last_error = None
        return self.status

    def get_status(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "active_game_id": self.active_game_id,
            "last_sync_time": self.last_sync_time,
            "last_error": self.last_error,
        }
