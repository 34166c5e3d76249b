"""
Remote durable store client for the PitchSync live game engine.

The remote side is a PostgREST-style table API (one row per user in
``active_games``, append-only ``notifications``, per-user
``notification_preferences``). ``SupabaseRestClient`` talks to it over HTTP
with a blocking ``requests.Session``; ``InMemoryRemoteStore`` keeps the same
contract in process for offline runs and tests.
"""
import itertools
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from ..utils.constants import (
    ACTIVE_GAMES_TABLE, NOTIFICATIONS_TABLE, NOTIFICATION_PREFERENCES_TABLE
)

_log = logging.getLogger("pitchsync.remote")


class RemoteStoreError(Exception):
    """Raised for any transport failure or unexpected response from the remote store."""
    pass


class RemoteStore(ABC):
    """Operations the engine needs from the remote durable store."""

    @abstractmethod
    def find_active_game(self, user_id: str) -> Optional[str]:
        """Return the id of the user's active game record, if any."""
        pass

    @abstractmethod
    def insert_active_game(self, data: Dict[str, Any]) -> str:
        """Create a game record and return its id."""
        pass

    @abstractmethod
    def update_active_game(self, record_id: str, data: Dict[str, Any]) -> None:
        """
        Update a game record.

        Raises:
            RemoteStoreError: If the record no longer exists or the call fails
        """
        pass

    @abstractmethod
    def deactivate_active_game(self, record_id: str) -> None:
        pass

    @abstractmethod
    def insert_notification(self, record: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def get_pitch_board_notifications_enabled(self, user_id: str) -> Optional[bool]:
        """Stored preference, or None when the user never set one."""
        pass


class SupabaseRestClient(RemoteStore):
    """
    Blocking HTTP client for a Supabase/PostgREST endpoint.

    Every non-2xx response and every ``requests`` exception is turned into
    ``RemoteStoreError``; callers decide whether to retry on the next tick.
    """

    def __init__(self, base_url: str, api_key: Optional[str] = None, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })
        if api_key:
            self.session.headers.update({
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
            })

    @staticmethod
    def _first_id(rows: Any, table: str) -> Optional[str]:
        if not rows:
            return None
        try:
            return str(rows[0]["id"])
        except (KeyError, IndexError, TypeError) as e:
            raise RemoteStoreError(f"Unexpected {table} row: {rows!r}") from e

    def _url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    def _request(self, method: str, table: str, *, params: Optional[Dict[str, str]] = None,
                 json_body: Any = None, prefer: Optional[str] = None) -> Any:
        headers = {"Prefer": prefer} if prefer else None
        try:
            response = self.session.request(
                method, self._url(table), params=params, json=json_body,
                headers=headers, timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise RemoteStoreError(f"{method} {table} failed: {e}") from e
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RemoteStoreError(f"{method} {table} returned invalid JSON") from e

    # ---------- active_games ---------- #

    def find_active_game(self, user_id: str) -> Optional[str]:
        rows = self._request("GET", ACTIVE_GAMES_TABLE, params={
            "select": "id",
            "user_id": f"eq.{user_id}",
            "is_active": "eq.true",
            "limit": "1",
        })
        return self._first_id(rows, ACTIVE_GAMES_TABLE)

    def insert_active_game(self, data: Dict[str, Any]) -> str:
        rows = self._request("POST", ACTIVE_GAMES_TABLE, json_body=data,
                             prefer="return=representation")
        record_id = self._first_id(rows, ACTIVE_GAMES_TABLE)
        if record_id is None:
            raise RemoteStoreError("Insert into active_games returned no row")
        return record_id

    def update_active_game(self, record_id: str, data: Dict[str, Any]) -> None:
        rows = self._request("PATCH", ACTIVE_GAMES_TABLE, params={"id": f"eq.{record_id}"},
                             json_body=data, prefer="return=representation")
        if not rows:
            raise RemoteStoreError(f"Active game {record_id} not found")

    def deactivate_active_game(self, record_id: str) -> None:
        self._request("PATCH", ACTIVE_GAMES_TABLE, params={"id": f"eq.{record_id}"},
                      json_body={"is_active": False}, prefer="return=minimal")

    # ---------- notifications ---------- #

    def insert_notification(self, record: Dict[str, Any]) -> None:
        self._request("POST", NOTIFICATIONS_TABLE, json_body=record, prefer="return=minimal")

    def get_pitch_board_notifications_enabled(self, user_id: str) -> Optional[bool]:
        rows = self._request("GET", NOTIFICATION_PREFERENCES_TABLE, params={
            "select": "pitch_board_enabled",
            "user_id": f"eq.{user_id}",
            "limit": "1",
        })
        if not rows:
            return None
        if not isinstance(rows, list) or not isinstance(rows[0], dict):
            raise RemoteStoreError(f"Unexpected {NOTIFICATION_PREFERENCES_TABLE} row: {rows!r}")
        enabled = rows[0].get("pitch_board_enabled")
        return None if enabled is None else bool(enabled)


class InMemoryRemoteStore(RemoteStore):
    """Thread-safe in-process stand-in used when no remote URL is configured."""

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self.active_games: Dict[str, Dict[str, Any]] = {}
        self.notifications: List[Dict[str, Any]] = []
        self.preferences: Dict[str, bool] = {}

    def find_active_game(self, user_id: str) -> Optional[str]:
        with self._lock:
            for record_id, row in self.active_games.items():
                if row.get("user_id") == user_id and row.get("is_active"):
                    return record_id
        return None

    def insert_active_game(self, data: Dict[str, Any]) -> str:
        with self._lock:
            record_id = str(next(self._ids))
            self.active_games[record_id] = dict(data, id=record_id)
        _log.debug("Inserted in-memory active game %s", record_id)
        return record_id

    def update_active_game(self, record_id: str, data: Dict[str, Any]) -> None:
        with self._lock:
            if record_id not in self.active_games:
                raise RemoteStoreError(f"Active game {record_id} not found")
            self.active_games[record_id].update(data)

    def deactivate_active_game(self, record_id: str) -> None:
        with self._lock:
            if record_id in self.active_games:
                self.active_games[record_id]["is_active"] = False

    def insert_notification(self, record: Dict[str, Any]) -> None:
        with self._lock:
            self.notifications.append(dict(record))

    def get_pitch_board_notifications_enabled(self, user_id: str) -> Optional[bool]:
        with self._lock:
            return self.preferences.get(user_id)
