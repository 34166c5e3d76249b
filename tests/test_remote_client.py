"""
Unit tests for the remote store clients.
"""
import unittest
from unittest.mock import MagicMock

import requests

from pitchsync.services import InMemoryRemoteStore, RemoteStoreError, SupabaseRestClient


def _response(payload=None, status=200, content=b"x"):
    response = MagicMock()
    response.status_code = status
    response.content = content
    response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return response


class SupabaseRestClientTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session = MagicMock()
        self.session.headers = {}
        self.client = SupabaseRestClient("https://db.example.com/", api_key="secret",
                                         timeout=3, session=self.session)

    def test_auth_headers_set_on_session(self) -> None:
        self.assertEqual(self.session.headers["apikey"], "secret")
        self.assertEqual(self.session.headers["Authorization"], "Bearer secret")

    def test_find_active_game_filters_by_user(self) -> None:
        self.session.request.return_value = _response([{"id": 42}])

        self.assertEqual(self.client.find_active_game("user-1"), "42")

        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("GET", "https://db.example.com/rest/v1/active_games"))
        self.assertEqual(kwargs["params"]["user_id"], "eq.user-1")
        self.assertEqual(kwargs["params"]["is_active"], "eq.true")
        self.assertEqual(kwargs["timeout"], 3)

    def test_find_active_game_none(self) -> None:
        self.session.request.return_value = _response([])
        self.assertIsNone(self.client.find_active_game("user-1"))

    def test_insert_returns_new_id(self) -> None:
        self.session.request.return_value = _response([{"id": "abc"}])

        self.assertEqual(self.client.insert_active_game({"user_id": "user-1"}), "abc")

        _, kwargs = self.session.request.call_args
        self.assertEqual(kwargs["json"], {"user_id": "user-1"})
        self.assertEqual(kwargs["headers"], {"Prefer": "return=representation"})

    def test_update_of_missing_record_raises(self) -> None:
        self.session.request.return_value = _response([])
        with self.assertRaises(RemoteStoreError):
            self.client.update_active_game("gone", {"is_active": True})

    def test_deactivate_patches_flag(self) -> None:
        self.session.request.return_value = _response(content=b"")

        self.client.deactivate_active_game("7")

        args, kwargs = self.session.request.call_args
        self.assertEqual(args[0], "PATCH")
        self.assertEqual(kwargs["params"], {"id": "eq.7"})
        self.assertEqual(kwargs["json"], {"is_active": False})

    def test_http_and_transport_errors_become_remote_errors(self) -> None:
        self.session.request.return_value = _response(status=500)
        with self.assertRaises(RemoteStoreError):
            self.client.insert_notification({"title": "x"})

        self.session.request.side_effect = requests.ConnectionError("down")
        with self.assertRaises(RemoteStoreError):
            self.client.find_active_game("user-1")

    def test_invalid_json_is_a_remote_error(self) -> None:
        response = _response()
        response.json.side_effect = ValueError("bad json")
        self.session.request.return_value = response
        with self.assertRaises(RemoteStoreError):
            self.client.find_active_game("user-1")

    def test_unexpected_rows_are_remote_errors(self) -> None:
        self.session.request.return_value = _response([{"uuid": "no-id"}])
        with self.assertRaises(RemoteStoreError):
            self.client.find_active_game("user-1")

        self.session.request.return_value = _response({"id": 1})
        with self.assertRaises(RemoteStoreError):
            self.client.insert_active_game({"user_id": "user-1"})

        self.session.request.return_value = _response(["enabled"])
        with self.assertRaises(RemoteStoreError):
            self.client.get_pitch_board_notifications_enabled("user-1")

    def test_notification_preference(self) -> None:
        self.session.request.return_value = _response([{"pitch_board_enabled": False}])
        self.assertFalse(self.client.get_pitch_board_notifications_enabled("user-1"))

        self.session.request.return_value = _response([])
        self.assertIsNone(self.client.get_pitch_board_notifications_enabled("user-1"))


class InMemoryRemoteStoreTests(unittest.TestCase):
    def test_active_game_lifecycle(self) -> None:
        store = InMemoryRemoteStore()
        record_id = store.insert_active_game({"user_id": "u1", "is_active": True})

        self.assertEqual(store.find_active_game("u1"), record_id)
        store.update_active_game(record_id, {"team_id": "t1"})
        self.assertEqual(store.active_games[record_id]["team_id"], "t1")

        store.deactivate_active_game(record_id)
        self.assertIsNone(store.find_active_game("u1"))

        with self.assertRaises(RemoteStoreError):
            store.update_active_game("missing", {})

    def test_notifications_and_preferences(self) -> None:
        store = InMemoryRemoteStore()
        store.insert_notification({"title": "Substitution Alert"})
        self.assertEqual(len(store.notifications), 1)

        self.assertIsNone(store.get_pitch_board_notifications_enabled("u1"))
        store.preferences["u1"] = False
        self.assertFalse(store.get_pitch_board_notifications_enabled("u1"))


if __name__ == "__main__":
    unittest.main()
