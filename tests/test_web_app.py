"""
Tests for the Flask JSON API, run against a temporary state directory with
the polling loops left stopped.
"""
import tempfile
import time
import unittest

from pitchsync.services import InMemoryRemoteStore, ServiceFactory
from pitchsync.ui import create_app

from factories import DEF, MID, make_event, make_player, make_state, make_timer


class WebAppTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.remote = InMemoryRemoteStore()
        self.factory = ServiceFactory(self._tmp.name, self.remote, "user-1")
        self.app = create_app(self.factory, start_supervisor=False)
        self.app.testing = True
        self.client = self.app.test_client()
        self.store = self.factory.get_persistence_service()

    def _start_session(self, **overrides):
        body = {
            "team_id": "team-1",
            "team_name": "Lions",
            "team_size": "7",
            "minutes_per_half": 20,
            "players": [{"id": f"p{i}", "name": f"Player {i}"} for i in range(10)],
        }
        body.update(overrides)
        return self.client.post("/api/session", json=body)

    def _due_session(self):
        a = make_player("a", [MID], at=MID, name="Alex")
        b = make_player("b", [DEF], at=DEF)
        c = make_player("c", [MID], name="Cam")
        self.store.save_timer_state(make_timer(elapsed=200, running=True, last_update=time.time()))
        self.store.save_pitch_state(make_state([a, b, c], [make_event(120, 1, a, c)]))

    def test_session_applies_formation(self) -> None:
        response = self._start_session()
        self.assertEqual(response.status_code, 201)

        state = self.client.get("/api/state").get_json()
        players = state["pitch"]["players"]
        self.assertEqual(sum(1 for p in players if p["position"]), 7)
        self.assertEqual(players[0]["currentPitchPosition"], "GK")
        self.assertEqual(state["timer"]["minutes_per_half"], 20)
        self.assertEqual(state["timer"]["elapsed_display"], "00:00")
        self.assertEqual(state["polling"], "idle")

    def test_session_requires_team(self) -> None:
        self.assertEqual(self.client.post("/api/session", json={}).status_code, 400)
        response = self._start_session(minutes_per_half=0)
        self.assertEqual(response.status_code, 400)

    def test_timer_actions(self) -> None:
        self.assertEqual(self.client.post("/api/timer/start").status_code, 404)

        self._start_session()
        response = self.client.post("/api/timer/start")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()["timer"]["is_running"])

        response = self.client.post("/api/timer/configure", json={"minutes_per_half": 30})
        self.assertEqual(response.status_code, 400)

        response = self.client.post("/api/timer/pause")
        self.assertFalse(response.get_json()["timer"]["is_running"])
        self.assertFalse(self.store.load_timer_state().is_running)

    def test_generate_and_cancel_plan(self) -> None:
        self._start_session()

        response = self.client.post("/api/plan", json={"rotation_speed": 2})
        self.assertEqual(response.status_code, 200)
        payload = response.get_json()
        self.assertTrue(payload["plan"])
        self.assertEqual(len(payload["forecast"]), 10)
        self.assertTrue(self.store.load_pitch_state().auto_sub_active)

        self.assertEqual(self.client.post("/api/plan", json={"rotation_speed": 5}).status_code, 400)

        self.client.post("/api/plan/pause", json={"paused": True})
        self.assertTrue(self.store.load_pitch_state().auto_sub_paused)

        self.client.delete("/api/plan")
        state = self.store.load_pitch_state()
        self.assertEqual(state.auto_sub_plan, [])
        self.assertFalse(state.auto_sub_active)

    def test_poll_then_confirm(self) -> None:
        self._due_session()

        response = self.client.post("/api/monitor/poll")
        prompt = response.get_json()["prompt"]
        self.assertEqual(prompt["key"], "1-120-batch-1")
        self.assertEqual(self.remote.notifications[0]["message"], "Alex → Bench. Cam → MID")
        self.assertIsNotNone(self.client.get("/api/subs/pending").get_json()["prompt"])

        response = self.client.post("/api/subs/confirm")
        self.assertEqual(response.get_json()["outcomes"], ["applied"])
        state = self.store.load_pitch_state()
        self.assertTrue(state.find_player("c").on_pitch)
        self.assertFalse(state.find_player("a").on_pitch)

        self.assertEqual(self.client.post("/api/subs/confirm").status_code, 409)

    def test_poll_then_skip(self) -> None:
        self._due_session()
        self.client.post("/api/monitor/poll")

        response = self.client.post("/api/subs/skip")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["outcome"], "recalculated")
        self.assertIsNone(self.client.get("/api/subs/pending").get_json()["prompt"])

    def test_sync_and_editor_signals(self) -> None:
        self._due_session()

        response = self.client.post("/api/sync")
        self.assertEqual(response.get_json()["sync"]["status"], "synced")
        self.assertEqual(len(self.remote.active_games), 1)

        self.client.post("/api/editor", json={"open": True})
        self.assertTrue(self.store.is_editor_open())
        response = self.client.post("/api/monitor/poll")
        self.assertIsNone(response.get_json()["prompt"])

    def test_session_rejects_bad_formation_index(self) -> None:
        response = self._start_session(selected_formation="abc")
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.get_json()["success"])
        self.assertIsNone(self.store.load_pitch_state())

        response = self._start_session(sound_enabled="loud")
        self.assertEqual(response.status_code, 400)

    def test_string_flags_are_parsed(self) -> None:
        self._start_session()

        self.client.post("/api/editor", json={"open": True})
        response = self.client.post("/api/editor", json={"open": "false"})
        self.assertFalse(response.get_json()["editor_open"])
        self.assertFalse(self.store.is_editor_open())

        self.client.post("/api/plan/pause", json={"paused": "false"})
        self.assertFalse(self.store.load_pitch_state().auto_sub_paused)
        self.client.post("/api/plan/pause", json={"paused": "true"})
        self.assertTrue(self.store.load_pitch_state().auto_sub_paused)

        for path, body in (("/api/editor", {"open": "maybe"}),
                           ("/api/visibility", {"visible": "maybe"}),
                           ("/api/timer/halftime", {"auto_start": "later"}),
                           ("/api/plan", {"disable_batch_subs": "sometimes"})):
            response = self.client.post(path, json=body)
            self.assertEqual(response.status_code, 400, path)
            self.assertFalse(response.get_json()["success"])

    def test_end_session(self) -> None:
        self._start_session()
        self.client.delete("/api/session")
        self.assertIsNone(self.client.get("/api/state").get_json()["pitch"])


if __name__ == "__main__":
    unittest.main()
