"""
Unit tests for the trigger monitor: due batches, deduplication, stand-down
while the editor is open, and the once-only full-time emission.
"""
import tempfile
import unittest
from unittest.mock import patch

from pitchsync.models import Goal
from pitchsync.services import PersistenceService, TriggerMonitor

from factories import DEF, MID, make_event, make_player, make_state, make_timer

NOW = "pitchsync.services.trigger_monitor.now_ts"


class TriggerMonitorTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.store = PersistenceService(self._tmp.name)
        self.monitor = TriggerMonitor(self.store)

        self.a = make_player("a", [MID], at=MID, name="Alex")
        self.b = make_player("b", [DEF], at=DEF)
        self.c = make_player("c", [MID])
        self.d = make_player("d", [DEF])
        self.plan = [
            make_event(120, 1, self.a, self.c),
            make_event(120, 1, self.b, self.d),
            make_event(300, 1, self.c, self.a),
        ]

    def _save(self, timer, state) -> None:
        self.store.save_timer_state(timer)
        self.store.save_pitch_state(state)

    def test_due_events_at_earliest_time_are_batched(self) -> None:
        self._save(make_timer(elapsed=100, running=True, last_update=1000),
                   make_state([self.a, self.b, self.c, self.d], self.plan))

        with patch(NOW, return_value=1010):
            self.assertIsNone(self.monitor.check_for_pending_subs())

        with patch(NOW, return_value=1030):
            prompt = self.monitor.check_for_pending_subs()

        self.assertIsNotNone(prompt)
        self.assertEqual(prompt.key, "1-120-batch-2")
        self.assertEqual(prompt.primary.player_out.id, "a")
        self.assertEqual([s.player_out.id for s in prompt.additional], ["b"])
        self.assertEqual(len(prompt.players), 4)
        self.assertIs(self.monitor.pending_prompt, prompt)

    def test_same_batch_is_not_signalled_twice(self) -> None:
        self._save(make_timer(elapsed=200, running=True, last_update=1000),
                   make_state([self.a, self.b, self.c, self.d], self.plan))

        with patch(NOW, return_value=1000):
            self.assertIsNotNone(self.monitor.check_for_pending_subs())
            self.assertIsNone(self.monitor.check_for_pending_subs())
            self.monitor.resolve_prompt()
            self.assertIsNotNone(self.monitor.check_for_pending_subs())

    def test_paused_timer_or_plan_never_prompts(self) -> None:
        self._save(make_timer(elapsed=500, running=False),
                   make_state([self.a, self.b, self.c, self.d], self.plan))
        self.assertIsNone(self.monitor.check_for_pending_subs())

        self._save(make_timer(elapsed=500, running=True, last_update=1000),
                   make_state([self.a, self.b, self.c, self.d], self.plan, paused=True))
        with patch(NOW, return_value=1000):
            self.assertIsNone(self.monitor.check_for_pending_subs())

    def test_other_half_and_executed_events_are_ignored(self) -> None:
        executed = make_event(60, 1, self.a, self.c)
        executed.executed = True
        later_half = make_event(30, 2, self.b, self.d)
        self._save(make_timer(elapsed=100, running=True, last_update=1000),
                   make_state([self.a, self.b, self.c, self.d], [executed, later_half]))

        with patch(NOW, return_value=1000):
            self.assertIsNone(self.monitor.check_for_pending_subs())

    def test_full_time_emitted_once_until_dismissed(self) -> None:
        state = make_state([self.a, self.b, self.c, self.d], self.plan)
        state.goals.append(Goal(id="g1", time=600, half=1, scorer_id="a", scorer_name="Alex"))
        self._save(make_timer(half=2, elapsed=1500, team_name="Lions"), state)

        summary = self.monitor.check_for_game_finished()
        self.assertIsNotNone(summary)
        self.assertEqual(summary.total_game_time, 3000)
        self.assertEqual(summary.half_duration, 1500)
        self.assertEqual(summary.team_name, "Lions")
        self.assertEqual(summary.team_size, 7)
        self.assertEqual(len(summary.goals), 1)

        self.assertIsNone(self.monitor.check_for_game_finished())

        self.monitor.dismiss_finished()
        self.assertIsNotNone(self.monitor.check_for_game_finished())

    def test_summary_falls_back_to_executed_plan_entries(self) -> None:
        self.plan[0].executed = True
        self._save(make_timer(half=2, elapsed=1600),
                   make_state([self.a, self.b, self.c, self.d], self.plan))

        summary = self.monitor.check_for_game_finished()
        self.assertEqual([s.identity for s in summary.executed_subs], [(1, 120, "a")])

    def test_not_full_time_in_first_half(self) -> None:
        self._save(make_timer(half=1, elapsed=1500), make_state([self.a]))
        self.assertIsNone(self.monitor.check_for_game_finished())

    def test_poll_stands_down_while_editor_open(self) -> None:
        self._save(make_timer(half=2, elapsed=1500, sound=False),
                   make_state([self.a, self.b, self.c, self.d], self.plan))
        self.store.set_editor_open(True)

        events = self.monitor.poll()
        self.assertIsNone(events.prompt)
        self.assertIsNone(events.finished)

        self.store.set_editor_open(False)
        events = self.monitor.poll()
        self.assertIsNotNone(events.finished)
        self.assertFalse(events.sound_enabled)

    def test_has_active_game(self) -> None:
        self.assertFalse(self.monitor.has_active_game())

        self._save(make_timer(running=True), make_state([self.a], active=False))
        self.assertTrue(self.monitor.has_active_game())

        self._save(make_timer(running=False), make_state([self.a], self.plan))
        self.assertTrue(self.monitor.has_active_game())

        self._save(make_timer(running=False), make_state([self.a], self.plan, paused=True))
        self.assertFalse(self.monitor.has_active_game())

        self._save(make_timer(running=False), make_state([self.a], []))
        self.assertFalse(self.monitor.has_active_game())


if __name__ == "__main__":
    unittest.main()
