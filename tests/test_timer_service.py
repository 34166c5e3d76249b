import unittest
from unittest.mock import patch

from pitchsync.models import TimerState
from pitchsync.services import TimerService


class TimerStateTests(unittest.TestCase):
    def test_paused_elapsed_ignores_wall_clock(self) -> None:
        state = TimerState(elapsed_seconds=321, is_running=False, last_update_time=1000)
        for now in (1000, 5000, 10 ** 9):
            self.assertEqual(state.current_elapsed(now), 321)

    def test_running_elapsed_adds_time_since_last_write(self) -> None:
        state = TimerState(elapsed_seconds=100, is_running=True, last_update_time=1000)
        self.assertEqual(state.current_elapsed(1045.9), 145)
        # A clock that went backwards never subtracts
        self.assertEqual(state.current_elapsed(900), 100)

    def test_game_seconds_caps_half_and_offsets_second_half(self) -> None:
        first = TimerState(minutes_per_half=20, elapsed_seconds=1300)
        self.assertEqual(first.game_seconds(0), 1200)
        second = TimerState(minutes_per_half=20, current_half=2, elapsed_seconds=30)
        self.assertEqual(second.game_seconds(0), 1230)

    def test_full_time_only_in_second_half(self) -> None:
        self.assertFalse(TimerState(minutes_per_half=25, elapsed_seconds=1500).is_full_time(0))
        self.assertTrue(
            TimerState(minutes_per_half=25, current_half=2, elapsed_seconds=1500).is_full_time(0)
        )

    def test_from_dict_rejects_bad_half(self) -> None:
        with self.assertRaises(ValueError):
            TimerState.from_dict({"currentHalf": 0})
        state = TimerState.from_dict({"currentHalf": 2, "lastUpdateTime": 2500, "elapsedSeconds": -5})
        self.assertEqual(state.current_half, 2)
        self.assertEqual(state.elapsed_seconds, 0)
        self.assertEqual(state.last_update_time, 2.5)


class TimerServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.state = TimerState()
        self.service = TimerService(self.state)

    def test_configure_before_kick_off_only(self) -> None:
        self.service.configure(minutes_per_half=30, team_id="t1", team_name="Lions",
                               sound_enabled=False)
        self.assertEqual(self.state.half_duration_seconds, 1800)
        self.assertEqual(self.state.team_name, "Lions")
        self.assertFalse(self.state.sound_enabled)

        with self.assertRaises(ValueError):
            self.service.configure(minutes_per_half=0)

        with patch("pitchsync.services.timer_service.now_ts", return_value=1000):
            self.service.start()

        with self.assertRaises(ValueError):
            self.service.configure(minutes_per_half=25)
        self.service.configure(team_name="Tigers")
        self.assertEqual(self.state.team_name, "Tigers")

    def test_start_pause_folds_elapsed_time(self) -> None:
        with patch("pitchsync.services.timer_service.now_ts", return_value=1000):
            self.service.start()
        with patch("pitchsync.services.timer_service.now_ts", return_value=1600):
            self.assertEqual(self.service.get_elapsed_seconds(), 600)
            self.service.pause()

        self.assertFalse(self.state.is_running)
        self.assertEqual(self.state.elapsed_seconds, 600)
        self.assertEqual(self.state.last_update_time, 1600)

        with patch("pitchsync.services.timer_service.now_ts", return_value=9999):
            self.assertEqual(self.service.get_elapsed_seconds(), 600)
            self.assertEqual(self.service.get_remaining_seconds(), 1500 - 600)

    def test_second_half_restarts_elapsed(self) -> None:
        self.state.elapsed_seconds = 1500
        self.assertTrue(self.service.should_suggest_halftime())

        with patch("pitchsync.services.timer_service.now_ts", return_value=2000):
            self.service.start_second_half()

        self.assertEqual(self.service.get_half_info(), (2, True))
        self.assertEqual(self.state.elapsed_seconds, 0)

        with patch("pitchsync.services.timer_service.now_ts", return_value=2000 + 1500):
            self.assertTrue(self.service.is_game_over())
            self.assertEqual(self.service.get_game_seconds(), 3000)

    def test_reset_keeps_configuration(self) -> None:
        self.service.configure(minutes_per_half=20, team_id="t1")
        self.state.current_half = 2
        self.state.elapsed_seconds = 50
        self.state.is_running = True

        with patch("pitchsync.services.timer_service.now_ts", return_value=10):
            self.service.reset()

        self.assertEqual(self.service.get_half_info(), (1, False))
        self.assertEqual(self.state.elapsed_seconds, 0)
        self.assertEqual(self.state.minutes_per_half, 20)
        self.assertFalse(self.service.has_started())

    def test_timer_summary(self) -> None:
        self.state.elapsed_seconds = 90
        summary = self.service.get_timer_summary()
        self.assertEqual(summary["elapsed_seconds"], 90)
        self.assertEqual(summary["remaining_seconds"], 1410)
        self.assertEqual(summary["current_half"], 1)


if __name__ == "__main__":
    unittest.main()
