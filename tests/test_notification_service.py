"""
Unit tests for notification messages and the dispatcher's fan-out.
"""
import unittest
from unittest.mock import MagicMock

from pitchsync.models import DuePrompt, FinishedGameSummary
from pitchsync.services import InMemoryRemoteStore, NotificationDispatcher, RemoteStoreError
from pitchsync.services.notification_service import (
    GAME_FINISHED, PENDING_SUB, game_finished_message, pending_sub_message
)

from factories import MID, make_event, make_player


class MessageTests(unittest.TestCase):
    def test_single_sub_names_both_players(self) -> None:
        event = make_event(120, 1, make_player("a", at=MID, name="Alex"),
                           make_player("b", name="Bo"))
        self.assertEqual(pending_sub_message(event, 1), "Alex → Bench. Bo → MID")

    def test_single_sub_without_category(self) -> None:
        event = make_event(120, 1, make_player("a", name="Alex"), make_player("b", name="Bo"))
        self.assertEqual(pending_sub_message(event, 1), "Alex → Bench. Bo → Pitch")

    def test_batch_message_counts_subs(self) -> None:
        event = make_event(120, 1, make_player("a", at=MID), make_player("b"))
        self.assertEqual(pending_sub_message(event, 3), "Time for 3 substitutions")

    def test_game_finished_message(self) -> None:
        self.assertEqual(game_finished_message("Lions"), "Lions - Full Time")
        self.assertEqual(game_finished_message(None), "Full Time")


class NotificationDispatcherTests(unittest.TestCase):
    def setUp(self) -> None:
        self.remote = InMemoryRemoteStore()
        self.notifier = MagicMock()
        self.dispatcher = NotificationDispatcher(self.remote, "user-1", self.notifier)

        a = make_player("a", at=MID, name="Alex")
        b = make_player("b", name="Bo")
        self.prompt = DuePrompt(key="1-120-batch-1", primary=make_event(120, 1, a, b),
                                players=[a, b])
        self.summary = FinishedGameSummary(players=[a, b], total_game_time=3000,
                                           half_duration=1500, team_size=7, team_name="Lions")

    def test_pending_sub_shows_plays_and_records(self) -> None:
        message = self.dispatcher.notify_pending_sub(self.prompt)

        self.notifier.show.assert_called_once_with("Substitution Alert", message)
        self.notifier.play_sound.assert_called_once_with("sub_alert")
        self.assertEqual(self.remote.notifications, [{
            "user_id": "user-1",
            "type": PENDING_SUB,
            "message": message,
            "related_id": None,
        }])

    def test_sound_setting_silences_sub_cue(self) -> None:
        self.dispatcher.notify_pending_sub(self.prompt, sound_enabled=False)
        self.notifier.play_sound.assert_not_called()
        self.notifier.show.assert_called_once()

    def test_disabled_preference_still_writes_durable_record(self) -> None:
        self.remote.preferences["user-1"] = False

        self.dispatcher.notify_pending_sub(self.prompt)

        self.notifier.show.assert_not_called()
        self.notifier.play_sound.assert_not_called()
        self.assertEqual(len(self.remote.notifications), 1)

    def test_game_finished_cue_follows_sound_setting_only(self) -> None:
        self.remote.preferences["user-1"] = False

        message = self.dispatcher.notify_game_finished(self.summary)

        self.assertEqual(message, "Lions - Full Time")
        self.notifier.play_sound.assert_called_once_with("full_time")
        self.notifier.show.assert_not_called()
        self.assertEqual(self.remote.notifications[0]["type"], GAME_FINISHED)

        self.notifier.reset_mock()
        self.dispatcher.notify_game_finished(self.summary, sound_enabled=False)
        self.notifier.play_sound.assert_not_called()

    def test_failures_never_propagate(self) -> None:
        remote = MagicMock()
        remote.get_pitch_board_notifications_enabled.side_effect = RemoteStoreError("offline")
        remote.insert_notification.side_effect = RemoteStoreError("offline")
        self.notifier.show.side_effect = RuntimeError("no display")
        dispatcher = NotificationDispatcher(remote, "user-1", self.notifier)

        self.assertTrue(dispatcher.local_notifications_enabled())
        dispatcher.notify_pending_sub(self.prompt)
        dispatcher.notify_game_finished(self.summary)
        self.assertEqual(remote.insert_notification.call_count, 2)

    def test_no_user_skips_durable_record(self) -> None:
        dispatcher = NotificationDispatcher(self.remote, None, self.notifier)
        dispatcher.notify_pending_sub(self.prompt)
        self.assertEqual(self.remote.notifications, [])
        self.notifier.show.assert_called_once()


if __name__ == "__main__":
    unittest.main()
