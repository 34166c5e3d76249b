"""
Tests for environment settings and service wiring.
"""
import os
import tempfile
import unittest
from unittest.mock import patch

from pitchsync import config
from pitchsync.services import InMemoryRemoteStore, ServiceFactory, SupabaseRestClient


class ConfigTests(unittest.TestCase):
    def test_intervals_are_clamped(self) -> None:
        with patch.dict(os.environ, {"PITCHSYNC_MONITOR_POLL_SECONDS": "0.1",
                                     "PITCHSYNC_SYNC_INTERVAL_SECONDS": "bogus"}):
            self.assertEqual(config.monitor_poll_seconds(), 1.0)
            self.assertEqual(config.sync_interval_seconds(), 10.0)

    def test_blank_values_are_unset(self) -> None:
        with patch.dict(os.environ, {"PITCHSYNC_REMOTE_URL": "  ", "PITCHSYNC_USER_ID": ""}):
            self.assertIsNone(config.remote_url())
            self.assertIsNone(config.user_id())


class ServiceFactoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)

    def test_singletons_share_one_store(self) -> None:
        factory = ServiceFactory(self._tmp.name, InMemoryRemoteStore(), "user-1")

        persistence = factory.get_persistence_service()
        self.assertIs(factory.get_trigger_monitor().persistence, persistence)
        self.assertIs(factory.create_executor().persistence, persistence)
        self.assertIs(factory.get_synchronizer().remote, factory.get_dispatcher().remote)

        supervisor = factory.create_supervisor()
        self.assertIs(supervisor.monitor, factory.get_trigger_monitor())

    def test_remote_store_follows_configuration(self) -> None:
        with patch.dict(os.environ, {"PITCHSYNC_REMOTE_URL": "https://db.example.com/",
                                     "PITCHSYNC_REMOTE_KEY": "k"}):
            remote = ServiceFactory(self._tmp.name).get_remote_store()
        self.assertIsInstance(remote, SupabaseRestClient)
        self.assertEqual(remote.base_url, "https://db.example.com")

        with patch.dict(os.environ, {"PITCHSYNC_REMOTE_URL": ""}):
            remote = ServiceFactory(self._tmp.name).get_remote_store()
        self.assertIsInstance(remote, InMemoryRemoteStore)

    def test_timer_service_loads_stored_record(self) -> None:
        factory = ServiceFactory(self._tmp.name, InMemoryRemoteStore(), "user-1")
        self.assertFalse(factory.create_timer_service().has_started())


if __name__ == "__main__":
    unittest.main()
