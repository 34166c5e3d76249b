"""
Service Factory for dependency injection.

This module provides a factory for creating properly configured service instances
with their dependencies injected. Defaults come from the environment settings in
``pitchsync.config``.
"""
from pathlib import Path
from typing import Optional, Union

from .. import config
from ..models import TimerState
from .notification_service import LocalNotifier, NotificationDispatcher
from .persistence_service import PersistenceService
from .plan_service import PlanService
from .polling_supervisor import PollingSupervisor
from .remote_client import InMemoryRemoteStore, RemoteStore, SupabaseRestClient
from .substitution_commands import SubstitutionExecutor
from .sync_service import StateSynchronizer
from .timer_service import TimerService
from .trigger_monitor import TriggerMonitor


class ServiceFactory:
    """
    Factory for creating the engine services with shared dependencies.

    The persistence service, remote store, trigger monitor and synchronizer
    are singletons per factory, so every consumer observes the same store
    and the same deduplication state.
    """

    def __init__(
        self,
        state_dir: Optional[Union[str, Path]] = None,
        remote_store: Optional[RemoteStore] = None,
        user_id: Optional[str] = None,
        notifier: Optional[LocalNotifier] = None,
    ):
        """
        Initialize factory.

        Args:
            state_dir: Directory for local records (defaults to PITCHSYNC_STATE_DIR)
            remote_store: Remote store to use instead of the configured one
            user_id: Acting user (defaults to PITCHSYNC_USER_ID)
            notifier: On-device notifier (defaults to logging)
        """
        self.state_dir = Path(state_dir) if state_dir is not None else config.state_dir()
        self.user_id = user_id if user_id is not None else config.user_id()
        self._remote_store = remote_store
        self._notifier = notifier
        self._persistence_service: Optional[PersistenceService] = None
        self._plan_service: Optional[PlanService] = None
        self._trigger_monitor: Optional[TriggerMonitor] = None
        self._synchronizer: Optional[StateSynchronizer] = None
        self._dispatcher: Optional[NotificationDispatcher] = None

    def create_timer_service(self, timer_state: Optional[TimerState] = None) -> TimerService:
        """
        Create TimerService for the stored timer record (or a fresh one).

        Args:
            timer_state: Timer state to manage instead of the stored one

        Returns:
            Configured TimerService instance
        """
        if timer_state is None:
            timer_state = self.get_persistence_service().load_timer_state() or TimerState()
        return TimerService(timer_state)

    def create_executor(self) -> SubstitutionExecutor:
        return SubstitutionExecutor(self.get_persistence_service(), self.get_plan_service())

    def create_supervisor(self) -> PollingSupervisor:
        """
        Create the polling supervisor with all engine services wired in.

        Returns:
            Configured PollingSupervisor instance (not yet started)
        """
        return PollingSupervisor(
            persistence=self.get_persistence_service(),
            monitor=self.get_trigger_monitor(),
            synchronizer=self.get_synchronizer(),
            dispatcher=self.get_dispatcher(),
            monitor_interval=config.monitor_poll_seconds(),
            sync_interval=config.sync_interval_seconds(),
        )

    def get_persistence_service(self) -> PersistenceService:
        """Get singleton persistence service."""
        if self._persistence_service is None:
            self._persistence_service = PersistenceService(self.state_dir)
        return self._persistence_service

    def get_remote_store(self) -> RemoteStore:
        """Get singleton remote store: HTTP when a URL is configured, in-memory otherwise."""
        if self._remote_store is None:
            url = config.remote_url()
            if url:
                self._remote_store = SupabaseRestClient(
                    url, config.remote_key(), timeout=config.http_timeout_seconds()
                )
            else:
                self._remote_store = InMemoryRemoteStore()
        return self._remote_store

    def get_plan_service(self) -> PlanService:
        if self._plan_service is None:
            self._plan_service = PlanService()
        return self._plan_service

    def get_trigger_monitor(self) -> TriggerMonitor:
        if self._trigger_monitor is None:
            self._trigger_monitor = TriggerMonitor(self.get_persistence_service())
        return self._trigger_monitor

    def get_synchronizer(self) -> StateSynchronizer:
        if self._synchronizer is None:
            self._synchronizer = StateSynchronizer(
                self.get_persistence_service(), self.get_remote_store(), self.user_id
            )
        return self._synchronizer

    def get_dispatcher(self) -> NotificationDispatcher:
        if self._dispatcher is None:
            self._dispatcher = NotificationDispatcher(
                self.get_remote_store(), self.user_id, self._notifier
            )
        return self._dispatcher
