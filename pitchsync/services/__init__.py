"""
Services package for PitchSync.

This package contains service classes that handle business logic:
planning, monitoring, executing and synchronizing substitutions.
Includes factory for proper dependency injection.
"""
from .persistence_service import PersistenceService, StateStoreError
from .timer_service import TimerService
from .plan_service import PlanService
from .trigger_monitor import MonitorEvents, TriggerMonitor
from .substitution_commands import (
    ConfirmSubstitutionCommand, SkipSubstitutionCommand, SubstitutionCommand,
    SubstitutionExecutor, SubstitutionOutcome
)
from .remote_client import (
    InMemoryRemoteStore, RemoteStore, RemoteStoreError, SupabaseRestClient
)
from .sync_service import StateSynchronizer, SyncStatus
from .notification_service import LocalNotifier, LoggingNotifier, NotificationDispatcher
from .polling_supervisor import PollingState, PollingSupervisor
from .service_factory import ServiceFactory

__all__ = [
    "PersistenceService", "StateStoreError", "TimerService", "PlanService",
    "MonitorEvents", "TriggerMonitor", "ConfirmSubstitutionCommand",
    "SkipSubstitutionCommand", "SubstitutionCommand", "SubstitutionExecutor",
    "SubstitutionOutcome", "InMemoryRemoteStore", "RemoteStore",
    "RemoteStoreError", "SupabaseRestClient", "StateSynchronizer", "SyncStatus",
    "LocalNotifier", "LoggingNotifier", "NotificationDispatcher",
    "PollingState", "PollingSupervisor", "ServiceFactory"
]
