"""
Polling supervisor for the PitchSync live game engine.

Owns one asyncio event loop with two independently scheduled loops: the
trigger monitor tick and the slower synchronizer tick. Whether they run is
decided on visibility and storage-change signals rather than by a fixed
global interval.
"""
import asyncio
import logging
import threading
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Set

from ..utils import MONITOR_POLL_SECONDS, STORAGE_KEYS, SYNC_INTERVAL_SECONDS
from .notification_service import NotificationDispatcher
from .persistence_service import PersistenceService
from .sync_service import StateSynchronizer
from .trigger_monitor import MonitorEvents, TriggerMonitor

_log = logging.getLogger("pitchsync.supervisor")


class PollingState(Enum):
    ACTIVE = "active"
    IDLE = "idle"


class PollingSupervisor:
    """
    State machine switching the monitor between polling-active and polling-idle.

    All engine work executes on the supervisor's loop. Blocking remote calls
    go through ``asyncio.to_thread``; synchronizer ticks never overlap.
    """

    def __init__(self, persistence: PersistenceService, monitor: TriggerMonitor,
                 synchronizer: StateSynchronizer, dispatcher: NotificationDispatcher,
                 monitor_interval: float = MONITOR_POLL_SECONDS,
                 sync_interval: float = SYNC_INTERVAL_SECONDS):
        self.persistence = persistence
        self.monitor = monitor
        self.synchronizer = synchronizer
        self.dispatcher = dispatcher
        self.monitor_interval = monitor_interval
        self.sync_interval = sync_interval

        self.state = PollingState.IDLE
        self.visible = True
        self.last_events = MonitorEvents()

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._sync_lock: Optional[asyncio.Lock] = None
        self._monitor_task: Optional[asyncio.Task] = None
        self._sync_task: Optional[asyncio.Task] = None
        self._watch_task: Optional[asyncio.Task] = None
        self._change_tasks: Set[asyncio.Task] = set()
        self._unsubscribe: Optional[Callable[[], None]] = None

    # ---------- Lifecycle ---------- #

    async def start(self) -> None:
        """Subscribe to record changes and evaluate whether to poll."""
        self._loop = asyncio.get_running_loop()
        self._sync_lock = asyncio.Lock()
        self._unsubscribe = self.persistence.subscribe(self._on_record_written)
        self._watch_task = asyncio.create_task(self._watch_loop())
        await self.refresh()

    async def stop(self) -> None:
        """Cancel every loop and drop the storage subscription."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for task in (self._monitor_task, self._sync_task, self._watch_task):
            if task is not None:
                task.cancel()
        for task in list(self._change_tasks):
            task.cancel()
        self._monitor_task = self._sync_task = self._watch_task = None
        self.state = PollingState.IDLE

    # ---------- External signals ---------- #

    async def refresh(self) -> None:
        """Start or stop the loops to match the stored session."""
        editor_open = self.persistence.is_editor_open()
        game_active = self.monitor.has_active_game()

        if self.visible and not editor_open and game_active:
            self._cancel_monitor()
            self._monitor_task = asyncio.create_task(self._monitor_loop())
            self.state = PollingState.ACTIVE
        else:
            self._cancel_monitor()

        if game_active and self._sync_task is None:
            _log.info("Starting sync loop")
            self._sync_task = asyncio.create_task(self._sync_loop())
        elif not game_active and self._sync_task is not None:
            _log.info("Stopping sync loop, no active game")
            self._sync_task.cancel()
            self._sync_task = None
            await self.sync_once()

    async def on_visibility_change(self, visible: bool) -> None:
        """Foreground restarts polling; background flushes once and stops the monitor."""
        self.visible = visible
        if visible:
            await self.refresh()
            return
        await self.sync_once()
        self._cancel_monitor()

    async def on_storage_change(self, key: str) -> None:
        if key not in STORAGE_KEYS:
            return
        _log.debug("Record %s changed", key)
        await self.refresh()
        await self.sync_once()

    def _on_record_written(self, key: str) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._spawn_storage_change, key)

    def _spawn_storage_change(self, key: str) -> None:
        task = asyncio.ensure_future(self.on_storage_change(key))
        self._change_tasks.add(task)
        task.add_done_callback(self._on_storage_change_done)

    def _on_storage_change_done(self, task: asyncio.Task) -> None:
        self._change_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _log.error("Handling a record change failed", exc_info=exc)

    # ---------- Ticks ---------- #

    async def poll_once(self) -> MonitorEvents:
        """One monitor tick, dispatching notifications for anything newly due."""
        events = self.monitor.poll()
        if events.prompt is not None:
            await asyncio.to_thread(
                self.dispatcher.notify_pending_sub, events.prompt, events.sound_enabled
            )
        if events.finished is not None:
            await asyncio.to_thread(
                self.dispatcher.notify_game_finished, events.finished, events.sound_enabled
            )
        if events.prompt is not None or events.finished is not None:
            self.last_events = events
        return events

    async def sync_once(self) -> None:
        if self._sync_lock is None:
            self._sync_lock = asyncio.Lock()
        async with self._sync_lock:
            await asyncio.to_thread(self.synchronizer.sync)

    def _cancel_monitor(self) -> None:
        if self._monitor_task is not None:
            self._monitor_task.cancel()
            self._monitor_task = None
        self.state = PollingState.IDLE

    async def _monitor_loop(self) -> None:
        while True:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                _log.exception("Monitor tick failed")
            await asyncio.sleep(self.monitor_interval)

    async def _sync_loop(self) -> None:
        while True:
            try:
                await self.sync_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                _log.exception("Sync tick failed")
            await asyncio.sleep(self.sync_interval)

    async def _watch_loop(self) -> None:
        """Pick up records rewritten by other processes."""
        while True:
            await asyncio.sleep(self.monitor_interval)
            self.persistence.check_external_changes()

    # ---------- Running on a background thread ---------- #

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start_in_thread(self) -> None:
        """Run the supervisor on a dedicated event loop in a daemon thread."""
        if self.running:
            return

        loop_ready = threading.Event()
        loop = asyncio.new_event_loop()

        def run_loop() -> None:
            asyncio.set_event_loop(loop)
            loop_ready.set()
            _log.info("Supervisor event loop starting")
            loop.run_forever()
            _log.info("Supervisor event loop stopped")

        self._thread = threading.Thread(target=run_loop, name="pitchsync-supervisor", daemon=True)
        self._thread.start()
        if not loop_ready.wait(timeout=5):
            raise RuntimeError("Failed to start supervisor loop")
        self._loop = loop
        self.submit(self.start())

    def submit(self, coro: Awaitable[Any], timeout: float = 30.0) -> Any:
        """Run a coroutine on the supervisor loop and return its result (or raise)."""
        if self._loop is None or not self.running:
            raise RuntimeError("Supervisor loop is not running")
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result(timeout=timeout)

    def call(self, fn: Callable[..., Any], *args: Any, timeout: float = 30.0) -> Any:
        """Run a plain callable on the supervisor loop thread."""
        async def invoke() -> Any:
            return fn(*args)

        return self.submit(invoke(), timeout=timeout)

    def shutdown(self) -> None:
        if self._loop is None or not self.running:
            return
        self.submit(self.stop())
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5)
        self._thread = None
