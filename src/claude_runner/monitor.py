"""
Top-level composition of store, watcher and notifier.

Lifecycle: construct -> start() -> run -> stop(). stop() shuts the watcher
down before the store so no change callback reaches a stopped store.
"""

import logging
from typing import Optional

from .config import RunnerConfig
from .models import Snapshot
from .notifier import Alert, AlertHandler, TransitionNotifier
from .store import StateStore
from .watcher import SessionDirectoryWatcher

logger = logging.getLogger(__name__)


class StatusMonitor:
    """
    Keeps a StateStore in sync with its directory and raises alerts on transitions.

    Usage:
        with StatusMonitor(load_config()) as monitor:
            monitor.notifier.subscribe(print)
            ...
    """

    def __init__(
        self,
        config: Optional[RunnerConfig] = None,
        store: Optional[StateStore] = None,
        watcher: Optional[SessionDirectoryWatcher] = None,
        notifier: Optional[TransitionNotifier] = None,
    ):
        self.config = config or RunnerConfig()
        self.store = store or StateStore(
            self.config.sessions_path,
            stale_threshold=self.config.stale_timeout_seconds,
            sweep_interval=self.config.sweep_interval,
        )
        self.watcher = watcher or SessionDirectoryWatcher(
            self.config.sessions_path,
            debounce_interval=self.config.debounce_interval,
            poll_interval=self.config.poll_interval,
        )
        self.notifier = notifier or TransitionNotifier(
            enabled=self.config.notify_on_state_change
        )
        self.last_alert: Optional[Alert] = None
        self._unsubscribe = None
        self._running = False

    @property
    def snapshot(self) -> Snapshot:
        return self.store.snapshot

    @property
    def is_running(self) -> bool:
        return self._running

    def reload(self) -> Snapshot:
        """Reload the store immediately (e.g. when a view is opened)."""
        return self.store.reload()

    def add_alert_handler(self, handler: AlertHandler) -> None:
        self.notifier.subscribe(handler)

    def start(self) -> None:
        """Subscribe to the store, start its worker, then start watching."""
        if self._running:
            return
        self._unsubscribe = self.store.subscribe(self._on_snapshot)
        # Sessions found at launch count as a transition from no sessions
        self._on_snapshot(Snapshot(), self.store.snapshot)
        self.store.start()
        self.watcher.start(self.store.request_reload)
        self._running = True
        self.store.request_reload()
        logger.info(
            f"Monitoring {self.store.sessions_dir} "
            f"(watcher: {self.watcher.mode}, stale after {self.config.stale_timeout_seconds}s)"
        )

    def stop(self) -> None:
        """Stop the watcher first, then the store. Safe to call repeatedly."""
        self.watcher.stop()
        self.store.stop()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._running:
            logger.info("Monitoring stopped")
        self._running = False

    def _on_snapshot(self, previous: Snapshot, current: Snapshot) -> None:
        alert = self.notifier.notify(previous.counts, current.counts, current.sessions)
        if alert is not None:
            self.last_alert = alert

    def __enter__(self) -> "StatusMonitor":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
