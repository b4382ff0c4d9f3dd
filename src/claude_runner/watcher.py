"""
Directory watcher for the sessions directory.

Uses watchdog (inotify/FSEvents/kqueue) to observe the directory and
debounces bursts of events into a single callback. If a native observer
cannot be started, falls back to calling the callback on a fixed interval.
"""

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .config import DEFAULT_DEBOUNCE_INTERVAL, DEFAULT_POLL_INTERVAL

logger = logging.getLogger(__name__)

# Access events (opened/closed) are excluded: the store's own reads would retrigger reloads
RELEVANT_EVENT_TYPES = frozenset({
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
})

MODE_NATIVE = "native"
MODE_POLLING = "polling"


class _DirectoryEventHandler(FileSystemEventHandler):
    """Forwards relevant watchdog events to the watcher's debouncer."""

    def __init__(self, on_event: Callable[[], None]):
        super().__init__()
        self._on_event = on_event

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in RELEVANT_EVENT_TYPES:
            self._on_event()


class SessionDirectoryWatcher:
    """
    Watches a directory and invokes a callback after it changes.

    The callback is not called once per filesystem event: events within
    debounce_interval of each other collapse into one call. In polling mode
    the callback runs every poll_interval seconds regardless of changes.

    Usage:
        watcher = SessionDirectoryWatcher(sessions_dir)
        watcher.start(store.request_reload)
        ...
        watcher.stop()
    """

    def __init__(
        self,
        directory: Path | str,
        debounce_interval: float = DEFAULT_DEBOUNCE_INTERVAL,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        use_native: bool = True,
    ):
        self.directory = Path(directory).expanduser()
        self.debounce_interval = debounce_interval
        self.poll_interval = poll_interval
        self.use_native = use_native
        self.mode: Optional[str] = None

        self._on_change: Optional[Callable[[], None]] = None
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._stopped.set()
        self._generation = 0
        self._debounce_timer: Optional[threading.Timer] = None
        self._observer: Optional[Observer] = None
        self._poll_thread: Optional[threading.Thread] = None

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Could not create watched directory {self.directory}: {e}")

    @property
    def is_running(self) -> bool:
        return not self._stopped.is_set()

    def start(self, on_change: Callable[[], None]) -> None:
        """Begin observing; restarts the watcher if it is already running."""
        if self.is_running:
            self.stop()

        with self._lock:
            self._on_change = on_change
            self._stopped.clear()

        if self.use_native and self._start_native():
            self.mode = MODE_NATIVE
            logger.debug(f"Watching {self.directory} natively")
        else:
            self._start_polling()
            self.mode = MODE_POLLING

    def stop(self, timeout: float = 5.0) -> None:
        """
        Stop observing and cancel any pending callback.

        Idempotent. After it returns no new callback starts; one that was
        already running may still finish.
        """
        with self._lock:
            self._stopped.set()
            self._generation += 1
            timer, self._debounce_timer = self._debounce_timer, None
            observer, self._observer = self._observer, None
            poll_thread, self._poll_thread = self._poll_thread, None
            self._on_change = None

        if timer is not None:
            timer.cancel()
        if observer is not None:
            try:
                observer.stop()
                observer.join(timeout=timeout)
            except Exception as e:
                logger.warning(f"Error stopping directory observer: {e}")
        if poll_thread is not None and poll_thread is not threading.current_thread():
            poll_thread.join(timeout=timeout)
        self.mode = None

    def notify_change(self) -> None:
        """
        Record a change signal and (re)arm the debounce timer.

        Called by the native event handler for every relevant event.
        """
        with self._lock:
            if self._stopped.is_set():
                return
            if self._debounce_timer is not None:
                self._debounce_timer.cancel()
            self._generation += 1
            timer = threading.Timer(self.debounce_interval, self._fire, args=(self._generation,))
            timer.daemon = True
            self._debounce_timer = timer
            timer.start()

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A newer event or stop() supersedes this timer even if it already expired
            if self._stopped.is_set() or generation != self._generation:
                return
            self._debounce_timer = None
            callback = self._on_change
        if callback is not None:
            self._invoke(callback)

    def _start_native(self) -> bool:
        """Start a watchdog observer, returning False if it cannot be set up."""
        try:
            observer = Observer()
            observer.schedule(
                _DirectoryEventHandler(self.notify_change),
                str(self.directory),
                recursive=False,
            )
            observer.daemon = True
            observer.start()
        except Exception as e:
            logger.warning(
                f"Native watching unavailable for {self.directory} ({e}); "
                f"polling every {self.poll_interval:g}s"
            )
            return False

        with self._lock:
            self._observer = observer
        return True

    def _start_polling(self) -> None:
        thread = threading.Thread(
            target=self._poll_loop, name="claude-runner-poll", daemon=True
        )
        with self._lock:
            self._poll_thread = thread
        thread.start()

    def _poll_loop(self) -> None:
        while not self._stopped.wait(self.poll_interval):
            with self._lock:
                callback = self._on_change
            if callback is not None:
                self._invoke(callback)

    def _invoke(self, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:
            logger.exception("Directory change callback raised")
