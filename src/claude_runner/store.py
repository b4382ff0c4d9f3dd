"""
Session state store.

Derives the set of live sessions from the files in the sessions directory.
Every reload re-reads the whole directory, prunes abandoned 'waiting'
sessions, and publishes one Snapshot atomically. Reloads are serialized, and
a background worker coalesces reload requests and runs the periodic
staleness sweep.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

from .config import DEFAULT_STALE_TIMEOUT_SECONDS, DEFAULT_SWEEP_INTERVAL
from .models import SessionEntry, SessionFileError, SessionState, Snapshot, StateCounts

logger = logging.getLogger(__name__)

SESSION_FILE_SUFFIX = ".json"

SnapshotCallback = Callable[[Snapshot, Snapshot], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StateStore:
    """
    Single source of truth for which sessions exist and in what state.

    Usage:
        store = StateStore(Path("~/.local/share/claude-runner/sessions").expanduser())
        unsubscribe = store.subscribe(lambda previous, current: ...)
        store.start()          # worker thread + staleness sweep
        store.request_reload() # e.g. from the directory watcher
        store.stop()
    """

    def __init__(
        self,
        sessions_dir: Path | str,
        stale_threshold: float = DEFAULT_STALE_TIMEOUT_SECONDS,
        auto_reload: bool = True,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the store.

        Args:
            sessions_dir: Directory containing <session_id>.json files
            stale_threshold: Seconds after which a 'waiting' session is pruned
            auto_reload: Load the directory immediately
            sweep_interval: Seconds between staleness sweeps once started
            clock: Returns the current time (timezone-aware); for tests
        """
        self.sessions_dir = Path(sessions_dir).expanduser()
        self.stale_threshold = timedelta(seconds=stale_threshold)
        self.sweep_interval = sweep_interval
        self._clock = clock or _utcnow

        self._snapshot = Snapshot()
        self._snapshot_lock = threading.Lock()
        self._reload_lock = threading.RLock()
        self._subscribers: list[SnapshotCallback] = []
        self._subscribers_lock = threading.Lock()

        self._pending = threading.Event()
        self._stop_event = threading.Event()
        self._worker: Optional[threading.Thread] = None

        try:
            self.sessions_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Could not create sessions directory {self.sessions_dir}: {e}")

        if auto_reload:
            self.reload()

    @property
    def snapshot(self) -> Snapshot:
        """The most recently published snapshot."""
        with self._snapshot_lock:
            return self._snapshot

    @property
    def sessions(self) -> tuple[SessionEntry, ...]:
        return self.snapshot.sessions

    @property
    def counts(self) -> StateCounts:
        return self.snapshot.counts

    def subscribe(self, callback: SnapshotCallback) -> Callable[[], None]:
        """
        Register callback(previous, current), called after every publication.

        Callbacks run on the reloading thread, in publication order.

        Returns:
            Function that removes the subscription
        """
        with self._subscribers_lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._subscribers_lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def reload(self) -> Snapshot:
        """Re-read the sessions directory and publish a new snapshot."""
        with self._reload_lock:
            snapshot = Snapshot.from_entries(self._load_entries())
            with self._snapshot_lock:
                previous = self._snapshot
                self._snapshot = snapshot
            self._publish(previous, snapshot)
            return snapshot

    def request_reload(self) -> None:
        """
        Ask the worker to reload soon.

        Requests made while a reload is running collapse into one follow-up
        pass. Without a running worker the reload happens synchronously.
        """
        if self._worker is None:
            self.reload()
            return
        self._pending.set()

    def start(self) -> None:
        """Start the background worker and staleness sweep."""
        if self._worker is not None:
            return
        # Each worker gets its own stop event so one that outlives stop() still exits
        self._stop_event = threading.Event()
        self._worker = threading.Thread(
            target=self._run,
            args=(self._stop_event,),
            name="claude-runner-store",
            daemon=True,
        )
        self._worker.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the background worker. Safe to call repeatedly."""
        worker = self._worker
        if worker is None:
            return
        self._stop_event.set()
        self._pending.set()
        if worker is not threading.current_thread():
            worker.join(timeout=timeout)
            if worker.is_alive():
                logger.warning(f"Store worker did not stop within {timeout}s")
        self._worker = None

    @property
    def is_running(self) -> bool:
        return self._worker is not None

    def _run(self, stop_event: threading.Event) -> None:
        """Worker loop: reload on request, or every sweep_interval seconds."""
        while not stop_event.is_set():
            self._pending.wait(timeout=self.sweep_interval)
            if stop_event.is_set():
                break
            self._pending.clear()
            try:
                self.reload()
            except Exception:
                logger.exception("Session reload failed")

    def _publish(self, previous: Snapshot, current: Snapshot) -> None:
        with self._subscribers_lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(previous, current)
            except Exception:
                logger.exception("Snapshot subscriber raised")

    def _load_entries(self) -> list[SessionEntry]:
        try:
            paths = sorted(self.sessions_dir.iterdir())
        except OSError as e:
            logger.warning(f"Cannot list sessions directory {self.sessions_dir}: {e}")
            return []

        now = self._clock()
        entries: list[SessionEntry] = []
        for path in paths:
            if path.suffix != SESSION_FILE_SUFFIX:
                continue
            entry = self._read_entry(path)
            if entry is None:
                continue
            if self._is_stale(entry, now):
                self._prune(path, entry)
                continue
            entries.append(entry)
        return entries

    def _read_entry(self, path: Path) -> Optional[SessionEntry]:
        """Parse one session file, or return None if it is unreadable or invalid."""
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Skipping unreadable session file {path.name}: {e}")
            return None

        try:
            entry = SessionEntry.from_json(text)
        except SessionFileError as e:
            # Often a partial write in progress; the next reload picks it up
            logger.debug(f"Skipping invalid session file {path.name}: {e}")
            return None

        if entry.session_id != path.stem:
            logger.warning(
                f"Skipping session file {path.name}: session_id {entry.session_id!r} "
                f"does not match file name"
            )
            return None
        return entry

    def _is_stale(self, entry: SessionEntry, now: datetime) -> bool:
        # Only idle sessions expire; active/permission sessions are cleared by the hook
        return entry.state == SessionState.WAITING and now - entry.updated_at > self.stale_threshold

    def _prune(self, path: Path, entry: SessionEntry) -> None:
        try:
            path.unlink()
            logger.info(f"Pruned stale waiting session {entry.session_id} ({entry.cwd})")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not delete stale session file {path.name}: {e}")
