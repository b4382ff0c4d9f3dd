"""
claude-runner - live status of concurrently running Claude Code sessions.

A hook script writes one small JSON file per session into a well-known
directory. claude-runner watches that directory, keeps an ordered and
counted view of the sessions, prunes abandoned ones, and raises an alert
when a session starts needing approval or input.
"""

__version__ = "0.3.0"

from .models import (
    SessionState,
    SessionEntry,
    SessionFileError,
    SessionDisplayFormat,
    StateCounts,
    Snapshot,
)
from .config import (
    RunnerConfig,
    load_config,
    save_config,
)
from .store import StateStore
from .watcher import SessionDirectoryWatcher
from .notifier import (
    Alert,
    TransitionNotifier,
    evaluate,
)
from .monitor import StatusMonitor

__all__ = [
    # Version
    "__version__",
    # Models
    "SessionState",
    "SessionEntry",
    "SessionFileError",
    "SessionDisplayFormat",
    "StateCounts",
    "Snapshot",
    # Config
    "RunnerConfig",
    "load_config",
    "save_config",
    # Core
    "StateStore",
    "SessionDirectoryWatcher",
    "Alert",
    "TransitionNotifier",
    "evaluate",
    "StatusMonitor",
]
