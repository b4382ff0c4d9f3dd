"""
Well-known locations for claude-runner data.

The application directory holds the sessions/ directory written by the hook
script, the config file, and logs.
"""

import os
import sys
from pathlib import Path

APP_NAME = "claude-runner"
SESSIONS_DIRNAME = "sessions"
CONFIG_FILENAME = "config.json"
LOGS_DIRNAME = "logs"


def get_app_dir() -> Path:
    """
    Get the application data directory.

    Resolution order:
    - $CLAUDE_RUNNER_HOME
    - ~/Library/Application Support/claude-runner on macOS
    - $XDG_DATA_HOME/claude-runner (default ~/.local/share/claude-runner)
    """
    override = os.environ.get("CLAUDE_RUNNER_HOME")
    if override:
        return Path(override).expanduser()

    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME

    xdg_data = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg_data).expanduser() if xdg_data else Path.home() / ".local" / "share"
    return base / APP_NAME


def get_sessions_dir() -> Path:
    return get_app_dir() / SESSIONS_DIRNAME


def get_config_path() -> Path:
    return get_app_dir() / CONFIG_FILENAME


def get_logs_dir() -> Path:
    return get_app_dir() / LOGS_DIRNAME
