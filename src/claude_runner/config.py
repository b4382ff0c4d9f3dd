"""
Configuration system for claude-runner.

Provides RunnerConfig dataclass for store, watcher and notification settings
and load_config/save_config for persisting it as JSON in the app directory.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .models import SessionDisplayFormat
from .paths import get_config_path, get_sessions_dir


DEFAULT_STALE_TIMEOUT_SECONDS = 600
DEFAULT_DEBOUNCE_INTERVAL = 0.1
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_SWEEP_INTERVAL = 5.0

BOOL_VALUES = {
    "true": True, "yes": True, "on": True, "1": True,
    "false": False, "no": False, "off": False, "0": False,
}

# Settings exposed through 'claude-runner config', with descriptions for help text
SETTINGS = {
    "sessions_dir": "Directory the hook script writes session files to",
    "stale_timeout_seconds": "Seconds before an idle 'waiting' session is pruned",
    "notify_on_state_change": "Show an alert when a session needs approval or input",
    "display_format": "How session paths are shown: "
    + ", ".join(f.value for f in SessionDisplayFormat),
    "debounce_interval": "Quiet period (seconds) before reacting to file changes",
    "poll_interval": "Polling period (seconds) when native file watching is unavailable",
    "sweep_interval": "Period (seconds) of the staleness sweep",
}


def parse_bool(value: Any, key: str) -> bool:
    """Accept a JSON bool or one of the BOOL_VALUES strings; reject anything else."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in BOOL_VALUES:
        return BOOL_VALUES[value.strip().lower()]
    raise ValueError(f"{key} must be true or false")


def _default_sessions_dir() -> str:
    return str(get_sessions_dir())


def get_display_format_choices() -> list[str]:
    """Get list of valid display format values."""
    return [f.value for f in SessionDisplayFormat]


@dataclass
class RunnerConfig:
    """
    Configuration for claude-runner.

    Attributes:
        sessions_dir: Directory containing one <session_id>.json file per session
        stale_timeout_seconds: Age after which a 'waiting' session is pruned (default: 600)
        notify_on_state_change: Whether transitions raise alerts (default: True)
        display_format: Path display format for listings (default: full_path)
        debounce_interval: Debounce delay for native file events in seconds (default: 0.1)
        poll_interval: Polling fallback interval in seconds (default: 2.0)
        sweep_interval: Staleness sweep interval in seconds (default: 5.0)
    """

    sessions_dir: str = field(default_factory=_default_sessions_dir)
    stale_timeout_seconds: int = DEFAULT_STALE_TIMEOUT_SECONDS
    notify_on_state_change: bool = True
    display_format: str = SessionDisplayFormat.FULL_PATH.value
    debounce_interval: float = DEFAULT_DEBOUNCE_INTERVAL
    poll_interval: float = DEFAULT_POLL_INTERVAL
    sweep_interval: float = DEFAULT_SWEEP_INTERVAL

    def __post_init__(self):
        """Validate configuration values."""
        valid_formats = set(get_display_format_choices())
        if self.display_format not in valid_formats:
            raise ValueError(
                f"Invalid display_format: {self.display_format}. "
                f"Valid options: {sorted(valid_formats)}"
            )
        if not self.sessions_dir:
            raise ValueError("Invalid sessions_dir: must not be empty")
        if self.stale_timeout_seconds <= 0:
            raise ValueError(
                f"Invalid stale_timeout_seconds: {self.stale_timeout_seconds}. "
                f"Must be greater than 0"
            )
        for name in ("debounce_interval", "poll_interval", "sweep_interval"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"Invalid {name}: {value}. Must be greater than 0")

    @property
    def sessions_path(self) -> Path:
        return Path(self.sessions_dir).expanduser()

    @property
    def session_display_format(self) -> SessionDisplayFormat:
        return SessionDisplayFormat(self.display_format)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RunnerConfig":
        """Create RunnerConfig from a dictionary.

        Includes migration from the old stale_timeout_minutes setting.
        If both are present, stale_timeout_seconds takes precedence.
        """
        stale_timeout = data.get("stale_timeout_seconds")
        if stale_timeout is None and "stale_timeout_minutes" in data:
            stale_timeout = int(data["stale_timeout_minutes"]) * 60
        elif stale_timeout is None:
            stale_timeout = DEFAULT_STALE_TIMEOUT_SECONDS

        return cls(
            sessions_dir=data.get("sessions_dir") or _default_sessions_dir(),
            stale_timeout_seconds=int(stale_timeout),
            notify_on_state_change=parse_bool(
                data.get("notify_on_state_change", True), "notify_on_state_change"
            ),
            display_format=data.get("display_format", SessionDisplayFormat.FULL_PATH.value),
            debounce_interval=float(data.get("debounce_interval", DEFAULT_DEBOUNCE_INTERVAL)),
            poll_interval=float(data.get("poll_interval", DEFAULT_POLL_INTERVAL)),
            sweep_interval=float(data.get("sweep_interval", DEFAULT_SWEEP_INTERVAL)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "sessions_dir": self.sessions_dir,
            "stale_timeout_seconds": self.stale_timeout_seconds,
            "notify_on_state_change": self.notify_on_state_change,
            "display_format": self.display_format,
            "debounce_interval": self.debounce_interval,
            "poll_interval": self.poll_interval,
            "sweep_interval": self.sweep_interval,
        }


def load_config(config_path: str | Path | None = None) -> RunnerConfig:
    """
    Load configuration from file or return defaults.

    Args:
        config_path: Path to config file. If None, uses <app dir>/config.json

    Returns:
        RunnerConfig with loaded or default values
    """
    if config_path is None:
        config_path = get_config_path()
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        return RunnerConfig()

    try:
        data = json.loads(config_path.read_text())
        if not isinstance(data, dict):
            raise ValueError("top-level value must be an object")
        return RunnerConfig.from_dict(data)
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid config file {config_path}: {e}")


def save_config(config: RunnerConfig, config_path: str | Path | None = None) -> Path:
    """
    Save configuration to file.

    Args:
        config: RunnerConfig to save
        config_path: Path to config file. If None, saves to <app dir>/config.json

    Returns:
        Path the config was written to
    """
    if config_path is None:
        config_path = get_config_path()
    else:
        config_path = Path(config_path)

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(config.to_dict(), indent=2))
    return config_path
