"""
Desktop alert delivery.

Shows an Alert as a system notification (osascript on macOS, notify-send
on Linux) and falls back to a terminal bell when no notifier is available
or it fails.
"""

import logging
import shutil
import subprocess
import sys
from typing import Optional

from rich.console import Console

from .focus import escape_applescript
from .notifier import Alert

logger = logging.getLogger(__name__)

NOTIFY_TIMEOUT = 10
APP_TITLE = "claude-runner"


def build_notification_command(alert: Alert, platform: Optional[str] = None) -> Optional[list[str]]:
    """
    Build the command that shows a system notification for this platform.

    Returns:
        Command argv, or None if no notifier is available
    """
    if platform is None:
        platform = sys.platform

    if platform == "darwin":
        if shutil.which("osascript") is None:
            return None
        script = (
            f'display notification "{escape_applescript(alert.body)}" '
            f'with title "{escape_applescript(alert.title)}" '
            f'subtitle "{APP_TITLE}" sound name "default"'
        )
        return ["osascript", "-e", script]

    if platform.startswith("linux"):
        if shutil.which("notify-send") is None:
            return None
        return ["notify-send", "--app-name", APP_TITLE, alert.title, alert.body]

    return None


class DesktopAlertSink:
    """Alert handler that shows system notifications, ringing the bell as a fallback."""

    def __init__(self, console: Optional[Console] = None, platform: Optional[str] = None):
        self.console = console or Console(stderr=True)
        self.platform = platform

    def __call__(self, alert: Alert) -> None:
        self.send(alert)

    def send(self, alert: Alert) -> bool:
        """Show the alert. Returns True if a system notification was shown."""
        command = build_notification_command(alert, self.platform)
        if command is not None:
            try:
                result = subprocess.run(
                    command,
                    capture_output=True,
                    text=True,
                    timeout=NOTIFY_TIMEOUT,
                )
                if result.returncode == 0:
                    return True
                logger.debug(f"Notification command exited with {result.returncode}")
            except (OSError, subprocess.TimeoutExpired) as e:
                logger.debug(f"Notification command failed: {e}")

        self.console.bell()
        return False
