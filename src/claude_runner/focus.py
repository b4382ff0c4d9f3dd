"""
Bring the terminal of a session to the foreground.

The hook records the terminal application's bundle id and the session's tty.
A lookup table maps known bundle ids to a focus strategy:
- iTerm2: activate the app, then select the tab whose session has the tty
- Terminal.app: activate the app, then raise the window with the tty
- anything else: activate the app by bundle id
Scripts are run through osascript (macOS only).
"""

import logging
import subprocess
from typing import Callable

from .models import SessionEntry

logger = logging.getLogger(__name__)

ITERM_BUNDLE_ID = "com.googlecode.iterm2"
TERMINAL_BUNDLE_ID = "com.apple.Terminal"

OSASCRIPT_TIMEOUT = 10


def escape_applescript(value: str) -> str:
    """Escape a value for use inside an AppleScript string literal."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def run_applescript(source: str) -> bool:
    """Run an AppleScript snippet, returning True on success."""
    try:
        result = subprocess.run(
            ["osascript", "-e", source],
            capture_output=True,
            text=True,
            timeout=OSASCRIPT_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"osascript failed: {e}")
        return False
    if result.returncode != 0:
        logger.debug(f"osascript exited with {result.returncode}: {result.stderr.strip()}")
        return False
    return True


def activate_app(bundle_id: str) -> bool:
    return run_applescript(f'tell application id "{escape_applescript(bundle_id)}" to activate')


def iterm_script(tty: str) -> str:
    escaped = escape_applescript(tty)
    return f"""
tell application "iTerm2"
    repeat with w in windows
        repeat with t in tabs of w
            repeat with s in sessions of t
                try
                    if tty of s is "{escaped}" then
                        select t
                        set index of w to 1
                        return
                    end if
                end try
            end repeat
        end repeat
    end repeat
end tell
"""


def terminal_app_script(tty: str) -> str:
    escaped = escape_applescript(tty)
    return f"""
tell application "Terminal"
    repeat with w in windows
        try
            if tty of w is "{escaped}" then
                set index of w to 1
                set frontmost of w to true
                return
            end if
        end try
    end repeat
end tell
"""


def _focus_with_tty_script(bundle_id: str, script_for_tty: Callable[[str], str]) -> Callable[[SessionEntry], bool]:
    def focus(entry: SessionEntry) -> bool:
        activated = activate_app(bundle_id)
        if not entry.tty:
            return activated
        return run_applescript(script_for_tty(entry.tty))
    return focus


FOCUS_STRATEGIES: dict[str, Callable[[SessionEntry], bool]] = {
    ITERM_BUNDLE_ID: _focus_with_tty_script(ITERM_BUNDLE_ID, iterm_script),
    TERMINAL_BUNDLE_ID: _focus_with_tty_script(TERMINAL_BUNDLE_ID, terminal_app_script),
}


KNOWN_APP_NAMES = {
    TERMINAL_BUNDLE_ID: "Terminal",
    ITERM_BUNDLE_ID: "iTerm2",
    "net.kovidgoyal.kitty": "Kitty",
    "com.github.wez.wezterm": "WezTerm",
    "dev.warp.Warp-Stable": "Warp",
    "com.microsoft.VSCode": "VS Code",
    "com.microsoft.VSCodeInsiders": "VS Code Insiders",
    "dev.zed.Zed": "Zed",
    "com.sublimetext.4": "Sublime Text",
    "com.jetbrains.intellij": "IntelliJ",
    "com.jetbrains.intellij.ce": "IntelliJ CE",
    "com.jetbrains.WebStorm": "WebStorm",
    "com.jetbrains.pycharm": "PyCharm",
    "com.jetbrains.pycharm.ce": "PyCharm CE",
    "com.jetbrains.CLion": "CLion",
    "com.jetbrains.goland": "GoLand",
    "com.jetbrains.rider": "Rider",
    "com.jetbrains.rubymine": "RubyMine",
    "com.jetbrains.PhpStorm": "PhpStorm",
    "com.jetbrains.datagrip": "DataGrip",
    "com.todesktop.230313mzl4w4u92": "Cursor",
}


def app_name(bundle_id: str) -> str:
    """Human-readable name for a bundle id, falling back to its last component."""
    known = KNOWN_APP_NAMES.get(bundle_id)
    if known:
        return known
    return bundle_id.rsplit(".", 1)[-1] or bundle_id


def terminal_label(entry: SessionEntry) -> str:
    """Terminal app name and tty of a session for listings, e.g. "iTerm2 /dev/ttys003"."""
    parts = []
    if entry.terminal_bundle_id:
        parts.append(app_name(entry.terminal_bundle_id))
    if entry.tty:
        parts.append(entry.tty)
    return " ".join(parts)


def focus_session(entry: SessionEntry) -> bool:
    """
    Focus the terminal window that runs the given session.

    Returns:
        True if a focus action succeeded, False otherwise (including when the
        session did not record its terminal)
    """
    bundle_id = entry.terminal_bundle_id or ""
    if not bundle_id:
        logger.debug(f"Session {entry.session_id} has no terminal to focus")
        return False

    strategy = FOCUS_STRATEGIES.get(bundle_id)
    if strategy is None:
        return activate_app(bundle_id)
    return strategy(entry)
