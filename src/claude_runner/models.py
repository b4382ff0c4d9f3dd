"""
Value types for session tracking.

SessionEntry mirrors one session file written by the hook script. Entries are
immutable and rebuilt on every reload; StateCounts and Snapshot are always
derived from a full list of entries, never updated incrementally.
"""

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone, timedelta
from enum import Enum
from typing import Any, Iterable, Optional


class SessionFileError(ValueError):
    """Raised when a session file does not describe a valid session."""


class SessionState(Enum):
    """State reported by the hook for one session."""
    ACTIVE = "active"
    WAITING = "waiting"
    PERMISSION = "permission"

    @property
    def priority(self) -> int:
        """Urgency of the state (higher = more urgent)."""
        return _PRIORITIES[self]

    @property
    def label(self) -> str:
        return self.value

    def __lt__(self, other: "SessionState") -> bool:
        if not isinstance(other, SessionState):
            return NotImplemented
        return self.priority < other.priority

    def __le__(self, other: "SessionState") -> bool:
        if not isinstance(other, SessionState):
            return NotImplemented
        return self.priority <= other.priority

    def __gt__(self, other: "SessionState") -> bool:
        if not isinstance(other, SessionState):
            return NotImplemented
        return self.priority > other.priority

    def __ge__(self, other: "SessionState") -> bool:
        if not isinstance(other, SessionState):
            return NotImplemented
        return self.priority >= other.priority


_PRIORITIES = {
    SessionState.ACTIVE: 1,
    SessionState.WAITING: 2,
    SessionState.PERMISSION: 3,
}


class SessionDisplayFormat(Enum):
    """How session paths are shown in listings."""
    FULL_PATH = "full_path"            # ~/work/claude-runner
    DIRECTORY_ONLY = "directory_only"  # claude-runner
    LAST_TWO_DIRS = "last_two_dirs"    # work/claude-runner


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO-8601 timestamp into a timezone-aware datetime.

    A trailing "Z" is accepted as UTC and naive values are assumed to be UTC.

    Raises:
        SessionFileError: If the value is not a string or cannot be parsed
    """
    if not isinstance(value, str) or not value.strip():
        raise SessionFileError(f"Timestamp must be a non-empty string, got {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise SessionFileError(f"Invalid timestamp {value!r}: {e}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    """Format a datetime the way the hook script writes it."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _required_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise SessionFileError(f"Missing or invalid '{key}'")
    return value


def _optional_str(data: dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise SessionFileError(f"Invalid '{key}': expected string, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class SessionEntry:
    """One external session, as described by its session file."""

    session_id: str
    cwd: str
    state: SessionState
    updated_at: datetime
    started_at: Optional[datetime] = None
    terminal_bundle_id: Optional[str] = None
    tty: Optional[str] = None

    @property
    def id(self) -> str:
        return self.session_id

    @property
    def project_name(self) -> str:
        """Last path component of cwd ("/" for the root directory)."""
        stripped = self.cwd.rstrip("/")
        if not stripped:
            return "/"
        return os.path.basename(stripped)

    @property
    def reference_time(self) -> datetime:
        """Start of the session if known, otherwise its last update."""
        if self.started_at is not None:
            return self.started_at
        return self.updated_at

    def elapsed(self, now: Optional[datetime] = None) -> timedelta:
        """Time elapsed since reference_time."""
        if now is None:
            now = datetime.now(timezone.utc)
        return now - self.reference_time

    def elapsed_text(self, now: Optional[datetime] = None) -> str:
        """Compact elapsed time, e.g. "< 1m", "3m", "2h", "1h 23m"."""
        seconds = int(self.elapsed(now).total_seconds())
        if seconds < 60:
            return "< 1m"
        minutes = seconds // 60
        if minutes < 60:
            return f"{minutes}m"
        hours, remaining = divmod(minutes, 60)
        if remaining == 0:
            return f"{hours}h"
        return f"{hours}h {remaining}m"

    def formatted_path(self, display_format: SessionDisplayFormat = SessionDisplayFormat.FULL_PATH) -> str:
        """Render cwd according to the display format setting."""
        if display_format == SessionDisplayFormat.DIRECTORY_ONLY:
            return self.project_name
        if display_format == SessionDisplayFormat.LAST_TWO_DIRS:
            parts = [p for p in self.cwd.split("/") if p]
            if len(parts) >= 2:
                return "/".join(parts[-2:])
            return self.project_name
        home = os.path.expanduser("~")
        if home and home != "/" and (self.cwd == home or self.cwd.startswith(home + "/")):
            return "~" + self.cwd[len(home):]
        return self.cwd

    @property
    def display_path(self) -> str:
        return self.formatted_path(SessionDisplayFormat.FULL_PATH)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the session file format."""
        data: dict[str, Any] = {
            "session_id": self.session_id,
            "cwd": self.cwd,
            "state": self.state.value,
            "updated_at": format_timestamp(self.updated_at),
        }
        if self.started_at is not None:
            data["started_at"] = format_timestamp(self.started_at)
        if self.terminal_bundle_id is not None:
            data["terminal_bundle_id"] = self.terminal_bundle_id
        if self.tty is not None:
            data["tty"] = self.tty
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "SessionEntry":
        """
        Build an entry from decoded session file contents.

        Raises:
            SessionFileError: If required fields are missing, the state is
                unknown, or a timestamp cannot be parsed
        """
        if not isinstance(data, dict):
            raise SessionFileError(f"Session file must contain a JSON object, got {type(data).__name__}")

        raw_state = data.get("state")
        try:
            state = SessionState(raw_state)
        except ValueError:
            raise SessionFileError(f"Unknown state {raw_state!r}")

        started_raw = data.get("started_at")
        return cls(
            session_id=_required_str(data, "session_id"),
            cwd=_required_str(data, "cwd"),
            state=state,
            updated_at=parse_timestamp(data.get("updated_at")),
            started_at=parse_timestamp(started_raw) if started_raw is not None else None,
            terminal_bundle_id=_optional_str(data, "terminal_bundle_id"),
            tty=_optional_str(data, "tty"),
        )

    @classmethod
    def from_json(cls, text: str) -> "SessionEntry":
        try:
            data = json.loads(text)
        except (ValueError, RecursionError) as e:
            # ValueError covers JSONDecodeError and oversized integer literals
            raise SessionFileError(f"Malformed JSON: {e}")
        return cls.from_dict(data)


@dataclass(frozen=True)
class StateCounts:
    """Number of sessions per state."""

    active_count: int = 0
    waiting_count: int = 0
    permission_count: int = 0

    @property
    def total_count(self) -> int:
        return self.active_count + self.waiting_count + self.permission_count

    @property
    def dominant_state(self) -> Optional[SessionState]:
        """Highest priority state present, or None if there are no sessions."""
        if self.permission_count > 0:
            return SessionState.PERMISSION
        if self.waiting_count > 0:
            return SessionState.WAITING
        if self.active_count > 0:
            return SessionState.ACTIVE
        return None

    def count_for(self, state: SessionState) -> int:
        if state == SessionState.PERMISSION:
            return self.permission_count
        if state == SessionState.WAITING:
            return self.waiting_count
        return self.active_count

    @classmethod
    def from_entries(cls, entries: Iterable[SessionEntry]) -> "StateCounts":
        active = waiting = permission = 0
        for entry in entries:
            if entry.state == SessionState.ACTIVE:
                active += 1
            elif entry.state == SessionState.WAITING:
                waiting += 1
            else:
                permission += 1
        return cls(active_count=active, waiting_count=waiting, permission_count=permission)

    def to_dict(self) -> dict[str, Any]:
        dominant = self.dominant_state
        return {
            "active": self.active_count,
            "waiting": self.waiting_count,
            "permission": self.permission_count,
            "total": self.total_count,
            "dominant_state": dominant.value if dominant else None,
        }


def sort_entries(entries: Iterable[SessionEntry]) -> list[SessionEntry]:
    """Order entries by state priority (highest first), then most recently updated."""
    return sorted(
        entries,
        key=lambda e: (e.state.priority, e.updated_at),
        reverse=True,
    )


@dataclass(frozen=True)
class Snapshot:
    """Ordered sessions and their counts, computed by a single reload."""

    sessions: tuple[SessionEntry, ...] = ()
    counts: StateCounts = field(default_factory=StateCounts)

    @classmethod
    def from_entries(cls, entries: Iterable[SessionEntry]) -> "Snapshot":
        ordered = sort_entries(entries)
        return cls(sessions=tuple(ordered), counts=StateCounts.from_entries(ordered))

    def get(self, session_id: str) -> Optional[SessionEntry]:
        for entry in self.sessions:
            if entry.session_id == session_id:
                return entry
        return None
