"""
Shared pytest fixtures for claude_runner tests.
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from claude_runner.logging_config import reset_logging
from claude_runner.models import SessionEntry, SessionState, format_timestamp


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def write_session(
    directory: Path,
    id: str,
    state: str = "active",
    cwd: str = "/tmp/project",
    updated_at: datetime | None = None,
    started_at: datetime | None = None,
    terminal_bundle_id: str | None = None,
    tty: str | None = None,
) -> Path:
    """Helper to write a session file the way the hook script does."""
    data = {
        "session_id": id,
        "cwd": cwd,
        "state": state,
        "updated_at": format_timestamp(updated_at or utcnow()),
    }
    if started_at is not None:
        data["started_at"] = format_timestamp(started_at)
    if terminal_bundle_id is not None:
        data["terminal_bundle_id"] = terminal_bundle_id
    if tty is not None:
        data["tty"] = tty
    path = directory / f"{id}.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def make_entry(
    id: str = "s1",
    state: SessionState = SessionState.ACTIVE,
    cwd: str = "/tmp/project",
    updated_at: datetime | None = None,
    started_at: datetime | None = None,
    terminal_bundle_id: str | None = None,
    tty: str | None = None,
) -> SessionEntry:
    """Helper to create entries with defaults."""
    return SessionEntry(
        session_id=id,
        cwd=cwd,
        state=state,
        updated_at=updated_at or utcnow(),
        started_at=started_at,
        terminal_bundle_id=terminal_bundle_id,
        tty=tty,
    )


def minutes_ago(minutes: float) -> datetime:
    return utcnow() - timedelta(minutes=minutes)


@pytest.fixture(autouse=True)
def isolated_app_dir(tmp_path, monkeypatch):
    """Point the app directory at a temp dir and reset logging around each test."""
    app_dir = tmp_path / "app"
    monkeypatch.setenv("CLAUDE_RUNNER_HOME", str(app_dir))
    reset_logging()
    yield app_dir
    reset_logging()


@pytest.fixture
def sessions_dir(tmp_path):
    """An empty sessions directory."""
    directory = tmp_path / "sessions"
    directory.mkdir()
    return directory
