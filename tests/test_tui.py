"""
Tests for TUI dashboard.

Tests SessionsDashboard rendering, keyboard navigation, and actions.
"""

import pytest
from datetime import timedelta
from unittest.mock import MagicMock

from rich.console import Console

from claude_runner.models import SessionDisplayFormat, SessionState, Snapshot, StateCounts
from claude_runner.notifier import Alert
from claude_runner.tui import SessionsDashboard, render_indicator

from conftest import make_entry, utcnow


def render_text(renderable) -> str:
    console = Console(width=120, record=True, force_terminal=False)
    console.print(renderable)
    return console.export_text()


class TestRenderIndicator:
    """Tests for the traffic light indicator."""

    def test_no_sessions(self):
        """Empty counts should say there are no sessions."""
        assert "No sessions" in render_indicator(StateCounts()).plain

    def test_shows_counts(self):
        """Every state count should be shown."""
        text = render_indicator(StateCounts(active_count=3, waiting_count=1, permission_count=2)).plain
        assert "2 permission" in text
        assert "1 waiting" in text
        assert "3 active" in text


class TestSessionsDashboard:
    """Tests for the SessionsDashboard class."""

    @pytest.fixture
    def snapshot(self):
        now = utcnow()
        return Snapshot.from_entries([
            make_entry("a1", SessionState.ACTIVE, cwd="/opt/work/api", updated_at=now),
            make_entry(
                "p1", SessionState.PERMISSION, cwd="/opt/work/web",
                updated_at=now - timedelta(minutes=3),
                terminal_bundle_id="com.googlecode.iterm2", tty="/dev/ttys001",
            ),
            make_entry("w1", SessionState.WAITING, cwd="/opt/work/docs", updated_at=now),
        ])

    @pytest.fixture
    def mock_monitor(self, snapshot):
        """Create a mock monitor that publishes the snapshot."""
        monitor = MagicMock()
        monitor.snapshot = snapshot
        return monitor

    @pytest.fixture
    def focuser(self):
        return MagicMock(return_value=True)

    @pytest.fixture
    def dashboard(self, mock_monitor, focuser):
        """Create a dashboard instance with a mocked monitor."""
        return SessionsDashboard(mock_monitor, focuser=focuser)

    def test_dashboard_init(self, dashboard, mock_monitor):
        """Dashboard should register for alerts and start unselected at the top."""
        assert dashboard.monitor == mock_monitor
        assert dashboard.selected_index == 0
        assert dashboard.running is False
        mock_monitor.add_alert_handler.assert_called_once_with(dashboard._on_alert)

    def test_refresh_sessions(self, dashboard):
        """refresh_sessions should copy the snapshot in urgency order."""
        dashboard.refresh_sessions()
        assert [s.session_id for s in dashboard.sessions] == ["p1", "w1", "a1"]
        assert dashboard.counts.total_count == 3

    def test_refresh_clamps_selection(self, dashboard, mock_monitor):
        dashboard.refresh_sessions()
        dashboard.selected_index = 2
        mock_monitor.snapshot = Snapshot.from_entries([make_entry("only")])

        dashboard.refresh_sessions()
        assert dashboard.selected_index == 0
        assert dashboard.get_selected_session().session_id == "only"

    def test_move_selection_down(self, dashboard):
        """'j' key should move selection down."""
        dashboard.refresh_sessions()
        dashboard.handle_input("j")
        assert dashboard.selected_index == 1
        dashboard.handle_input("down")
        assert dashboard.selected_index == 2

    def test_move_selection_wraps(self, dashboard):
        """Moving past either end should wrap around."""
        dashboard.refresh_sessions()
        dashboard.handle_input("k")
        assert dashboard.selected_index == 2
        dashboard.handle_input("j")
        assert dashboard.selected_index == 0

    def test_move_selection_empty(self, mock_monitor, focuser):
        mock_monitor.snapshot = Snapshot()
        dashboard = SessionsDashboard(mock_monitor, focuser=focuser)
        dashboard.refresh_sessions()
        dashboard.handle_input("j")
        assert dashboard.selected_index == 0
        assert dashboard.get_selected_session() is None

    def test_focus_selected(self, dashboard, focuser):
        """'f' should focus the selected session's terminal."""
        dashboard.refresh_sessions()
        dashboard.handle_input("f")

        focuser.assert_called_once()
        assert focuser.call_args[0][0].session_id == "p1"
        assert dashboard.status_message == "Focused: web"

    def test_focus_with_enter(self, dashboard, focuser):
        dashboard.refresh_sessions()
        dashboard.handle_input("\r")
        focuser.assert_called_once()

    def test_focus_failure(self, dashboard, focuser):
        focuser.return_value = False
        dashboard.refresh_sessions()
        dashboard.handle_input("j")
        dashboard.handle_input("f")
        assert dashboard.status_message == "Cannot focus: docs"

    def test_focus_without_sessions(self, mock_monitor, focuser):
        mock_monitor.snapshot = Snapshot()
        dashboard = SessionsDashboard(mock_monitor, focuser=focuser)
        dashboard.refresh_sessions()
        dashboard.handle_input("f")
        focuser.assert_not_called()
        assert dashboard.status_message == "No session selected"

    def test_cycle_display_format(self, dashboard):
        """'p' should cycle through every path format and back."""
        assert dashboard.display_format == SessionDisplayFormat.FULL_PATH
        dashboard.handle_input("p")
        assert dashboard.display_format == SessionDisplayFormat.DIRECTORY_ONLY
        dashboard.handle_input("p")
        assert dashboard.display_format == SessionDisplayFormat.LAST_TWO_DIRS
        dashboard.handle_input("p")
        assert dashboard.display_format == SessionDisplayFormat.FULL_PATH

    def test_reload(self, dashboard, mock_monitor):
        """'r' should reload the monitor and refresh."""
        dashboard.handle_input("r")
        mock_monitor.reload.assert_called_once()
        assert len(dashboard.sessions) == 3
        assert dashboard.status_message == "Reloaded"

    def test_quit(self, dashboard):
        """'q' should stop the dashboard loop."""
        dashboard.running = True
        dashboard.handle_input("q")
        assert dashboard.running is False

    def test_unknown_key_ignored(self, dashboard):
        dashboard.refresh_sessions()
        dashboard.handle_input("x")
        assert dashboard.selected_index == 0
        assert dashboard.running is False

    def test_alert_sets_status_message(self, dashboard):
        dashboard._on_alert(Alert(title="Needs Approval", body="1 session needs approval"))
        assert dashboard.status_message == "Needs Approval: 1 session needs approval"

    def test_render_lists_sessions(self, dashboard):
        """render should include each session's path and state."""
        dashboard.refresh_sessions()
        output = render_text(dashboard.render())
        assert "/opt/work/web" in output
        assert "permission" in output
        assert "iTerm2" in output
        assert "/dev/ttys001" in output

    def test_render_uses_display_format(self, dashboard):
        dashboard.refresh_sessions()
        dashboard.display_format = SessionDisplayFormat.LAST_TWO_DIRS
        output = render_text(dashboard.render())
        assert "work/docs" in output
        assert "/opt/work/docs" not in output

    def test_render_empty_sessions(self, mock_monitor, focuser):
        """render should handle an empty session list."""
        mock_monitor.snapshot = Snapshot()
        dashboard = SessionsDashboard(mock_monitor, focuser=focuser)
        dashboard.refresh_sessions()
        output = render_text(dashboard.render())
        assert "No sessions found" in output

    def test_render_shows_status_message(self, dashboard):
        dashboard.refresh_sessions()
        dashboard.status_message = "Reloaded"
        assert "Reloaded" in render_text(dashboard.render())
