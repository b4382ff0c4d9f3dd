"""
Interactive TUI dashboard for session status.

Provides a Rich Live-based TUI showing a status indicator, the sessions
table ordered by urgency, and actions (focus, reload, quit).
"""

import sys
from datetime import datetime, timezone
from typing import Callable, Optional

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .focus import focus_session, terminal_label
from .models import SessionDisplayFormat, SessionEntry, SessionState, StateCounts
from .monitor import StatusMonitor
from .notifier import Alert

STATE_STYLES = {
    SessionState.PERMISSION: "bold red",
    SessionState.WAITING: "yellow",
    SessionState.ACTIVE: "green",
}

DISPLAY_FORMATS = list(SessionDisplayFormat)


def render_indicator(counts: StateCounts) -> Text:
    """Traffic light for the dominant state, followed by per-state counts."""
    text = Text()
    dominant = counts.dominant_state
    for state in (SessionState.PERMISSION, SessionState.WAITING, SessionState.ACTIVE):
        style = STATE_STYLES[state] if dominant == state else "dim"
        text.append("●", style=style)
    text.append("  ")
    if dominant is None:
        text.append("No sessions", style="dim")
        return text
    parts = [
        (counts.permission_count, "permission", STATE_STYLES[SessionState.PERMISSION]),
        (counts.waiting_count, "waiting", STATE_STYLES[SessionState.WAITING]),
        (counts.active_count, "active", STATE_STYLES[SessionState.ACTIVE]),
    ]
    for i, (count, label, style) in enumerate(parts):
        if i > 0:
            text.append(" │ ", style="dim")
        text.append(str(count), style=style if count else "dim")
        text.append(f" {label}", style="white" if count else "dim")
    return text


class SessionsDashboard:
    """
    Interactive TUI dashboard for watching session states.

    Keyboard controls:
    - j/↓: Move selection down
    - k/↑: Move selection up
    - f/Enter: Focus the selected session's terminal
    - p: Cycle path display format
    - r: Reload sessions now
    - q: Quit
    """

    def __init__(
        self,
        monitor: StatusMonitor,
        display_format: SessionDisplayFormat = SessionDisplayFormat.FULL_PATH,
        focuser: Callable[[SessionEntry], bool] = focus_session,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.monitor = monitor
        self.display_format = display_format
        self.focuser = focuser
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.sessions: list[SessionEntry] = []
        self.counts = StateCounts()
        self.selected_index = 0
        self.running = False
        self.status_message = ""
        self.console = Console()
        self.monitor.add_alert_handler(self._on_alert)

    def refresh_sessions(self) -> None:
        """Pick up the latest published snapshot."""
        snapshot = self.monitor.snapshot
        self.sessions = list(snapshot.sessions)
        self.counts = snapshot.counts
        if self.selected_index >= len(self.sessions):
            self.selected_index = max(0, len(self.sessions) - 1)

    def get_selected_session(self) -> SessionEntry | None:
        """Get the currently selected session."""
        if not self.sessions or self.selected_index >= len(self.sessions):
            return None
        return self.sessions[self.selected_index]

    def handle_input(self, key: str) -> None:
        """Handle keyboard input."""
        if key in ("j", "down"):
            self._move_selection(1)
        elif key in ("k", "up"):
            self._move_selection(-1)
        elif key in ("f", "enter", "\r", "\n"):
            self._focus_selected()
        elif key == "p":
            self._cycle_display_format()
        elif key == "r":
            self.monitor.reload()
            self.refresh_sessions()
            self.status_message = "Reloaded"
        elif key == "q":
            self.running = False

    def _move_selection(self, delta: int) -> None:
        """Move selection by delta (wrapping around)."""
        if not self.sessions:
            return
        self.selected_index = (self.selected_index + delta) % len(self.sessions)

    def _cycle_display_format(self) -> None:
        index = DISPLAY_FORMATS.index(self.display_format)
        self.display_format = DISPLAY_FORMATS[(index + 1) % len(DISPLAY_FORMATS)]
        self.status_message = f"Paths: {self.display_format.value}"

    def _focus_selected(self) -> None:
        """Focus the terminal of the selected session."""
        session = self.get_selected_session()
        if not session:
            self.status_message = "No session selected"
            return
        if self.focuser(session):
            self.status_message = f"Focused: {session.project_name}"
        else:
            self.status_message = f"Cannot focus: {session.project_name}"

    def _on_alert(self, alert: Alert) -> None:
        # Runs on the store worker thread; only swaps a string
        self.status_message = f"{alert.title}: {alert.body}"

    def render(self) -> Panel:
        """Render the dashboard as a Rich renderable."""
        layout = Layout()
        layout.split_column(
            Layout(name="indicator", size=3, minimum_size=3),
            Layout(name="sessions", ratio=1),
            Layout(name="help", size=3, minimum_size=3),
        )
        layout["indicator"].update(Panel(render_indicator(self.counts), border_style="dim"))
        layout["sessions"].update(self._render_sessions_table())
        layout["help"].update(self._render_help())

        title = "claude-runner"
        if self.status_message:
            title += f" │ {self.status_message}"

        border = STATE_STYLES.get(self.counts.dominant_state, "blue")
        return Panel(layout, title=title, border_style=border)

    def _render_sessions_table(self) -> Table:
        """Render the sessions table."""
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("", width=2)  # Selection indicator
        table.add_column("State", width=11)
        table.add_column("Project", style="white")
        table.add_column("Elapsed", style="dim", justify="right")
        table.add_column("Terminal", style="dim")

        if not self.sessions:
            table.add_row("", "", Text("No sessions found", style="dim"), "", "")
            return table

        now = self.clock()
        for i, session in enumerate(self.sessions):
            selected = i == self.selected_index
            row_style = "reverse" if selected else ""
            table.add_row(
                Text("→" if selected else "", style="bold cyan"),
                Text(session.state.label, style=STATE_STYLES[session.state]),
                Text(session.formatted_path(self.display_format), style=row_style),
                session.elapsed_text(now),
                terminal_label(session),
            )

        return table

    def _render_help(self) -> Panel:
        """Render the help panel."""
        help_text = Text()
        keys = [
            ("j/k", "nav"),
            ("f", "focus"),
            ("p", "paths"),
            ("r", "reload"),
            ("q", "quit"),
        ]
        for i, (key, desc) in enumerate(keys):
            if i > 0:
                help_text.append(" │ ", style="dim")
            help_text.append(key, style="bold cyan")
            help_text.append(f" {desc}", style="white")

        return Panel(help_text, border_style="dim")

    def run(self) -> None:
        """Run the interactive dashboard until 'q' or Ctrl-C."""
        self.running = True
        self.refresh_sessions()

        try:
            with Live(self.render(), console=self.console, refresh_per_second=4) as live:
                import select
                import termios
                import tty

                old_settings = termios.tcgetattr(sys.stdin)
                try:
                    tty.setcbreak(sys.stdin.fileno())
                    while self.running:
                        # Check for input with timeout
                        if select.select([sys.stdin], [], [], 0.25)[0]:
                            key = sys.stdin.read(1)
                            if key == "\x1b":  # Escape sequence
                                if select.select([sys.stdin], [], [], 0.1)[0]:
                                    seq = sys.stdin.read(2)
                                    if seq == "[A":
                                        key = "up"
                                    elif seq == "[B":
                                        key = "down"
                            self.status_message = ""
                            self.handle_input(key)
                        self.refresh_sessions()
                        live.update(self.render())
                finally:
                    termios.tcsetattr(sys.stdin, termios.TCSADRAIN, old_settings)
        except KeyboardInterrupt:
            pass
