"""
CLI entry point for claude-runner.
"""

import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import (
    SETTINGS,
    RunnerConfig,
    get_display_format_choices,
    load_config,
    parse_bool,
    save_config,
)
from .focus import focus_session, terminal_label
from .logging_config import setup_logging
from .models import SessionState
from .paths import get_config_path
from .store import StateStore


console = Console()

STATE_COLORS = {
    SessionState.PERMISSION: "red",
    SessionState.WAITING: "yellow",
    SessionState.ACTIVE: "green",
}

# Map CLI keys (with hyphens) to config keys (with underscores)
CONFIG_KEYS = {key.replace("_", "-"): key for key in SETTINGS}


def _get_config(ctx: click.Context) -> RunnerConfig:
    """Load the config selected with --config (or the default one)."""
    config_path = ctx.obj.get("config_path") if ctx.obj else None
    try:
        return load_config(config_path)
    except ValueError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise SystemExit(1)


def _load_store(config: RunnerConfig) -> StateStore:
    """Create a store and load the sessions directory once."""
    return StateStore(
        config.sessions_path,
        stale_threshold=config.stale_timeout_seconds,
        auto_reload=True,
    )


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "-c", "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to config file. Default: <app dir>/config.json",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Log debug output to stderr.",
)
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool):
    """claude-runner - live status of your Claude Code sessions

    Reads the session files written by the claude-runner hook and shows
    which sessions are active, waiting for input, or need approval.

    \b
    Quick start:
      claude-runner init       Write a config file
      claude-runner status     Show session counts
      claude-runner sessions   List sessions by urgency
      claude-runner watch      Live dashboard with alerts
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    setup_logging(
        level=logging.DEBUG if verbose else None,
        console_output=verbose,
    )


@main.command()
@click.option(
    "--json", "as_json",
    is_flag=True,
    help="Print sessions as JSON instead of a table.",
)
@click.pass_context
def sessions(ctx: click.Context, as_json: bool):
    """List sessions, most urgent first.

    \b
    Permission requests come first, then sessions waiting for input,
    then active ones; within a state the most recently updated first.
    """
    config = _get_config(ctx)
    snapshot = _load_store(config).snapshot

    if as_json:
        payload = {
            "sessions": [entry.to_dict() for entry in snapshot.sessions],
            "counts": snapshot.counts.to_dict(),
        }
        click.echo(json.dumps(payload, indent=2))
        return

    if not snapshot.sessions:
        console.print("[dim]No sessions found[/]")
        return

    display_format = config.session_display_format
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Session", style="dim")
    table.add_column("State")
    table.add_column("Project", style="white")
    table.add_column("Elapsed", justify="right")
    table.add_column("Terminal", style="dim")

    for entry in snapshot.sessions:
        color = STATE_COLORS[entry.state]
        table.add_row(
            entry.session_id,
            f"[{color}]{entry.state.label}[/]",
            entry.formatted_path(display_format),
            entry.elapsed_text(),
            terminal_label(entry),
        )

    console.print(table)


@main.command()
@click.pass_context
def status(ctx: click.Context):
    """Show session counts and the overall state."""
    config = _get_config(ctx)
    counts = _load_store(config).counts

    dominant = counts.dominant_state
    if dominant is None:
        console.print("[dim]No active sessions[/]")
        return

    color = STATE_COLORS[dominant]
    console.print(f"[{color}]●[/] [bold]{dominant.label}[/] [dim]({counts.total_count} sessions)[/]")
    for state in (SessionState.PERMISSION, SessionState.WAITING, SessionState.ACTIVE):
        count = counts.count_for(state)
        style = STATE_COLORS[state] if count else "dim"
        console.print(f"  [{style}]{count:>3}[/] {state.label}")


@main.command()
@click.option(
    "--no-notify",
    is_flag=True,
    help="Do not show desktop notifications for state changes.",
)
@click.pass_context
def watch(ctx: click.Context, no_notify: bool):
    """Launch the live dashboard.

    \b
    Keeps the session list in sync with the sessions directory and
    raises a desktop notification when a session needs approval or
    starts waiting for input.

    \b
    Keyboard controls:
      j/↓    Move selection down
      k/↑    Move selection up
      f      Focus the selected session's terminal
      p      Cycle path display format
      r      Reload now
      q      Quit dashboard
    """
    from .alerts import DesktopAlertSink
    from .monitor import StatusMonitor
    from .tui import SessionsDashboard

    config = _get_config(ctx)
    if no_notify:
        config.notify_on_state_change = False

    monitor = StatusMonitor(config)
    monitor.add_alert_handler(DesktopAlertSink())
    dashboard = SessionsDashboard(monitor, display_format=config.session_display_format)

    try:
        monitor.start()
        dashboard.run()
    except KeyboardInterrupt:
        pass
    except Exception as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise SystemExit(1)
    finally:
        monitor.stop()


@main.command()
@click.argument("session_id")
@click.pass_context
def focus(ctx: click.Context, session_id: str):
    """Bring the terminal of SESSION_ID to the front (macOS)."""
    config = _get_config(ctx)
    entry = _load_store(config).snapshot.get(session_id)
    if entry is None:
        console.print(f"[bold red]Error:[/] Session '{session_id}' not found")
        raise SystemExit(1)

    if focus_session(entry):
        console.print(f"[green]✓[/] Focused {entry.project_name}")
    else:
        console.print(f"[yellow]Could not focus the terminal for '{session_id}'[/]")
        raise SystemExit(1)


@main.command()
@click.option(
    "--force", "-f",
    is_flag=True,
    help="Overwrite existing configuration",
)
@click.option(
    "--sessions-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory the hook writes session files to.",
)
@click.option(
    "--stale-timeout",
    type=int,
    default=None,
    help="Seconds before an idle 'waiting' session is pruned (default: 600).",
)
@click.option(
    "--display-format",
    type=click.Choice(get_display_format_choices()),
    default=None,
    help="How session paths are displayed.",
)
@click.option(
    "--no-notify",
    is_flag=True,
    help="Disable notifications on state changes.",
)
@click.pass_context
def init(
    ctx: click.Context,
    force: bool,
    sessions_dir: str | None,
    stale_timeout: int | None,
    display_format: str | None,
    no_notify: bool,
):
    """Write the claude-runner configuration file.

    \b
    Creates:
      <app dir>/config.json   Settings for the store, watcher and alerts
      <sessions dir>/         Directory the hook script writes to
    """
    config_path = Path(ctx.obj.get("config_path") or get_config_path())

    if config_path.exists() and not force:
        console.print(f"[yellow]Configuration already exists at {config_path}[/]")
        console.print("   Use --force to overwrite existing configuration")
        return

    defaults = RunnerConfig()
    try:
        config = RunnerConfig(
            sessions_dir=sessions_dir or defaults.sessions_dir,
            stale_timeout_seconds=stale_timeout if stale_timeout is not None else defaults.stale_timeout_seconds,
            notify_on_state_change=not no_notify,
            display_format=display_format or defaults.display_format,
        )
    except ValueError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise SystemExit(1)

    save_config(config, config_path)
    config.sessions_path.mkdir(parents=True, exist_ok=True)

    console.print(f"[green]✓[/] Created {config_path}")
    console.print(f"   Sessions: {config.sessions_path}")
    console.print(f"   Stale timeout: {config.stale_timeout_seconds}s")
    console.print(f"   Notifications: {'on' if config.notify_on_state_change else 'off'}")


@main.group()
def config():
    """View and modify claude-runner configuration.

    \b
    Commands:
      show    Display current configuration
      set     Update a configuration value
    """
    pass


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context):
    """Display current configuration in a formatted table."""
    runner_config = _get_config(ctx)
    config_dict = runner_config.to_dict()
    config_path = ctx.obj.get("config_path") or get_config_path()

    console.print(f"[dim]Config file:[/] {config_path}\n")

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="white")
    table.add_column("Current Value", style="green")
    table.add_column("Description", style="dim")

    for cli_key, config_key in CONFIG_KEYS.items():
        table.add_row(cli_key, str(config_dict[config_key]), SETTINGS[config_key])

    console.print(table)


def _coerce_value(config_key: str, value: str):
    """Convert a CLI string to the type of the config field."""
    current = getattr(RunnerConfig(), config_key)
    if isinstance(current, bool):
        return parse_bool(value, config_key)
    if isinstance(current, int):
        try:
            return int(value)
        except ValueError:
            raise ValueError(f"{config_key} must be an integer")
    if isinstance(current, float):
        try:
            return float(value)
        except ValueError:
            raise ValueError(f"{config_key} must be a number")
    return value


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str):
    """Set a configuration value.

    \b
    KEY is one of: sessions-dir, stale-timeout-seconds, notify-on-state-change,
    display-format, debounce-interval, poll-interval, sweep-interval

    \b
    Examples:
      claude-runner config set stale-timeout-seconds 900
      claude-runner config set display-format last_two_dirs
    """
    if key not in CONFIG_KEYS:
        valid_keys = ", ".join(CONFIG_KEYS.keys())
        console.print(f"[bold red]Error:[/] Unknown config key '{key}'")
        console.print(f"Valid keys: {valid_keys}")
        raise SystemExit(1)

    config_key = CONFIG_KEYS[key]
    runner_config = _get_config(ctx)

    try:
        data = runner_config.to_dict()
        data[config_key] = _coerce_value(config_key, value)
        updated = RunnerConfig(**data)
    except ValueError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise SystemExit(1)

    save_config(updated, ctx.obj.get("config_path"))
    console.print(f"[green]✓[/] Set {key} = {data[config_key]}")


if __name__ == "__main__":
    main()
