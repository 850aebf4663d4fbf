"""CLI — init, serve, status, log, users, add, project commands, reset, briefing, summary."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from sitedesk.config import Config
from sitedesk.core.advisory import AdvisoryService
from sitedesk.core.gate import ConfirmationGate
from sitedesk.core.session import SessionState
from sitedesk.events.bus import EventBus
from sitedesk.models.commands import AdvanceProgress, PendingUpdate, ReportShortage, SetPhase
from sitedesk.models.project import PHASES, Health, Phase
from sitedesk.models.resource import ResourceStatus
from sitedesk.seed import USERS
from sitedesk.storage.sqlite_store import SQLiteStore

CANCEL_CHOICE = "cancel"

_HEALTH_STYLE = {
    Health.NORMAL: "green",
    Health.MISSING_MATERIAL: "bold red",
    Health.BLOCKED: "yellow",
}


@click.group()
@click.version_option(package_name="sitedesk")
@click.option(
    "--workspace",
    type=click.Path(file_okay=False),
    default=None,
    help="Workspace directory (default: $SITEDESK_WORKSPACE or ~/.sitedesk)",
)
@click.pass_context
def main(ctx: click.Context, workspace: str | None) -> None:
    """sitedesk — project and phase tracking for electrical contracting sites."""
    config = Config.load(Path(workspace).expanduser().resolve() if workspace else None)
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = config


def _run(config: Config, fn: Callable[[SessionState], Awaitable[Any]]) -> Any:
    """Open the workspace session, run fn against it, and close the store."""
    if not config.db_path.exists():
        click.echo(f"Error: No database at {config.db_path}. Run 'sitedesk init' first.", err=True)
        sys.exit(1)

    async def _go() -> Any:
        store = SQLiteStore(config.db_path, wal_mode=config.wal_mode)
        await store.initialize()
        try:
            session = SessionState(store, EventBus(), config)
            await session.load()
            return await fn(session)
        finally:
            await store.close()

    return asyncio.run(_go())


def _progress_bar(progress: int, width: int = 20) -> str:
    filled = round(progress / 100 * width)
    return "█" * filled + "░" * (width - filled)


def _phase_track(current: Phase) -> str:
    idx = PHASES.index(current)
    return " ".join("●" if i <= idx else "○" for i in range(len(PHASES)))


@main.command()
@click.pass_obj
def init(config: Config) -> None:
    """Initialize a new sitedesk workspace with the seed projects."""

    async def _init() -> None:
        store = SQLiteStore(config.db_path, wal_mode=config.wal_mode)
        await store.initialize()
        try:
            await SessionState(store, EventBus(), config).load()
        finally:
            await store.close()
        config.save()

    asyncio.run(_init())
    click.echo(f"Initialized workspace at {config.workspace_path}")
    click.echo(f"Database: {config.db_path}")
    click.echo("Add to your MCP client config:")
    click.echo(
        f'  "sitedesk": {{"command": "sitedesk", '
        f'"args": ["--workspace", "{config.workspace_path}", "serve"]}}'
    )


@main.command()
@click.option("--transport", type=click.Choice(["stdio"]), default="stdio")
@click.pass_obj
def serve(config: Config, transport: str) -> None:
    """Start the MCP server."""
    if not config.db_path.exists():
        click.echo(f"Error: No database at {config.db_path}. Run 'sitedesk init' first.", err=True)
        sys.exit(1)

    from sitedesk.server import create_server

    server = create_server(str(config.db_path), config=config)
    server.run(transport=transport)  # type: ignore[arg-type]


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON instead of tables")
@click.pass_obj
def status(config: Config, as_json: bool) -> None:
    """Show projects, resource board and recent activity."""

    async def _status(session: SessionState):
        return session.snapshot()

    snap = _run(config, _status)

    if as_json:
        click.echo(
            json.dumps(
                {
                    "projects": [p.to_storage() for p in snap.projects],
                    "resources": [r.to_response() for r in snap.resources],
                    "logs": [e.to_storage() for e in snap.logs[:10]],
                },
                indent=2,
                ensure_ascii=False,
            )
        )
        return

    console = Console()

    projects = Table(title="Projects")
    projects.add_column("ID", style="cyan")
    projects.add_column("Name")
    projects.add_column("Progress")
    projects.add_column("Phase")
    projects.add_column("Health")
    projects.add_column("Next step")
    for p in snap.projects:
        style = _HEALTH_STYLE.get(p.health, "")
        projects.add_row(
            p.id,
            p.name,
            f"{_progress_bar(p.progress)} {p.progress}%",
            f"{_phase_track(p.current_phase)} {p.current_phase.value}",
            f"[{style}]{p.health.value}[/{style}]" if style else p.health.value,
            p.next_step,
        )
    if not snap.projects:
        projects.add_row("-", "No active projects. Use 'sitedesk add' to register one.")
    console.print(projects)

    board = Table(title="Resource Board")
    board.add_column("Category", style="cyan")
    board.add_column("Status")
    board.add_column("Message")
    for r in snap.resources:
        label = r.status.value
        if r.status == ResourceStatus.URGENT:
            label = f"[bold red]{label}[/bold red]"
        board.add_row(r.category, label, r.message)
    console.print(board)

    lines = [
        f"{e.timestamp:%Y-%m-%d %H:%M} {'[red]![/red] ' if e.urgent else ''}"
        f"[bold]{e.project_name}[/bold] {e.user_name}: {e.action}"
        for e in snap.logs[:10]
    ]
    console.print(Panel("\n".join(lines), title="Recent Activity"))


@main.command()
@click.option("--limit", default=20, help="Number of entries to show")
@click.pass_obj
def log(config: Config, limit: int) -> None:
    """Show the activity log, newest first."""

    async def _log(session: SessionState):
        return session.snapshot().logs[:limit]

    entries = _run(config, _log)
    table = Table(title="Activity Log")
    table.add_column("Time", style="magenta")
    table.add_column("Project", style="cyan")
    table.add_column("User")
    table.add_column("Action")
    for e in entries:
        action = f"[bold red]{e.action}[/bold red]" if e.urgent else e.action
        table.add_row(f"{e.timestamp:%Y-%m-%d %H:%M:%S}", e.project_name, e.user_name, action)
    Console().print(table)


@main.command()
def users() -> None:
    """List the roster of users who can confirm commands."""
    table = Table(title="Roster")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Role")
    for u in USERS:
        table.add_row(u.id, u.name, u.role)
    Console().print(table)


@main.command()
@click.argument("name")
@click.option("--next-step", default=None, help="Immediate next task")
@click.option("--support", default="", help="Comma-separated resource requests")
@click.option("--team", default="", help="Comma-separated responsible personnel")
@click.pass_obj
def add(config: Config, name: str, next_step: str | None, support: str, team: str) -> None:
    """Register a new project at site survey."""

    async def _add(session: SessionState):
        return await session.add_project(
            name=name,
            next_step=next_step,
            support_needed=support.split(","),
            responsible_team=team.split(","),
        )

    try:
        project = _run(config, _add)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="NAME") from e

    Console().print(
        Panel(
            f"[green]✓[/green] Project registered: {project.name}\n"
            f"ID: {project.id}\n"
            f"Team: {', '.join(project.responsible_team)}\n"
            f"Next step: {project.next_step}",
            title="Project Created",
        )
    )


def _commit(config: Config, command: PendingUpdate, user: str | None) -> None:
    """Queue command behind the confirmation gate and ask who signs for it."""
    names = [u.name for u in USERS]
    if user is None:
        click.echo("Who is performing this update?")
        for u in USERS:
            click.echo(f"  {u.name} ({u.role})")
        user = click.prompt(
            "User",
            type=click.Choice([*names, CANCEL_CHOICE], case_sensitive=False),
            default=CANCEL_CHOICE,
        )

    async def _confirm(session: SessionState):
        gate = ConfirmationGate(session)
        gate.issue(command)
        if user.lower() == CANCEL_CHOICE:
            gate.cancel()
            return "cancelled"
        actor = session.find_user(user)
        if actor is None:
            gate.cancel()
            return "unknown-user"
        return await gate.confirm(actor)

    result = _run(config, _confirm)
    if result == "cancelled":
        click.echo("Cancelled; nothing changed.")
        return
    if result == "unknown-user":
        raise click.BadParameter(f"Unknown user: {user}", param_hint="--user")
    if result is None:
        click.echo(f"Error: Project not found: {command.project_id}", err=True)
        sys.exit(1)

    click.echo(
        f"{result.name}: {result.progress}% | "
        f"{result.current_phase.value} | {result.health.value}"
    )


_USER_OPTION = click.option(
    "--user", default=None, help="Acting user ID or name (prompted if omitted)"
)


@main.command()
@click.argument("project_id")
@_USER_OPTION
@click.pass_obj
def advance(config: Config, project_id: str, user: str | None) -> None:
    """Advance a project's progress by one step."""
    _commit(config, AdvanceProgress(project_id=project_id), user)


@main.command()
@click.argument("project_id")
@_USER_OPTION
@click.pass_obj
def shortage(config: Config, project_id: str, user: str | None) -> None:
    """Report an urgent material shortage on a project."""
    _commit(config, ReportShortage(project_id=project_id), user)


@main.command()
@click.argument("project_id")
@click.argument("target", type=click.Choice([p.value for p in Phase]))
@_USER_OPTION
@click.pass_obj
def phase(config: Config, project_id: str, target: str, user: str | None) -> None:
    """Jump a project to any phase, forward or back."""
    _commit(config, SetPhase(project_id=project_id, target_phase=Phase(target)), user)


@main.command()
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
@click.pass_obj
def reset(config: Config, yes: bool) -> None:
    """Wipe all stored projects and activity and restore the seed data."""
    if not yes and not click.confirm(
        "This deletes every project and log entry. Continue?", default=False
    ):
        click.echo("Reset aborted.")
        return

    async def _reset(session: SessionState):
        return await session.reset(confirm=True)

    _run(config, _reset)
    click.echo("All data reset to the seed projects.")


@main.command()
@click.pass_obj
def briefing(config: Config) -> None:
    """Ask the advisor for a briefing on the current projects."""

    async def _briefing(session: SessionState):
        snap = session.snapshot()
        return await AdvisoryService(config).briefing(snap.projects, snap.logs)

    text = _run(config, _briefing)
    Console().print(Panel(text, title="Advisor Briefing"))


@main.command()
@click.pass_obj
def summary(config: Config) -> None:
    """Ask the advisor for today's summary of the activity log."""

    async def _summary(session: SessionState):
        return await AdvisoryService(config).summary(session.snapshot().logs)

    text = _run(config, _summary)
    Console().print(Panel(text, title="Daily Summary"))


if __name__ == "__main__":
    main()
