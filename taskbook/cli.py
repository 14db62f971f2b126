#!/usr/bin/env python3
"""TaskBook administration CLI.

Command-line interface for setting up the store and inspecting groups,
memberships and tasks without going through the API layer.
"""

import json
from uuid import UUID

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import get_settings
from .database import get_session_context, init_database, verify_database
from .exceptions import TaskBookError
from .logging_setup import configure_logging
from .services import TaskBookService


# Initialize CLI and console
app = typer.Typer(help="TaskBook group and task management CLI")
console = Console()


def _fail(message: str) -> None:
    console.print(f"[bold red]{message}[/bold red]")
    raise typer.Exit(code=1)


@app.command("init-db")
def init_db():
    """Create all tables in the configured database."""
    init_database()
    console.print(f"[green]Database ready at {get_settings().database.url}[/green]")


@app.command("verify-db")
def verify_db():
    """Check that every table can be queried and show row counts."""
    counts = verify_database()
    if counts is None:
        _fail("Database verification failed")

    table = Table(title="Database", show_header=True, header_style="bold magenta")
    table.add_column("Table", style="cyan")
    table.add_column("Rows", style="white")
    for name, count in counts.items():
        table.add_row(name, str(count))
    console.print(table)


@app.command("server-time")
def server_time():
    """Show the current time as reported by the store."""
    try:
        with get_session_context() as session:
            now = TaskBookService(session).get_server_time()
    except TaskBookError as e:
        _fail(f"Error reading server time: {e}")
    console.print(now.isoformat())


@app.command()
def groups(user_id: UUID = typer.Argument(..., help="User identifier")):
    """List every group the user owns or belongs to."""
    try:
        with get_session_context() as session:
            memberships = TaskBookService(session).list_user_memberships(user_id)
    except TaskBookError as e:
        _fail(f"Error listing groups: {e}")

    if not memberships:
        console.print("[yellow]No groups found[/yellow]")
        return

    table = Table(title="Groups", show_header=True, header_style="bold magenta")
    table.add_column("Group ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Relation", style="green")
    table.add_column("Active", style="white")
    for membership in memberships:
        table.add_row(
            str(membership.group_id),
            membership.group.name if membership.group else "",
            membership.relation_type.value,
            "yes" if membership.group and membership.group.is_active else "no",
        )
    console.print(table)


@app.command()
def tasks(
    user_id: UUID = typer.Argument(..., help="User identifier"),
    assigned: bool = typer.Option(
        False, "--assigned", help="Only assigned tasks that are not completed"
    ),
):
    """List tasks across the user's groups."""
    try:
        with get_session_context() as session:
            service = TaskBookService(session)
            found = (
                service.list_user_assignments(user_id)
                if assigned
                else service.list_user_tasks(user_id)
            )
    except TaskBookError as e:
        _fail(f"Error listing tasks: {e}")

    if not found:
        console.print("[yellow]No tasks found[/yellow]")
        return

    table = Table(title="Tasks", show_header=True, header_style="bold blue")
    table.add_column("Task ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Group", style="white")
    table.add_column("Deadline", style="white")
    table.add_column("Assignee", style="green")
    table.add_column("Done", style="white")
    for task in found:
        table.add_row(
            str(task.id),
            task.title,
            task.group.name if task.group else str(task.group_id),
            task.deadline.strftime("%Y-%m-%d %H:%M"),
            task.assigned_to_user.display_name if task.assigned_to_user else "-",
            "yes" if task.is_completed else "no",
        )
    console.print(table)


@app.command("create-group")
def create_group(
    user_id: UUID = typer.Argument(..., help="Owner user identifier"),
    name: str = typer.Argument(..., help="Group name"),
    inactive: bool = typer.Option(False, "--inactive", help="Create the group inactive"),
):
    """Create a group owned by the given user."""
    limits = get_settings().groups
    if not limits.name_min_length <= len(name) <= limits.name_max_length:
        _fail(
            f"The group name must be at least {limits.name_min_length} "
            f"and at max {limits.name_max_length} characters long."
        )

    try:
        with get_session_context() as session:
            owned = TaskBookService(session).create_group(user_id, name, not inactive)
    except TaskBookError as e:
        _fail(f"Error creating group: {e}")
    console.print(f"[green]Created group {owned.group_id} ({name})[/green]")


@app.command("show-config")
def show_config():
    """Show the effective configuration."""
    console.print(
        Panel(
            json.dumps(get_settings().model_dump(mode="json"), indent=2),
            title="Current Configuration",
            border_style="blue",
        )
    )


@app.callback()
def main():
    """TaskBook CLI.

    Manage the TaskBook store and inspect groups and tasks.
    """
    configure_logging()


if __name__ == "__main__":
    app()
