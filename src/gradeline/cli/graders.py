# Copyright (c) Syntropy Systems
"""gradeline grader commands."""
from __future__ import annotations

from typing import Optional

import typer
from rich.table import Table

from gradeline.cli.common import console, open_store, resolve_grader, save_failed, truncate
from gradeline.config import ConfigurationError
from gradeline.db import PersistenceError


def add(
    name: str = typer.Argument(..., help="Grader name"),
    rubric: str = typer.Option("", "--rubric", "-r", help="Grading instructions"),
    description: str = typer.Option("", "--description", "-d", help="Short description"),
) -> None:
    """Create a grader."""
    store = open_store()
    if store.find_grader(name) is not None:
        console.print(f"[red]Error:[/red] Grader '{name}' already exists")
        raise typer.Exit(1)
    try:
        grader = store.add_grader(name, description=description, rubric=rubric)
    except (PersistenceError, ConfigurationError) as e:
        raise save_failed(e) from e
    console.print(f"[green]Created grader[/green] {grader.name} [dim]({grader.id})[/dim]")
    if not rubric:
        console.print("[dim]No rubric given; the default rubric will be used[/dim]")


def list_graders(
    full: bool = typer.Option(False, "--full", help="Show full rubrics"),
) -> None:
    """List graders."""
    store = open_store()
    if not store.graders:
        console.print("[dim]No graders found[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Description")
    table.add_column("Rubric")

    for grader in store.graders:
        rubric = grader.rubric if full else truncate(grader.rubric, 60)
        table.add_row(grader.id, grader.name, grader.description, rubric)

    console.print(table)


def edit(
    grader_ref: str = typer.Argument(..., help="Grader id or name"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="New name"),
    rubric: Optional[str] = typer.Option(None, "--rubric", "-r", help="New rubric"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="New description"),
) -> None:
    """Edit a grader. Existing results are kept."""
    store = open_store()
    grader = resolve_grader(store, grader_ref)

    if name is None and rubric is None and description is None:
        console.print("[yellow]Nothing to change[/yellow]")
        return

    try:
        updated = store.update_grader(grader.id, name=name, description=description, rubric=rubric)
    except (PersistenceError, ConfigurationError) as e:
        raise save_failed(e) from e
    console.print(f"[green]Updated grader[/green] {updated.name}")


def delete(
    grader_ref: str = typer.Argument(..., help="Grader id or name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a grader and all of its results."""
    store = open_store()
    grader = resolve_grader(store, grader_ref)

    if not yes:
        count = sum(1 for r in store.results if r.grader_id == grader.id)
        _ = typer.confirm(f"Delete '{grader.name}' and {count} result(s)?", abort=True)

    try:
        store.delete_grader(grader.id)
    except (PersistenceError, ConfigurationError) as e:
        raise save_failed(e) from e
    console.print(f"[green]Deleted grader[/green] {grader.name}")


grader_app = typer.Typer(
    name="grader",
    help="Manage graders.",
    no_args_is_help=True,
)

_ = grader_app.command()(add)
_ = grader_app.command(name="list")(list_graders)
_ = grader_app.command()(edit)
_ = grader_app.command()(delete)
