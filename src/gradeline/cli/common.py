# Copyright (c) Syntropy Systems
"""Helpers shared by gradeline CLI commands."""
from __future__ import annotations

from typing import TYPE_CHECKING

import typer
from rich.console import Console

from gradeline.config import ConfigurationError, project_db_path
from gradeline.db import PersistenceError, StateDatabase
from gradeline.store import EvalStore

if TYPE_CHECKING:
    from gradeline.models import Dataset, Grader

console = Console()


def open_store() -> EvalStore:
    """Open and load the store of the current project, or exit with an error."""
    try:
        db_path = project_db_path()
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    store = EvalStore(StateDatabase(db_path))
    try:
        _ = store.load(strict=True)
    except PersistenceError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    return store


def resolve_dataset(store: EvalStore, ref: str) -> Dataset:
    """Find a dataset by id or name, or exit with an error."""
    dataset = store.find_dataset(ref)
    if dataset is None:
        console.print(f"[red]Error:[/red] Dataset '{ref}' not found")
        raise typer.Exit(1)
    return dataset


def resolve_grader(store: EvalStore, ref: str) -> Grader:
    """Find a grader by id or name, or exit with an error."""
    grader = store.find_grader(ref)
    if grader is None:
        console.print(f"[red]Error:[/red] Grader '{ref}' not found")
        raise typer.Exit(1)
    return grader


def save_failed(e: Exception) -> typer.Exit:
    """Report an unsaved change and return the exit to raise."""
    console.print(f"[red]Not saved:[/red] {e}")
    return typer.Exit(1)


def truncate(text: str, width: int = 40) -> str:
    """Shorten text to one line of at most ``width`` characters."""
    line = " ".join((text or "").split())
    if len(line) <= width:
        return line
    return line[: width - 1] + "…"
