# Copyright (c) Syntropy Systems
"""gradeline dataset commands."""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import typer
from rich.table import Table

from gradeline.cli.common import console, open_store, resolve_dataset, save_failed, truncate
from gradeline.config import ConfigurationError
from gradeline.db import PersistenceError

if TYPE_CHECKING:
    from gradeline.models import Dataset, TestCase


def _resolve_case(dataset: Dataset, ref: str) -> TestCase:
    """Find a test case by id or by 1-based position."""
    test_case = dataset.get_test_case(ref)
    if test_case is not None:
        return test_case
    if ref.isdigit() and 1 <= int(ref) <= len(dataset.test_cases):
        return dataset.test_cases[int(ref) - 1]
    console.print(f"[red]Error:[/red] Test case '{ref}' not found in {dataset.name}")
    raise typer.Exit(1)


def add(
    name: str = typer.Argument(..., help="Dataset name"),
) -> None:
    """Create an empty dataset."""
    store = open_store()
    if store.find_dataset(name) is not None:
        console.print(f"[red]Error:[/red] Dataset '{name}' already exists")
        raise typer.Exit(1)
    try:
        dataset = store.add_dataset(name)
    except (PersistenceError, ConfigurationError) as e:
        raise save_failed(e) from e
    console.print(f"[green]Created dataset[/green] {dataset.name} [dim]({dataset.id})[/dim]")


def list_datasets() -> None:
    """List datasets."""
    store = open_store()
    if not store.datasets:
        console.print("[dim]No datasets found[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Cases", justify="right")
    table.add_column("Graded", justify="right")

    for dataset in store.datasets:
        case_ids = {tc.id for tc in dataset.test_cases}
        graded = sum(1 for r in store.results if r.test_case_id in case_ids)
        table.add_row(dataset.id, dataset.name, str(len(dataset.test_cases)), str(graded))

    console.print(table)


def show(
    dataset_ref: str = typer.Argument(..., help="Dataset id or name"),
) -> None:
    """Show the test cases of a dataset."""
    store = open_store()
    dataset = resolve_dataset(store, dataset_ref)

    console.print(f"[bold]{dataset.name}[/bold] [dim]({dataset.id})[/dim]")
    if not dataset.test_cases:
        console.print("[dim]No test cases[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("ID", style="dim")
    table.add_column("Input")
    table.add_column("Expected output")

    for i, tc in enumerate(dataset.test_cases, 1):
        table.add_row(str(i), tc.id, truncate(tc.input, 50), truncate(tc.expected_output, 50))

    console.print(table)


def rename(
    dataset_ref: str = typer.Argument(..., help="Dataset id or name"),
    name: str = typer.Argument(..., help="New name"),
) -> None:
    """Rename a dataset."""
    store = open_store()
    dataset = resolve_dataset(store, dataset_ref)
    try:
        store.rename_dataset(dataset.id, name)
    except (PersistenceError, ConfigurationError) as e:
        raise save_failed(e) from e
    console.print(f"[green]Renamed[/green] {dataset.name} -> {name}")


def delete(
    dataset_ref: str = typer.Argument(..., help="Dataset id or name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a dataset, its test cases and their results."""
    store = open_store()
    dataset = resolve_dataset(store, dataset_ref)

    if not yes:
        _ = typer.confirm(
            f"Delete '{dataset.name}' and {len(dataset.test_cases)} test case(s)?",
            abort=True,
        )

    try:
        store.delete_dataset(dataset.id)
    except (PersistenceError, ConfigurationError) as e:
        raise save_failed(e) from e
    console.print(f"[green]Deleted dataset[/green] {dataset.name}")


def add_case(
    dataset_ref: str = typer.Argument(..., help="Dataset id or name"),
    input: str = typer.Option(..., "--input", "-i", help="Test case input"),
    expected: str = typer.Option("", "--expected", "-e", help="Expected output"),
) -> None:
    """Add a test case to a dataset."""
    store = open_store()
    dataset = resolve_dataset(store, dataset_ref)
    try:
        test_case = store.add_test_case(dataset.id, input, expected)
    except (PersistenceError, ConfigurationError) as e:
        raise save_failed(e) from e
    console.print(
        f"[green]Added test case[/green] {test_case.id} to {dataset.name} "
        f"[dim](#{len(dataset.test_cases) + 1})[/dim]"
    )


def edit_case(
    dataset_ref: str = typer.Argument(..., help="Dataset id or name"),
    case_ref: str = typer.Argument(..., help="Test case id or 1-based position"),
    input: Optional[str] = typer.Option(None, "--input", "-i", help="New input"),
    expected: Optional[str] = typer.Option(None, "--expected", "-e", help="New expected output"),
) -> None:
    """Edit a test case. Changing it discards its previous results."""
    store = open_store()
    dataset = resolve_dataset(store, dataset_ref)
    test_case = _resolve_case(dataset, case_ref)

    if input is None and expected is None:
        console.print("[yellow]Nothing to change[/yellow]")
        return

    try:
        _ = store.update_test_case(dataset.id, test_case.id, input=input, expected_output=expected)
    except (PersistenceError, ConfigurationError) as e:
        raise save_failed(e) from e
    console.print(f"[green]Updated test case[/green] {test_case.id}")


def delete_case(
    dataset_ref: str = typer.Argument(..., help="Dataset id or name"),
    case_ref: str = typer.Argument(..., help="Test case id or 1-based position"),
) -> None:
    """Delete a test case and its results."""
    store = open_store()
    dataset = resolve_dataset(store, dataset_ref)
    test_case = _resolve_case(dataset, case_ref)
    try:
        store.delete_test_case(dataset.id, test_case.id)
    except (PersistenceError, ConfigurationError) as e:
        raise save_failed(e) from e
    console.print(f"[green]Deleted test case[/green] {test_case.id}")


dataset_app = typer.Typer(
    name="dataset",
    help="Manage datasets and their test cases.",
    no_args_is_help=True,
)

_ = dataset_app.command()(add)
_ = dataset_app.command(name="list")(list_datasets)
_ = dataset_app.command()(show)
_ = dataset_app.command()(rename)
_ = dataset_app.command()(delete)
_ = dataset_app.command(name="add-case")(add_case)
_ = dataset_app.command(name="edit-case")(edit_case)
_ = dataset_app.command(name="delete-case")(delete_case)
