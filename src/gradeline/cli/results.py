# Copyright (c) Syntropy Systems
"""gradeline results command."""
from __future__ import annotations

from typing import Optional

import typer
from rich.table import Table

from gradeline.cli.common import console, open_store, resolve_dataset, resolve_grader, truncate
from gradeline.reconcile import result_index


def results(
    dataset_ref: str = typer.Argument(..., help="Dataset id or name"),
    graders: Optional[list[str]] = typer.Option(
        None,
        "--grader",
        "-g",
        help="Grader id or name (repeatable, default: all graders)",
    ),
    reasons: bool = typer.Option(False, "--reasons", help="Show reasons instead of pass/fail"),
) -> None:
    """Show the latest results of a dataset, one column per grader."""
    store = open_store()
    dataset = resolve_dataset(store, dataset_ref)
    selected = [resolve_grader(store, ref) for ref in graders] if graders else store.graders

    if not dataset.test_cases:
        console.print(f"[dim]Dataset {dataset.name} has no test cases[/dim]")
        return

    index = result_index(store.results)

    table = Table(title=dataset.name, show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Input")
    table.add_column("Expected output")
    for grader in selected:
        table.add_column(grader.name)

    for i, tc in enumerate(dataset.test_cases, 1):
        row = [str(i), truncate(tc.input, 30), truncate(tc.expected_output, 30)]
        for grader in selected:
            result = index.get((tc.id, grader.id))
            if result is None:
                row.append("[dim]-[/dim]")
            elif reasons:
                row.append(truncate(result.reason, 40))
            elif result.pass_:
                row.append("[green]pass[/green]")
            else:
                row.append("[red]fail[/red]")
        table.add_row(*row)

    console.print(table)

    for grader in selected:
        graded = [
            index[(tc.id, grader.id)]
            for tc in dataset.test_cases
            if (tc.id, grader.id) in index
        ]
        if graded:
            passed = sum(1 for r in graded if r.pass_)
            console.print(f"  [cyan]{grader.name}:[/cyan] {passed}/{len(graded)} passed")
