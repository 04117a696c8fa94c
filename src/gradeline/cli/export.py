# Copyright (c) Syntropy Systems
"""Export command - export a dataset's results to CSV/JSON."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from gradeline.cli.common import console, open_store, resolve_dataset, resolve_grader
from gradeline.export import results_to_csv, results_to_json


def export(
    dataset_ref: str = typer.Argument(..., help="Dataset id or name"),
    output: Path = typer.Argument(..., help="Output file path (.csv or .json)"),
    graders: Optional[list[str]] = typer.Option(
        None,
        "--grader",
        "-g",
        help="Grader id or name to include (repeatable, default: all graders)",
    ),
) -> None:
    """Export the latest results of a dataset.

    Examples:
        gradeline export "Math facts" results.csv
        gradeline export "Math facts" results.json -g Strict

    """
    # Determine format from extension
    suffix = output.suffix.lower()
    if suffix not in [".csv", ".json"]:
        console.print("[red]Output must be .csv or .json[/red]")
        raise typer.Exit(1)

    store = open_store()
    dataset = resolve_dataset(store, dataset_ref)
    selected = [resolve_grader(store, ref) for ref in graders] if graders else store.graders

    if suffix == ".json":
        text = results_to_json(dataset, selected, store.results)
    else:
        text = results_to_csv(dataset, selected, store.results)

    # Bytes keep the CRLF row endings intact on every platform
    _ = output.write_bytes(text.encode("utf-8"))

    console.print(
        f"[green]Exported {len(dataset.test_cases)} test case(s) x "
        f"{len(selected)} grader(s) to {output}[/green]"
    )
