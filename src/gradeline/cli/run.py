# Copyright (c) Syntropy Systems
"""gradeline run command."""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import typer

from gradeline.cli.common import (
    console,
    open_store,
    resolve_dataset,
    resolve_grader,
    save_failed,
    truncate,
)
from gradeline.client import GradelineClient
from gradeline.config import ConfigurationError, load_config
from gradeline.db import PersistenceError
from gradeline.experiment import run_experiment
from gradeline.grading import GradingPolicy

if TYPE_CHECKING:
    from gradeline.experiment import SupportsGrade
    from gradeline.models import Grader, GradeVerdict, TestCase


def _print_pair(test_case: TestCase, grader: Grader, verdict: GradeVerdict) -> None:
    if verdict.error:
        label = "[yellow]ERR [/yellow]"
    elif verdict.pass_:
        label = "[green]PASS[/green]"
    else:
        label = "[red]FAIL[/red]"
    console.print(
        f"  {label} [cyan]{grader.name}[/cyan] {truncate(test_case.input)} "
        f"[dim]{truncate(verdict.reason, 60)}[/dim]"
    )


def run(
    dataset_ref: str = typer.Argument(..., help="Dataset id or name"),
    graders: Optional[list[str]] = typer.Option(
        None,
        "--grader",
        "-g",
        help="Grader id or name (repeatable, default: all graders)",
    ),
    server: Optional[str] = typer.Option(
        None,
        "--server",
        "-s",
        help="Grade through a gradeline server instead of locally",
    ),
) -> None:
    """Run an experiment: grade every test case with every selected grader."""
    store = open_store()
    dataset = resolve_dataset(store, dataset_ref)

    if graders:
        grader_ids = [resolve_grader(store, ref).id for ref in graders]
    else:
        grader_ids = [g.id for g in store.graders]

    if not grader_ids:
        console.print("[red]Error:[/red] No graders defined. Add one with 'gradeline grader add'.")
        raise typer.Exit(1)
    if not dataset.test_cases:
        console.print(f"[yellow]Dataset {dataset.name} has no test cases[/yellow]")
        return

    client: Optional[GradelineClient] = None
    local: Optional[GradingPolicy] = None
    policy: SupportsGrade
    if server:
        client = GradelineClient(server)
        policy = client
        console.print(f"[dim]Grading via {client.server_url}[/dim]")
    else:
        local = GradingPolicy.from_config(load_config())
        if not local.ai_available:
            console.print("[dim]OPENROUTER_API_KEY not set; using mock grading[/dim]")
        policy = local

    pairs = len(dataset.test_cases) * len(dict.fromkeys(grader_ids))
    console.print(f"[bold]Running[/bold] {dataset.name}: {pairs} grading(s)")

    try:
        result = run_experiment(store, policy, dataset.id, grader_ids, on_result=_print_pair)
    except (PersistenceError, ConfigurationError) as e:
        raise save_failed(e) from e
    finally:
        if client is not None:
            client.close()
        if local is not None:
            local.close()

    console.print()
    console.print(
        f"[green]{result.passed} passed[/green], [red]{result.failed} failed[/red]"
        + (f", [yellow]{len(result.errors)} errors[/yellow]" if result.errors else "")
    )
    if result.errors:
        for error in result.errors:
            pair = f"{error.test_case_id}/{error.grader_id}"
            console.print(f"  [yellow]{pair}:[/yellow] {error.message}")
        raise typer.Exit(1)
