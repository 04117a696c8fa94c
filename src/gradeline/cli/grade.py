# Copyright (c) Syntropy Systems
"""gradeline grade command."""
from __future__ import annotations

from typing import Optional

import typer

from gradeline.cli.common import console
from gradeline.config import load_config
from gradeline.grading import GradingPolicy


def grade(
    input: str = typer.Option(..., "--input", "-i", help="Test case input"),
    expected: str = typer.Option(..., "--expected", "-e", help="Expected (ground-truth) output"),
    rubric: str = typer.Option("", "--rubric", "-r", help="Grading rubric"),
    actual: Optional[str] = typer.Option(
        None,
        "--actual",
        "-a",
        help="Answer to grade (default: generate one from the input)",
    ),
) -> None:
    """Grade a single answer without touching the project database."""
    with GradingPolicy.from_config(load_config()) as policy:
        if not policy.ai_available:
            console.print("[dim]OPENROUTER_API_KEY not set; using mock grading[/dim]")
        verdict = policy.grade(input, expected, rubric, actual_output=actual)

    if verdict.generated_output is not None:
        console.print(f"[bold]Generated:[/bold] {verdict.generated_output}")

    if verdict.error:
        console.print(f"[red]Error:[/red] {verdict.reason}")
        raise typer.Exit(1)

    label = "[green]PASS[/green]" if verdict.pass_ else "[red]FAIL[/red]"
    console.print(f"{label} {verdict.reason}")
