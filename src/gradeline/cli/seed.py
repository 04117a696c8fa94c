# Copyright (c) Syntropy Systems
"""gradeline seed command."""
from __future__ import annotations

import typer

from gradeline.cli.common import console, open_store, save_failed
from gradeline.config import ConfigurationError
from gradeline.db import PersistenceError
from gradeline.samples import sample_datasets, sample_graders


def seed() -> None:
    """Load the sample datasets and graders.

    Samples whose name is already taken are skipped, so seeding twice is
    harmless.
    """
    store = open_store()
    try:
        datasets, graders = store.import_entities(sample_datasets(), sample_graders())
    except (PersistenceError, ConfigurationError) as e:
        raise save_failed(e) from e

    if not datasets and not graders:
        console.print("[yellow]Samples already present; nothing added[/yellow]")
        return

    cases = sum(len(d.test_cases) for d in datasets)
    console.print(
        f"[green]Seeded[/green] {len(datasets)} dataset(s), "
        f"{len(graders)} grader(s), {cases} test case(s)"
    )
