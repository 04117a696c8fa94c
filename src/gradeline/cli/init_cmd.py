# Copyright (c) Syntropy Systems
"""gradeline init command."""

from pathlib import Path

import typer
import yaml
from rich.console import Console

from gradeline.config import (
    CONFIG_FILE,
    DATABASE_FILE,
    DEFAULT_API_URL,
    DEFAULT_MODEL,
    PROJECT_DIR,
)
from gradeline.db import init_db

console = Console()


def init(
    path: Path = typer.Argument(
        Path(),
        help="Directory to initialize (default: current directory)",
    ),
) -> None:
    """Initialize a new gradeline project.

    Creates a .gradeline directory with configuration and database.
    """
    target = path.resolve()
    gradeline_dir = target / PROJECT_DIR

    if gradeline_dir.exists():
        console.print(f"[yellow]Already initialized:[/yellow] {gradeline_dir}")
        return

    gradeline_dir.mkdir(parents=True)

    # Create default config. The API key stays in OPENROUTER_API_KEY.
    config = {
        "model": DEFAULT_MODEL,
        "api_url": DEFAULT_API_URL,
        "request_timeout": 60,
    }

    config_path = gradeline_dir / CONFIG_FILE
    with config_path.open("w") as f:
        yaml.dump(config, f, default_flow_style=False)

    db_path = gradeline_dir / DATABASE_FILE
    init_db(db_path)

    console.print(f"[green]Initialized gradeline project:[/green] {gradeline_dir}")
    console.print(f"  [dim]config:[/dim] {config_path}")
    console.print(f"  [dim]database:[/dim] {db_path}")
