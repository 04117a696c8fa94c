# Copyright (c) Syntropy Systems
"""CLI command for running the gradeline server."""

from pathlib import Path
from typing import Optional

import typer
import uvicorn
from rich.console import Console

from gradeline.config import load_config

console = Console()


def server(
    port: int = typer.Option(8080, "--port", "-p", help="Port to listen on"),
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Host to bind to"),
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        envvar="GRADELINE_DATABASE",
        help="SQLite database path (default: nearest .gradeline/gradeline.db)",
    ),
):
    """
    Start the gradeline HTTP server.

    The server exposes the stored datasets, graders and results, and grades
    single test cases. Without a database it still grades but cannot save.

    Examples:

        # Serve the current project
        gradeline server

        # Serve a specific database on all interfaces
        gradeline server --db /data/gradeline.db --host 0.0.0.0
    """
    from ..server.app import create_app

    config = load_config()
    app = create_app(db_path=db_path, config=config)

    console.print("[bold]gradeline server[/bold]")
    console.print(f"  Host: {host}")
    console.print(f"  Port: {port}")
    console.print(f"  Model: {config.model}")
    mode = "AI" if config.ai_enabled else "mock (OPENROUTER_API_KEY not set)"
    console.print(f"  Grading: {mode}")
    if db_path is not None:
        console.print(f"  Database: {db_path}")
    console.print()

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info",
    )
