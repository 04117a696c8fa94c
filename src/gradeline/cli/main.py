# Copyright (c) Syntropy Systems
"""Main CLI entry point for gradeline."""

import logging

import typer
from rich.logging import RichHandler

from gradeline.cli.datasets import dataset_app
from gradeline.cli.export import export
from gradeline.cli.grade import grade
from gradeline.cli.graders import grader_app
from gradeline.cli.init_cmd import init
from gradeline.cli.results import results
from gradeline.cli.run import run
from gradeline.cli.seed import seed
from gradeline.cli.server_cmd import server

app = typer.Typer(
    name="gradeline",
    help=(
        "Evaluate LLM answers. Keep datasets and graders, grade every test "
        "case with every grader, compare the results."
    ),
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )


# Register commands
_ = app.command()(init)
_ = app.command()(grade)
_ = app.command()(run)
_ = app.command()(results)
_ = app.command(name="export")(export)
_ = app.command()(seed)
_ = app.command()(server)

# Register sub-apps
app.add_typer(dataset_app, name="dataset")
app.add_typer(grader_app, name="grader")


if __name__ == "__main__":
    app()
