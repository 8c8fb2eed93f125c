"""ragbox CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from ragbox.cli.ask import ask_cmd, search_cmd
from ragbox.cli.ingest import ingest_cmd
from ragbox.cli.init import init_cmd
from ragbox.cli.status import status_cmd


def _package_version() -> str:
    try:
        return importlib.metadata.version("ragbox")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"ragbox {_package_version()}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    """Route ragbox library logging through rich (WARNING, or DEBUG with --verbose)."""
    logger = logging.getLogger("ragbox")
    logger.handlers.clear()
    logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False, markup=False))
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


app = typer.Typer(
    name="ragbox",
    help=(
        "ragbox — question answering over your own documents.\n\n"
        "  ragbox ingest  Add a document (chunked + full-text indexed).\n"
        "  ragbox ask     Answer a question from the indexed chunks via the LLM."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging."),
    ] = False,
) -> None:
    """ragbox — question answering over your own documents."""
    _setup_logging(verbose)


app.command("init")(init_cmd)
app.command("ingest")(ingest_cmd)
app.command("ask")(ask_cmd)
app.command("search")(search_cmd)
app.command("status")(status_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed ragbox version."""
    typer.echo(f"ragbox {_package_version()}")


if __name__ == "__main__":
    app()
