"""
Main CLI entry point for protkmers.

Provides subcommands for each use of the protein k-mer index:
- search: Find the closest or all close reference proteins for queries
- vote: Transfer annotations onto genome proteins by similarity
"""

from __future__ import annotations

import typer
from rich import print as rprint
from rich.console import Console

from protkmers import __version__

app = typer.Typer(
    name="protkmers",
    help="K-mer based similarity search and annotation transfer for proteins",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        rprint(f"protkmers version {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    Protkmers: k-mer based similarity index for protein sequences.

    Finds close proteins by shared k-mers instead of alignment, and
    propagates annotations from annotated proteins onto genome proteins.
    """


# Import subcommands
from protkmers.cli import search, vote

# Register subcommands
app.add_typer(search.app, name="search")
app.add_typer(vote.app, name="vote")


if __name__ == "__main__":
    app()
