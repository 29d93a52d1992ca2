"""
Shared CLI utilities for protkmers commands.

Provides common functionality used across CLI modules.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from protkmers.core.exceptions import ProtkmersError
from protkmers.models.config import IndexConfig


@contextmanager
def spinner_progress(
    description: str,
    console: Console | None = None,
    quiet: bool = False,
) -> Generator[Progress, None, None]:
    """Context manager for spinner-style progress display.

    Creates a standardized spinner progress bar used throughout the CLI.
    The spinner is suppressed when quiet mode is enabled.

    Args:
        description: Task description to display.
        console: Rich Console instance. If None and not quiet, creates one.
        quiet: If True, suppress the progress display entirely.

    Yields:
        Progress instance (even when quiet, for API consistency).
    """
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console if not quiet else None,
        disable=quiet,
    ) as progress:
        progress.add_task(description=description, total=None)
        yield progress


class QuietConsole:
    """Console wrapper that suppresses output in quiet mode.

    This class wraps a Rich Console instance and conditionally suppresses
    print output when quiet mode is enabled. All other console methods
    are delegated to the wrapped instance.

    Example:
        >>> console = Console()
        >>> qc = QuietConsole(console, quiet=True)
        >>> qc.print("This won't be shown")  # Suppressed
    """

    def __init__(self, console: Console, quiet: bool = False):
        self._console = console
        self._quiet = quiet

    @property
    def console(self) -> Console:
        """The wrapped Console, for output that ignores quiet mode."""
        return self._console

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Print to console unless quiet mode is enabled."""
        if not self._quiet:
            self._console.print(*args, **kwargs)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._console, name)


def build_config(
    console: Console,
    config_path: Path | None = None,
    **overrides: Any,
) -> IndexConfig:
    """Load configuration from an optional YAML file and apply CLI overrides.

    Options left at None do not override the file or the defaults.

    Raises:
        typer.Exit: If the configuration file is unreadable or invalid.
    """
    try:
        config = IndexConfig.from_yaml(config_path) if config_path else IndexConfig()
        return config.with_overrides(**overrides)
    except FileNotFoundError:
        console.print(f"[red]Error: Config file not found: {config_path}[/red]")
        raise typer.Exit(code=1) from None
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Error: Invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None


def report_error(console: Console, error: ProtkmersError) -> None:
    """Print a protkmers error and its suggestion, then exit with code 1."""
    console.print(f"[red]Error: {escape(error.message)}[/red]")
    if error.suggestion:
        console.print(f"[dim]{escape(error.suggestion)}[/dim]")
    raise typer.Exit(code=1) from None


def validate_output_format(output_format: str, console: Console) -> str:
    """Normalize the --format option, exiting on unknown formats."""
    output_format = output_format.lower()
    if output_format not in ("csv", "parquet"):
        console.print(
            f"[red]Error: Invalid format '{output_format}'. "
            f"Use 'csv' or 'parquet'.[/red]"
        )
        raise typer.Exit(code=1) from None
    return output_format
