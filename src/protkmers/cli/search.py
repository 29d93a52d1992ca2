"""
Search commands for finding close proteins with a k-mer index.

Loads a reference protein table into memory and matches every query
protein against it, either keeping only the closest reference protein or
every reference protein above a similarity threshold.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from protkmers.cli.utils import (
    QuietConsole,
    build_config,
    report_error,
    spinner_progress,
    validate_output_format,
)
from protkmers.core.exceptions import InvalidInputError, ProtkmersError
from protkmers.core.io_utils import query_results_frame, write_dataframe
from protkmers.core.kmer_index import NOT_FOUND, ProteinKmerIndex, QueryResult
from protkmers.core.loader import LoadStats, iter_table_rows, load_protein_table
from protkmers.models.config import IndexConfig

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="search",
    help="Find close reference proteins for query proteins",
    no_args_is_help=True,
)

console = Console()


def _load_reference(
    reference: Path,
    config: IndexConfig,
    out: QuietConsole,
    quiet: bool,
) -> tuple[ProteinKmerIndex[str], LoadStats]:
    """Load the reference table, reporting load counters."""
    index: ProteinKmerIndex[str] = ProteinKmerIndex(config.kmer_size, config.hash_algorithm)
    with spinner_progress(f"Loading {reference.name}...", console, quiet):
        stats = load_protein_table(
            index,
            reference,
            config.protein_column,
            config.value_column,
            config.progress_interval,
        )
    out.print(
        f"[green]Loaded {stats.proteins_stored:,} proteins "
        f"({stats.kmer_count:,} k-mers, {stats.rows_skipped:,} too short, "
        f"{stats.rows_invalid:,} invalid)[/green]"
    )
    return index, stats


def _read_queries(
    queries: Path,
    id_column: str,
    query_column: str,
) -> list[tuple[str, str]]:
    return [(query_id, seq) for query_id, seq in iter_table_rows(queries, [id_column, query_column])]


def _closest(index: ProteinKmerIndex[str], query_id: str, sequence: str) -> QueryResult[str]:
    try:
        return index.find_closest(sequence)
    except InvalidInputError as e:
        logger.warning("Skipping query %s: %s", query_id, e.message)
        return NOT_FOUND


def _close(
    index: ProteinKmerIndex[str],
    query_id: str,
    sequence: str,
    min_similarity: float,
) -> list[QueryResult[str]]:
    try:
        return index.find_close(sequence, min_similarity)
    except InvalidInputError as e:
        logger.warning("Skipping query %s: %s", query_id, e.message)
        return []


def _display_summary(title: str, total: int, matched: int, rows: int) -> Table:
    table = Table(title=title, show_header=True)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Count", justify="right", style="magenta")
    table.add_row("Queries", f"{total:,}")
    table.add_row("Queries with a match", f"{matched:,}")
    table.add_row("Queries without a match", f"{total - matched:,}", style="dim")
    table.add_row("Result rows", f"{rows:,}")
    return table


@app.command(name="closest")
def closest(
    reference: Path = typer.Option(
        ...,
        "--reference",
        "-r",
        help="Reference protein table (TSV with header)",
        exists=True,
        dir_okay=False,
    ),
    queries: Path = typer.Option(
        ...,
        "--queries",
        "-i",
        help="Query protein table (TSV with header)",
        exists=True,
        dir_okay=False,
    ),
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        help="Output file for results",
    ),
    config_path: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file",
    ),
    kmer_size: int = typer.Option(
        None,
        "--kmer-size",
        "-k",
        help="K-mer length (default: 8)",
    ),
    protein_column: str = typer.Option(
        None,
        "--protein-column",
        help="Reference sequence column, by name or 1-based index",
    ),
    value_column: str = typer.Option(
        None,
        "--value-column",
        help="Reference value column, by name or 1-based index",
    ),
    id_column: str = typer.Option(
        "id",
        "--id-column",
        help="Query ID column, by name or 1-based index",
    ),
    query_column: str = typer.Option(
        "protein",
        "--query-column",
        help="Query sequence column, by name or 1-based index",
    ),
    threads: int = typer.Option(
        None,
        "--threads",
        "-t",
        help="Number of query threads",
        min=1,
    ),
    output_format: str = typer.Option(
        "csv",
        "--format",
        "-f",
        help="Output format: 'csv' or 'parquet'",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress progress output",
    ),
) -> None:
    """
    Find the closest reference protein for each query protein.

    Every query gets exactly one output row; queries sharing no k-mer with
    any reference protein have an empty identifier and zero similarity.

    Example:

        protkmers search closest \\
            --reference reference.tsv \\
            --queries queries.tsv \\
            --output closest.csv
    """
    out = QuietConsole(console, quiet=quiet)
    output_format = validate_output_format(output_format, console)
    config = build_config(
        console,
        config_path,
        kmer_size=kmer_size,
        protein_column=protein_column,
        value_column=value_column,
        threads=threads,
    )

    try:
        index, _ = _load_reference(reference, config, out, quiet)
        query_rows = _read_queries(queries, id_column, query_column)
    except ProtkmersError as e:
        report_error(console, e)

    with spinner_progress(f"Searching {len(query_rows):,} queries...", console, quiet):
        with ThreadPoolExecutor(max_workers=config.threads) as executor:
            results = list(
                executor.map(lambda row: _closest(index, row[0], row[1]), query_rows)
            )

    rows = [(query_id, result) for (query_id, _), result in zip(query_rows, results)]
    write_dataframe(query_results_frame(rows), output, output_format)

    matched = sum(1 for result in results if not result.is_empty)
    if not quiet:
        console.print(_display_summary("Closest Match Summary", len(rows), matched, len(rows)))
    out.print(f"\n[bold green]Results written to {output}[/bold green]")


@app.command(name="close")
def close(
    reference: Path = typer.Option(
        ...,
        "--reference",
        "-r",
        help="Reference protein table (TSV with header)",
        exists=True,
        dir_okay=False,
    ),
    queries: Path = typer.Option(
        ...,
        "--queries",
        "-i",
        help="Query protein table (TSV with header)",
        exists=True,
        dir_okay=False,
    ),
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        help="Output file for results",
    ),
    min_similarity: float = typer.Option(
        None,
        "--min-similarity",
        "-s",
        help="Minimum Jaccard similarity to report (default: 0.5)",
        min=0.0,
        max=1.0,
    ),
    config_path: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file",
    ),
    kmer_size: int = typer.Option(
        None,
        "--kmer-size",
        "-k",
        help="K-mer length (default: 8)",
    ),
    protein_column: str = typer.Option(
        None,
        "--protein-column",
        help="Reference sequence column, by name or 1-based index",
    ),
    value_column: str = typer.Option(
        None,
        "--value-column",
        help="Reference value column, by name or 1-based index",
    ),
    id_column: str = typer.Option(
        "id",
        "--id-column",
        help="Query ID column, by name or 1-based index",
    ),
    query_column: str = typer.Option(
        "protein",
        "--query-column",
        help="Query sequence column, by name or 1-based index",
    ),
    threads: int = typer.Option(
        None,
        "--threads",
        "-t",
        help="Number of query threads",
        min=1,
    ),
    output_format: str = typer.Option(
        "csv",
        "--format",
        "-f",
        help="Output format: 'csv' or 'parquet'",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress progress output",
    ),
) -> None:
    """
    Find every reference protein above a similarity threshold for each query.

    Queries may produce several output rows, or none when nothing reaches
    the threshold. Rows are sorted by query and decreasing similarity.

    Example:

        protkmers search close \\
            --reference reference.tsv \\
            --queries queries.tsv \\
            --min-similarity 0.6 \\
            --output close.csv
    """
    out = QuietConsole(console, quiet=quiet)
    output_format = validate_output_format(output_format, console)
    config = build_config(
        console,
        config_path,
        kmer_size=kmer_size,
        protein_column=protein_column,
        value_column=value_column,
        threads=threads,
        min_similarity=min_similarity,
    )

    try:
        index, _ = _load_reference(reference, config, out, quiet)
        query_rows = _read_queries(queries, id_column, query_column)
    except ProtkmersError as e:
        report_error(console, e)

    with spinner_progress(f"Searching {len(query_rows):,} queries...", console, quiet):
        with ThreadPoolExecutor(max_workers=config.threads) as executor:
            matches = list(
                executor.map(
                    lambda row: _close(index, row[0], row[1], config.min_similarity),
                    query_rows,
                )
            )

    rows = []
    for (query_id, _), results in zip(query_rows, matches):
        for result in sorted(results, key=lambda r: (-r.similarity, r.identifier)):
            rows.append((query_id, result))
    write_dataframe(query_results_frame(rows), output, output_format)

    matched = sum(1 for results in matches if results)
    if not quiet:
        console.print(
            _display_summary("Close Match Summary", len(query_rows), matched, len(rows))
        )
    out.print(f"\n[bold green]Results written to {output}[/bold green]")
