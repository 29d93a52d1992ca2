"""
Annotation voting commands.

Transfers annotations from a table of annotated proteins (proposals) onto
the proteins of a genome: each genome protein ends up with the annotation
of the most similar proposal above the similarity threshold, or keeps its
own annotation when no proposal comes close enough.
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
from protkmers.core.io_utils import proposals_frame, write_dataframe
from protkmers.core.loader import Prototype, iter_prototypes, iter_table_rows
from protkmers.core.voting import AnnotationVoter

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="vote",
    help="Transfer annotations onto genome proteins by k-mer similarity",
    no_args_is_help=True,
)

console = Console()


def _seed_voter(
    voter: AnnotationVoter,
    proteins: Path,
    feature_column: str,
    protein_column: str,
    annotation_column: str,
) -> tuple[int, int]:
    """Add genome proteins to the voter; returns (added, skipped)."""
    added = 0
    skipped = 0
    for feature_id, protein, annotation in iter_table_rows(
        proteins, [feature_column, protein_column, annotation_column]
    ):
        try:
            previous = voter.get_proposal(voter.index.identifier_for(protein))
            voter.add_protein(protein, annotation, feature_id=feature_id)
        except InvalidInputError as e:
            logger.warning("Skipping genome protein %s: %s", feature_id, e.message)
            skipped += 1
            continue
        if previous is not None and previous.feature_id != feature_id:
            logger.warning(
                "Genome protein %s has the same sequence as %s and replaces it",
                feature_id, previous.feature_id,
            )
        added += 1
    return added, skipped


def _propose(voter: AnnotationVoter, prototype: Prototype) -> int:
    try:
        return voter.process_proposal(prototype.protein, prototype.annotation)
    except InvalidInputError as e:
        logger.warning("Skipping proposal '%s': %s", prototype.annotation, e.message)
        return 0


@app.command(name="annotate")
def annotate(
    proteins: Path = typer.Option(
        ...,
        "--proteins",
        "-p",
        help="Genome protein table: feature ID, sequence and default annotation",
        exists=True,
        dir_okay=False,
    ),
    proposals: Path = typer.Option(
        ...,
        "--proposals",
        "-a",
        help="Annotated protein table: sequence and annotation",
        exists=True,
        dir_okay=False,
    ),
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        help="Output file for final annotations",
    ),
    min_similarity: float = typer.Option(
        None,
        "--min-similarity",
        "-s",
        help="Minimum Jaccard similarity for a proposal to count (default: 0.5)",
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
    feature_column: str = typer.Option(
        "id",
        "--feature-column",
        help="Genome feature ID column, by name or 1-based index",
    ),
    protein_column: str = typer.Option(
        None,
        "--protein-column",
        help="Sequence column in both tables, by name or 1-based index",
    ),
    annotation_column: str = typer.Option(
        None,
        "--annotation-column",
        help="Annotation column in both tables, by name or 1-based index",
    ),
    threads: int = typer.Option(
        None,
        "--threads",
        "-t",
        help="Number of proposal threads",
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
    Annotate genome proteins with their most similar proposed annotation.

    Example:

        protkmers vote annotate \\
            --proteins genome.tsv \\
            --proposals reference_annotations.tsv \\
            --min-similarity 0.4 \\
            --output annotations.csv
    """
    out = QuietConsole(console, quiet=quiet)
    output_format = validate_output_format(output_format, console)
    config = build_config(
        console,
        config_path,
        kmer_size=kmer_size,
        protein_column=protein_column,
        value_column=annotation_column,
        threads=threads,
        min_similarity=min_similarity,
    )

    try:
        voter = AnnotationVoter(
            config.kmer_size, config.min_similarity, config.hash_algorithm
        )
        with spinner_progress(f"Loading {proteins.name}...", console, quiet):
            added, skipped = _seed_voter(
                voter,
                proteins,
                feature_column,
                config.protein_column,
                config.value_column,
            )
        out.print(
            f"[green]Loaded {added:,} rows as {voter.protein_count:,} genome proteins "
            f"({voter.kmer_count:,} k-mers, {skipped:,} invalid)[/green]"
        )

        prototypes = list(
            iter_prototypes(proposals, config.protein_column, config.value_column)
        )
    except ProtkmersError as e:
        report_error(console, e)

    with spinner_progress(f"Processing {len(prototypes):,} proposals...", console, quiet):
        with ThreadPoolExecutor(max_workers=config.threads) as executor:
            hit_counts = list(executor.map(lambda p: _propose(voter, p), prototypes))

    df = proposals_frame(voter)
    write_dataframe(df.sort("feature_id", nulls_last=True), output, output_format)

    if not quiet:
        table = Table(title="Annotation Summary", show_header=True)
        table.add_column("Metric", style="cyan", no_wrap=True)
        table.add_column("Count", justify="right", style="magenta")
        table.add_row("Genome proteins", f"{voter.protein_count:,}")
        table.add_row("Proposals", f"{len(prototypes):,}")
        table.add_row("Proposals matching a protein", f"{sum(1 for n in hit_counts if n):,}")
        table.add_row(
            "Proteins re-annotated",
            f"{sum(1 for _, p in voter.proposals() if p.score > 0):,}",
            style="green",
        )
        console.print(table)
    out.print(f"\n[bold green]Annotations written to {output}[/bold green]")
