"""
I/O utilities for query and annotation result tables.

Provides consistent handling of output formats (CSV/Parquet) across the CLI.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Literal

import polars as pl

from protkmers.core.kmer_index import QueryResult
from protkmers.core.voting import AnnotationVoter

OutputFormat = Literal["csv", "parquet"]

QUERY_RESULT_SCHEMA: dict[str, type[pl.DataType]] = {
    "query_id": pl.String,
    "identifier": pl.String,
    "shared_kmers": pl.Int64,
    "similarity": pl.Float64,
    "value": pl.String,
}

PROPOSAL_SCHEMA: dict[str, type[pl.DataType]] = {
    "feature_id": pl.String,
    "identifier": pl.String,
    "score": pl.Float64,
    "annotation": pl.String,
}


def write_dataframe(
    df: pl.DataFrame,
    path: Path,
    output_format: OutputFormat = "csv",
) -> None:
    """
    Write DataFrame to file in specified format.

    For Parquet output, uses zstd compression. CSV output is tab-separated
    when the path ends in .tsv.

    Args:
        df: Polars DataFrame to write.
        path: Output file path.
        output_format: Output format - 'csv' or 'parquet'.
    """
    if output_format == "parquet":
        df.write_parquet(path, compression="zstd")
    elif path.suffix.lower() == ".tsv":
        df.write_csv(path, separator="\t")
    else:
        df.write_csv(path)


def query_results_frame(
    rows: Iterable[tuple[str, QueryResult[str]]],
) -> pl.DataFrame:
    """
    Build a result table from (query id, result) pairs.

    Not-found results are kept with an empty identifier and zero scores so
    every query appears in the output.
    """
    records = [
        {
            "query_id": query_id,
            "identifier": result.identifier,
            "shared_kmers": result.shared_kmer_count,
            "similarity": result.similarity,
            "value": result.payload,
        }
        for query_id, result in rows
    ]
    return pl.DataFrame(records, schema=QUERY_RESULT_SCHEMA)


def proposals_frame(voter: AnnotationVoter) -> pl.DataFrame:
    """Build a table of the final annotation of every protein in a voter."""
    records = [
        {
            "feature_id": proposal.feature_id,
            "identifier": identifier,
            "score": proposal.score,
            "annotation": proposal.annotation,
        }
        for identifier, proposal in voter.proposals()
    ]
    return pl.DataFrame(records, schema=PROPOSAL_SCHEMA)
