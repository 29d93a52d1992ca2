"""
Bulk loading of protein tables into a k-mer index.

Protein tables are delimited text files with a header row. The protein
sequence column and the value column are chosen by header name or by
1-based column index, the way users usually refer to columns in a TSV.
Files are read with Polars with every column kept as a string.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple

import polars as pl

from protkmers.core.constants import (
    DEFAULT_PROGRESS_INTERVAL,
    DEFAULT_PROTEIN_COLUMN,
    DEFAULT_VALUE_COLUMN,
)
from protkmers.core.exceptions import (
    ColumnNotFoundError,
    EmptyProteinFileError,
    InvalidInputError,
)
from protkmers.core.kmer_index import ProteinKmerIndex

logger = logging.getLogger(__name__)


class Prototype(NamedTuple):
    """A protein sequence with the annotation that goes with it."""

    protein: str
    annotation: str


@dataclass
class LoadStats:
    """Counters reported by a bulk load."""

    proteins_added: int = 0
    rows_skipped: int = 0
    rows_invalid: int = 0
    proteins_stored: int = 0
    kmer_count: int = 0

    @property
    def rows_read(self) -> int:
        return self.proteins_added + self.rows_skipped + self.rows_invalid


def _separator_for(path: Path) -> str:
    name = path.name.lower()
    if name.endswith(".csv") or name.endswith(".csv.gz"):
        return ","
    return "\t"


def read_header(path: Path, separator: str | None = None) -> list[str]:
    """
    Column names of a delimited file.

    Raises:
        EmptyProteinFileError: If the file has no header row.
    """
    sep = separator or _separator_for(path)
    try:
        return pl.read_csv(
            path, separator=sep, n_rows=0, quote_char=None, infer_schema_length=0
        ).columns
    except pl.exceptions.NoDataError as e:
        raise EmptyProteinFileError(str(path)) from e


def resolve_column(columns: list[str], column: str, path: Path) -> str:
    """
    Resolve a column given by header name or 1-based index to its name.

    Header names take precedence, so a column literally named "2" is found
    by name before the second column.

    Example:
        >>> resolve_column(["id", "protein", "annotation"], "2", Path("x.tsv"))
        'protein'
    """
    if column in columns:
        return column
    if column.isdigit() and 1 <= int(column) <= len(columns):
        return columns[int(column) - 1]
    raise ColumnNotFoundError(column, str(path), columns)


def iter_table_rows(
    path: Path,
    columns: list[str],
    separator: str | None = None,
) -> Iterator[tuple[str, ...]]:
    """
    Yield the requested columns of each data row as strings.

    Missing fields come back as empty strings; fields beyond the header
    are dropped.
    """
    sep = separator or _separator_for(path)
    header = read_header(path, sep)
    names = [resolve_column(header, column, path) for column in columns]
    df = pl.read_csv(
        path,
        separator=sep,
        columns=list(dict.fromkeys(names)),
        quote_char=None,
        infer_schema_length=0,
        truncate_ragged_lines=True,
    )
    for row in df.select(names).iter_rows():
        yield tuple(value if value is not None else "" for value in row)


def iter_prototypes(
    path: Path,
    protein_column: str = DEFAULT_PROTEIN_COLUMN,
    annotation_column: str = DEFAULT_VALUE_COLUMN,
) -> Iterator[Prototype]:
    """Stream (protein, annotation) records from an annotation table."""
    for protein, annotation in iter_table_rows(path, [protein_column, annotation_column]):
        yield Prototype(protein=protein, annotation=annotation)


def load_protein_table(
    index: ProteinKmerIndex[str],
    path: Path,
    protein_column: str = DEFAULT_PROTEIN_COLUMN,
    value_column: str = DEFAULT_VALUE_COLUMN,
    progress_interval: float = DEFAULT_PROGRESS_INTERVAL,
) -> LoadStats:
    """
    Add every protein in a delimited table to an index.

    Proteins shorter than the index's k-mer size are skipped and counted.
    Rows with invalid protein characters are logged, counted and skipped;
    they never abort the load.

    Args:
        index: Index receiving the proteins (values are the value column).
        path: Tab-delimited (or .csv) file with a header row.
        protein_column: Header name or 1-based index of the sequence column.
        value_column: Header name or 1-based index of the value column.
        progress_interval: Seconds between progress log messages.

    Returns:
        LoadStats with row and index counters.

    Raises:
        ColumnNotFoundError: If either column cannot be resolved.
        EmptyProteinFileError: If the file has no header row.
    """
    kmer_size = index.kmer_size
    logger.info("Loading proteins from %s with kmer size %d", path, kmer_size)
    stats = LoadStats()
    last_message = time.monotonic()

    for line_num, (protein, value) in enumerate(
        iter_table_rows(path, [protein_column, value_column]), start=2
    ):
        if len(protein.strip()) < kmer_size:
            stats.rows_skipped += 1
            continue
        try:
            index.add_protein(protein, value)
        except InvalidInputError as e:
            stats.rows_invalid += 1
            logger.warning("Skipping line %d of %s: %s", line_num, path, e.message)
            continue
        stats.proteins_added += 1

        now = time.monotonic()
        if now - last_message >= progress_interval:
            logger.info(
                "%d proteins loaded, %d skipped", stats.proteins_added, stats.rows_skipped
            )
            last_message = now

    stats.proteins_stored = index.protein_count
    stats.kmer_count = index.kmer_count
    logger.info(
        "%d proteins processed, %d skipped, %d invalid, %d proteins stored, %d kmers",
        stats.proteins_added,
        stats.rows_skipped,
        stats.rows_invalid,
        stats.proteins_stored,
        stats.kmer_count,
    )
    return stats
