"""
Shared pytest fixtures for protkmers tests.

Provides reusable protein sequences, protein table files, and prebuilt
indexes for unit and integration testing.
"""

from __future__ import annotations

from pathlib import Path

import polars as pl
import pytest

from protkmers.core.kmer_index import ProteinKmerIndex
from tests.utils.proteins import PEG1_VARIANT, REFERENCE_PROTEINS, UNRELATED_PROTEIN


# =============================================================================
# Protein Sequence Fixtures
# =============================================================================


@pytest.fixture
def reference_proteins() -> dict[str, tuple[str, str]]:
    """Feature ID -> (sequence, annotation) for five unrelated proteins."""
    return dict(REFERENCE_PROTEINS)


@pytest.fixture
def reference_index() -> ProteinKmerIndex[str]:
    """8-mer index of the reference proteins with annotations as payloads."""
    index: ProteinKmerIndex[str] = ProteinKmerIndex(kmer_size=8)
    for sequence, annotation in REFERENCE_PROTEINS.values():
        index.add_protein(sequence, annotation)
    return index


# =============================================================================
# Protein Table File Fixtures
# =============================================================================


@pytest.fixture
def reference_table(tmp_path: Path) -> Path:
    """Tab-delimited reference table with id, protein and annotation columns."""
    path = tmp_path / "reference.tsv"
    pl.DataFrame({
        "id": list(REFERENCE_PROTEINS),
        "protein": [seq for seq, _ in REFERENCE_PROTEINS.values()],
        "annotation": [anno for _, anno in REFERENCE_PROTEINS.values()],
    }).write_csv(path, separator="\t")
    return path


@pytest.fixture
def reference_table_with_short_row(tmp_path: Path) -> Path:
    """Reference table with one 5-residue protein that must be skipped at K=8."""
    path = tmp_path / "reference_short.tsv"
    ids = [*REFERENCE_PROTEINS, "fig|83333.1.peg.6"]
    proteins = [seq for seq, _ in REFERENCE_PROTEINS.values()] + ["MKWVT"]
    annotations = [anno for _, anno in REFERENCE_PROTEINS.values()] + ["Short peptide"]
    pl.DataFrame({
        "id": ids,
        "protein": proteins,
        "annotation": annotations,
    }).write_csv(path, separator="\t")
    return path


@pytest.fixture
def query_table(tmp_path: Path) -> Path:
    """Query table: one exact reference, one variant, one unrelated protein."""
    path = tmp_path / "queries.tsv"
    pl.DataFrame({
        "id": ["q_exact", "q_variant", "q_unrelated"],
        "protein": [
            REFERENCE_PROTEINS["fig|83333.1.peg.3"][0].lower(),
            PEG1_VARIANT,
            UNRELATED_PROTEIN,
        ],
    }).write_csv(path, separator="\t")
    return path
