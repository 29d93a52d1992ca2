"""
Integration tests for protkmers CLI.

Tests the command-line interface using Typer's CliRunner for:
- Main entry point and version display
- search closest / search close against a reference table
- vote annotate with a proposal table
- Error handling for invalid inputs and configuration
"""

from __future__ import annotations

import logging
from pathlib import Path

import polars as pl
import pytest
from typer.testing import CliRunner

from protkmers.cli.main import app
from tests.utils.assertions import CLIAssertions, ResultTableAssertions
from tests.utils.proteins import PEG1_VARIANT, REFERENCE_PROTEINS, UNRELATED_PROTEIN

runner = CliRunner()


# =============================================================================
# CLI Test Fixtures
# =============================================================================


@pytest.fixture
def proposal_table(tmp_path: Path) -> Path:
    """Annotated proteins to vote onto the reference proteins."""
    path = tmp_path / "proposals.tsv"
    pl.DataFrame({
        "protein": [
            PEG1_VARIANT,
            REFERENCE_PROTEINS["fig|83333.1.peg.3"][0],
            UNRELATED_PROTEIN,
        ],
        "annotation": [
            "Signal peptidase II",
            "KRas proto-oncogene GTPase",
            "Unrelated repeat protein",
        ],
    }).write_csv(path, separator="\t")
    return path


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "protkmers.yaml"
    path.write_text(
        "index:\n"
        "  kmer_size: 6\n"
        "  threads: 2\n"
        "voting:\n"
        "  min_similarity: 0.4\n"
    )
    return path


# =============================================================================
# Main CLI Tests
# =============================================================================


class TestMainCLI:
    """Tests for main CLI entry point."""

    def test_version_flag(self):
        """--version should display version and exit."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "protkmers version" in result.stdout
        assert "0.1.0" in result.stdout

    def test_version_short_flag(self):
        result = runner.invoke(app, ["-v"])

        assert result.exit_code == 0
        assert "0.1.0" in result.stdout

    def test_no_args_shows_help(self):
        """Running without arguments should show help/usage message."""
        result = runner.invoke(app, [])

        # Exit code for no_args_is_help depends on the Typer version
        assert result.exit_code in (0, 2)
        assert "Usage:" in result.output or "search" in result.output

    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "search" in result.stdout
        assert "vote" in result.stdout

    def test_search_subcommand_help(self):
        result = runner.invoke(app, ["search", "--help"])

        assert result.exit_code == 0
        assert "closest" in result.stdout
        assert "close" in result.stdout


# =============================================================================
# Search Command Tests
# =============================================================================


class TestSearchClosestCommand:
    """Tests for search closest."""

    def test_closest_basic(self, reference_table: Path, query_table: Path, tmp_path: Path):
        output = tmp_path / "closest.csv"
        result = runner.invoke(app, [
            "search", "closest",
            "--reference", str(reference_table),
            "--queries", str(query_table),
            "--output", str(output),
        ])

        CLIAssertions.assert_success(result)
        CLIAssertions.assert_output_contains(result, "Results written")
        df = ResultTableAssertions.assert_valid_query_results(output, min_rows=3)

        assert df["query_id"].to_list() == ["q_exact", "q_variant", "q_unrelated"]
        exact, variant, unrelated = df.iter_rows(named=True)
        assert exact["similarity"] == 1.0
        assert exact["value"] == "GTPase KRas"
        assert variant["shared_kmers"] == 13
        assert variant["similarity"] == pytest.approx(13 / 29)
        assert unrelated["shared_kmers"] == 0
        assert unrelated["similarity"] == 0.0
        assert not unrelated["identifier"]

    def test_closest_parquet(self, reference_table: Path, query_table: Path, tmp_path: Path):
        output = tmp_path / "closest.parquet"
        result = runner.invoke(app, [
            "search", "closest",
            "-r", str(reference_table),
            "-i", str(query_table),
            "-o", str(output),
            "--format", "parquet",
            "--threads", "2",
        ])

        CLIAssertions.assert_success(result)
        df = ResultTableAssertions.assert_valid_query_results(output, min_rows=3)
        assert df["identifier"][2] == ""

    def test_closest_quiet(self, reference_table: Path, query_table: Path, tmp_path: Path):
        output = tmp_path / "closest.csv"
        result = runner.invoke(app, [
            "search", "closest",
            "-r", str(reference_table),
            "-i", str(query_table),
            "-o", str(output),
            "--quiet",
        ])

        CLIAssertions.assert_success(result)
        assert "Results written" not in result.stdout
        assert output.exists()

    def test_closest_columns_by_index(
        self, reference_table: Path, query_table: Path, tmp_path: Path
    ):
        """Value column 1 reports the reference feature ID instead of the annotation."""
        output = tmp_path / "closest.csv"
        result = runner.invoke(app, [
            "search", "closest",
            "-r", str(reference_table),
            "-i", str(query_table),
            "-o", str(output),
            "--protein-column", "2",
            "--value-column", "1",
            "--id-column", "1",
            "--query-column", "2",
        ])

        CLIAssertions.assert_success(result)
        df = pl.read_csv(output)
        assert df["value"][0] == "fig|83333.1.peg.3"

    def test_closest_with_config(
        self, reference_table: Path, query_table: Path, config_file: Path, tmp_path: Path
    ):
        """K-mer size from the config file changes the k-mer counts."""
        output = tmp_path / "closest.csv"
        result = runner.invoke(app, [
            "search", "closest",
            "-r", str(reference_table),
            "-i", str(query_table),
            "-o", str(output),
            "--config", str(config_file),
        ])

        CLIAssertions.assert_success(result)
        df = pl.read_csv(output)
        peg3 = REFERENCE_PROTEINS["fig|83333.1.peg.3"][0]
        assert df["shared_kmers"][0] == len(peg3) - 6 + 1


class TestSearchCloseCommand:
    """Tests for search close."""

    def test_close_threshold(self, reference_table: Path, query_table: Path, tmp_path: Path):
        output = tmp_path / "close.csv"
        result = runner.invoke(app, [
            "search", "close",
            "-r", str(reference_table),
            "-i", str(query_table),
            "-o", str(output),
            "--min-similarity", "0.4",
        ])

        CLIAssertions.assert_success(result)
        df = ResultTableAssertions.assert_valid_query_results(output)
        assert df["query_id"].to_list() == ["q_exact", "q_variant"]
        assert (df["similarity"] >= 0.4).all()

    def test_close_default_threshold_excludes_variant(
        self, reference_table: Path, query_table: Path, tmp_path: Path
    ):
        output = tmp_path / "close.csv"
        result = runner.invoke(app, [
            "search", "close",
            "-r", str(reference_table),
            "-i", str(query_table),
            "-o", str(output),
        ])

        CLIAssertions.assert_success(result)
        df = pl.read_csv(output)
        assert df["query_id"].to_list() == ["q_exact"]

    def test_close_zero_threshold_keeps_every_hit(
        self, reference_table: Path, query_table: Path, tmp_path: Path
    ):
        output = tmp_path / "close.csv"
        result = runner.invoke(app, [
            "search", "close",
            "-r", str(reference_table),
            "-i", str(query_table),
            "-o", str(output),
            "-s", "0",
        ])

        CLIAssertions.assert_success(result)
        df = pl.read_csv(output)
        assert "q_unrelated" not in df["query_id"].to_list()


class TestSearchErrors:
    """Tests for error handling in search commands."""

    def test_missing_reference_file(self, query_table: Path, tmp_path: Path):
        result = runner.invoke(app, [
            "search", "closest",
            "-r", "/nonexistent/reference.tsv",
            "-i", str(query_table),
            "-o", str(tmp_path / "out.csv"),
        ])

        assert result.exit_code != 0

    def test_unknown_column(self, reference_table: Path, query_table: Path, tmp_path: Path):
        result = runner.invoke(app, [
            "search", "closest",
            "-r", str(reference_table),
            "-i", str(query_table),
            "-o", str(tmp_path / "out.csv"),
            "--protein-column", "sequence",
        ])

        CLIAssertions.assert_failure(result, expected_code=1)
        CLIAssertions.assert_output_contains(result, "Column 'sequence'")

    def test_invalid_format_option(self, reference_table: Path, query_table: Path, tmp_path: Path):
        result = runner.invoke(app, [
            "search", "closest",
            "-r", str(reference_table),
            "-i", str(query_table),
            "-o", str(tmp_path / "out.csv"),
            "--format", "xlsx",
        ])

        CLIAssertions.assert_failure(result, expected_code=1)
        CLIAssertions.assert_output_contains(result, "Invalid format")

    def test_invalid_kmer_size(self, reference_table: Path, query_table: Path, tmp_path: Path):
        result = runner.invoke(app, [
            "search", "closest",
            "-r", str(reference_table),
            "-i", str(query_table),
            "-o", str(tmp_path / "out.csv"),
            "--kmer-size", "0",
        ])

        CLIAssertions.assert_failure(result, expected_code=1)
        CLIAssertions.assert_output_contains(result, "Invalid configuration")

    def test_missing_config_file(self, reference_table: Path, query_table: Path, tmp_path: Path):
        result = runner.invoke(app, [
            "search", "closest",
            "-r", str(reference_table),
            "-i", str(query_table),
            "-o", str(tmp_path / "out.csv"),
            "--config", str(tmp_path / "missing.yaml"),
        ])

        CLIAssertions.assert_failure(result, expected_code=1)
        CLIAssertions.assert_output_contains(result, "Config file not found")

    def test_min_similarity_out_of_range(
        self, reference_table: Path, query_table: Path, tmp_path: Path
    ):
        result = runner.invoke(app, [
            "search", "close",
            "-r", str(reference_table),
            "-i", str(query_table),
            "-o", str(tmp_path / "out.csv"),
            "--min-similarity", "1.5",
        ])

        assert result.exit_code != 0

    def test_invalid_query_rows_are_skipped(self, reference_table: Path, tmp_path: Path):
        queries = tmp_path / "bad_queries.tsv"
        queries.write_text(
            "id\tprotein\n"
            f"q_bad\tMKV1LAAGIVG\n"
            f"q_good\t{REFERENCE_PROTEINS['fig|83333.1.peg.2'][0]}\n"
        )
        output = tmp_path / "out.csv"
        result = runner.invoke(app, [
            "search", "closest",
            "-r", str(reference_table),
            "-i", str(queries),
            "-o", str(output),
        ])

        CLIAssertions.assert_success(result)
        df = pl.read_csv(output)
        assert df["similarity"].to_list() == [0.0, 1.0]


# =============================================================================
# Vote Command Tests
# =============================================================================


class TestVoteAnnotateCommand:
    """Tests for vote annotate."""

    def test_annotate_basic(self, reference_table: Path, proposal_table: Path, tmp_path: Path):
        output = tmp_path / "annotations.csv"
        result = runner.invoke(app, [
            "vote", "annotate",
            "--proteins", str(reference_table),
            "--proposals", str(proposal_table),
            "--output", str(output),
            "--min-similarity", "0.4",
        ])

        CLIAssertions.assert_success(result)
        CLIAssertions.assert_output_contains(result, "Annotations written")
        df = ResultTableAssertions.assert_valid_proposals(output, expected_rows=5)

        annotations = dict(zip(df["feature_id"].to_list(), df["annotation"].to_list()))
        assert annotations["fig|83333.1.peg.1"] == "Signal peptidase II"
        assert annotations["fig|83333.1.peg.3"] == "KRas proto-oncogene GTPase"
        assert annotations["fig|83333.1.peg.2"] == "Nucleocapsid protein"
        assert "Unrelated repeat protein" not in annotations.values()

    def test_annotate_sorted_by_feature(
        self, reference_table: Path, proposal_table: Path, tmp_path: Path
    ):
        output = tmp_path / "annotations.csv"
        result = runner.invoke(app, [
            "vote", "annotate",
            "-p", str(reference_table),
            "-a", str(proposal_table),
            "-o", str(output),
            "--quiet",
        ])

        CLIAssertions.assert_success(result)
        feature_ids = pl.read_csv(output)["feature_id"].to_list()
        assert feature_ids == sorted(feature_ids)

    def test_annotate_default_threshold(
        self, reference_table: Path, proposal_table: Path, tmp_path: Path
    ):
        """At the default 0.5 only the exact peg.3 proposal transfers."""
        output = tmp_path / "annotations.csv"
        result = runner.invoke(app, [
            "vote", "annotate",
            "-p", str(reference_table),
            "-a", str(proposal_table),
            "-o", str(output),
        ])

        CLIAssertions.assert_success(result)
        df = pl.read_csv(output)
        annotations = dict(zip(df["feature_id"].to_list(), df["annotation"].to_list()))
        assert annotations["fig|83333.1.peg.1"] == "Lipoprotein signal peptidase"
        assert annotations["fig|83333.1.peg.3"] == "KRas proto-oncogene GTPase"

    def test_annotate_with_config(
        self, reference_table: Path, proposal_table: Path, config_file: Path, tmp_path: Path
    ):
        output = tmp_path / "annotations.parquet"
        result = runner.invoke(app, [
            "vote", "annotate",
            "-p", str(reference_table),
            "-a", str(proposal_table),
            "-o", str(output),
            "--config", str(config_file),
            "--format", "parquet",
        ])

        CLIAssertions.assert_success(result)
        ResultTableAssertions.assert_valid_proposals(output, expected_rows=5)

    def test_annotate_unknown_feature_column(
        self, reference_table: Path, proposal_table: Path, tmp_path: Path
    ):
        result = runner.invoke(app, [
            "vote", "annotate",
            "-p", str(reference_table),
            "-a", str(proposal_table),
            "-o", str(tmp_path / "out.csv"),
            "--feature-column", "locus_tag",
        ])

        CLIAssertions.assert_failure(result, expected_code=1)
        CLIAssertions.assert_output_contains(result, "Column 'locus_tag'")

    def test_annotate_warns_on_duplicate_sequences(
        self, proposal_table: Path, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ):
        """Features sharing one sequence collapse to the last one, with a warning."""
        genome = tmp_path / "genome.tsv"
        sequence, annotation = REFERENCE_PROTEINS["fig|83333.1.peg.3"]
        pl.DataFrame({
            "id": ["fig|1.peg.1", "fig|1.peg.2"],
            "protein": [sequence, sequence.lower()],
            "annotation": [annotation, annotation],
        }).write_csv(genome, separator="\t")
        output = tmp_path / "annotations.csv"

        with caplog.at_level(logging.WARNING, logger="protkmers.cli.vote"):
            result = runner.invoke(app, [
                "vote", "annotate",
                "-p", str(genome),
                "-a", str(proposal_table),
                "-o", str(output),
            ])

        CLIAssertions.assert_success(result)
        assert pl.read_csv(output)["feature_id"].to_list() == ["fig|1.peg.2"]
        messages = [record.getMessage() for record in caplog.records]
        assert any("fig|1.peg.2" in m and "fig|1.peg.1" in m for m in messages)
