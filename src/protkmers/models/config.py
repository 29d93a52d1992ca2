"""
Pydantic configuration models for protkmers.

These models define configuration for the protein k-mer index, annotation
voting and bulk loading. Configuration can be loaded from YAML files or
given as CLI arguments, which override YAML values.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Self

from pydantic import BaseModel, Field, model_validator

from protkmers.core.constants import (
    DEFAULT_HASH_ALGORITHM,
    DEFAULT_KMER_SIZE,
    DEFAULT_MIN_SIMILARITY,
    DEFAULT_PROGRESS_INTERVAL,
    DEFAULT_PROTEIN_COLUMN,
    DEFAULT_VALUE_COLUMN,
)


class IndexConfig(BaseModel):
    """
    Configuration for building and querying a protein k-mer index.

    K-mer size:
        8-mers are the usual choice for proteins: long enough that chance
        matches between unrelated proteins are rare, short enough that
        homologs around 70% identity still share many k-mers.

    Similarity:
        min_similarity is a Jaccard similarity of k-mer sets (0-1), used by
        threshold queries and by annotation voting.
    """

    kmer_size: int = Field(
        default=DEFAULT_KMER_SIZE,
        ge=1,
        le=64,
        description="Length of protein k-mers used for matching",
    )
    hash_algorithm: str = Field(
        default=DEFAULT_HASH_ALGORITHM,
        description="hashlib algorithm used for protein identifiers",
    )
    min_similarity: float = Field(
        default=DEFAULT_MIN_SIMILARITY,
        ge=0,
        le=1,
        description="Minimum Jaccard similarity for close matches and annotation votes",
    )
    progress_interval: float = Field(
        default=DEFAULT_PROGRESS_INTERVAL,
        gt=0,
        description="Seconds between progress messages during bulk loads",
    )
    threads: int = Field(
        default=4,
        ge=1,
        description="Worker threads for parallel queries and proposals",
    )
    protein_column: str = Field(
        default=DEFAULT_PROTEIN_COLUMN,
        min_length=1,
        description="Header name or 1-based index of the protein sequence column",
    )
    value_column: str = Field(
        default=DEFAULT_VALUE_COLUMN,
        min_length=1,
        description="Header name or 1-based index of the value/annotation column",
    )

    @model_validator(mode="after")
    def validate_columns_differ(self) -> Self:
        """The protein and value columns must not be the same column."""
        if self.protein_column == self.value_column:
            msg = (
                f"protein_column and value_column must differ, "
                f"both are '{self.protein_column}'"
            )
            raise ValueError(msg)
        return self

    def with_overrides(self, **overrides: Any) -> IndexConfig:
        """
        Return a copy with the given fields replaced, skipping None values.

        CLI options default to None so that only options the user actually
        set override values from a config file.
        """
        update = {key: value for key, value in overrides.items() if value is not None}
        if not update:
            return self
        return IndexConfig(**{**self.model_dump(), **update})

    @classmethod
    def from_yaml(cls, path: Path) -> IndexConfig:
        """
        Load index configuration from a YAML file.

        The YAML file uses nested sections (index, voting, loading) that are
        flattened to model fields. Unknown keys are ignored.

        Args:
            path: Path to YAML configuration file.

        Returns:
            IndexConfig populated from YAML values merged with defaults.

        Raises:
            FileNotFoundError: If YAML file does not exist.
            ValueError: If YAML contains invalid values.
        """
        import yaml

        raw = yaml.safe_load(path.read_text())
        if not isinstance(raw, dict):
            msg = f"YAML config must be a mapping, got {type(raw).__name__}"
            raise ValueError(msg)

        flat = _flatten_yaml_config(raw)
        return cls(**flat)

    def to_yaml(self, path: Path) -> None:
        """Write index configuration to a YAML file."""
        path.write_text(self.to_yaml_str())

    def to_yaml_str(self) -> str:
        """Serialize index configuration to a YAML string."""
        import yaml

        data = _build_yaml_structure(self)
        return yaml.dump(data, default_flow_style=False, sort_keys=False)

    model_config = {"frozen": True}


def _flatten_yaml_config(raw: dict[str, Any]) -> dict[str, Any]:
    """
    Flatten nested YAML config structure into IndexConfig keyword arguments.

    Maps the documented nested YAML structure:
        index.kmer_size -> kmer_size
        voting.min_similarity -> min_similarity
        loading.protein_column -> protein_column
    """
    flat: dict[str, Any] = {}

    index = raw.get("index", {})
    _map_if_present(index, "kmer_size", flat, "kmer_size")
    _map_if_present(index, "hash_algorithm", flat, "hash_algorithm")
    _map_if_present(index, "threads", flat, "threads")

    voting = raw.get("voting", {})
    _map_if_present(voting, "min_similarity", flat, "min_similarity")

    loading = raw.get("loading", {})
    _map_if_present(loading, "protein_column", flat, "protein_column")
    _map_if_present(loading, "value_column", flat, "value_column")
    _map_if_present(loading, "progress_interval", flat, "progress_interval")

    # Column indices are often written as bare integers in YAML
    for key in ("protein_column", "value_column"):
        if key in flat:
            flat[key] = str(flat[key])

    return flat


def _map_if_present(
    source: dict[str, Any],
    source_key: str,
    target: dict[str, Any],
    target_key: str,
) -> None:
    """Copy value from source dict to target dict if key exists."""
    if source_key in source and source[source_key] is not None:
        target[target_key] = source[source_key]


def _build_yaml_structure(config: IndexConfig) -> dict[str, Any]:
    """Build nested YAML dict from an IndexConfig instance."""
    return {
        "index": {
            "kmer_size": config.kmer_size,
            "hash_algorithm": config.hash_algorithm,
            "threads": config.threads,
        },
        "voting": {
            "min_similarity": config.min_similarity,
        },
        "loading": {
            "protein_column": config.protein_column,
            "value_column": config.value_column,
            "progress_interval": config.progress_interval,
        },
    }
