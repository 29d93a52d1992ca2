"""
Custom exceptions with actionable guidance.

Provides specific error types for common failure scenarios,
each with helpful suggestions for resolution.
"""

from __future__ import annotations


class ProtkmersError(Exception):
    """Base exception for protkmers errors."""

    def __init__(self, message: str, suggestion: str | None = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.full_message)

    @property
    def full_message(self) -> str:
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class ConfigurationError(ProtkmersError):
    """Raised when configuration is invalid or the index cannot be built."""



class HashAlgorithmUnavailableError(ConfigurationError):
    """Raised when the identity digest algorithm is missing from this runtime."""

    def __init__(self, algorithm: str, reason: str | None = None):
        detail = f": {reason}" if reason else ""
        super().__init__(
            message=f"Hash algorithm '{algorithm}' is not available on this installation{detail}",
            suggestion=(
                "Use a Python build whose hashlib provides this algorithm "
                "(FIPS-restricted OpenSSL builds may disable MD5), or choose "
                "another algorithm such as 'blake2b'."
            ),
        )
        self.algorithm = algorithm


class InvalidThresholdError(ConfigurationError):
    """Raised when a threshold parameter is out of valid range."""

    def __init__(self, param_name: str, value: float, min_val: float, max_val: float):
        super().__init__(
            message=f"{param_name} = {value} is out of valid range [{min_val}, {max_val}]",
            suggestion=f"Set {param_name} to a value between {min_val} and {max_val}.",
        )


class InvalidKmerSizeError(ConfigurationError):
    """Raised when the k-mer size is not a positive integer."""

    def __init__(self, kmer_size: int):
        super().__init__(
            message=f"Invalid k-mer size: {kmer_size}",
            suggestion="The k-mer size must be a positive integer (8 is typical for proteins).",
        )
        self.kmer_size = kmer_size


class InvalidInputError(ProtkmersError):
    """Raised for a single bad record; callers may skip it and continue."""



class InvalidSequenceError(InvalidInputError):
    """Raised when a protein sequence contains characters that cannot be encoded."""

    def __init__(self, sequence: str, bad_chars: set[str]):
        preview = sequence if len(sequence) <= 30 else sequence[:27] + "..."
        shown = ", ".join(repr(c) for c in sorted(bad_chars)[:5])
        super().__init__(
            message=f"Invalid characters in protein sequence '{preview}': {shown}",
            suggestion=(
                "Protein sequences may contain only amino-acid letters A-Z, "
                "'*' (stop), and '-' or '.' (gap). Skip or clean this record."
            ),
        )
        self.bad_chars = bad_chars


class ProteinFileError(ProtkmersError):
    """Base class for protein table file errors."""



class ColumnNotFoundError(ProteinFileError):
    """Raised when a requested column is not present in a protein table."""

    def __init__(self, column: str, path: str, available: list[str]):
        shown = ", ".join(available[:10])
        super().__init__(
            message=f"Column '{column}' not found in {path}",
            suggestion=(
                f"Available columns: {shown}\n"
                "Columns may be given by header name or by 1-based index."
            ),
        )
        self.column = column


class EmptyProteinFileError(ProteinFileError):
    """Raised when a protein table has no header row."""

    def __init__(self, path: str):
        super().__init__(
            message=f"Protein file is empty or has no header row: {path}",
            suggestion=(
                "The file must be tab-delimited with a header line naming "
                "the protein sequence column and the value column."
            ),
        )
