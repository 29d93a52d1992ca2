"""
Protein sequence canonicalization and k-mer extraction.

Every other component works on canonical sequences: upper-cased, trimmed,
and restricted to the protein alphabet. K-mers are taken literally, so
ambiguity, gap and stop symbols are kept rather than filtered.
"""

from __future__ import annotations

from collections.abc import Iterator

from protkmers.core.constants import SYMBOL_CODES
from protkmers.core.exceptions import InvalidSequenceError


def canonicalize(sequence: str) -> str:
    """
    Return the canonical form of a protein sequence.

    Args:
        sequence: Raw protein string in any case.

    Returns:
        Upper-cased sequence with surrounding whitespace removed.

    Raises:
        InvalidSequenceError: If the sequence contains characters outside
            the protein alphabet (including any non-ASCII character).

    Example:
        >>> canonicalize(" mkvl* ")
        'MKVL*'
    """
    stripped = sequence.strip()
    # Non-ASCII letters can change length when upper-cased, so check first
    if not stripped.isascii():
        raise InvalidSequenceError(stripped, {c for c in stripped if not c.isascii()})
    canonical = stripped.upper()
    bad_chars = set(canonical).difference(SYMBOL_CODES)
    if bad_chars:
        raise InvalidSequenceError(canonical, bad_chars)
    return canonical


def kmer_count(length: int, kmer_size: int) -> int:
    """Number of k-mer windows in a sequence of the given length."""
    return max(0, length - kmer_size + 1)


def iter_kmers(sequence: str, kmer_size: int) -> Iterator[str]:
    """Yield every k-mer of a canonical sequence, in order, with repeats."""
    for start in range(len(sequence) - kmer_size + 1):
        yield sequence[start : start + kmer_size]


def extract_kmers(sequence: str, kmer_size: int) -> list[str]:
    """
    Extract all k-mers from a canonical sequence.

    Produces one k-mer per start offset 0..len-K, so the result has exactly
    ``len(sequence) - kmer_size + 1`` elements, or none when the sequence
    is shorter than the k-mer size.

    Example:
        >>> extract_kmers("MKVLA", 3)
        ['MKV', 'KVL', 'VLA']
    """
    return list(iter_kmers(sequence, kmer_size))


class ProteinKmers:
    """
    Distinct k-mer set of a single protein.

    Used for brute-force similarity between two proteins without an index,
    for example to check index results on small data sets.

    Example:
        >>> a = ProteinKmers("MKVLAAGIVG", 4)
        >>> b = ProteinKmers("MKVLAAGLVG", 4)
        >>> a.similarity(b)
        4
    """

    def __init__(self, sequence: str, kmer_size: int) -> None:
        self.sequence = canonicalize(sequence)
        self.kmer_size = kmer_size
        self._kmers = frozenset(iter_kmers(self.sequence, kmer_size))

    def __len__(self) -> int:
        return len(self._kmers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._kmers)

    def __contains__(self, kmer: object) -> bool:
        return kmer in self._kmers

    def similarity(self, other: ProteinKmers) -> int:
        """Number of distinct k-mers shared with another protein."""
        return len(self._kmers & other._kmers)

    def jaccard(self, other: ProteinKmers) -> float:
        """Jaccard similarity of the two distinct k-mer sets (0.0 if both empty)."""
        union = len(self._kmers | other._kmers)
        if union == 0:
            return 0.0
        return self.similarity(other) / union
