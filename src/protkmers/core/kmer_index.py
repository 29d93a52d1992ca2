"""
Protein k-mer index for finding close proteins without alignment.

The index keeps two structures:

- a protein table mapping each protein identifier (digest of its canonical
  sequence) to its k-mer count and an arbitrary payload;
- a sharded k-mer map from each encoded k-mer to the set of protein
  identifiers containing it. The shard is chosen by the k-mer's leading
  symbol.

A query is answered by tallying, for each of its k-mers, the proteins that
contain it. The protein with the most hits is the closest, and its Jaccard
similarity is hits / (query k-mers + stored k-mers - hits). Only proteins
sharing at least one k-mer with the query are ever scored.

Thread safety:
    add_protein, find_closest and find_close may be called concurrently from
    many threads. Inserting into one k-mer's identifier set holds only that
    k-mer's lock stripe within its shard, so unrelated k-mers are updated in
    parallel. Queries copy each identifier set under the same stripe lock.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generic, TypeVar

from protkmers.core.constants import (
    DEFAULT_HASH_ALGORITHM,
    DEFAULT_KMER_SIZE,
    DEFAULT_PROTEIN_COLUMN,
    DEFAULT_VALUE_COLUMN,
    LOCK_STRIPES_PER_SHARD,
    SHARD_COUNT,
)
from protkmers.core.encoding import KmerKey, encode_kmer, shard_index
from protkmers.core.exceptions import InvalidKmerSizeError, InvalidThresholdError
from protkmers.core.identity import IdentityHasher
from protkmers.core.sequence import canonicalize, extract_kmers

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ProteinEntry(Generic[T]):
    """Protein table record: distinct k-mer count and associated payload."""

    identifier: str
    kmer_count: int
    payload: T


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    """
    Result of a close-protein query.

    Attributes:
        identifier: Identifier of the matching protein ("" when not found).
        shared_kmer_count: Number of query k-mers found in the protein.
        similarity: Jaccard similarity between query and protein (0-1).
        payload: Payload stored with the protein (None when not found).
    """

    identifier: str
    shared_kmer_count: int
    similarity: float
    payload: T | None

    @property
    def is_empty(self) -> bool:
        """True if no indexed protein shares a k-mer with the query."""
        return self.shared_kmer_count == 0


NOT_FOUND: QueryResult[Any] = QueryResult(
    identifier="", shared_kmer_count=0, similarity=0.0, payload=None
)


def jaccard_similarity(shared: int, query_kmers: int, stored_kmers: int) -> float:
    """
    Jaccard similarity from a shared k-mer count and the two k-mer counts.

    Returns 0.0 when the union is empty.

    Example:
        >>> jaccard_similarity(3, 5, 4)
        0.5
    """
    union = query_kmers + stored_kmers - shared
    if union <= 0:
        return 0.0
    return shared / union


class _Shard:
    """One partition of the k-mer map, with striped locks per k-mer set."""

    __slots__ = ("_locks", "_sets")

    def __init__(self, stripes: int) -> None:
        self._sets: dict[KmerKey, set[str]] = {}
        self._locks = tuple(threading.Lock() for _ in range(stripes))

    def _lock_for(self, key: KmerKey) -> threading.Lock:
        return self._locks[hash(key) % len(self._locks)]

    def add(self, key: KmerKey, identifier: str) -> None:
        with self._lock_for(key):
            members = self._sets.get(key)
            if members is None:
                self._sets[key] = {identifier}
            else:
                members.add(identifier)

    def members(self, key: KmerKey) -> tuple[str, ...]:
        if key not in self._sets:
            return ()
        with self._lock_for(key):
            return tuple(self._sets[key])

    def __len__(self) -> int:
        return len(self._sets)


class ProteinKmerIndex(Generic[T]):
    """
    In-memory k-mer index over a set of proteins with generic payloads.

    The k-mer size is fixed at construction. Proteins are keyed by the
    digest of their canonical sequence; adding the same sequence again
    replaces its payload.

    Example:
        >>> index = ProteinKmerIndex[str](kmer_size=8)
        >>> md5 = index.add_protein("MKVLAAGIVGLLLA", "hypothetical protein")
        >>> result = index.find_closest("MKVLAAGIVGLLLA")
        >>> result.similarity
        1.0
    """

    def __init__(
        self,
        kmer_size: int = DEFAULT_KMER_SIZE,
        hash_algorithm: str = DEFAULT_HASH_ALGORITHM,
        lock_stripes: int = LOCK_STRIPES_PER_SHARD,
    ) -> None:
        """
        Create an empty index.

        Args:
            kmer_size: Length of the k-mers used for matching.
            hash_algorithm: hashlib algorithm for protein identifiers.
            lock_stripes: Number of locks per shard guarding k-mer sets.

        Raises:
            InvalidKmerSizeError: If kmer_size is not positive.
            HashAlgorithmUnavailableError: If the hash algorithm is missing.
        """
        if kmer_size < 1:
            raise InvalidKmerSizeError(kmer_size)
        self._kmer_size = kmer_size
        self._hasher = IdentityHasher(hash_algorithm)
        self._proteins: dict[str, ProteinEntry[T]] = {}
        self._table_lock = threading.Lock()
        self._shards = tuple(_Shard(max(1, lock_stripes)) for _ in range(SHARD_COUNT))

    @classmethod
    def load(
        cls,
        path: Path,
        kmer_size: int = DEFAULT_KMER_SIZE,
        protein_column: str = DEFAULT_PROTEIN_COLUMN,
        value_column: str = DEFAULT_VALUE_COLUMN,
        hash_algorithm: str = DEFAULT_HASH_ALGORITHM,
    ) -> ProteinKmerIndex[str]:
        """
        Build an index of string values from a delimited protein table.

        Columns may be given by header name or 1-based index. Proteins
        shorter than the k-mer size are skipped.
        """
        from protkmers.core.loader import load_protein_table

        index: ProteinKmerIndex[str] = ProteinKmerIndex(kmer_size, hash_algorithm)
        load_protein_table(index, path, protein_column, value_column)
        return index

    @property
    def kmer_size(self) -> int:
        return self._kmer_size

    @property
    def protein_count(self) -> int:
        """Number of distinct proteins stored."""
        return len(self._proteins)

    @property
    def kmer_count(self) -> int:
        """Number of distinct k-mers stored across all shards."""
        return sum(len(shard) for shard in self._shards)

    def __len__(self) -> int:
        return len(self._proteins)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._proteins

    def identifier_for(self, sequence: str) -> str:
        """Compute the identifier a sequence would be stored under."""
        return self._hasher.digest(canonicalize(sequence))

    def add_protein(self, sequence: str, payload: T) -> str:
        """
        Add a protein to the index.

        Args:
            sequence: Protein sequence (any case).
            payload: Value to associate with the protein.

        Returns:
            The protein's identifier.

        Raises:
            InvalidSequenceError: If the sequence has characters outside the
                protein alphabet. The index is left unchanged.
        """
        canonical = canonicalize(sequence)
        identifier = self._hasher.digest(canonical)
        kmers = extract_kmers(canonical, self._kmer_size)
        keys = [(shard_index(kmer), encode_kmer(kmer)) for kmer in kmers]

        entry = ProteinEntry(identifier=identifier, kmer_count=len(set(kmers)), payload=payload)
        with self._table_lock:
            replaced = identifier in self._proteins
            self._proteins[identifier] = entry
        if replaced:
            logger.debug("Replaced existing entry for protein %s", identifier)

        for shard, key in keys:
            self._shards[shard].add(key, identifier)
        return identifier

    def get(self, identifier: str) -> T | None:
        """Payload stored for a protein identifier, or None if absent."""
        entry = self._proteins.get(identifier)
        return entry.payload if entry is not None else None

    def get_entry(self, identifier: str) -> ProteinEntry[T] | None:
        """Full protein table record for an identifier, or None if absent."""
        return self._proteins.get(identifier)

    def entries(self) -> Iterator[ProteinEntry[T]]:
        """Iterate over a snapshot of the protein table."""
        with self._table_lock:
            snapshot = list(self._proteins.values())
        return iter(snapshot)

    def _count_hits(self, sequence: str) -> tuple[int, Counter[str]]:
        """Tally, per stored protein, how many of the query's k-mers it contains."""
        kmers = set(extract_kmers(canonicalize(sequence), self._kmer_size))
        hits: Counter[str] = Counter()
        # Both sides count distinct k-mers, so a protein matches itself at 1.0
        for kmer in kmers:
            shard = self._shards[shard_index(kmer)]
            hits.update(shard.members(encode_kmer(kmer)))
        return len(kmers), hits

    def _result(self, identifier: str, hits: int, query_kmers: int) -> QueryResult[T]:
        entry = self._proteins[identifier]
        return QueryResult(
            identifier=identifier,
            shared_kmer_count=hits,
            similarity=jaccard_similarity(hits, query_kmers, entry.kmer_count),
            payload=entry.payload,
        )

    def find_closest(self, sequence: str) -> QueryResult[T]:
        """
        Find the stored protein sharing the most k-mers with a query.

        Ties between equally good proteins are broken arbitrarily.

        Returns:
            The best result, or NOT_FOUND if no k-mer is shared with any
            stored protein (including queries shorter than the k-mer size).
        """
        query_kmers, hits = self._count_hits(sequence)
        if not hits:
            return NOT_FOUND
        identifier, count = hits.most_common(1)[0]
        return self._result(identifier, count, query_kmers)

    def find_close(self, sequence: str, min_similarity: float) -> list[QueryResult[T]]:
        """
        Find every stored protein whose similarity to a query meets a threshold.

        Args:
            sequence: Query protein sequence.
            min_similarity: Minimum Jaccard similarity (0-1) to report.

        Returns:
            Unordered list of results with similarity >= min_similarity.

        Raises:
            InvalidThresholdError: If min_similarity is outside [0, 1].
        """
        if not 0.0 <= min_similarity <= 1.0:
            raise InvalidThresholdError("min_similarity", min_similarity, 0.0, 1.0)
        query_kmers, hits = self._count_hits(sequence)
        results = []
        for identifier, count in hits.items():
            result = self._result(identifier, count, query_kmers)
            if result.similarity >= min_similarity:
                results.append(result)
        return results
