"""
Core algorithms for protein k-mer indexing.

This module contains the k-mer index and its query engine, the annotation
voting layer built on it, and the supporting sequence, encoding and
identity components.
"""

from protkmers.core.kmer_index import (
    NOT_FOUND,
    ProteinEntry,
    ProteinKmerIndex,
    QueryResult,
)
from protkmers.core.loader import LoadStats, Prototype, load_protein_table
from protkmers.core.sequence import ProteinKmers, canonicalize, extract_kmers
from protkmers.core.voting import AnnotationVoter, Proposal

__all__ = [
    "NOT_FOUND",
    "AnnotationVoter",
    "LoadStats",
    "Proposal",
    "ProteinEntry",
    "ProteinKmerIndex",
    "ProteinKmers",
    "Prototype",
    "QueryResult",
    "canonicalize",
    "extract_kmers",
    "load_protein_table",
]
