"""
Protkmers: k-mer based similarity index for protein sequences.

Finds the stored protein sharing the most k-mers with a query, scores the
match by Jaccard similarity, and transfers annotations from external
proteins onto their closest genome proteins without full alignment.
"""

__version__ = "0.1.0"
__author__ = "Protkmers Team"

from protkmers.core.kmer_index import NOT_FOUND, ProteinKmerIndex, QueryResult
from protkmers.core.voting import AnnotationVoter, Proposal

__all__ = [
    "NOT_FOUND",
    "AnnotationVoter",
    "ProteinKmerIndex",
    "Proposal",
    "QueryResult",
    "__version__",
]
