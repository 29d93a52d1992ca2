"""
Similarity-weighted annotation transfer onto a set of proteins.

An AnnotationVoter indexes the proteins of one genome, each seeded with a
default annotation. External proposals (a protein sequence plus its
annotation) are matched against the index; every genome protein close
enough to a proposal keeps that proposal's annotation if it is more similar
than anything seen before. After all proposals are processed each protein
carries the annotation of its most similar proposal.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator

from protkmers.core.constants import (
    DEFAULT_HASH_ALGORITHM,
    DEFAULT_KMER_SIZE,
    DEFAULT_MIN_SIMILARITY,
)
from protkmers.core.exceptions import InvalidThresholdError
from protkmers.core.kmer_index import ProteinKmerIndex

logger = logging.getLogger(__name__)

DEFAULT_ANNOTATION = ""


class Proposal:
    """
    Best annotation proposed so far for one protein, with its similarity.

    merge() is safe to call from several threads at once.
    """

    __slots__ = ("_annotation", "_lock", "_score", "feature_id")

    def __init__(
        self,
        annotation: str = DEFAULT_ANNOTATION,
        feature_id: str | None = None,
    ) -> None:
        self._score = 0.0
        self._annotation = annotation
        self._lock = threading.Lock()
        self.feature_id = feature_id

    @property
    def score(self) -> float:
        return self._score

    @property
    def annotation(self) -> str:
        return self._annotation

    def merge(self, score: float, annotation: str) -> bool:
        """
        Keep a new annotation if its score beats the current one.

        Ties keep the existing annotation.

        Returns:
            True if the proposal was replaced.
        """
        with self._lock:
            if score > self._score:
                self._score = score
                self._annotation = annotation
                return True
        return False

    def __repr__(self) -> str:
        return f"Proposal(score={self._score!r}, annotation={self._annotation!r})"


class AnnotationVoter:
    """
    K-mer index of a genome's proteins carrying annotation proposals.

    Example:
        >>> voter = AnnotationVoter(kmer_size=8, min_similarity=0.3)
        >>> md5 = voter.add_protein("MKVLAAGIVGLLLAQ", "hypothetical protein")
        >>> voter.process_proposal("MKVLAAGIVGLLLAQ", "DNA gyrase subunit A")
        1
        >>> voter.get_proposal(md5).annotation
        'DNA gyrase subunit A'
    """

    def __init__(
        self,
        kmer_size: int = DEFAULT_KMER_SIZE,
        min_similarity: float = DEFAULT_MIN_SIMILARITY,
        hash_algorithm: str = DEFAULT_HASH_ALGORITHM,
    ) -> None:
        if not 0.0 <= min_similarity <= 1.0:
            raise InvalidThresholdError("min_similarity", min_similarity, 0.0, 1.0)
        self._index: ProteinKmerIndex[Proposal] = ProteinKmerIndex(kmer_size, hash_algorithm)
        self._min_similarity = min_similarity

    @property
    def index(self) -> ProteinKmerIndex[Proposal]:
        return self._index

    @property
    def min_similarity(self) -> float:
        return self._min_similarity

    @property
    def kmer_count(self) -> int:
        return self._index.kmer_count

    @property
    def protein_count(self) -> int:
        return self._index.protein_count

    def add_protein(
        self,
        sequence: str,
        default_annotation: str = DEFAULT_ANNOTATION,
        feature_id: str | None = None,
    ) -> str:
        """
        Add a genome protein with its starting annotation.

        Returns:
            The protein's identifier.
        """
        return self._index.add_protein(sequence, Proposal(default_annotation, feature_id))

    def process_proposal(self, sequence: str, annotation: str) -> int:
        """
        Offer an annotation to every genome protein close to a sequence.

        Args:
            sequence: Protein sequence the annotation belongs to.
            annotation: Annotation being proposed.

        Returns:
            Number of genome proteins within the similarity threshold.
        """
        close = self._index.find_close(sequence, self._min_similarity)
        for result in close:
            if result.payload.merge(result.similarity, annotation):
                logger.debug(
                    "Protein %s now annotated '%s' (similarity %.3f)",
                    result.identifier, annotation, result.similarity,
                )
        return len(close)

    def get_proposal(self, identifier: str) -> Proposal | None:
        """Proposal for a protein identifier, or None if absent."""
        return self._index.get(identifier)

    def proposals(self) -> Iterator[tuple[str, Proposal]]:
        """Iterate over (identifier, proposal) for every genome protein."""
        for entry in self._index.entries():
            yield entry.identifier, entry.payload
