"""
Content-addressed protein identifiers.

A protein's identifier is the hex digest of its canonical sequence, so the
same sequence always maps to the same key no matter where it came from.
"""

from __future__ import annotations

import hashlib
import logging

from protkmers.core.constants import DEFAULT_HASH_ALGORITHM
from protkmers.core.exceptions import HashAlgorithmUnavailableError, InvalidSequenceError

logger = logging.getLogger(__name__)


class IdentityHasher:
    """
    Computes stable identifiers for canonical protein sequences.

    The digest algorithm is checked once at construction; a missing
    algorithm is a configuration problem, not a per-sequence one.

    Example:
        >>> hasher = IdentityHasher()
        >>> hasher.digest("MKV")
        'bc5a0dfbf35ec22ac2c0f8c1e5534d8e'
    """

    def __init__(self, algorithm: str = DEFAULT_HASH_ALGORITHM) -> None:
        try:
            self._prototype = hashlib.new(algorithm, usedforsecurity=False)
        except (ValueError, TypeError) as e:
            raise HashAlgorithmUnavailableError(algorithm, str(e)) from e
        self.algorithm = algorithm
        logger.debug("Using %s for protein identifiers", algorithm)

    @property
    def digest_size(self) -> int:
        """Length in characters of the identifiers produced."""
        return self._prototype.digest_size * 2

    def digest(self, sequence: str) -> str:
        """
        Hex digest of a canonical protein sequence.

        Raises:
            InvalidSequenceError: If the sequence cannot be encoded as ASCII.
        """
        try:
            data = sequence.encode("ascii")
        except UnicodeEncodeError:
            raise InvalidSequenceError(
                sequence, {c for c in sequence if not c.isascii()}
            ) from None
        engine = self._prototype.copy()
        engine.update(data)
        return engine.hexdigest()
