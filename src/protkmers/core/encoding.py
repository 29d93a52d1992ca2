"""
Compact k-mer keys for the protein k-mer index.

Each symbol of the protein alphabet maps to a nonzero 5-bit code and a k-mer
is packed as a base-32 numeral of those codes. Because no code is zero the
packing is injective across lengths: "", "A" and "AA" all get different keys.
Short k-mers (up to MAX_PACKED_KMER_LENGTH symbols) are keyed by the packed
int itself; longer k-mers use its big-endian bytes so the index never holds
the raw substrings.
"""

from __future__ import annotations

from typing import TypeAlias

from protkmers.core.constants import (
    BITS_PER_SYMBOL,
    MAX_PACKED_KMER_LENGTH,
    SYMBOL_CODES,
)
from protkmers.core.exceptions import InvalidSequenceError

KmerKey: TypeAlias = int | bytes


def pack_kmer(kmer: str) -> int:
    """
    Pack a k-mer into an integer, 5 bits per symbol.

    Raises:
        InvalidSequenceError: If the k-mer contains a symbol outside the
            protein alphabet.
    """
    packed = 0
    try:
        for symbol in kmer:
            packed = (packed << BITS_PER_SYMBOL) | SYMBOL_CODES[symbol]
    except KeyError:
        raise InvalidSequenceError(
            kmer, set(kmer).difference(SYMBOL_CODES)
        ) from None
    return packed


def encode_kmer(kmer: str) -> KmerKey:
    """
    Encode a canonical k-mer as a hashable key.

    Equal k-mers give equal keys and distinct k-mers (of any length,
    including the empty string) give distinct keys.

    Example:
        >>> encode_kmer("A")
        1
        >>> encode_kmer("AA")
        33
    """
    packed = pack_kmer(kmer)
    if len(kmer) <= MAX_PACKED_KMER_LENGTH:
        return packed
    return packed.to_bytes((packed.bit_length() + 7) // 8, "big")


def shard_index(kmer: str) -> int:
    """
    Index of the shard holding a k-mer, chosen by its leading symbol.

    Raises:
        InvalidSequenceError: If the k-mer is empty or starts with a symbol
            outside the protein alphabet.
    """
    code = SYMBOL_CODES.get(kmer[:1])
    if code is None:
        raise InvalidSequenceError(kmer, {kmer[:1]} if kmer else {""})
    return code - 1
