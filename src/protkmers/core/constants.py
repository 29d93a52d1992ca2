"""
Shared constants for protein k-mer indexing.

The protein alphabet defines both the k-mer encoding (each symbol gets a
nonzero 5-bit code) and the shard layout of the index (one shard per
leading symbol).
"""

from __future__ import annotations


# =============================================================================
# Protein Alphabet
#
# 20 standard residues plus B, J, O, U, X, Z (ambiguity / rare residues),
# '*' (stop) and '-' / '.' (gap). Codes are 1-based so that no symbol packs
# to zero; this keeps k-mers of different lengths distinct.
# =============================================================================

PROTEIN_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ*-."

SYMBOL_CODES: dict[str, int] = {
    symbol: code for code, symbol in enumerate(PROTEIN_ALPHABET, start=1)
}

# Bits per packed symbol; 29 symbols + the unused zero code fit in 5 bits
BITS_PER_SYMBOL = 5

# Longest k-mer packed into a machine-word-sized int (12 * 5 = 60 bits).
# Longer k-mers are keyed by the bytes of the same packing.
MAX_PACKED_KMER_LENGTH = 12

# One shard per leading symbol
SHARD_COUNT = len(PROTEIN_ALPHABET)

# Lock stripes per shard for k-mer set insertion
LOCK_STRIPES_PER_SHARD = 16


# =============================================================================
# Index Defaults
# =============================================================================

DEFAULT_KMER_SIZE = 8

DEFAULT_MIN_SIMILARITY = 0.5

# Identity digest; MD5 is a co-occurrence key here, not a security boundary
DEFAULT_HASH_ALGORITHM = "md5"

# Seconds between progress messages during bulk loads
DEFAULT_PROGRESS_INTERVAL = 10.0

DEFAULT_PROTEIN_COLUMN = "protein"
DEFAULT_VALUE_COLUMN = "annotation"
