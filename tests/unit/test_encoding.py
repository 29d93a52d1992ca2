"""Unit tests for compact k-mer keys and shard selection."""

from __future__ import annotations

import pytest

from protkmers.core.constants import MAX_PACKED_KMER_LENGTH, PROTEIN_ALPHABET, SHARD_COUNT
from protkmers.core.encoding import encode_kmer, pack_kmer, shard_index
from protkmers.core.exceptions import InvalidSequenceError

# Distinct k-mers of many lengths, including near-duplicates and the empty string
KMERS = [
    "VTPAAPPAPVKATAPVP",
    "MQSQSRIK",
    "DLKRKPGQ",
    "GANLYNLS",
    "LGGLIIIG",
    "GLVWSLPG",
    "TTGNLEIZ",
    "QSAPAPXX",
    "QXXPAPAS",
    "LCWSLPGS",
    "CWSLPGSL",
    "WSLPGSLC",
    "VSLPGSLC",
    "XSLPGSLC",
    "WSLPGTLC",
    "MK*-.LPG",
    "MK-*.LPG",
    "VQSTPDSKPAAPRLPAP",
    "VTPAAPPAPVKATAPV",
    "VTPAAPPAPVKATAP",
    "VTPAAPPAPVKATA",
    "WTPAAPPAPVKAT",
    "VTPAAPPAPVKAT",
    "VTPAAPPAPVKA",
    "VTPAAPPAPVK",
    "VTPAAPPAPV",
    "VTPAAPPAP",
    "VTPAAPPA",
    "VTPAAPP",
    "VTPAAP",
    "VTPAA",
    "VTPA",
    "VTP",
    "VT",
    "V",
    "",
]


class TestEncodeKmer:
    """Tests for encode_kmer()."""

    def test_distinct_kmers_have_distinct_keys(self):
        keys = {encode_kmer(kmer) for kmer in KMERS}
        assert len(keys) == len(KMERS)

    def test_equal_kmers_have_equal_keys(self):
        assert encode_kmer("MKVLAAGI") == encode_kmer("MKVLAAGI")
        assert hash(encode_kmer("VTPAAPPAPVKATAPVP")) == hash(encode_kmer("VTPAAPPAPVKATAPVP"))

    def test_leading_a_is_not_dropped(self):
        """'A' packs to a nonzero code, so 'AV' differs from 'V'."""
        assert encode_kmer("AV") != encode_kmer("V")
        assert encode_kmer("A") != encode_kmer("")

    def test_short_kmers_are_ints(self):
        assert isinstance(encode_kmer("M" * MAX_PACKED_KMER_LENGTH), int)

    def test_long_kmers_are_bytes(self):
        key = encode_kmer("M" * (MAX_PACKED_KMER_LENGTH + 1))
        assert isinstance(key, bytes)
        assert int.from_bytes(key, "big") == pack_kmer("M" * (MAX_PACKED_KMER_LENGTH + 1))

    def test_every_alphabet_symbol_encodes(self):
        keys = {encode_kmer(symbol) for symbol in PROTEIN_ALPHABET}
        assert len(keys) == len(PROTEIN_ALPHABET)

    def test_rejects_symbol_outside_alphabet(self):
        with pytest.raises(InvalidSequenceError):
            encode_kmer("MKV#LAAG")

    def test_rejects_lower_case(self):
        """Encoding expects canonical (upper-case) k-mers."""
        with pytest.raises(InvalidSequenceError):
            encode_kmer("mkvlaagi")


class TestShardIndex:
    """Tests for shard selection by leading symbol."""

    def test_same_leading_symbol_same_shard(self):
        assert shard_index("MKVLAAGI") == shard_index("MQSQSRIK")

    def test_different_leading_symbol_different_shard(self):
        assert shard_index("MKVLAAGI") != shard_index("KVLAAGIV")

    def test_all_symbols_map_into_range(self):
        shards = {shard_index(symbol) for symbol in PROTEIN_ALPHABET}
        assert shards == set(range(SHARD_COUNT))

    def test_rejects_empty_kmer(self):
        with pytest.raises(InvalidSequenceError):
            shard_index("")
