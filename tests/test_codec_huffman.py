from __future__ import annotations

import pytest

from huffzip.core.bitio import frame_bits
from huffzip.core.codec_huffman import (
    CodecHuffman,
    HuffmanCompressor,
    HuffmanDecompressor,
    HuffmanNode,
    build_code_table,
    build_freq_table,
    build_huffman_tree,
    code_lengths,
    compress_symbols,
    decompress_symbols,
    tree_from_used,
)
from huffzip.errors import CapacityExceededError, EmptyInputError, FormatError

TEXT = "the quick brown fox jumps over the lazy dog, then sleeps under the tree.\n"


def test_freq_table_counts_everything_sorted() -> None:
    freq = build_freq_table("a b\na ")
    assert freq == {"\n": 1, " ": 2, "a": 2, "b": 1}
    assert list(freq) == sorted(freq)


def test_freq_table_empty() -> None:
    assert build_freq_table(b"") == {}


def test_tree_empty_table_raises() -> None:
    with pytest.raises(EmptyInputError):
        build_huffman_tree({})
    with pytest.raises(EmptyInputError):
        build_huffman_tree({"a": 0})


def test_tree_negative_freq_raises() -> None:
    with pytest.raises(ValueError):
        build_huffman_tree({"a": -1, "b": 2})


def test_tree_single_symbol_is_wrapped() -> None:
    root = build_huffman_tree({"z": 4})
    assert root.symbol is None
    assert root.freq == 4
    assert root.left == HuffmanNode(freq=4, symbol="z")
    assert root.right is None
    assert build_code_table(root) == {"z": "0"}


def test_tree_aggregate_frequency_and_leaves() -> None:
    freq = build_freq_table(TEXT)
    root = build_huffman_tree(freq)
    assert root.freq == len(TEXT)

    leaves = []
    stack = [root]
    while stack:
        n = stack.pop()
        if n.is_leaf:
            assert n.left is None and n.right is None
            leaves.append(n.symbol)
            continue
        # internal nodes: two children (one only for the 1-symbol alphabet)
        assert n.left is not None and n.right is not None
        assert n.freq == n.left.freq + n.right.freq
        stack.extend([n.left, n.right])
    assert sorted(leaves) == sorted(freq)


def test_tie_break_is_insertion_order() -> None:
    # uniform: a,b merge first (left), then c,d; first merged tree goes left
    codes = build_code_table(build_huffman_tree({"a": 1, "b": 1, "c": 1, "d": 1}))
    assert codes == {"a": "00", "b": "01", "c": "10", "d": "11"}


def test_tree_is_deterministic() -> None:
    freq = build_freq_table(TEXT)
    t1 = build_huffman_tree(freq)
    t2 = build_huffman_tree(dict(reversed(list(freq.items()))))
    assert t1 == t2
    assert build_code_table(t1) == build_code_table(t2)


def test_code_table_prefix_free() -> None:
    codes = build_code_table(build_huffman_tree(build_freq_table(TEXT)))
    for a, ca in codes.items():
        for b, cb in codes.items():
            if a != b:
                assert not cb.startswith(ca), (a, ca, b, cb)


def test_code_length_inverse_to_frequency() -> None:
    freq = build_freq_table(TEXT)
    lengths = code_lengths(build_code_table(build_huffman_tree(freq)))
    for a in freq:
        for b in freq:
            if freq[a] > freq[b]:
                assert lengths[a] <= lengths[b]


def test_code_table_rejects_childless_root() -> None:
    with pytest.raises(ValueError):
        build_code_table(HuffmanNode(freq=0))
    with pytest.raises(ValueError):
        build_code_table(HuffmanNode(freq=3, symbol="a"))


def test_scenario_aaab() -> None:
    res = compress_symbols("aaab")
    assert res.freq == {"a": 3, "b": 1}
    # two symbols: both codes are one bit long
    assert len(res.codes["a"]) <= len(res.codes["b"])
    assert res.codes == {"a": "1", "b": "0"}
    assert res.frame == b"\xe0\x04"
    assert "".join(decompress_symbols(res.frame, res.tree)) == "aaab"


def test_scenario_three_symbols_strict_lengths() -> None:
    res = compress_symbols("aaaabbc")
    assert res.codes == {"a": "1", "b": "01", "c": "00"}
    assert res.frame == b"\xf5\x00\x02"
    assert "".join(decompress_symbols(res.frame, res.tree)) == "aaaabbc"


def test_scenario_single_symbol_zzzz() -> None:
    res = compress_symbols("zzzz")
    assert res.codes == {"z": "0"}
    assert res.frame == b"\x00\x04"
    assert "".join(decompress_symbols(res.frame, res.tree)) == "zzzz"


def test_empty_input_gives_two_byte_frame() -> None:
    res = compress_symbols(b"")
    assert res.tree is None
    assert res.frame == b"\x00\x00"
    assert res.n_bits == 0
    assert decompress_symbols(res.frame, None) == []


def test_childless_tree_emits_nothing() -> None:
    assert HuffmanDecompressor().decompress(b"\x80\x01", HuffmanNode(freq=0)) == []


@pytest.mark.parametrize(
    "data",
    [b"", b"x", b"xy", b"abracadabra", bytes(range(256)) * 3, TEXT.encode("utf-8")],
)
def test_roundtrip_bytes(data: bytes) -> None:
    res = compress_symbols(data)
    assert res.n_symbols == len(data)
    assert bytes(decompress_symbols(res.frame, res.tree)) == data


def test_roundtrip_iterator_input() -> None:
    res = HuffmanCompressor().compress(iter("mississippi"))
    assert "".join(decompress_symbols(res.frame, res.tree)) == "mississippi"


def test_decompress_truncated_code() -> None:
    tree = compress_symbols("aaaabbc").tree
    # "0" alone is the first half of b/c
    with pytest.raises(FormatError):
        decompress_symbols(frame_bits([0]), tree)


def test_decompress_missing_child() -> None:
    tree = compress_symbols("zzzz").tree
    with pytest.raises(FormatError):
        decompress_symbols(frame_bits([0, 1]), tree)


def test_decompress_expected_count() -> None:
    res = compress_symbols("aaab")
    with pytest.raises(FormatError):
        HuffmanDecompressor().decompress(res.frame, res.tree, expected=5)


def test_compressor_capacity_guard() -> None:
    with pytest.raises(CapacityExceededError):
        compress_symbols(b"ab" * 100, max_output_bytes=4)


def test_tree_from_used() -> None:
    assert tree_from_used([]) is None
    assert tree_from_used([(1, 0)]) is None
    assert tree_from_used([(97, 3), (98, 1)]) == compress_symbols(b"aaab").tree
    with pytest.raises(ValueError):
        tree_from_used([(1, 1), (1, 2)])


def test_codec_bytes_roundtrip() -> None:
    codec = CodecHuffman()
    data = TEXT.encode("utf-8")
    used, frame = codec.compress_bytes(data)
    assert sum(f for _, f in used) == len(data)
    assert codec.decompress_bytes(used, frame, len(data)) == data


def test_codec_ids_roundtrip() -> None:
    codec = CodecHuffman()
    ids = [0, 5, 5, 5, 1000, 2, 5, 0]
    used, frame = codec.compress_ids(ids, vocab_size=1001)
    assert codec.decompress_ids(used, frame, len(ids)) == ids


def test_codec_ids_out_of_range() -> None:
    with pytest.raises(ValueError):
        CodecHuffman().compress_ids([0, 3], vocab_size=3)
