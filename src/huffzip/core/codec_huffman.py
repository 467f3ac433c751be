"""Huffman core: frequency table, code tree, code table, frame encode/decode.

Tie-break (deterministic): leaves enter the priority queue in ascending
symbol order, merged trees after them, and on equal frequency the tree
that entered the queue first is popped first. The first popped tree
becomes the left child (bit 0), the second the right child (bit 1).
Identical frequency tables therefore always give identical trees.
"""

from __future__ import annotations

import dataclasses
import heapq
import io
import itertools
from collections import Counter
from collections.abc import Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import BinaryIO, Dict, List, Optional, Tuple

from huffzip.core.bitio import DEFAULT_MAX_OUTPUT_BYTES, BitReader, BitWriter
from huffzip.core.codec_base import Codec
from huffzip.errors import EmptyInputError, FormatError

Symbol = Hashable  # must also be orderable (sorting fixes the tie-break)


# -------------------
# Strutture di base Huffman
# -------------------
@dataclass
class HuffmanNode:
    freq: int
    symbol: Optional[Symbol] = None  # solo nelle foglie
    left: Optional["HuffmanNode"] = None
    right: Optional["HuffmanNode"] = None

    @property
    def is_leaf(self) -> bool:
        return self.symbol is not None

    @property
    def has_children(self) -> bool:
        return self.left is not None or self.right is not None


def build_freq_table(symbols: Iterable[Symbol]) -> Dict[Symbol, int]:
    """Count every occurrence; keys come back in ascending symbol order."""
    counts = Counter(symbols)
    return {sym: counts[sym] for sym in sorted(counts)}


def build_huffman_tree(freq: Mapping[Symbol, int]) -> HuffmanNode:
    """Greedy merge of the two lowest-frequency trees until one is left.

    Zero-frequency entries are not part of the alphabet.
    Raises EmptyInputError when no symbol has a positive count.
    """
    heap: List[Tuple[int, int, HuffmanNode]] = []
    counter = itertools.count()

    for sym in sorted(freq):
        f = int(freq[sym])
        if f < 0:
            raise ValueError(f"frequenza negativa per il simbolo {sym!r}: {f}")
        if f == 0:
            continue
        heapq.heappush(heap, (f, next(counter), HuffmanNode(freq=f, symbol=sym)))

    if not heap:
        raise EmptyInputError("tabella delle frequenze vuota: nessun albero da costruire")

    # Caso speciale: un solo simbolo => radice con la sola foglia a sinistra,
    # cosi' il codice e' "0" e non la stringa vuota.
    if len(heap) == 1:
        f, _, only = heap[0]
        return HuffmanNode(freq=f, left=only)

    while len(heap) > 1:
        f1, _, n1 = heapq.heappop(heap)
        f2, _, n2 = heapq.heappop(heap)
        parent = HuffmanNode(freq=f1 + f2, left=n1, right=n2)
        heapq.heappush(heap, (parent.freq, next(counter), parent))

    return heap[0][2]


def build_code_table(root: HuffmanNode) -> Dict[Symbol, str]:
    """Pre-order walk, '0' going left and '1' going right."""
    if root.is_leaf or not root.has_children:
        raise ValueError("albero di codifica senza figli: impossibile derivare i codici")

    codes: Dict[Symbol, str] = {}
    stack: List[Tuple[HuffmanNode, str]] = [(root, "")]
    while stack:
        node, path = stack.pop()
        if node.is_leaf:
            codes[node.symbol] = path
            continue
        # right first so that left is visited first
        if node.right is not None:
            stack.append((node.right, path + "1"))
        if node.left is not None:
            stack.append((node.left, path + "0"))
    return {sym: codes[sym] for sym in sorted(codes)}


def code_lengths(codes: Mapping[Symbol, str]) -> Dict[Symbol, int]:
    return {sym: len(code) for sym, code in codes.items()}


def freq_to_used(freq: Mapping[Symbol, int]) -> List[Tuple[Symbol, int]]:
    return [(sym, int(f)) for sym, f in freq.items() if f > 0]


def tree_from_used(used: Iterable[Tuple[Symbol, int]]) -> Optional[HuffmanNode]:
    """Rebuild the code tree from a stored frequency list (None if empty)."""
    freq: Dict[Symbol, int] = {}
    for sym, f in used:
        if sym in freq:
            raise ValueError(f"simbolo duplicato nella tabella frequenze: {sym!r}")
        freq[sym] = int(f)
    if not any(f > 0 for f in freq.values()):
        return None
    return build_huffman_tree(freq)


# -------------------
# Compressor / Decompressor
# -------------------
@dataclass(frozen=True)
class CodePlan:
    """Everything the first pass produces. ``tree`` is None for empty input."""

    freq: Dict[Symbol, int]
    tree: Optional[HuffmanNode]
    codes: Dict[Symbol, str]


@dataclass(frozen=True)
class CompressResult:
    tree: Optional[HuffmanNode]
    freq: Dict[Symbol, int]
    codes: Dict[Symbol, str]
    n_symbols: int
    n_bits: int
    frame_bytes: int
    frame: Optional[bytes] = None


def _as_sequence(symbols: Iterable[Symbol]) -> Sequence[Symbol]:
    # two passes: one-shot iterators are materialized
    if isinstance(symbols, Sequence):
        return symbols
    return list(symbols)


class HuffmanCompressor:
    """Two-pass compressor: count, build tree and codes, then encode."""

    def __init__(self, *, max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES):
        self.max_output_bytes = int(max_output_bytes)

    def plan(self, symbols: Sequence[Symbol]) -> CodePlan:
        freq = build_freq_table(symbols)
        if not freq:
            return CodePlan(freq=freq, tree=None, codes={})
        tree = build_huffman_tree(freq)
        return CodePlan(freq=freq, tree=tree, codes=build_code_table(tree))

    def write_frame(self, symbols: Sequence[Symbol], plan: CodePlan, sink: BinaryIO) -> BitWriter:
        """Second pass: write every symbol's code, then close the frame."""
        with BitWriter(sink, max_output_bytes=self.max_output_bytes) as w:
            codes = plan.codes
            for sym in symbols:
                try:
                    code = codes[sym]
                except KeyError:
                    raise ValueError(f"simbolo senza codice: {sym!r}") from None
                w.write_code(code)
        return w

    def compress_to(self, symbols: Iterable[Symbol], sink: BinaryIO) -> CompressResult:
        seq = _as_sequence(symbols)
        plan = self.plan(seq)
        w = self.write_frame(seq, plan, sink)
        return CompressResult(
            tree=plan.tree,
            freq=plan.freq,
            codes=plan.codes,
            n_symbols=len(seq),
            n_bits=w.bits_written,
            frame_bytes=w.bytes_written,
        )

    def compress(self, symbols: Iterable[Symbol]) -> CompressResult:
        out = io.BytesIO()
        res = self.compress_to(symbols, out)
        return dataclasses.replace(res, frame=out.getvalue())


class HuffmanDecompressor:
    """Walk the code tree bit by bit; emit a symbol at each leaf."""

    def decompress_from(
        self,
        source: BinaryIO,
        tree: Optional[HuffmanNode],
        *,
        expected: int | None = None,
    ) -> List[Symbol]:
        reader = BitReader(source)
        out: List[Symbol] = []

        if tree is None or not tree.has_children:
            # alfabeto vuoto: niente da emettere
            if expected:
                raise FormatError(f"attesi {expected} simboli, albero vuoto")
            return out

        node = tree
        while reader.has_next():
            bit = reader.read_bit()
            child = node.right if bit else node.left
            if child is None:
                raise FormatError(
                    f"percorso inesistente nell'albero (bit={reader.bits_read - 1})",
                    offset=reader.offset,
                )
            node = child
            if node.is_leaf:
                out.append(node.symbol)
                node = tree

        if node is not tree:
            raise FormatError(
                f"frame terminato a meta' di un codice (bits={reader.bits_read})",
                offset=reader.offset,
            )
        if expected is not None and len(out) != expected:
            raise FormatError(f"attesi {expected} simboli, decodificati {len(out)}")
        return out

    def decompress(
        self, frame: bytes, tree: Optional[HuffmanNode], *, expected: int | None = None
    ) -> List[Symbol]:
        return self.decompress_from(io.BytesIO(bytes(frame)), tree, expected=expected)


def compress_symbols(
    symbols: Iterable[Symbol], *, max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES
) -> CompressResult:
    return HuffmanCompressor(max_output_bytes=max_output_bytes).compress(symbols)


def decompress_symbols(frame: bytes, tree: Optional[HuffmanNode]) -> List[Symbol]:
    return HuffmanDecompressor().decompress(frame, tree)


class CodecHuffman(Codec):
    codec_id = "huffman"

    def __init__(self, *, max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES):
        self.max_output_bytes = int(max_output_bytes)

    def compress_bytes(self, data: bytes):
        res = compress_symbols(bytes(data), max_output_bytes=self.max_output_bytes)
        return freq_to_used(res.freq), res.frame

    def decompress_bytes(self, freq_used, frame: bytes, n: int):
        tree = tree_from_used(freq_used)
        return bytes(HuffmanDecompressor().decompress(frame, tree, expected=n))

    def compress_ids(self, id_stream, vocab_size: int):
        ids = list(id_stream)
        for sid in ids:
            if sid < 0 or sid >= vocab_size:
                raise ValueError(f"ID fuori range per compress_ids: {sid}")
        res = compress_symbols(ids, max_output_bytes=self.max_output_bytes)
        return freq_to_used(res.freq), res.frame

    def decompress_ids(self, freq_used, frame: bytes, n_symbols: int):
        tree = tree_from_used(freq_used)
        return list(HuffmanDecompressor().decompress(frame, tree, expected=n_symbols))
