"""HZF container v1: self-describing wrapper around a Huffman bit frame.

The bare frame does not carry its code tree. The container stores the
used-symbol frequencies instead; the (deterministic) builder rebuilds the
identical tree at decode time.

Layout:
  [MAGIC "HZF"(3) | VER(1) | N uvarint | CRC32 u32 BE (original data)
   | NUM_SYMS uvarint | (SYM u8 | FREQ uvarint) * NUM_SYMS | FRAME ...]

FRAME runs to end of file (see huffzip.core.bitio for its layout).
"""

from __future__ import annotations

import io
import zlib
from dataclasses import dataclass
from typing import BinaryIO, List, Tuple

from huffzip.core.bitio import DEFAULT_MAX_OUTPUT_BYTES, MIN_FRAME_BYTES
from huffzip.core.codec_huffman import (
    HuffmanCompressor,
    HuffmanDecompressor,
    freq_to_used,
    tree_from_used,
)
from huffzip.core.varint import dec_uvarint, enc_uvarint
from huffzip.errors import BadMagic, CorruptPayload, HashMismatch, UnsupportedVersion

MAGIC = b"HZF"
VERSION_V1 = 1


def crc32(data: bytes) -> int:
    return zlib.crc32(data) & 0xFFFFFFFF


@dataclass(frozen=True)
class ContainerHeader:
    version: int
    n: int
    crc32: int
    freq_used: List[Tuple[int, int]]
    header_len: int


@dataclass(frozen=True)
class ContainerStats:
    n_symbols: int
    distinct_symbols: int
    n_bits: int
    header_bytes: int
    frame_bytes: int

    @property
    def total_bytes(self) -> int:
        return self.header_bytes + self.frame_bytes


def pack_header(n: int, data_crc32: int, freq_used: List[Tuple[int, int]]) -> bytes:
    out = bytearray()
    out += MAGIC
    out.append(VERSION_V1)
    out += enc_uvarint(int(n))
    out += int(data_crc32).to_bytes(4, "big")
    out += enc_uvarint(len(freq_used))
    for sym, f in freq_used:
        if not 0 <= sym <= 0xFF:
            raise ValueError(f"simbolo fuori range per HZF v1 (u8): {sym}")
        out.append(sym)
        out += enc_uvarint(int(f))
    return bytes(out)


def parse_header(blob: bytes) -> ContainerHeader:
    """Parse and sanity-check the header. Does not touch the frame."""
    if len(blob) < len(MAGIC) or blob[: len(MAGIC)] != MAGIC:
        raise BadMagic("non e' un container HZF (magic errato)")
    idx = len(MAGIC)
    if idx >= len(blob):
        raise CorruptPayload("container troncato (version)")
    version = blob[idx]
    idx += 1
    if version != VERSION_V1:
        raise UnsupportedVersion(f"versione container non supportata: {version}")

    try:
        n, idx = dec_uvarint(blob, idx)
        if idx + 4 > len(blob):
            raise CorruptPayload("container troncato (crc32)")
        data_crc = int.from_bytes(blob[idx : idx + 4], "big")
        idx += 4
        num_syms, idx = dec_uvarint(blob, idx)
        if num_syms > 256:
            raise CorruptPayload(f"NUM_SYMS fuori range: {num_syms}")
        used: List[Tuple[int, int]] = []
        prev = -1
        for _ in range(num_syms):
            if idx >= len(blob):
                raise CorruptPayload("container troncato (tabella frequenze)")
            sym = blob[idx]
            idx += 1
            f, idx = dec_uvarint(blob, idx)
            if sym <= prev:
                raise CorruptPayload(f"tabella frequenze non ordinata al simbolo {sym}")
            if f == 0:
                raise CorruptPayload(f"frequenza nulla per il simbolo {sym}")
            prev = sym
            used.append((sym, f))
    except ValueError as e:
        raise CorruptPayload(f"header HZF malformato: {e}") from e

    total = sum(f for _, f in used)
    if total != n:
        raise CorruptPayload(f"somma frequenze ({total}) != N ({n})")

    return ContainerHeader(
        version=version, n=n, crc32=data_crc, freq_used=used, header_len=idx
    )


def compress_to(
    data: bytes, sink: BinaryIO, *, max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES
) -> ContainerStats:
    """Write header + frame to ``sink``. ``max_output_bytes`` bounds the frame."""
    data = bytes(data)
    comp = HuffmanCompressor(max_output_bytes=max_output_bytes)
    plan = comp.plan(data)
    used = freq_to_used(plan.freq)
    header = pack_header(len(data), crc32(data), used)
    sink.write(header)
    w = comp.write_frame(data, plan, sink)
    return ContainerStats(
        n_symbols=len(data),
        distinct_symbols=len(used),
        n_bits=w.bits_written,
        header_bytes=len(header),
        frame_bytes=w.bytes_written,
    )


def compress_bytes(data: bytes, *, max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES) -> bytes:
    out = io.BytesIO()
    compress_to(data, out, max_output_bytes=max_output_bytes)
    return out.getvalue()


def frame_of(blob: bytes, header: ContainerHeader) -> bytes:
    frame = blob[header.header_len :]
    if len(frame) < MIN_FRAME_BYTES:
        raise CorruptPayload(f"frame troncato: {len(frame)} byte (minimo {MIN_FRAME_BYTES})")
    return frame


def decompress_bytes(blob: bytes, *, check_crc: bool = True) -> bytes:
    blob = bytes(blob)
    header = parse_header(blob)
    frame = frame_of(blob, header)
    tree = tree_from_used(header.freq_used)
    out = bytes(HuffmanDecompressor().decompress(frame, tree, expected=header.n))
    if check_crc and crc32(out) != header.crc32:
        raise HashMismatch(
            f"CRC32 mismatch: atteso {header.crc32:08x}, ottenuto {crc32(out):08x}"
        )
    return out
