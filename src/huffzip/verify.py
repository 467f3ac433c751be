"""Verification helpers for HZF container files.

  - light (default): header, frame length, trailer count
  - full: decode the whole frame, check N and CRC32
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from huffzip.engine.container import crc32, decompress_bytes, frame_of, parse_header
from huffzip.errors import CorruptPayload, HashMismatch, IOFailure


@dataclass(frozen=True)
class VerifyReport:
    path: str
    n: int
    distinct_symbols: int
    frame_bytes: int
    full: bool


def verify_container_bytes(blob: bytes, *, full: bool = False, where: str = "<bytes>") -> VerifyReport:
    header = parse_header(blob)
    frame = frame_of(blob, header)

    count = frame[-1]
    if count > 8:
        raise CorruptPayload(f"{where}: byte finale del frame non valido: {count}")
    has_bits = len(frame) > 2 or count != 0
    if not header.freq_used and has_bits:
        raise CorruptPayload(f"{where}: frame con bit ma tabella frequenze vuota")
    if header.freq_used and not has_bits:
        raise CorruptPayload(f"{where}: frame vuoto ma N={header.n}")

    if full:
        out = decompress_bytes(blob, check_crc=False)
        if crc32(out) != header.crc32:
            raise HashMismatch(f"{where}: CRC32 mismatch dopo la decodifica")

    return VerifyReport(
        path=where,
        n=header.n,
        distinct_symbols=len(header.freq_used),
        frame_bytes=len(frame),
        full=full,
    )


def verify_container_file(path: str | Path, *, full: bool = False) -> VerifyReport:
    p = Path(path)
    try:
        blob = p.read_bytes()
    except OSError as e:
        raise IOFailure(f"lettura fallita: {p}: {e}") from e
    return verify_container_bytes(blob, full=full, where=str(p))
