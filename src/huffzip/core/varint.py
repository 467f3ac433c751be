from __future__ import annotations

from typing import Tuple


def enc_uvarint(x: int) -> bytes:
    """LEB128 unsigned varint."""
    if x < 0:
        raise ValueError("varint negativo non supportato")
    out = bytearray()
    while True:
        b = x & 0x7F
        x >>= 7
        if x:
            out.append(0x80 | b)
        else:
            out.append(b)
            break
    return bytes(out)


def dec_uvarint(buf: bytes, idx: int) -> Tuple[int, int]:
    """Return (value, next_idx). Raises ValueError on truncation."""
    shift = 0
    x = 0
    while True:
        if idx >= len(buf):
            raise ValueError("varint troncato")
        b = buf[idx]
        idx += 1
        x |= (b & 0x7F) << shift
        if (b & 0x80) == 0:
            break
        shift += 7
        if shift > 63:
            raise ValueError("varint troppo grande")
    return x, idx
