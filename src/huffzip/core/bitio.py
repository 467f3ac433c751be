"""Framed bit I/O.

Frame layout (bit-exact, shared by writer and reader):

  [content byte 0] ... [content byte N-1] [COUNT]

- content bytes hold code bits MSB-first;
- COUNT (last byte) is how many bits of byte N-1 are valid (0..8);
- byte N-1 is always written, even when no bits are pending, so the
  smallest frame (zero bits) is two zero bytes.

The reader only knows that a byte is the last content byte once the byte
*two* positions ahead hits EOF, hence the 3-byte lookahead.
"""

from __future__ import annotations

import io
from collections.abc import Iterator
from typing import BinaryIO

from huffzip.errors import CapacityExceededError, EndOfStreamError, FormatError

DEFAULT_MAX_OUTPUT_BYTES = 1_000_000_000
MIN_FRAME_BYTES = 2

_EOF = -1
_WRITE_CHUNK = 64 * 1024
_READ_CHUNK = 64 * 1024


class BitWriter:
    """Accumulate bits into bytes and write a framed stream to ``sink``.

    The sink is not owned: ``close()`` terminates the frame but leaves the
    sink open.

    ``max_output_bytes`` bounds the *whole* frame (trailer included). Since
    close always adds exactly two bytes, the guard trips on the full byte
    that would leave no room for them.
    """

    def __init__(self, sink: BinaryIO, *, max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES):
        max_output_bytes = int(max_output_bytes)
        if max_output_bytes < MIN_FRAME_BYTES:
            raise ValueError(f"max_output_bytes deve essere >= {MIN_FRAME_BYTES}")
        self._sink = sink
        self.max_output_bytes = max_output_bytes
        self._buf = bytearray()
        self._current = 0
        self._nbits = 0
        self._closed = False
        self._failed = False
        self.bytes_written = 0
        self.bits_written = 0

    # context manager: a clean exit closes the frame, an error leaves it open-ended
    def __enter__(self) -> "BitWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self._flush()
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def _flush(self) -> None:
        if self._buf:
            self._sink.write(bytes(self._buf))
            self._buf.clear()

    def _append(self, byte: int) -> None:
        self._buf.append(byte & 0xFF)
        self.bytes_written += 1
        if len(self._buf) >= _WRITE_CHUNK:
            self._flush()

    def _check_writable(self) -> None:
        if self._closed:
            raise ValueError("BitWriter: write su writer chiuso")
        if self._failed:
            raise CapacityExceededError(self.max_output_bytes)

    def write_bit(self, bit: int | bool) -> None:
        self._check_writable()
        self._current = (self._current << 1) | (1 if bit else 0)
        self._nbits += 1
        self.bits_written += 1
        if self._nbits == 8:
            byte = self._current
            self._current = 0
            self._nbits = 0
            # room for this byte + partial + COUNT
            if self.bytes_written + 1 + MIN_FRAME_BYTES > self.max_output_bytes:
                self._failed = True
                self._flush()
                raise CapacityExceededError(self.max_output_bytes)
            self._append(byte)

    def write_code(self, code: str) -> None:
        """Write a '0'/'1' code string."""
        for ch in code:
            if ch == "0":
                self.write_bit(0)
            elif ch == "1":
                self.write_bit(1)
            else:
                raise ValueError(f"BitWriter: carattere non valido nel codice: {ch!r}")

    def close(self) -> None:
        """Write the pending (possibly empty) byte followed by its valid-bit count."""
        if self._closed:
            return
        if self._failed:
            # no trailer: the frame is invalid anyway
            self._flush()
            self._closed = True
            return
        pending = self._nbits
        self._append(self._current << (8 - pending) if pending else 0)
        self._append(pending)
        self._current = 0
        self._nbits = 0
        self._flush()
        self._closed = True


def frame_bits(bits: list[int] | tuple[int, ...], *, max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES) -> bytes:
    """Encode a finite bit sequence into a frame (in memory)."""
    out = io.BytesIO()
    with BitWriter(out, max_output_bytes=max_output_bytes) as w:
        for b in bits:
            w.write_bit(b)
    return out.getvalue()


class BitReader:
    """Read a frame produced by :class:`BitWriter`, one bit at a time.

    Input loop::

        while reader.has_next():
            bit = reader.read_bit()
    """

    def __init__(self, source: BinaryIO, *, chunk_size: int = _READ_CHUNK):
        self._source = source
        self._chunk_size = int(chunk_size)
        self._chunk = b""
        self._pos = 0
        # index (inside the frame) of the byte being returned
        self.offset = 0
        self.bits_read = 0

        self._current = self._read_byte()
        if self._current == _EOF:
            raise FormatError("frame troppo corto: servono almeno 2 byte", offset=0)
        self._next = self._read_byte()
        if self._next == _EOF:
            raise FormatError("frame troppo corto: servono almeno 2 byte", offset=1)
        self._after_next = self._read_byte()
        self._mask = 0x80
        self._check_count()

    @classmethod
    def from_bytes(cls, frame: bytes) -> "BitReader":
        return cls(io.BytesIO(bytes(frame)))

    def _read_byte(self) -> int:
        if self._pos >= len(self._chunk):
            self._chunk = self._source.read(self._chunk_size)
            self._pos = 0
            if not self._chunk:
                return _EOF
        b = self._chunk[self._pos]
        self._pos += 1
        return b

    def _check_count(self) -> None:
        # final mode: `_next` is the COUNT byte
        if self._after_next == _EOF and self._next > 8:
            raise FormatError(
                f"byte finale non valido: count={self._next}, atteso 0..8",
                offset=self.offset + 1,
            )

    def has_next(self) -> bool:
        return self._after_next != _EOF or self._next != 0

    def read_bit(self) -> int:
        if self._after_next == _EOF:
            if self._next == 0:
                raise EndOfStreamError(offset=self.bits_read)
            bit = 1 if self._current & self._mask else 0
            self._next -= 1
            self._mask >>= 1
            self.bits_read += 1
            return bit

        bit = 1 if self._current & self._mask else 0
        self._mask >>= 1
        self.bits_read += 1
        if self._mask == 0:
            self._mask = 0x80
            self._current = self._next
            self._next = self._after_next
            self._after_next = self._read_byte()
            self.offset += 1
            self._check_count()
        return bit

    def __iter__(self) -> Iterator[int]:
        while self.has_next():
            yield self.read_bit()


def unframe_bits(frame: bytes) -> list[int]:
    """Decode a whole frame (in memory) into its bit list."""
    return list(BitReader.from_bytes(frame))
