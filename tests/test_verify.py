from __future__ import annotations

from pathlib import Path

import pytest

from huffzip.engine.container import compress_bytes, pack_header
from huffzip.errors import CorruptPayload, HashMismatch, IOFailure
from huffzip.verify import verify_container_bytes, verify_container_file


def test_verify_light_and_full(tmp_path: Path) -> None:
    p = tmp_path / "x.hzf"
    p.write_bytes(compress_bytes(b"abracadabra"))
    rep = verify_container_file(p)
    assert rep.n == 11
    assert rep.distinct_symbols == 5
    assert rep.full is False
    assert verify_container_file(p, full=True).full is True


def test_verify_empty_container() -> None:
    verify_container_bytes(compress_bytes(b""), full=True)


def test_verify_detects_crc_tamper() -> None:
    blob = bytearray(compress_bytes(b"abracadabra"))
    blob[6] ^= 0x01
    # light verify does not decode
    verify_container_bytes(bytes(blob))
    with pytest.raises(HashMismatch):
        verify_container_bytes(bytes(blob), full=True)


def test_verify_bad_trailer_count() -> None:
    blob = pack_header(4, 0, [(97, 3), (98, 1)]) + b"\xe0\x09"
    with pytest.raises(CorruptPayload):
        verify_container_bytes(blob)


def test_verify_bits_without_symbols() -> None:
    blob = pack_header(0, 0, []) + b"\x80\x01"
    with pytest.raises(CorruptPayload):
        verify_container_bytes(blob)


def test_verify_symbols_without_bits() -> None:
    blob = pack_header(4, 0, [(97, 3), (98, 1)]) + b"\x00\x00"
    with pytest.raises(CorruptPayload):
        verify_container_bytes(blob)


def test_verify_full_detects_frame_tamper() -> None:
    blob = bytearray(compress_bytes(b"aaaabbc" * 10))
    blob[-3] ^= 0x40
    with pytest.raises((HashMismatch, CorruptPayload)):
        verify_container_bytes(bytes(blob), full=True)


def test_verify_missing_file(tmp_path: Path) -> None:
    with pytest.raises(IOFailure):
        verify_container_file(tmp_path / "nope.hzf")
