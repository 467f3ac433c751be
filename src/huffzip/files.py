"""File-level API.

Two modes:

- container (default): ``compress_file`` writes an HZF container, which
  carries the symbol frequencies, so ``decompress_file`` needs nothing else.
- in-process (``HuffmanSession``): bare frame files; the code tree never
  leaves memory, so the same session must decompress what it compressed.

Input is read once into memory; both passes run over that buffer. Output
handles are always closed, but a failed run leaves the destination in an
unspecified state: do not use it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from huffzip.config import HuffzipConfig
from huffzip.core.codec_huffman import HuffmanCompressor, HuffmanDecompressor, HuffmanNode
from huffzip.engine.container import compress_to, decompress_bytes
from huffzip.errors import IOFailure, UsageError


@dataclass(frozen=True)
class FileStats:
    input_bytes: int
    output_bytes: int
    distinct_symbols: int

    @property
    def ratio(self) -> float:
        if self.input_bytes == 0:
            return 0.0
        return self.output_bytes / self.input_bytes


def _read_all(path: str | Path) -> bytes:
    p = Path(path)
    try:
        return p.read_bytes()
    except OSError as e:
        raise IOFailure(f"lettura fallita: {p}: {e}") from e


def _write_all(path: str | Path, data: bytes) -> None:
    p = Path(path)
    try:
        p.write_bytes(data)
    except OSError as e:
        raise IOFailure(f"scrittura fallita: {p}: {e}") from e


def compress_file(
    input_path: str | Path, output_path: str | Path, *, config: Optional[HuffzipConfig] = None
) -> FileStats:
    cfg = config or HuffzipConfig()
    data = _read_all(input_path)
    out_p = Path(output_path)
    try:
        with out_p.open("wb") as fp:
            st = compress_to(data, fp, max_output_bytes=cfg.max_output_bytes)
    except OSError as e:
        raise IOFailure(f"scrittura fallita: {out_p}: {e}") from e

    if cfg.verify:
        from huffzip.verify import verify_container_file

        verify_container_file(out_p, full=True)

    return FileStats(
        input_bytes=len(data), output_bytes=st.total_bytes, distinct_symbols=st.distinct_symbols
    )


def decompress_file(input_path: str | Path, output_path: str | Path) -> FileStats:
    blob = _read_all(input_path)
    out = decompress_bytes(blob)
    _write_all(output_path, out)
    return FileStats(
        input_bytes=len(blob), output_bytes=len(out), distinct_symbols=len(set(out))
    )


class HuffmanSession:
    """Compress/decompress bare frames, keeping the code tree in memory."""

    def __init__(self, *, config: Optional[HuffzipConfig] = None):
        self.config = config or HuffzipConfig()
        self.tree: Optional[HuffmanNode] = None
        self._ready = False

    def compress_file(self, input_path: str | Path, output_path: str | Path) -> FileStats:
        data = _read_all(input_path)
        out_p = Path(output_path)
        comp = HuffmanCompressor(max_output_bytes=self.config.max_output_bytes)
        try:
            with out_p.open("wb") as fp:
                res = comp.compress_to(data, fp)
        except OSError as e:
            raise IOFailure(f"scrittura fallita: {out_p}: {e}") from e
        self.tree = res.tree
        self._ready = True
        return FileStats(
            input_bytes=len(data), output_bytes=res.frame_bytes, distinct_symbols=len(res.freq)
        )

    def decompress_file(self, input_path: str | Path, output_path: str | Path) -> FileStats:
        if not self._ready:
            raise UsageError("nessun albero di codifica: chiamare compress_file() prima")
        in_p = Path(input_path)
        try:
            with in_p.open("rb") as fp:
                out = bytes(HuffmanDecompressor().decompress_from(fp, self.tree))
                size = fp.tell()
        except OSError as e:
            raise IOFailure(f"lettura fallita: {in_p}: {e}") from e
        _write_all(output_path, out)
        return FileStats(
            input_bytes=size, output_bytes=len(out), distinct_symbols=len(set(out))
        )
