"""huffzip: lossless Huffman compressor with a framed bit stream."""

from __future__ import annotations

__version__ = "0.1.0"
