from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence


class Codec(ABC):
    """
    Interfaccia minima per codec pluggabili.

    The frame alone does not describe its code tree: every codec returns
    the used-symbol frequency list ``[(sym, freq), ...]`` next to the frame,
    and the decoder re-derives the tree from it.

    Two distinct APIs:
      - bytes: alphabet 0..255
      - ids: integer ids 0..vocab_size-1
    """

    codec_id: str

    @abstractmethod
    def compress_bytes(self, data: bytes) -> tuple[list[tuple[int, int]], bytes]:
        """Return (freq_used, frame)."""
        raise NotImplementedError

    @abstractmethod
    def decompress_bytes(self, freq_used: list[tuple[int, int]], frame: bytes, n: int) -> bytes:
        raise NotImplementedError

    @abstractmethod
    def compress_ids(
        self, id_stream: Sequence[int], vocab_size: int
    ) -> tuple[list[tuple[int, int]], bytes]:
        raise NotImplementedError

    @abstractmethod
    def decompress_ids(
        self, freq_used: list[tuple[int, int]], frame: bytes, n_symbols: int
    ) -> list[int]:
        raise NotImplementedError
