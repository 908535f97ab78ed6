"""The Internet checksum (ones'-complement sum of 16-bit words)."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]

_MASK32 = 0xFFFFFFFF


class InternetChecksum:
    """Accumulates data and yields its Internet checksum."""

    def __init__(self, initial: int = 0) -> None:
        self._sum = initial & _MASK32
        self._odd = False

    def add(self, data: BytesLike | Iterable[BytesLike]) -> None:
        """Add a byte string, or every byte string of an iterable, to the sum."""
        if isinstance(data, (bytes, bytearray, memoryview)):
            chunk = bytes(data)
            high, low = (chunk[1::2], chunk[0::2]) if self._odd else (chunk[0::2], chunk[1::2])
            self._sum = (self._sum + (sum(high) << 8) + sum(low)) & _MASK32
            if len(chunk) % 2:
                self._odd = not self._odd
            return
        for part in data:
            self.add(part)

    def value(self) -> int:
        """The 16-bit checksum of everything added so far."""
        total = self._sum
        while total > 0xFFFF:
            total = (total >> 16) + (total & 0xFFFF)
        return ~total & 0xFFFF