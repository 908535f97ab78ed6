"""Big-endian parsing from, and serialization to, lists of byte strings."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from typing import Any, Union

BytesLike = Union[bytes, bytearray, memoryview]


def _as_chunks(data: BytesLike | Iterable[BytesLike]) -> list[bytes]:
    if isinstance(data, (bytes, bytearray, memoryview)):
        return [bytes(data)]
    return [bytes(chunk) for chunk in data]


class _BufferList:
    """A queue of byte strings read from the front."""

    def __init__(self, buffers: Iterable[bytes]) -> None:
        self._chunks: deque[bytes] = deque()
        self._skip = 0
        self._size = 0
        for chunk in buffers:
            self.append(chunk)

    def __len__(self) -> int:
        return self._size

    def append(self, data: bytes) -> None:
        self._size += len(data)
        self._chunks.append(data)

    def _advance_front(self, count: int) -> None:
        self._skip += count
        self._size -= count
        if self._skip == len(self._chunks[0]):
            self._chunks.popleft()
            self._skip = 0

    def remove_prefix(self, count: int) -> None:
        while count and self._chunks:
            step = min(count, len(self._chunks[0]) - self._skip)
            self._advance_front(step)
            count -= step

    def take(self, count: int) -> bytes:
        parts = []
        while count:
            if not self._chunks:
                raise IndexError("read past the end of the buffer list")
            piece = self._chunks[0][self._skip : self._skip + count]
            parts.append(piece)
            self._advance_front(len(piece))
            count -= len(piece)
        return b"".join(parts)

    def views(self) -> list[bytes]:
        if not self._size:
            return []
        chunks = list(self._chunks)
        return [chunks[0][self._skip :], *chunks[1:]]

    def dump_all(self) -> list[bytes]:
        out = self.views()
        self._chunks.clear()
        self._skip = 0
        self._size = 0
        return out


class Parser:
    """Reads big-endian integers and byte strings from a list of buffers.

    A read past the end of the input sets the error flag instead of raising;
    once set, further reads return zero or empty values.
    """

    def __init__(self, buffers: BytesLike | Iterable[BytesLike]) -> None:
        self._input = _BufferList(_as_chunks(buffers))
        self._error = False

    def __len__(self) -> int:
        return len(self._input)

    def has_error(self) -> bool:
        return self._error

    def set_error(self) -> None:
        self._error = True

    def remove_prefix(self, n: int) -> None:
        """Discard up to n bytes from the front of the input."""
        self._input.remove_prefix(n)

    def _check_size(self, size: int) -> None:
        if size > len(self._input):
            self._error = True

    def integer(self, size: int) -> int:
        """Read an unsigned big-endian integer of the given size in bytes."""
        self._check_size(size)
        if self._error:
            return 0
        return int.from_bytes(self._input.take(size), "big")

    def string(self, length: int) -> bytes:
        """Read exactly length bytes."""
        self._check_size(length)
        if self._error:
            return b""
        return self._input.take(length)

    def all_remaining(self) -> list[bytes]:
        """Consume and return the rest of the input as a list of buffers."""
        return self._input.dump_all()

    def all_remaining_bytes(self) -> bytes:
        """Consume and return the rest of the input as one byte string."""
        return b"".join(self._input.dump_all())

    def buffer(self) -> list[bytes]:
        """The unread input, without consuming it."""
        return self._input.views()


class Serializer:
    """Writes big-endian integers and byte strings into a list of buffers."""

    def __init__(self, initial: BytesLike = b"") -> None:
        self._output: list[bytes] = []
        self._buffer = bytearray(initial)

    def integer(self, value: int, size: int) -> None:
        """Append value as an unsigned big-endian integer of size bytes, truncating."""
        self._buffer += (value & ((1 << (8 * size)) - 1)).to_bytes(size, "big")

    def buffer(self, data: BytesLike | Iterable[BytesLike]) -> None:
        """Append one or more whole buffers after what has been written so far."""
        for chunk in _as_chunks(data):
            self.flush()
            self._output.append(chunk)

    def flush(self) -> None:
        self._output.append(bytes(self._buffer))
        self._buffer.clear()

    def output(self) -> list[bytes]:
        self.flush()
        return list(self._output)


def serialize(obj: Any) -> list[bytes]:
    """Serialize any object that has a serialize(serializer) method."""
    serializer = Serializer()
    obj.serialize(serializer)
    return serializer.output()


def parse(obj: Any, buffers: BytesLike | Iterable[BytesLike], *args: Any) -> bool:
    """Parse buffers into obj; True if parsing succeeded."""
    parser = Parser(buffers)
    obj.parse(parser, *args)
    return not parser.has_error()