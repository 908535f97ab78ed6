"""Reference-counted handles on kernel file descriptors."""

from __future__ import annotations

import errno
import os
import sys
from collections.abc import Callable, Iterable, Sequence
from typing import Any, TypeVar, Union

from .errors import UnixError

BytesLike = Union[bytes, bytearray, memoryview]

_WOULD_BLOCK = (errno.EAGAIN, errno.EINPROGRESS)

_T = TypeVar("_T")


def _chunks(data: BytesLike | Iterable[BytesLike]) -> list[bytes]:
    if isinstance(data, (bytes, bytearray, memoryview)):
        return [bytes(data)]
    return [bytes(chunk) for chunk in data]


class _FDState:
    """The kernel descriptor shared by every duplicate of a FileDescriptor.

    The descriptor is closed when the last handle referring to it goes away.
    """

    def __init__(self, fd: int) -> None:
        if fd < 0:
            raise RuntimeError(f"invalid fd number:{fd}")
        self.fd = fd
        self.eof = False
        self.closed = False
        self.read_count = 0
        self.write_count = 0
        try:
            self.non_blocking = not os.get_blocking(fd)
        except OSError as exc:
            raise UnixError("fcntl", exc.errno) from exc

    def check(self, attempt: str, func: Callable[..., _T], *args: Any,
              tolerate_would_block: bool = True) -> _T | None:
        """Run func; on a would-block error of a non-blocking descriptor return None."""
        try:
            return func(*args)
        except OSError as exc:
            if tolerate_would_block and self.non_blocking and exc.errno in _WOULD_BLOCK:
                return None
            raise UnixError(attempt, exc.errno) from exc

    def close(self) -> None:
        self.check("close", os.close, self.fd)
        self.eof = self.closed = True

    def __del__(self) -> None:
        if getattr(self, "closed", True):
            return
        try:
            self.close()
        except Exception as exc:  # never raise from a finalizer
            print(f"Exception destructing file descriptor: {exc}", file=sys.stderr)


class FileDescriptor:
    """A handle on a file descriptor; duplicates share the descriptor and its state."""

    READ_BUFFER_SIZE = 16384

    def __init__(self, fd: int) -> None:
        self._state = _FDState(fd)

    def _take(self, other: FileDescriptor) -> None:
        self._state = other._state

    def _check(self, attempt: str, func: Callable[..., _T], *args: Any,
               tolerate_would_block: bool = True) -> _T | None:
        return self._state.check(attempt, func, *args,
                                 tolerate_would_block=tolerate_would_block)

    def _register_read(self) -> None:
        self._state.read_count += 1

    def _register_write(self) -> None:
        self._state.write_count += 1

    def _set_eof(self) -> None:
        self._state.eof = True

    def read(self, limit: int = READ_BUFFER_SIZE) -> bytes:
        """Read up to limit bytes (the default size if limit is 0).

        Returns b"" both at end of file, which sets eof(), and when a
        non-blocking descriptor has nothing to read, which leaves the read count alone.
        """
        if not limit:
            limit = self.READ_BUFFER_SIZE
        try:
            data = os.read(self.fd_num(), limit)
        except OSError as exc:
            if self._state.non_blocking and exc.errno in _WOULD_BLOCK:
                return b""
            raise UnixError("read", exc.errno) from exc

        self._register_read()
        if not data:
            self._set_eof()
        if len(data) > limit:
            raise RuntimeError("read() read more than requested")
        return data

    def read_vectored(self, sizes: Sequence[int]) -> list[bytes]:
        """Scatter one read across buffers of the given sizes.

        The last buffer always takes up to READ_BUFFER_SIZE bytes, whatever
        size is given for it. Returns one byte string per buffer, each holding
        what was read into it.
        """
        if not sizes:
            return []
        buffers = [bytearray(size) for size in sizes[:-1]]
        buffers.append(bytearray(self.READ_BUFFER_SIZE))
        total = sum(len(buf) for buf in buffers)

        try:
            count = os.readv(self.fd_num(), buffers)
        except OSError as exc:
            if self._state.non_blocking and exc.errno in _WOULD_BLOCK:
                return [b"" for _ in buffers]
            raise UnixError("read", exc.errno) from exc

        self._register_read()
        if count > total:
            raise RuntimeError("read() read more than requested")

        out = []
        remaining = count
        for buf in buffers:
            taken = min(remaining, len(buf))
            out.append(bytes(buf[:taken]))
            remaining -= taken
        return out

    def write(self, data: BytesLike | Iterable[BytesLike]) -> int:
        """Write one buffer or a sequence of buffers at once; return the bytes written."""
        chunks = _chunks(data)
        total = sum(len(chunk) for chunk in chunks)

        written = self._check("writev", os.writev, self.fd_num(), chunks) or 0
        self._register_write()

        if written == 0 and total != 0:
            raise RuntimeError("write returned 0 given non-empty input buffer")
        if written > total:
            raise RuntimeError("write wrote more than length of input buffer")
        return written

    def close(self) -> None:
        """Close the underlying descriptor for every handle that shares it."""
        self._state.close()

    def duplicate(self) -> FileDescriptor:
        """Another handle on the same descriptor, sharing its state."""
        copy = FileDescriptor.__new__(FileDescriptor)
        copy._take(self)
        return copy

    def set_blocking(self, blocking: bool) -> None:
        self._check("fcntl", os.set_blocking, self.fd_num(), blocking)
        self._state.non_blocking = not blocking

    def fd_num(self) -> int:
        return self._state.fd

    def eof(self) -> bool:
        return self._state.eof

    def closed(self) -> bool:
        return self._state.closed

    def read_count(self) -> int:
        return self._state.read_count

    def write_count(self) -> int:
        return self._state.write_count

    def __enter__(self) -> FileDescriptor:
        return self

    def __exit__(self, *args: Any) -> None:
        if not self.closed():
            self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(fd={self.fd_num()}, closed={self.closed()})"