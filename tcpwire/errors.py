"""Exceptions that carry the operation attempted and a numeric error code."""

from __future__ import annotations

import os


class TaggedError(OSError):
    """An error tagged with the operation that was attempted when it occurred."""

    def __init__(self, attempt: str, error_code: int, message: str) -> None:
        super().__init__(error_code, message)
        self.attempt = attempt
        self.message = message

    @property
    def error_code(self) -> int:
        """The numeric code reported by the failing operation."""
        return self.errno

    def __str__(self) -> str:
        return f"{self.attempt}: {self.message}"


class UnixError(TaggedError):
    """A failed system call, described by its errno value."""

    def __init__(self, attempt: str, errno_value: int) -> None:
        super().__init__(attempt, errno_value, os.strerror(errno_value))