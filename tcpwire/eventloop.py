"""An event loop that runs callbacks when rules are interested and file descriptors are ready."""

from __future__ import annotations

import enum
import errno
import os
import select
import socket
import sys
import weakref
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Optional, Union

from .errors import UnixError
from .file_descriptor import FileDescriptor

Callback = Callable[[], None]
Interest = Callable[[], bool]

_MAX_CATEGORIES = 64
_MAX_ITERATIONS = 128
_ERROR_EVENTS = select.POLLERR | select.POLLNVAL
_ALWAYS_REPORTED = select.POLLERR | select.POLLHUP | select.POLLNVAL


def _always() -> bool:
    return True


def _nothing() -> None:
    return None


class Direction(enum.IntEnum):
    """Whether a rule waits for its descriptor to become readable or writable."""

    IN = select.POLLIN
    OUT = select.POLLOUT


class Result(enum.Enum):
    """The outcome of one call to EventLoop.wait_next_event."""

    SUCCESS = "success"
    TIMEOUT = "timeout"
    EXIT = "exit"


@dataclass(eq=False)
class _BasicRule:
    category_id: int
    interest: Interest
    callback: Callback
    cancel_requested: bool = False


@dataclass(eq=False)
class _FDRule(_BasicRule):
    fd: FileDescriptor = field(default=None)  # type: ignore[assignment]
    direction: Direction = Direction.IN
    cancel: Callback = _nothing
    error: Callback = _nothing

    def service_count(self) -> int:
        if self.direction is Direction.IN:
            return self.fd.read_count()
        return self.fd.write_count()


class RuleHandle:
    """A handle that can cancel a rule without keeping it alive."""

    def __init__(self, rule: _BasicRule) -> None:
        self._ref = weakref.ref(rule)

    def cancel(self) -> None:
        """Ask the loop to drop the rule; its cancel callback is not called."""
        rule = self._ref()
        if rule is not None:
            rule.cancel_requested = True


def _report_poll_error(fd_num: int, category: str) -> None:
    try:
        sock = socket.socket(fileno=fd_num)
    except OSError as exc:
        if exc.errno == errno.ENOTSOCK:
            print(f'error on polled file descriptor for rule "{category}"', file=sys.stderr)
            return
        raise UnixError("getsockopt", exc.errno) from exc
    try:
        socket_error = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
    except OSError as exc:
        raise UnixError("getsockopt", exc.errno) from exc
    finally:
        sock.detach()
    if socket_error:
        print(
            f'error on polled socket for rule "{category}": {os.strerror(socket_error)}',
            file=sys.stderr,
        )


class EventLoop:
    """Waits for events on file descriptors and runs the matching callbacks."""

    def __init__(self) -> None:
        self._categories: list[str] = []
        self._fd_rules: list[_FDRule] = []
        self._non_fd_rules: list[_BasicRule] = []

    def add_category(self, name: str) -> int:
        """Register a named category of rules and return its id."""
        if len(self._categories) >= _MAX_CATEGORIES:
            raise RuntimeError("maximum categories reached")
        self._categories.append(name)
        return len(self._categories) - 1

    def _category_id(self, category: Union[int, str]) -> int:
        if isinstance(category, str):
            return self.add_category(category)
        if not 0 <= category < len(self._categories):
            raise IndexError("bad category_id")
        return category

    def add_fd_rule(
        self,
        category: Union[int, str],
        fd: FileDescriptor,
        direction: Direction,
        callback: Callback,
        interest: Optional[Interest] = None,
        cancel: Optional[Callback] = None,
        error: Optional[Callback] = None,
    ) -> RuleHandle:
        """Run callback when fd is ready in the given direction and interest() is true.

        A category given by name is registered first.
        """
        category_id = self._category_id(category)
        rule = _FDRule(
            category_id=category_id,
            interest=interest or _always,
            callback=callback,
            fd=fd.duplicate(),
            direction=Direction(direction),
            cancel=cancel or _nothing,
            error=error or _nothing,
        )
        self._fd_rules.append(rule)
        return RuleHandle(rule)

    def add_rule(
        self,
        category: Union[int, str],
        callback: Callback,
        interest: Optional[Interest] = None,
    ) -> RuleHandle:
        """Run callback whenever interest() is true, with no file descriptor involved."""
        category_id = self._category_id(category)
        rule = _BasicRule(category_id=category_id, interest=interest or _always, callback=callback)
        self._non_fd_rules.append(rule)
        return RuleHandle(rule)

    def _serve_non_fd_rules(self) -> bool:
        for rule in list(self._non_fd_rules):
            if rule.cancel_requested:
                self._non_fd_rules.remove(rule)
                continue
            fired = False
            iterations = 0
            while rule.interest():
                iterations += 1
                if iterations > _MAX_ITERATIONS:
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{self._categories[rule.category_id]}"'
                        f" is still interested after {iterations} iterations"
                    )
                fired = True
                rule.callback()
            if fired:
                return True
        return False

    def wait_next_event(self, timeout_ms: int) -> Result:
        """Serve at most one rule, waiting up to timeout_ms (negative: forever)."""
        if self._serve_non_fd_rules():
            return Result.SUCCESS

        polled: list[tuple[_FDRule, int]] = []
        something_to_poll = False
        for rule in list(self._fd_rules):
            if rule.cancel_requested:
                self._fd_rules.remove(rule)
                continue
            if (rule.direction is Direction.IN and rule.fd.eof()) or rule.fd.closed():
                rule.cancel()
                self._fd_rules.remove(rule)
                continue
            if rule.interest():
                polled.append((rule, int(rule.direction)))
                something_to_poll = True
            else:
                polled.append((rule, 0))

        if not something_to_poll:
            return Result.EXIT

        masks: dict[int, int] = {}
        for rule, events in polled:
            fd_num = rule.fd.fd_num()
            masks[fd_num] = masks.get(fd_num, 0) | events
        poller = select.poll()
        for fd_num, mask in masks.items():
            poller.register(fd_num, mask)
        try:
            ready = poller.poll(timeout_ms)
        except OSError as exc:
            raise UnixError("poll", exc.errno) from exc
        if not ready:
            return Result.TIMEOUT
        reported = dict(ready)

        for rule, events in polled:
            revents = reported.get(rule.fd.fd_num(), 0) & (events | _ALWAYS_REPORTED)
            category = self._categories[rule.category_id]

            if revents & _ERROR_EVENTS:
                _report_poll_error(rule.fd.fd_num(), category)
                rule.error()
                rule.cancel()
                self._fd_rules.remove(rule)
                continue

            poll_ready = bool(revents & events)
            poll_hup = bool(revents & select.POLLHUP)
            if poll_hup and ((events and not poll_ready) or rule.direction is Direction.OUT):
                rule.cancel()
                self._fd_rules.remove(rule)
                continue

            if poll_ready:
                count_before = rule.service_count()
                rule.callback()
                if (
                    count_before == rule.service_count()
                    and not rule.fd.closed()
                    and rule.interest()
                ):
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{category}"'
                        " did not read/write fd and is still interested"
                    )
                return Result.SUCCESS

        return Result.SUCCESS