import errno
import os

import pytest

from tcpwire.errors import TaggedError, UnixError


def test_tagged_error_message_joins_attempt_and_message():
    err = TaggedError("getaddrinfo(nowhere, http)", 7, "resolution failed")
    assert str(err) == "getaddrinfo(nowhere, http): resolution failed"


def test_tagged_error_keeps_code():
    err = TaggedError("getnameinfo", 4, "bad flags")
    assert err.error_code == 4
    assert err.attempt == "getnameinfo"


def test_unix_error_uses_strerror():
    err = UnixError("open", errno.ENOENT)
    assert str(err) == f"open: {os.strerror(errno.ENOENT)}"
    assert err.error_code == errno.ENOENT
    assert err.errno == errno.ENOENT


def test_unix_error_is_caught_as_tagged_error():
    with pytest.raises(TaggedError) as info:
        raise UnixError("close", errno.EBADF)
    assert info.value.error_code == errno.EBADF


def test_unix_error_is_an_oserror():
    err = UnixError("read", errno.EAGAIN)
    assert isinstance(err, OSError)
    assert err.errno == errno.EAGAIN
    assert err.attempt == "read"
    assert str(err) == f"read: {os.strerror(errno.EAGAIN)}"