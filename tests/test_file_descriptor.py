import errno
import os

import pytest

from tcpwire.errors import UnixError
from tcpwire.file_descriptor import FileDescriptor


@pytest.fixture
def pipe():
    r, w = os.pipe()
    reader, writer = FileDescriptor(r), FileDescriptor(w)
    yield reader, writer
    for fd in (reader, writer):
        if not fd.closed():
            fd.close()


def test_write_then_read_round_trip(pipe):
    reader, writer = pipe
    assert writer.write(b"hello") == 5
    assert reader.read() == b"hello"
    assert writer.write_count() == 1
    assert reader.read_count() == 1
    assert not reader.eof()


def test_write_many_buffers(pipe):
    reader, writer = pipe
    assert writer.write([b"ab", b"", b"cde"]) == 5
    assert reader.read() == b"abcde"


def test_write_empty_buffer(pipe):
    _, writer = pipe
    assert writer.write(b"") == 0
    assert writer.write_count() == 1


def test_read_respects_limit(pipe):
    reader, writer = pipe
    writer.write(b"abcdef")
    assert reader.read(4) == b"abcd"
    assert reader.read() == b"ef"


def test_read_at_end_of_file_sets_eof(pipe):
    reader, writer = pipe
    writer.close()
    assert reader.read() == b""
    assert reader.eof()
    assert reader.read_count() == 1


def test_read_vectored_scatters(pipe):
    reader, writer = pipe
    writer.write(b"abcdefgh")
    assert reader.read_vectored([3, 2, 0]) == [b"abc", b"de", b"fgh"]
    assert reader.read_count() == 1


def test_read_vectored_short_read(pipe):
    reader, writer = pipe
    writer.write(b"ab")
    assert reader.read_vectored([3, 5]) == [b"ab", b""]


def test_read_vectored_no_buffers(pipe):
    reader, _ = pipe
    assert reader.read_vectored([]) == []
    assert reader.read_count() == 0


def test_duplicate_shares_state(pipe):
    reader, writer = pipe
    copy = writer.duplicate()
    assert copy.fd_num() == writer.fd_num()
    copy.write(b"x")
    assert writer.write_count() == 1
    copy.close()
    assert writer.closed()
    assert writer.eof()
    assert reader.read() == b"x"


def test_negative_fd_rejected():
    with pytest.raises(RuntimeError, match="invalid fd number"):
        FileDescriptor(-1)


def test_closed_fd_rejected():
    r, w = os.pipe()
    os.close(r)
    try:
        with pytest.raises(UnixError) as info:
            FileDescriptor(r)
        assert info.value.error_code == errno.EBADF
        assert info.value.attempt == "fcntl"
    finally:
        os.close(w)


def test_double_close_raises(pipe):
    reader, _ = pipe
    reader.close()
    with pytest.raises(UnixError) as info:
        reader.close()
    assert info.value.errno == errno.EBADF


def test_non_blocking_read_with_nothing_available(pipe):
    reader, _ = pipe
    reader.set_blocking(False)
    assert os.get_blocking(reader.fd_num()) is False
    assert reader.read() == b""
    assert reader.read_count() == 0
    assert not reader.eof()
    reader.set_blocking(True)
    assert os.get_blocking(reader.fd_num()) is True


def test_non_blocking_write_to_full_pipe(pipe):
    _, writer = pipe
    writer.set_blocking(False)
    data = b"x" * (1 << 20)
    first = writer.write(data)
    assert 0 < first < len(data)
    with pytest.raises(RuntimeError, match="write returned 0"):
        writer.write(data)


def test_context_manager_closes(pipe):
    reader, writer = pipe
    with writer as fd:
        fd.write(b"z")
    assert writer.closed()
    assert reader.read() == b"z"
    assert reader.read() == b""


def test_last_handle_closes_descriptor():
    r, w = os.pipe()
    os.close(r)
    fd = FileDescriptor(w)
    number = fd.fd_num()
    del fd
    with pytest.raises(OSError):
        os.fstat(number)