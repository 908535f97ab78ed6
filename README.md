# tcpwire

Building blocks for working with TCP/IP in user space on Linux. The package provides wire formats, checksums, socket and file-descriptor wrappers, and a `poll`-based event loop.

## What is in the package

- `tcpwire.checksum.InternetChecksum` computes the Internet (ones'-complement) checksum. Its `add()` takes a byte string or an iterable of byte strings, and `value()` returns the 16-bit result.
- `tcpwire.parser.Parser` reads big-endian integers (`integer(size)`) and byte runs (`string(length)`) from a list of buffers. A read past the end does not raise. It sets a flag, which you check with `has_error()`.
- `tcpwire.parser.Serializer` writes integers (`integer(value, size)`) and whole buffers (`buffer(data)`). `output()` returns the list of buffers written.
- `tcpwire.parser.serialize(obj)` and `tcpwire.parser.parse(obj, buffers, *args)` are shortcuts for any object that has `serialize`/`parse` methods.
- `tcpwire.ipv4.IPv4Header` is a dataclass for an IPv4 header. It skips options when parsing, verifies the checksum when parsing, and offers `compute_checksum()`, `payload_length()` and `pseudo_checksum()`. `tcpwire.ipv4.IPv4Datagram` pairs a header with its payload buffers.
- `tcpwire.tcp_segment.TCPSegment` holds a `TCPMessage` together with a `UserDatagramInfo`. A `TCPMessage` is a `TCPSenderMessage` (`seqno`, `syn`, `payload`, `fin`, `rst`) plus a `TCPReceiverMessage` (`ackno`, `window_size`, `rst`). `UserDatagramInfo` carries the ports and the checksum. Sequence and acknowledgment numbers are raw 32-bit integers. `ackno` is `None` when the ACK flag is clear.
- `tcpwire.tcp_config.TCPConfig` holds sender and receiver settings: `rt_timeout`, `recv_capacity`, `send_capacity` and `isn`. It also has the constants `DEFAULT_CAPACITY`, `MAX_PAYLOAD_SIZE`, `TIMEOUT_DFLT` and `MAX_RETX_ATTEMPTS`. `FdAdapterConfig` holds source and destination addresses and loss rates.
- `tcpwire.address.Address` is an immutable socket address:
  - `Address.resolve(host, service)` looks up a name.
  - `Address.from_ip(ip, port)` parses a numeric address.
  - `Address.from_ipv4_numeric(n)` builds an address from a 32-bit integer.
  - `ip_port()`, `ip()`, `port()` and `ipv4_numeric()` read the address back.
  - `str(address)` gives `"ip:port"`.
  - Resolver failures raise `tcpwire.address.GaiError`.
- `tcpwire.file_descriptor.FileDescriptor` wraps a kernel file descriptor.
  - `duplicate()` returns handles that share the same descriptor and state.
  - The handle counts reads and writes and tracks end-of-file.
  - It can be used as a context manager.
  - `read(limit)`, `read_vectored(sizes)` and `write(data)` work on blocking and non-blocking descriptors.
- `tcpwire.sockets` provides `UDPSocket`, `TCPSocket`, `PacketSocket`, `LocalStreamSocket` and `LocalDatagramSocket`. They share the `Socket` methods `bind`, `bind_to_device`, `connect`, `shutdown`, `local_address`, `peer_address`, `set_reuseaddr` and `raise_if_error`.
- `tcpwire.eventloop.EventLoop` runs callbacks:
  - `add_fd_rule` serves rules on file descriptors (`Direction.IN` / `Direction.OUT`), and `add_rule` serves rules without one.
  - Each `wait_next_event(timeout_ms)` serves at most one rule and returns `Result.SUCCESS`, `Result.TIMEOUT` or `Result.EXIT`.
  - A rule that stays interested without reading or writing raises `RuntimeError` (busy-wait detection).
  - The returned `RuleHandle.cancel()` drops a rule.
- `tcpwire.tun.TunFD` and `tcpwire.tun.TapFD` open existing persistent TUN/TAP devices.

System-call failures raise `tcpwire.errors.UnixError`, a subclass of `OSError` whose message is prefixed with the attempted operation.

## Installation

```
pip install .
```

## Example: build and check an IPv4 header

```python
from tcpwire.ipv4 import IPv4Header
from tcpwire.parser import Parser, serialize

header = IPv4Header(len=40, src=0x0A000001, dst=0x0A000002)
header.compute_checksum()
wire = serialize(header)

parsed = IPv4Header()
parser = Parser(wire)
parsed.parse(parser)
assert not parser.has_error()
print(parsed)   # IPv4 len=40 protocol=6 ttl=128 src=10.0.0.1 dst=10.0.0.2
```

## Example: a TCP segment inside an IPv4 datagram

```python
from tcpwire.ipv4 import IPv4Header
from tcpwire.parser import parse, serialize
from tcpwire.tcp_segment import TCPSegment

seg = TCPSegment()
seg.message.sender.syn = True
seg.message.sender.seqno = 1000
seg.message.sender.payload = b"hello"
seg.udinfo.src_port, seg.udinfo.dst_port = 1234, 80

ip = IPv4Header(len=20 + 20 + 5, src=0x0A000001, dst=0x0A000002)
seg.compute_checksum(ip.pseudo_checksum())
wire = serialize(seg)

back = TCPSegment()
assert parse(back, wire, ip.pseudo_checksum())
assert back.message.sender.payload == b"hello"
```

## Example: waiting on a pipe with the event loop

```python
import os

from tcpwire.eventloop import Direction, EventLoop, Result
from tcpwire.file_descriptor import FileDescriptor

r, w = os.pipe()
reader, writer = FileDescriptor(r), FileDescriptor(w)

loop = EventLoop()
received = []
loop.add_fd_rule("reader", reader, Direction.IN, lambda: received.append(reader.read()))

writer.write(b"ping")
writer.close()
while loop.wait_next_event(-1) is not Result.EXIT:
    pass
print(received)   # [b'ping']
```

## What the package does not do

The package provides the parts a TCP implementation is built from, but not the implementation. It has no TCP sender, receiver, reassembler or byte stream, and no connection state machine. `TCPConfig` only holds settings for such components. `FdAdapterConfig` only holds settings for an adapter that moves segments over a file descriptor; no such adapter is included. The package ships no command-line programs.

## Running the tests

```
pip install .[test]
pytest
```