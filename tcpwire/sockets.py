"""Network sockets built on reference-counted file descriptors."""

from __future__ import annotations

import socket
import struct
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional, TypeVar, Union

from .address import Address
from .errors import UnixError
from .file_descriptor import FileDescriptor

BytesLike = Union[bytes, bytearray, memoryview]

_SO_DOMAIN = getattr(socket, "SO_DOMAIN", 39)
_SO_PROTOCOL = getattr(socket, "SO_PROTOCOL", 38)
_SO_BINDTODEVICE = getattr(socket, "SO_BINDTODEVICE", 25)
_MSG_TRUNC = getattr(socket, "MSG_TRUNC", 0x20)
_AF_PACKET = getattr(socket, "AF_PACKET", 17)
_SOL_PACKET = getattr(socket, "SOL_PACKET", 263)
_PACKET_ADD_MEMBERSHIP = 1
_PACKET_MR_PROMISC = 1

_S = TypeVar("_S", bound="Socket")


class Socket(FileDescriptor):
    """Base class for network sockets; normally used through a subclass."""

    def __init__(self, domain: int, type: int, protocol: int = 0) -> None:
        try:
            sock = socket.socket(domain, type, protocol)
        except OSError as exc:
            raise UnixError("socket", exc.errno) from exc
        super().__init__(sock.detach())

    @classmethod
    def _adopt(cls: type[_S], fd: FileDescriptor, domain: int, type: int,
               protocol: int = 0) -> _S:
        obj = cls.__new__(cls)
        obj._take(fd)
        obj._verify(domain, type, protocol)
        return obj

    def _verify(self, domain: int, type: int, protocol: int) -> None:
        if self._getsockopt(socket.SOL_SOCKET, _SO_DOMAIN) != domain:
            raise RuntimeError("socket domain mismatch")
        if self._getsockopt(socket.SOL_SOCKET, socket.SO_TYPE) != type:
            raise RuntimeError("socket type mismatch")
        if self._getsockopt(socket.SOL_SOCKET, _SO_PROTOCOL) != protocol:
            raise RuntimeError("socket protocol mismatch")

    @contextmanager
    def _socket(self) -> Iterator[socket.socket]:
        """Borrow a socket object for the descriptor without taking ownership."""
        try:
            sock = socket.socket(fileno=self.fd_num())
        except OSError as exc:
            raise UnixError("socket", exc.errno) from exc
        try:
            yield sock
        finally:
            sock.detach()

    def _getsockopt(self, level: int, option: int) -> int:
        with self._socket() as sock:
            return self._check("getsockopt", sock.getsockopt, level, option) or 0

    def _setsockopt(self, level: int, option: int, value: Union[int, bytes]) -> None:
        with self._socket() as sock:
            self._check("setsockopt", sock.setsockopt, level, option, value)

    def _get_address(self, name: str) -> Address:
        with self._socket() as sock:
            sockaddr = self._check(name, getattr(sock, name))
            return Address(sock.family, sockaddr)

    def bind(self, address: Address) -> None:
        """Bind to a local address, usually before listen or recv."""
        with self._socket() as sock:
            self._check("bind", sock.bind, address.sockaddr)

    def bind_to_device(self, device_name: str) -> None:
        self._setsockopt(socket.SOL_SOCKET, _SO_BINDTODEVICE, device_name.encode())

    def connect(self, address: Address) -> None:
        """Connect to a peer; a non-blocking socket returns while still connecting."""
        with self._socket() as sock:
            self._check("connect", sock.connect, address.sockaddr)

    def shutdown(self, how: int) -> None:
        """Shut down reading (SHUT_RD), writing (SHUT_WR) or both (SHUT_RDWR)."""
        with self._socket() as sock:
            self._check("shutdown", sock.shutdown, how)
        if how == socket.SHUT_RD:
            self._register_read()
        elif how == socket.SHUT_WR:
            self._register_write()
        elif how == socket.SHUT_RDWR:
            self._register_read()
            self._register_write()
        else:
            raise ValueError("Socket.shutdown() called with invalid `how`")

    def local_address(self) -> Address:
        return self._get_address("getsockname")

    def peer_address(self) -> Address:
        return self._get_address("getpeername")

    def set_reuseaddr(self) -> None:
        """Allow the local address to be reused sooner."""
        self._setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

    def raise_if_error(self) -> None:
        """Raise the pending socket error, if any (as seen on non-blocking sockets)."""
        socket_error = self._getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if socket_error:
            raise UnixError("socket error", socket_error)


class DatagramSocket(Socket):
    """A socket that sends and receives whole datagrams."""

    def recv(self) -> tuple[Optional[Address], bytes]:
        """Receive one datagram and the address of its sender.

        A non-blocking socket with nothing waiting gives (None, b"").
        Raises RuntimeError if the datagram does not fit the read buffer.
        """
        buffer = bytearray(self.READ_BUFFER_SIZE)
        with self._socket() as sock:
            result = self._check("recvfrom", sock.recvfrom_into, buffer, 0, _MSG_TRUNC)
            family = sock.family
        if result is None:
            self._register_read()
            return None, b""
        length, sockaddr = result
        if length > len(buffer):
            raise RuntimeError("recvfrom (oversized datagram)")
        self._register_read()
        return Address(family, sockaddr), bytes(buffer[:length])

    def sendto(self, destination: Address, payload: BytesLike) -> None:
        with self._socket() as sock:
            self._check("sendto", sock.sendto, bytes(payload), destination.sockaddr)
        self._register_write()

    def send(self, payload: BytesLike) -> None:
        """Send a datagram to the connected peer."""
        with self._socket() as sock:
            self._check("send", sock.send, bytes(payload))
        self._register_write()


class UDPSocket(DatagramSocket):
    """An unbound, unconnected UDP socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_DGRAM)


class TCPSocket(Socket):
    """An unbound, unconnected TCP socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_STREAM)

    def listen(self, backlog: int = 16) -> None:
        with self._socket() as sock:
            self._check("listen", sock.listen, backlog)

    def accept(self) -> TCPSocket:
        """Wait for and accept a new connection."""
        self._register_read()
        with self._socket() as sock:
            conn, _ = self._check("accept", sock.accept, tolerate_would_block=False)
        fd = FileDescriptor(conn.detach())
        return TCPSocket._adopt(fd, socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP)


class PacketSocket(DatagramSocket):
    """A link-layer packet socket."""

    def __init__(self, type: int, protocol: int) -> None:
        super().__init__(_AF_PACKET, type, protocol)

    def set_promiscuous(self) -> None:
        """Put the bound interface into promiscuous mode."""
        address = self.local_address()
        if address.family != _AF_PACKET:
            raise RuntimeError("Address::as() conversion failure")
        ifindex = socket.if_nametoindex(address.sockaddr[0])
        mreq = struct.pack("iHH8s", ifindex, _PACKET_MR_PROMISC, 0, b"")
        self._setsockopt(_SOL_PACKET, _PACKET_ADD_MEMBERSHIP, mreq)


class LocalStreamSocket(Socket):
    """A Unix-domain stream socket made from an existing descriptor."""

    def __init__(self, fd: FileDescriptor) -> None:
        self._take(fd)
        self._verify(socket.AF_UNIX, socket.SOCK_STREAM, 0)


class LocalDatagramSocket(DatagramSocket):
    """An unbound, unconnected Unix-domain datagram socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_UNIX, socket.SOCK_DGRAM)