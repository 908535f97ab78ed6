"""Socket addresses, with name resolution through getaddrinfo."""

from __future__ import annotations

import ipaddress
import socket
from typing import Any

from .errors import TaggedError

_AI_ALL = getattr(socket, "AI_ALL", 0)


class GaiError(TaggedError):
    """A failure reported by getaddrinfo or getnameinfo."""


class Address:
    """An immutable socket address: an address family and its sockaddr value."""

    __slots__ = ("_family", "_sockaddr")

    def __init__(self, family: int, sockaddr: Any) -> None:
        self._family = int(family)
        self._sockaddr = sockaddr

    @property
    def family(self) -> int:
        return self._family

    @property
    def sockaddr(self) -> Any:
        return self._sockaddr

    @classmethod
    def _lookup(cls, node: str, service: str, flags: int) -> Address:
        try:
            results = socket.getaddrinfo(node, service, socket.AF_INET, 0, 0, flags)
        except socket.gaierror as exc:
            raise GaiError(f"getaddrinfo({node}, {service})", exc.errno, exc.strerror) from exc
        if not results:
            raise RuntimeError("getaddrinfo returned successfully but with no results")
        family, _, _, _, sockaddr = results[0]
        return cls(family, sockaddr)

    @classmethod
    def resolve(cls, hostname: str, service: str) -> Address:
        """Resolve a host name and a service name or number to an IPv4 address."""
        return cls._lookup(hostname, service, _AI_ALL)

    @classmethod
    def from_ip(cls, ip: str, port: int = 0) -> Address:
        """Build from a dotted-quad string and a numeric port, without resolving names."""
        return cls._lookup(ip, str(port), socket.AI_NUMERICHOST | socket.AI_NUMERICSERV)

    @classmethod
    def from_ipv4_numeric(cls, ip_address: int) -> Address:
        """Build an IPv4 address with port 0 from its 32-bit numeric value."""
        return cls(socket.AF_INET, (str(ipaddress.IPv4Address(ip_address)), 0))

    def _is_internet(self) -> bool:
        return self._family in (socket.AF_INET, socket.AF_INET6)

    def ip_port(self) -> tuple[str, int]:
        """The numeric IP address string and the port."""
        if not self._is_internet():
            raise RuntimeError("Address.ip_port() called on non-Internet address")
        try:
            host, port = socket.getnameinfo(
                self._sockaddr, socket.NI_NUMERICHOST | socket.NI_NUMERICSERV
            )
        except socket.gaierror as exc:
            raise GaiError("getnameinfo", exc.errno, exc.strerror) from exc
        return host, int(port)

    def ip(self) -> str:
        return self.ip_port()[0]

    def port(self) -> int:
        return self.ip_port()[1]

    def ipv4_numeric(self) -> int:
        """The IPv4 address as an integer in host order."""
        if self._family != socket.AF_INET:
            raise RuntimeError("ipv4_numeric called on non-IPV4 address")
        return int(ipaddress.IPv4Address(self._sockaddr[0]))

    def __str__(self) -> str:
        if self._is_internet():
            ip, port = self.ip_port()
            return f"{ip}:{port}"
        return "(non-Internet address)"

    def __repr__(self) -> str:
        return f"Address({self._family!r}, {self._sockaddr!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self._family == other._family and self._sockaddr == other._sockaddr

    def __hash__(self) -> int:
        return hash((self._family, self._sockaddr))