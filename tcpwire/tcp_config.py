"""Configuration for TCP senders, receivers and file-descriptor adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from .address import Address


@dataclass
class TCPConfig:
    """Settings for a TCP sender and receiver. isn is the raw 32-bit initial sequence number."""

    DEFAULT_CAPACITY: ClassVar[int] = 64000
    MAX_PAYLOAD_SIZE: ClassVar[int] = 1000
    TIMEOUT_DFLT: ClassVar[int] = 1000
    MAX_RETX_ATTEMPTS: ClassVar[int] = 8

    rt_timeout: int = 1000
    recv_capacity: int = 64000
    send_capacity: int = 64000
    isn: int = 137


def _any_address() -> Address:
    return Address.from_ip("0", 0)


@dataclass
class FdAdapterConfig:
    """Endpoints and loss rates for an adapter that carries segments over a file descriptor."""

    source: Address = field(default_factory=_any_address)
    destination: Address = field(default_factory=_any_address)
    loss_rate_dn: int = 0
    loss_rate_up: int = 0