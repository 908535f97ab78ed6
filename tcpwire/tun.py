"""File descriptors for existing persistent Linux TUN and TAP devices."""

from __future__ import annotations

import fcntl
import os
import struct

from .errors import UnixError
from .file_descriptor import FileDescriptor

CLONEDEV = "/dev/net/tun"

TUNSETIFF = 0x400454CA
IFF_TUN = 0x0001
IFF_TAP = 0x0002
IFF_NO_PI = 0x1000
IFNAMSIZ = 16

_IFREQ = struct.Struct(f"{IFNAMSIZ}sh22x")


def _ifreq(devname: str, is_tun: bool) -> bytes:
    name = devname.encode()[: IFNAMSIZ - 1]
    flags = (IFF_TUN if is_tun else IFF_TAP) | IFF_NO_PI
    return _IFREQ.pack(name, flags)


class TunTapFD(FileDescriptor):
    """A descriptor on a TUN (IP datagrams) or TAP (Ethernet frames) device.

    The device must already exist, e.g. created with `ip tuntap add`.
    """

    def __init__(self, devname: str, is_tun: bool) -> None:
        try:
            fd = os.open(CLONEDEV, os.O_RDWR | os.O_CLOEXEC)
        except OSError as exc:
            raise UnixError("open", exc.errno) from exc
        super().__init__(fd)
        try:
            fcntl.ioctl(self.fd_num(), TUNSETIFF, _ifreq(devname, is_tun))
        except OSError as exc:
            self.close()
            raise UnixError("ioctl", exc.errno) from exc


class TunFD(TunTapFD):
    """A descriptor on an existing TUN device."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, True)


class TapFD(TunTapFD):
    """A descriptor on an existing TAP device."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, False)