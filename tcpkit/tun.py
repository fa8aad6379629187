"""File descriptors for Linux TUN and TAP devices."""

import fcntl
import os
import struct

from .errors import UnixError
from .file_descriptor import FileDescriptor

_CLONEDEV = "/dev/net/tun"
_IFNAMSIZ = 16
TUNSETIFF = 0x400454CA
IFF_TUN = 0x0001
IFF_TAP = 0x0002
IFF_NO_PI = 0x1000


def _make_ifreq(devname, is_tun):
    """A ``struct ifreq`` naming the device, with TUN or TAP flags and no packet info."""
    name = devname.encode()[: _IFNAMSIZ - 1]
    flags = (IFF_TUN if is_tun else IFF_TAP) | IFF_NO_PI
    return struct.pack("@16sh22x", name, flags)


class TunTapFD(FileDescriptor):
    """A descriptor for an existing persistent TUN (IP) or TAP (Ethernet) device."""

    def __init__(self, devname, is_tun):
        try:
            fd = os.open(_CLONEDEV, os.O_RDWR | os.O_CLOEXEC)
        except OSError as exc:
            raise UnixError("open", exc.errno) from exc
        super().__init__(fd)
        try:
            fcntl.ioctl(fd, TUNSETIFF, _make_ifreq(devname, is_tun))
        except OSError as exc:
            self.close()
            raise UnixError("ioctl", exc.errno) from exc


class TunFD(TunTapFD):
    """A descriptor for a TUN device, carrying IP datagrams."""

    def __init__(self, devname):
        super().__init__(devname, True)


class TapFD(TunTapFD):
    """A descriptor for a TAP device, carrying Ethernet frames."""

    def __init__(self, devname):
        super().__init__(devname, False)