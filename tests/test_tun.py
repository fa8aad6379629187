import sys

import pytest

from tcpkit.errors import UnixError
from tcpkit.tun import IFF_NO_PI, IFF_TAP, IFF_TUN, TapFD, TunFD, _make_ifreq


def _flags(request):
    return int.from_bytes(request[16:18], sys.byteorder)


def test_ifreq_for_tun():
    request = _make_ifreq("tun144", True)
    assert len(request) == 40
    assert request[:16] == b"tun144".ljust(16, b"\0")
    assert _flags(request) == IFF_TUN | IFF_NO_PI
    assert request[18:] == bytes(len(request) - 18)


def test_ifreq_for_tap():
    request = _make_ifreq("tap10", False)
    assert request[:16] == b"tap10".ljust(16, b"\0")
    assert _flags(request) == IFF_TAP | IFF_NO_PI


def test_ifreq_truncates_long_name():
    name = "a-very-long-device-name"
    request = _make_ifreq(name, True)
    assert request[:16] == name.encode()[:15] + b"\0"


def test_tun_with_invalid_name_fails():
    with pytest.raises(UnixError) as info:
        TunFD("bad/name")
    assert info.value.attempt in ("open", "ioctl")


def test_tap_with_invalid_name_fails():
    with pytest.raises(UnixError) as info:
        TapFD("bad/name")
    assert info.value.attempt in ("open", "ioctl")