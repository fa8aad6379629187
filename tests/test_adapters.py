import socket

import pytest

from tcpkit.adapters import LossyFdAdapter, TCPOverIPv4OverTunFdAdapter
from tcpkit.address import Address
from tcpkit.file_descriptor import FileDescriptor
from tcpkit.tcp_config import FdAdapterConfig
from tcpkit.tcp_message import TCPMessage, TCPReceiverMessage, TCPSenderMessage


class _FixedRng:
    def __init__(self, value):
        self.value = value

    def getrandbits(self, bits):
        return self.value


class _RecordingAdapter:
    def __init__(self, incoming=None):
        self.config = FdAdapterConfig()
        self.listening = False
        self.written = []
        self.incoming = incoming
        self.ticks = []

    @property
    def fd(self):
        return "fd"

    def read(self):
        return self.incoming

    def write(self, message):
        self.written.append(message)

    def tick(self, ms):
        self.ticks.append(ms)


@pytest.fixture
def link():
    first, second = socket.socketpair(socket.AF_UNIX, socket.SOCK_DGRAM)
    a = FileDescriptor(first.detach())
    b = FileDescriptor(second.detach())
    yield a, b
    for fd in (a, b):
        if not fd.closed:
            fd.close()


def _endpoint(fd, source, destination):
    adapter = TCPOverIPv4OverTunFdAdapter(fd)
    adapter.config.source = Address(*source)
    adapter.config.destination = Address(*destination)
    return adapter


def _message():
    return TCPMessage(
        TCPSenderMessage(seqno=5, syn=True, payload=b"hi"),
        TCPReceiverMessage(ackno=9, window_size=100),
    )


def test_write_then_read_round_trip(link):
    a, b = link
    left = _endpoint(a, ("10.0.0.1", 1000), ("10.0.0.2", 2000))
    right = _endpoint(b, ("10.0.0.2", 2000), ("10.0.0.1", 1000))
    left.write(_message())
    assert right.read() == _message()
    assert a.write_count == 1


def test_read_rejects_unrelated_port(link):
    a, b = link
    left = _endpoint(a, ("10.0.0.1", 1000), ("10.0.0.2", 2000))
    right = _endpoint(b, ("10.0.0.2", 2001), ("10.0.0.1", 1000))
    left.write(_message())
    assert right.read() is None


def test_listening_adapter_learns_peer(link):
    a, b = link
    left = _endpoint(a, ("10.0.0.1", 1000), ("10.0.0.2", 2000))
    right = _endpoint(b, ("0", 2000), ("0", 0))
    right.listening = True
    left.write(_message())
    assert right.read() == _message()
    assert right.listening is False
    assert right.config.destination == Address("10.0.0.1", 1000)
    assert right.config.source == Address("10.0.0.2", 2000)


def test_nonblocking_read_with_nothing_waiting(link):
    _, b = link
    right = _endpoint(b, ("10.0.0.2", 2000), ("10.0.0.1", 1000))
    b.set_blocking(False)
    assert right.read() is None


def test_fd_is_the_device(link):
    a, _ = link
    adapter = TCPOverIPv4OverTunFdAdapter(a)
    assert adapter.fd is a


def test_lossy_passes_everything_at_zero_loss():
    inner = _RecordingAdapter(incoming=_message())
    lossy = LossyFdAdapter(inner, _FixedRng(0))
    lossy.write(_message())
    assert inner.written == [_message()]
    assert lossy.read() == _message()


def test_lossy_drops_write_when_draw_below_rate():
    inner = _RecordingAdapter()
    inner.config.loss_rate_up = 11
    lossy = LossyFdAdapter(inner, _FixedRng(10))
    lossy.write(_message())
    assert inner.written == []


def test_lossy_keeps_write_when_draw_at_rate():
    inner = _RecordingAdapter()
    inner.config.loss_rate_up = 10
    lossy = LossyFdAdapter(inner, _FixedRng(10))
    lossy.write(_message())
    assert inner.written == [_message()]


def test_lossy_drops_read_by_downlink_rate():
    inner = _RecordingAdapter(incoming=_message())
    inner.config.loss_rate_dn = 65535
    inner.config.loss_rate_up = 0
    lossy = LossyFdAdapter(inner, _FixedRng(0))
    assert lossy.read() is None
    lossy.write(_message())
    assert inner.written == [_message()]


def test_lossy_passthroughs():
    inner = _RecordingAdapter()
    lossy = LossyFdAdapter(inner, _FixedRng(0))
    lossy.listening = True
    lossy.tick(25)
    assert inner.listening is True
    assert inner.ticks == [25]
    assert lossy.config is inner.config
    assert lossy.fd == "fd"


def test_lossy_over_real_adapter(link):
    a, b = link
    left = LossyFdAdapter(_endpoint(a, ("10.0.0.1", 1000), ("10.0.0.2", 2000)))
    right = _endpoint(b, ("10.0.0.2", 2000), ("10.0.0.1", 1000))
    left.write(_message())
    assert right.read() == _message()