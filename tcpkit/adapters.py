"""Datagram adapters that carry TCP messages over a TUN device, optionally lossy."""

from .ipv4 import IPv4Datagram, IPv4Header
from .parser import parse, serialize
from .rng import get_random_engine
from .tcp_over_ip import TCPOverIPv4Adapter
from .tcp_segment import TCPSegment


class TCPOverIPv4OverTunFdAdapter(TCPOverIPv4Adapter):
    """Reads and writes TCP-in-IPv4 datagrams on a TUN device descriptor."""

    def __init__(self, tun):
        super().__init__()
        self._tun = tun

    def read(self):
        """Read one datagram; returns its TCP message, or None if invalid, unrelated or absent."""
        chunks = self._tun.read_vector([IPv4Header.LENGTH, TCPSegment.HEADER_LENGTH, 0])
        datagram = IPv4Datagram()
        if parse(datagram, chunks):
            return self.unwrap_tcp_in_ip(datagram)
        return None

    def write(self, message):
        """Wrap ``message`` in an IPv4 datagram and write it to the device."""
        self._tun.write(serialize(self.wrap_tcp_in_ip(message)))

    @property
    def fd(self):
        """The underlying device descriptor."""
        return self._tun


class LossyFdAdapter:
    """Wraps an adapter, randomly dropping reads and writes by the configured loss rates.

    Loss rates are out of 65536: a rate of 0 never drops.
    """

    def __init__(self, adapter, rng=None):
        self._adapter = adapter
        self._rng = rng if rng is not None else get_random_engine()

    def _should_drop(self, uplink):
        cfg = self._adapter.config
        loss = cfg.loss_rate_up if uplink else cfg.loss_rate_dn
        return loss != 0 and self._rng.getrandbits(16) < loss

    @property
    def fd(self):
        return self._adapter.fd

    def read(self):
        """Read from the wrapped adapter; None if nothing was read or the read was dropped."""
        message = self._adapter.read()
        if self._should_drop(False):
            return None
        return message

    def write(self, message):
        """Write through the wrapped adapter unless the write is dropped."""
        if self._should_drop(True):
            return
        self._adapter.write(message)

    @property
    def config(self):
        return self._adapter.config

    @config.setter
    def config(self, value):
        self._adapter.config = value

    @property
    def listening(self):
        return self._adapter.listening

    @listening.setter
    def listening(self, value):
        self._adapter.listening = value

    def tick(self, ms_since_last_tick):
        self._adapter.tick(ms_since_last_tick)