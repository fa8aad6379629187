"""Configuration for TCP peers and datagram adapters."""

from dataclasses import dataclass, field
from typing import ClassVar

from .address import Address


@dataclass
class TCPConfig:
    """Settings for a TCP sender and receiver; ``isn`` is a raw 32-bit sequence number."""

    DEFAULT_CAPACITY: ClassVar[int] = 64000
    MAX_PAYLOAD_SIZE: ClassVar[int] = 1000
    TIMEOUT_DFLT: ClassVar[int] = 1000
    MAX_RETX_ATTEMPTS: ClassVar[int] = 8

    rt_timeout: int = TIMEOUT_DFLT
    recv_capacity: int = DEFAULT_CAPACITY
    send_capacity: int = DEFAULT_CAPACITY
    isn: int = 137


def _any_address():
    return Address("0", 0)


@dataclass
class FdAdapterConfig:
    """Addresses and loss rates for a datagram adapter."""

    source: Address = field(default_factory=_any_address)
    destination: Address = field(default_factory=_any_address)
    loss_rate_dn: int = 0
    loss_rate_up: int = 0


class FdAdapterBase:
    """State shared by datagram adapters: a configuration and a listening flag."""

    def __init__(self):
        self.config = FdAdapterConfig()
        self.listening = False
        self.elapsed_ms = 0

    def tick(self, ms_since_last_tick):
        """Called periodically as time passes; records the total time elapsed."""
        self.elapsed_ms += ms_since_last_tick