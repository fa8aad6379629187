"""The messages exchanged between TCP endpoints.

Sequence and acknowledgment numbers are raw 32-bit values as carried on the wire.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class TCPSenderMessage:
    """What a TCP sender tells the peer's receiver.

    ``seqno`` is the sequence number of the SYN flag if ``syn`` is set,
    otherwise of the first payload byte.
    """

    seqno: int = 0
    syn: bool = False
    payload: bytes = b""
    fin: bool = False
    rst: bool = False

    def sequence_length(self):
        """How many sequence numbers this message occupies."""
        return int(self.syn) + len(self.payload) + int(self.fin)


@dataclass
class TCPReceiverMessage:
    """What a TCP receiver tells the peer's sender.

    ``ackno`` is None until the receiver has seen the initial sequence number;
    ``window_size`` is at most 65535.
    """

    ackno: Optional[int] = None
    window_size: int = 0
    rst: bool = False


@dataclass
class UserDatagramInfo:
    """The UDP-like part of a TCP header: ports and checksum."""

    src_port: int = 0
    dst_port: int = 0
    cksum: int = 0


@dataclass
class TCPMessage:
    """A full message between TCP endpoints, without ports or checksum."""

    sender: TCPSenderMessage = field(default_factory=TCPSenderMessage)
    receiver: TCPReceiverMessage = field(default_factory=TCPReceiverMessage)