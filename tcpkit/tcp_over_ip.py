"""Carrying TCP segments inside IPv4 datagrams."""

from ipaddress import IPv4Address

from .address import Address
from .ipv4 import IPv4Datagram, IPv4Header
from .parser import parse, serialize
from .tcp_config import FdAdapterBase
from .tcp_message import TCPMessage
from .tcp_segment import TCPSegment


def _dotted(numeric):
    return str(IPv4Address(numeric & 0xFFFFFFFF))


class TCPOverIPv4Adapter(FdAdapterBase):
    """Converts between TCP messages and IPv4 datagrams for one connection."""

    def unwrap_tcp_in_ip(self, datagram):
        """The TCP message carried by ``datagram``, or None if it is invalid or unrelated.

        While listening, a SYN (without RST) to the source port fixes both
        endpoints of the connection from the datagram and ends listening.
        """
        header = datagram.header
        if not self.listening and header.dst != self.config.source.ipv4_numeric():
            return None
        if not self.listening and header.src != self.config.destination.ipv4_numeric():
            return None
        if header.proto != IPv4Header.PROTO_TCP:
            return None

        segment = TCPSegment()
        if not parse(segment, datagram.payload, header.pseudo_checksum()):
            return None

        if segment.udinfo.dst_port != self.config.source.port:
            return None

        if self.listening:
            sender = segment.message.sender
            if not (sender.syn and not sender.rst):
                return None
            self.config.source = Address(_dotted(header.dst), self.config.source.port)
            self.config.destination = Address(_dotted(header.src), segment.udinfo.src_port)
            self.listening = False

        if segment.udinfo.src_port != self.config.destination.port:
            return None

        return segment.message

    def wrap_tcp_in_ip(self, message):
        """An IPv4 datagram carrying ``message`` between the configured endpoints."""
        segment = TCPSegment(TCPMessage(message.sender, message.receiver))
        segment.udinfo.src_port = self.config.source.port
        segment.udinfo.dst_port = self.config.destination.port

        datagram = IPv4Datagram()
        header = datagram.header
        header.src = self.config.source.ipv4_numeric()
        header.dst = self.config.destination.ipv4_numeric()
        header.length = (
            header.hlen * 4 + TCPSegment.HEADER_LENGTH + len(message.sender.payload)
        ) & 0xFFFF

        segment.compute_checksum(header.pseudo_checksum())
        header.compute_checksum()
        datagram.payload = serialize(segment)
        return datagram