"""IPv4 header and datagram (IP options are skipped, not interpreted)."""

import dataclasses
from dataclasses import dataclass, field
from ipaddress import IPv4Address
from typing import ClassVar, List

from .checksum import InternetChecksum
from .parser import Serializer


@dataclass
class IPv4Header:
    """An IPv4 datagram header."""

    LENGTH: ClassVar[int] = 20
    DEFAULT_TTL: ClassVar[int] = 128
    PROTO_TCP: ClassVar[int] = 6

    ver: int = 4
    hlen: int = LENGTH // 4
    tos: int = 0
    length: int = 0
    ident: int = 0
    df: bool = True
    mf: bool = False
    offset: int = 0
    ttl: int = DEFAULT_TTL
    proto: int = PROTO_TCP
    cksum: int = 0
    src: int = 0
    dst: int = 0

    def payload_length(self):
        return (self.length - 4 * self.hlen) & 0xFFFF

    def pseudo_checksum(self):
        """The pseudo-header's contribution to an encapsulated TCP checksum."""
        total = (self.src >> 16) + (self.src & 0xFFFF)
        total += (self.dst >> 16) + (self.dst & 0xFFFF)
        total += self.proto
        total += self.payload_length()
        return total & 0xFFFFFFFF

    def compute_checksum(self):
        """Set ``cksum`` to the correct value for the header."""
        self.cksum = 0
        serializer = Serializer()
        self.serialize(serializer)
        check = InternetChecksum()
        check.add(serializer.finish())
        self.cksum = check.value()

    def parse(self, parser):
        first = parser.integer(1)
        self.ver = first >> 4
        self.hlen = first & 0x0F
        self.tos = parser.integer(1)
        self.length = parser.integer(2)
        self.ident = parser.integer(2)
        fo_val = parser.integer(2)
        self.df = bool(fo_val & 0x4000)
        self.mf = bool(fo_val & 0x2000)
        self.offset = fo_val & 0x1FFF
        self.ttl = parser.integer(1)
        self.proto = parser.integer(1)
        self.cksum = parser.integer(2)
        self.src = parser.integer(4)
        self.dst = parser.integer(4)

        if self.ver != 4 or self.hlen < 5:
            parser.set_error()
        if parser.has_error():
            return

        parser.remove_prefix(self.hlen * 4 - self.LENGTH)

        given = self.cksum
        self.compute_checksum()
        if self.cksum != given:
            parser.set_error()

    def serialize(self, serializer):
        """Write the header as-is (the checksum is not recomputed)."""
        if self.ver != 4:
            raise RuntimeError("wrong IP version")
        serializer.integer((self.ver << 4) | (self.hlen & 0xF), 1)
        serializer.integer(self.tos, 1)
        serializer.integer(self.length, 2)
        serializer.integer(self.ident, 2)
        fo_val = (0x4000 if self.df else 0) | (0x2000 if self.mf else 0) | (self.offset & 0x1FFF)
        serializer.integer(fo_val, 2)
        serializer.integer(self.ttl, 1)
        serializer.integer(self.proto, 1)
        serializer.integer(self.cksum, 2)
        serializer.integer(self.src, 4)
        serializer.integer(self.dst, 4)

    def __str__(self):
        src = IPv4Address(self.src & 0xFFFFFFFF)
        dst = IPv4Address(self.dst & 0xFFFFFFFF)
        return (
            f"IPv{self.ver:x} len={self.length} proto={self.proto} "
            f"ttl={self.ttl} src={src} dst={dst}"
        )


@dataclass
class IPv4Datagram:
    """An IPv4 header plus its payload chunks."""

    header: IPv4Header = field(default_factory=IPv4Header)
    payload: List[bytes] = field(default_factory=list)

    def parse(self, parser):
        self.header.parse(parser)
        parser.truncate(self.header.payload_length())
        self.payload = parser.all_remaining()

    def serialize(self, serializer):
        self.header.serialize(serializer)
        serializer.buffer(self.payload)

    def clone(self):
        """An independent copy of this datagram."""
        return IPv4Datagram(dataclasses.replace(self.header), list(self.payload))


InternetDatagram = IPv4Datagram