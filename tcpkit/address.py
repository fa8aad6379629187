"""IPv4 and IPv6 socket addresses, with name resolution."""

import socket

from .errors import TaggedError

_INTERNET_FAMILIES = (socket.AF_INET, socket.AF_INET6)


def _getaddrinfo(node, service, flags):
    try:
        results = socket.getaddrinfo(node, service, socket.AF_INET, 0, 0, flags)
    except socket.gaierror as exc:
        raise TaggedError(f"getaddrinfo({node}, {service})", exc.errno, exc.strerror) from exc
    if not results:
        raise RuntimeError("getaddrinfo returned successfully but with no results")
    family, _type, _proto, _canonname, sockaddr = results[0]
    return family, tuple(sockaddr)


class Address:
    """A socket address: an Internet (IP and port) or any other family."""

    __slots__ = ("family", "sockaddr")

    def __init__(self, ip, port=0):
        """Build from a numeric IPv4 address string ("18.243.0.1") and a port; nothing is looked up."""
        self.family, self.sockaddr = _getaddrinfo(
            ip, str(port), socket.AI_NUMERICHOST | socket.AI_NUMERICSERV
        )

    @classmethod
    def resolve(cls, hostname, service):
        """Resolve a host name and a service name or number to an IPv4 address."""
        family, sockaddr = _getaddrinfo(hostname, service, socket.AI_ALL)
        return cls.from_sockaddr(family, sockaddr)

    @classmethod
    def from_sockaddr(cls, family, sockaddr):
        """Wrap an address in the form the socket module uses for ``family``."""
        address = cls.__new__(cls)
        address.family = family
        address.sockaddr = tuple(sockaddr) if isinstance(sockaddr, list) else sockaddr
        return address

    @classmethod
    def from_ipv4_numeric(cls, ip_address):
        """An IPv4 address (port 0) from its 32-bit value in host byte order."""
        ip = socket.inet_ntoa((ip_address & 0xFFFFFFFF).to_bytes(4, "big"))
        return cls.from_sockaddr(socket.AF_INET, (ip, 0))

    def ip_port(self):
        """The numeric IP address string and the port."""
        if self.family not in _INTERNET_FAMILIES:
            raise RuntimeError("Address.ip_port() called on non-Internet address")
        try:
            host, service = socket.getnameinfo(
                self.sockaddr, socket.NI_NUMERICHOST | socket.NI_NUMERICSERV
            )
        except socket.gaierror as exc:
            raise TaggedError("getnameinfo", exc.errno, exc.strerror) from exc
        return host, int(service)

    @property
    def ip(self):
        return self.ip_port()[0]

    @property
    def port(self):
        return self.ip_port()[1]

    def ipv4_numeric(self):
        """The IPv4 address as a 32-bit integer in host byte order."""
        if self.family != socket.AF_INET:
            raise RuntimeError("ipv4_numeric called on non-IPV4 address")
        return int.from_bytes(socket.inet_aton(self.sockaddr[0]), "big")

    def __eq__(self, other):
        if not isinstance(other, Address):
            return NotImplemented
        return self.family == other.family and self.sockaddr == other.sockaddr

    def __hash__(self):
        return hash((self.family, self.sockaddr))

    def __str__(self):
        if self.family in _INTERNET_FAMILIES:
            ip, port = self.ip_port()
            return f"{ip}:{port}"
        return "(non-Internet address)"

    def __repr__(self):
        return f"Address({self.family!r}, {self.sockaddr!r})"