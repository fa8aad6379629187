"""Network sockets built on reference-counted file descriptors."""

import socket
import struct
from contextlib import contextmanager

from .address import Address
from .errors import UnixError
from .file_descriptor import FileDescriptor

_SOL_PACKET = 263
_PACKET_ADD_MEMBERSHIP = 1
_PACKET_MR_PROMISC = 1


class Socket(FileDescriptor):
    """Base class for network sockets; normally used through a subclass.

    Built either by creating a new socket of the given domain, type and
    protocol, or from an existing descriptor (a FileDescriptor or a number),
    in which case the descriptor's domain, type and protocol must match.
    """

    def __init__(self, domain, type, protocol=0, fd=None):
        if fd is None:
            try:
                sock = socket.socket(domain, type, protocol)
            except OSError as exc:
                raise UnixError("socket", exc.errno) from exc
            super().__init__(sock.detach())
            return

        super().__init__(fd._state if isinstance(fd, FileDescriptor) else fd)
        checks = (
            (socket.SO_DOMAIN, domain, "domain"),
            (socket.SO_TYPE, type, "type"),
            (socket.SO_PROTOCOL, protocol, "protocol"),
        )
        for option, expected, what in checks:
            if self._getsockopt(socket.SOL_SOCKET, option) != expected:
                raise RuntimeError(f"socket {what} mismatch")

    @contextmanager
    def _borrowed(self):
        """A socket object over this descriptor that does not own it."""
        sock = socket.socket(fileno=self.fd_num)
        try:
            yield sock
        finally:
            sock.detach()

    def _call(self, attempt, operation):
        """Run ``operation(sock)``; None if a non-blocking call would block."""
        try:
            with self._borrowed() as sock:
                return operation(sock)
        except OSError as exc:
            self._state.check(attempt, exc)
            return None

    def _getsockopt(self, level, option):
        return self._call("getsockopt", lambda s: s.getsockopt(level, option))

    def _setsockopt(self, level, option, value):
        self._call("setsockopt", lambda s: s.setsockopt(level, option, value))

    def _get_address(self, attempt, getter):
        family, sockaddr = self._call(attempt, lambda s: (s.family, getter(s)))
        return Address.from_sockaddr(family, sockaddr)

    def bind(self, address):
        """Bind to a local Address, usually before listen/accept."""
        self._call("bind", lambda s: s.bind(address.sockaddr))

    def bind_to_device(self, device_name):
        """Bind to a named network device."""
        if isinstance(device_name, str):
            device_name = device_name.encode()
        self._setsockopt(socket.SOL_SOCKET, socket.SO_BINDTODEVICE, bytes(device_name))

    def connect(self, address):
        """Connect to a peer Address."""
        self._call("connect", lambda s: s.connect(address.sockaddr))

    def shutdown(self, how):
        """Shut down reading (SHUT_RD), writing (SHUT_WR) or both (SHUT_RDWR)."""
        self._call("shutdown", lambda s: s.shutdown(how))
        if how == socket.SHUT_RD:
            self._register_read()
        elif how == socket.SHUT_WR:
            self._register_write()
        elif how == socket.SHUT_RDWR:
            self._register_read()
            self._register_write()
        else:
            raise RuntimeError("Socket.shutdown() called with invalid `how`")

    def local_address(self):
        return self._get_address("getsockname", lambda s: s.getsockname())

    def peer_address(self):
        return self._get_address("getpeername", lambda s: s.getpeername())

    def set_reuseaddr(self):
        """Allow the local address to be reused sooner (SO_REUSEADDR)."""
        self._setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

    def throw_if_error(self):
        """Raise UnixError if the socket has a pending error."""
        socket_error = self._getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if socket_error:
            raise UnixError("socket error", socket_error)


class DatagramSocket(Socket):
    """A socket that sends and receives whole datagrams."""

    def recv(self):
        """Receive one datagram; returns (source Address, payload).

        On a non-blocking socket with nothing to read, returns (None, b"").
        A datagram larger than the read buffer raises RuntimeError.
        """
        buffer = bytearray(self.READ_BUFFER_SIZE)
        result = self._call(
            "recvfrom",
            lambda s: (s.family, *s.recvfrom_into(buffer, 0, socket.MSG_TRUNC)),
        )
        if result is None:
            self._register_read()
            return None, b""
        family, length, source = result
        if length > len(buffer):
            raise RuntimeError("recvfrom (oversized datagram)")
        self._register_read()
        return Address.from_sockaddr(family, source), bytes(buffer[:length])

    def sendto(self, destination, payload):
        """Send a datagram to ``destination``."""
        self._call("sendto", lambda s: s.sendto(bytes(payload), destination.sockaddr))
        self._register_write()

    def send(self, payload):
        """Send a datagram to the connected peer."""
        self._call("send", lambda s: s.send(bytes(payload)))
        self._register_write()


class UDPSocket(DatagramSocket):
    """An unbound, unconnected UDP socket."""

    def __init__(self):
        super().__init__(socket.AF_INET, socket.SOCK_DGRAM)


class TCPSocket(Socket):
    """A kernel TCP socket."""

    def __init__(self):
        super().__init__(socket.AF_INET, socket.SOCK_STREAM)

    @classmethod
    def _from_fd(cls, fd):
        sock = cls.__new__(cls)
        Socket.__init__(sock, socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP, fd=fd)
        return sock

    def listen(self, backlog=16):
        """Mark the socket as accepting incoming connections."""
        self._call("listen", lambda s: s.listen(backlog))

    def accept(self):
        """Accept a connection, blocking until one arrives.

        Returns a new TCPSocket, or None if the socket is non-blocking and no
        connection is waiting.
        """
        self._register_read()
        fd = self._call("accept", lambda s: s.accept()[0].detach())
        if fd is None:
            return None
        return TCPSocket._from_fd(fd)


class PacketSocket(DatagramSocket):
    """A link-layer packet socket."""

    def __init__(self, type, protocol):
        super().__init__(socket.AF_PACKET, type, protocol)

    def set_promiscuous(self):
        """Put the bound interface into promiscuous mode."""
        address = self.local_address()
        if address.family != socket.AF_PACKET:
            raise RuntimeError("address conversion failure")
        ifindex = socket.if_nametoindex(address.sockaddr[0])
        request = struct.pack("@iHH8s", ifindex, _PACKET_MR_PROMISC, 0, b"")
        self._setsockopt(_SOL_PACKET, _PACKET_ADD_MEMBERSHIP, request)


class LocalStreamSocket(Socket):
    """A Unix-domain stream socket."""

    def __init__(self, fd):
        super().__init__(socket.AF_UNIX, socket.SOCK_STREAM, fd=fd)

    @classmethod
    def pair(cls):
        """Two connected Unix-domain stream sockets."""
        try:
            first, second = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
        except OSError as exc:
            raise UnixError("socketpair", exc.errno) from exc
        return cls(first.detach()), cls(second.detach())


class LocalDatagramSocket(DatagramSocket):
    """An unbound, unconnected Unix-domain datagram socket."""

    def __init__(self):
        super().__init__(socket.AF_UNIX, socket.SOCK_DGRAM)