"""IPv4 and TCP wire formats, checksums, sockets, TUN devices and an event loop for user-space TCP."""

__version__ = "0.1.0"