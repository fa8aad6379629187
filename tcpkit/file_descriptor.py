"""Reference-counted handles to kernel file descriptors."""

import errno
import os
import sys

from .errors import UnixError

_WOULD_BLOCK = (errno.EAGAIN, errno.EINPROGRESS)


class _FDState:
    """The shared state behind every handle to one descriptor; closes it when dropped."""

    def __init__(self, fd):
        if fd < 0:
            raise RuntimeError(f"invalid fd number:{fd}")
        try:
            blocking = os.get_blocking(fd)
        except OSError as exc:
            raise UnixError("fcntl", exc.errno) from exc
        self.fd = fd
        self.eof = False
        self.closed = False
        self.non_blocking = not blocking
        self.read_count = 0
        self.write_count = 0

    def check(self, attempt, exc):
        """Swallow a would-block error on a non-blocking fd, otherwise raise UnixError."""
        if self.non_blocking and exc.errno in _WOULD_BLOCK:
            return
        raise UnixError(attempt, exc.errno) from exc

    def close(self):
        try:
            os.close(self.fd)
        except OSError as exc:
            raise UnixError("close", exc.errno) from exc
        self.eof = self.closed = True

    def __del__(self):
        if getattr(self, "closed", True):
            return
        try:
            self.close()
        except Exception as exc:  # never raise from a finaliser
            sys.stderr.write(f"Exception destructing FDWrapper: {exc}\n")


class FileDescriptor:
    """A handle to a file descriptor; duplicates share state and the last one closes it."""

    READ_BUFFER_SIZE = 16384

    def __init__(self, fd):
        self._state = fd if isinstance(fd, _FDState) else _FDState(fd)

    def _register_read(self):
        self._state.read_count += 1

    def _register_write(self):
        self._state.write_count += 1

    def _set_eof(self):
        self._state.eof = True

    def read(self, size=None):
        """Read up to ``size`` bytes (default 16384); b"" when a non-blocking read would block."""
        if not size:
            size = self.READ_BUFFER_SIZE
        try:
            data = os.read(self.fd_num, size)
        except OSError as exc:
            self._state.check("read", exc)
            return b""
        self._register_read()
        if not data:
            self._state.eof = True
        return data

    def read_vector(self, sizes):
        """Scatter-read into buffers of the given sizes; the last buffer is made 16384 bytes.

        Returns the filled buffers, each cut to what it received, or [] if a
        non-blocking read would block.
        """
        sizes = list(sizes)
        if not sizes:
            return []
        sizes[-1] = self.READ_BUFFER_SIZE
        buffers = [bytearray(size) for size in sizes]
        try:
            count = os.readv(self.fd_num, buffers)
        except OSError as exc:
            self._state.check("read", exc)
            return []
        self._register_read()
        if count > sum(sizes):
            raise RuntimeError("read() read more than requested")
        result = []
        remaining = count
        for buf in buffers:
            take = min(remaining, len(buf))
            result.append(bytes(buf[:take]))
            remaining -= take
        return result

    def write(self, data):
        """Write a bytes-like object or an iterable of them; returns the number of bytes written."""
        if isinstance(data, (bytes, bytearray, memoryview)):
            chunks = [bytes(data)]
        else:
            chunks = [bytes(chunk) for chunk in data]
        total = sum(len(chunk) for chunk in chunks)
        try:
            written = os.writev(self.fd_num, chunks)
        except OSError as exc:
            self._state.check("writev", exc)
            written = 0
        self._register_write()
        if written == 0 and total != 0:
            raise RuntimeError("write returned 0 given non-empty input buffer")
        if written > total:
            raise RuntimeError("write wrote more than length of input buffer")
        return written

    def close(self):
        self._state.close()

    def duplicate(self):
        """Another handle sharing this descriptor and its state."""
        return FileDescriptor(self._state)

    def set_blocking(self, blocking):
        try:
            os.set_blocking(self.fd_num, blocking)
        except OSError as exc:
            raise UnixError("fcntl", exc.errno) from exc
        self._state.non_blocking = not blocking

    @property
    def fd_num(self):
        return self._state.fd

    @property
    def eof(self):
        return self._state.eof

    @property
    def closed(self):
        return self._state.closed

    @property
    def read_count(self):
        return self._state.read_count

    @property
    def write_count(self):
        return self._state.write_count

    def __enter__(self):
        return self

    def __exit__(self, *args):
        if not self.closed:
            self.close()
        return False