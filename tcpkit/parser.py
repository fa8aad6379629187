"""Big-endian parsing and serialisation over lists of byte chunks."""

from collections import deque

_BYTES_LIKE = (bytes, bytearray, memoryview)


class _BufferList:
    """A queue of byte chunks with a read position in the first chunk."""

    def __init__(self, buffers):
        if isinstance(buffers, _BYTES_LIKE):
            buffers = [buffers]
        self._chunks = deque(chunk for chunk in map(bytes, buffers) if chunk)
        self._skip = 0
        self._size = sum(len(chunk) for chunk in self._chunks)

    def __len__(self):
        return self._size

    def peek(self):
        if not self._chunks:
            raise RuntimeError("peek on empty BufferList")
        return self._chunks[0][self._skip:]

    def remove_prefix(self, length):
        while length and self._chunks:
            now = min(length, len(self._chunks[0]) - self._skip)
            self._skip += now
            self._size -= now
            length -= now
            if self._skip == len(self._chunks[0]):
                self._chunks.popleft()
                self._skip = 0

    def take(self, length):
        parts = []
        while length:
            view = self.peek()[:length]
            parts.append(view)
            self.remove_prefix(len(view))
            length -= len(view)
        return b"".join(parts)

    def truncate(self, length):
        if self._size <= length:
            return
        if length == 0:
            self._chunks.clear()
            self._skip = 0
            self._size = 0
            return
        if self._skip:
            self._chunks[0] = self._chunks[0][self._skip:]
            self._skip = 0
        kept = deque()
        remaining = length
        for chunk in self._chunks:
            if len(chunk) >= remaining:
                kept.append(chunk[:remaining])
                break
            kept.append(chunk)
            remaining -= len(chunk)
        self._chunks = kept
        self._size = length

    def views(self):
        skip = self._skip
        result = []
        for chunk in self._chunks:
            result.append(chunk[skip:])
            skip = 0
        return result

    def dump_all(self):
        result = self.views()
        self._chunks.clear()
        self._skip = 0
        self._size = 0
        return result


class Parser:
    """Reads big-endian fields from a sequence of byte chunks.

    Reading past the end sets a sticky error flag instead of raising.
    """

    def __init__(self, buffers):
        self._input = _BufferList(buffers)
        self._error = False

    def _check_size(self, size):
        if size > len(self._input):
            self._error = True

    def has_error(self):
        return self._error

    def set_error(self):
        self._error = True

    def remove_prefix(self, n):
        self._input.remove_prefix(n)

    def truncate(self, length):
        """Drop everything after the first ``length`` remaining bytes."""
        self._input.truncate(length)

    def all_remaining(self):
        """Consume and return the remaining chunks."""
        return self._input.dump_all()

    def buffer(self):
        """The remaining chunks, without consuming them."""
        return self._input.views()

    def read_bytes(self, size):
        """Read exactly ``size`` bytes; on error returns zero bytes of that length."""
        self._check_size(size)
        if self._error:
            return bytes(size)
        return self._input.take(size)

    def concatenate_all_remaining(self):
        return b"".join(self.all_remaining())

    def integer(self, size):
        """Read an unsigned big-endian integer of ``size`` bytes; 0 on error."""
        self._check_size(size)
        if self._error:
            return 0
        return int.from_bytes(self._input.take(size), "big")


class Serializer:
    """Builds a list of byte chunks from integers and buffers."""

    def __init__(self):
        self._output = []
        self._pending = bytearray()

    def _flush(self):
        if self._pending:
            self._output.append(bytes(self._pending))
            self._pending = bytearray()

    def integer(self, value, size):
        """Append ``value`` as a big-endian unsigned integer of ``size`` bytes."""
        self._pending += (value & ((1 << (8 * size)) - 1)).to_bytes(size, "big")

    def buffer(self, data):
        """Append a bytes-like object, or each of an iterable of them, as its own chunk."""
        if not isinstance(data, _BYTES_LIKE):
            for chunk in data:
                self.buffer(chunk)
            return
        if data:
            self._flush()
            self._output.append(bytes(data))

    def finish(self):
        self._flush()
        output, self._output = self._output, []
        return output


def serialize(obj):
    """Serialise any object with a ``serialize(serializer)`` method into chunks."""
    serializer = Serializer()
    obj.serialize(serializer)
    return serializer.finish()


def parse(obj, buffers, *args):
    """Parse ``buffers`` into ``obj``; returns True if parsing succeeded."""
    parser = Parser(buffers)
    obj.parse(parser, *args)
    return not parser.has_error()