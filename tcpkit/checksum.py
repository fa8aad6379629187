"""The Internet (one's complement) checksum."""

_BYTES_LIKE = (bytes, bytearray, memoryview)


class InternetChecksum:
    """Accumulates bytes and yields the 16-bit Internet checksum."""

    def __init__(self, initial=0):
        self._sum = initial & 0xFFFFFFFF
        self._parity = False

    def add(self, data):
        """Add a bytes-like object, or an iterable of them, to the running sum."""
        if not isinstance(data, _BYTES_LIKE):
            for chunk in data:
                self.add(chunk)
            return
        total = self._sum
        parity = self._parity
        for byte in bytes(data):
            total += byte if parity else byte << 8
            parity = not parity
        self._sum = total & 0xFFFFFFFF
        self._parity = parity

    def value(self):
        """The folded, complemented 16-bit checksum."""
        ret = self._sum
        while ret > 0xFFFF:
            ret = (ret >> 16) + (ret & 0xFFFF)
        return ~ret & 0xFFFF