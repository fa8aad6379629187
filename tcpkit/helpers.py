"""Small utilities for byte strings."""


def pretty_print(data, max_length=32):
    """Escape unprintable bytes and double quotes, truncating long output with '...'."""
    if isinstance(data, str):
        data = data.encode()
    out = []
    size = 0
    truncated = False
    for byte in bytes(data):
        if size >= max_length:
            truncated = True
            break
        if 0x20 <= byte < 0x7F and byte != ord('"'):
            piece = chr(byte)
        else:
            piece = f"\\x{byte:02x}"
        out.append(piece)
        size += len(piece)
    ret = "".join(out)
    if truncated:
        ret = ret[:-3] + "..." if len(ret) >= 3 else ret + "..."
    return ret


def concat(chunks):
    """Join a sequence of byte chunks into one bytes object."""
    return b"".join(bytes(chunk) for chunk in chunks)