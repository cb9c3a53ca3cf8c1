"""Length-prefix framing helpers."""

from __future__ import annotations

import struct

_INT32 = struct.Struct(">i")


def bytes_to_int(b: bytes) -> int:
    """Decode a big-endian signed 32-bit integer; short input gives 0."""
    if len(b) < 4:
        return 0
    return _INT32.unpack(bytes(b[:4]))[0]


def int_to_bytes(n: int) -> bytes:
    """Encode ``n`` truncated to 32 bits as big-endian bytes."""
    n &= 0xFFFFFFFF
    if n >= 0x80000000:
        n -= 0x100000000
    return _INT32.pack(n)


def merge_bytes(first: bytes, *args: bytes) -> bytes:
    """Concatenate byte strings."""
    return b"".join((bytes(first), *map(bytes, args)))