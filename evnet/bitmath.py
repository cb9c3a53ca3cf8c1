"""Power-of-two helpers and byte/string conversions."""

_BITSIZE = 64
_MAXINT_HEAD_BIT = 1 << (_BITSIZE - 2)


def is_power_of_two(n: int) -> bool:
    """Report whether ``n`` is a power of two (zero counts as one)."""
    return n & (n - 1) == 0


def ceil_to_power_of_two(n: int) -> int:
    """Return the least power of two that is >= ``n`` (never below 2)."""
    if n & _MAXINT_HEAD_BIT and n > _MAXINT_HEAD_BIT:
        raise ValueError("argument is too large")
    if n <= 2:
        return 2
    return 1 << (n - 1).bit_length()


def floor_to_power_of_two(n: int) -> int:
    """Return the greatest power of two that is <= ``n`` (never below 2)."""
    if n <= 2:
        return 2
    return 1 << (n.bit_length() - 1)


def bytes_to_string(b: bytes) -> str:
    """Decode bytes to text, keeping undecodable bytes recoverable."""
    return bytes(b).decode("utf-8", "surrogateescape")


def string_to_bytes(s: str) -> bytes:
    """Encode text to bytes; the inverse of :func:`bytes_to_string`."""
    return s.encode("utf-8", "surrogateescape")