"""A growable byte buffer with a small reuse pool."""

from __future__ import annotations

import threading


class ByteBuffer:
    """An append-only byte buffer."""

    __slots__ = ("_data",)

    def __init__(self, data: bytes = b"") -> None:
        self._data = bytearray(data)

    def write(self, data) -> int:
        """Append ``data`` and return the number of bytes written."""
        view = memoryview(data)
        self._data += view
        return view.nbytes

    def bytes(self) -> bytes:
        """Return the accumulated contents."""
        return bytes(self._data)

    def reset(self) -> None:
        """Drop the contents."""
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"ByteBuffer({bytes(self._data)!r})"


_pool: list[ByteBuffer] = []
_pool_lock = threading.Lock()


def get() -> ByteBuffer:
    """Return an empty buffer, reusing a pooled one when available."""
    with _pool_lock:
        if _pool:
            return _pool.pop()
    return ByteBuffer()


def put(buffer: ByteBuffer | None) -> None:
    """Return ``buffer`` to the pool; ``None`` is ignored."""
    if buffer is None:
        return
    buffer.reset()
    with _pool_lock:
        _pool.append(buffer)