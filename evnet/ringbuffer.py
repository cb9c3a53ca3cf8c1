"""A growable circular byte buffer."""

from __future__ import annotations

from .bitmath import ceil_to_power_of_two, string_to_bytes
from .bytebuffer import ByteBuffer, get as get_byte_buffer

INIT_SIZE = 1 << 12


class RingBufferEmptyError(Exception):
    """Raised when reading from an empty ring buffer."""

    def __init__(self, message: str = "ring-buffer is empty") -> None:
        super().__init__(message)


class RingBuffer:
    """Circular buffer that grows on demand and shrinks when drained."""

    def __init__(self, size: int) -> None:
        self._r = 0
        self._w = 0
        self._is_empty = True
        if size == 0:
            self._buf = bytearray()
            self._size = 0
            self._mask = 0
            return
        size = ceil_to_power_of_two(size)
        self._buf = bytearray(size)
        self._size = size
        self._mask = size - 1

    def lazy_read(self, n: int) -> tuple[bytes, bytes]:
        """Peek at up to ``n`` bytes as ``(head, tail)`` without consuming."""
        if self._is_empty or n <= 0:
            return b"", b""
        r, w, size = self._r, self._w, self._size
        if w > r:
            count = min(w - r, n)
            return bytes(self._buf[r:r + count]), b""
        count = min(size - r + w, n)
        if r + count <= size:
            return bytes(self._buf[r:r + count]), b""
        head = bytes(self._buf[r:])
        return head, bytes(self._buf[:count - len(head)])

    def lazy_read_all(self) -> tuple[bytes, bytes]:
        """Peek at all readable bytes as ``(head, tail)`` without consuming."""
        if self._is_empty:
            return b"", b""
        if self._w > self._r:
            return bytes(self._buf[self._r:self._w]), b""
        head = bytes(self._buf[self._r:])
        tail = bytes(self._buf[:self._w]) if self._w else b""
        return head, tail

    def shift(self, n: int) -> None:
        """Advance the read position by ``n`` bytes."""
        if n <= 0:
            return
        if n < self.length():
            self._r = (self._r + n) & self._mask
        else:
            self.reset()

    def read(self, size: int) -> bytes:
        """Consume and return up to ``size`` bytes."""
        if size <= 0:
            return b""
        if self._is_empty:
            raise RingBufferEmptyError()
        r, w = self._r, self._w
        if w > r:
            count = min(w - r, size)
            data = bytes(self._buf[r:r + count])
            self._r += count
            if self._r == self._w:
                self.reset()
            return data
        count = min(self._size - r + w, size)
        if r + count <= self._size:
            data = bytes(self._buf[r:r + count])
        else:
            head = bytes(self._buf[r:])
            data = head + bytes(self._buf[:count - len(head)])
        self._r = (r + count) & self._mask
        if self._r == self._w:
            self.reset()
        return data

    def read_byte(self) -> int:
        """Consume and return a single byte."""
        if self._is_empty:
            raise RingBufferEmptyError()
        b = self._buf[self._r]
        self._r += 1
        if self._r == self._size:
            self._r = 0
        if self._r == self._w:
            self.reset()
        return b

    def write(self, data) -> int:
        """Append ``data``, growing as needed; return the byte count."""
        view = memoryview(data).cast("B")
        n = view.nbytes
        if n == 0:
            return 0
        free = self.free()
        if n > free:
            self._malloc(n - free)
        if self._w >= self._r:
            c1 = self._size - self._w
            if c1 >= n:
                self._buf[self._w:self._w + n] = view
                self._w += n
            else:
                self._buf[self._w:] = view[:c1]
                c2 = n - c1
                self._buf[:c2] = view[c1:]
                self._w = c2
        else:
            self._buf[self._w:self._w + n] = view
            self._w += n
        if self._w == self._size:
            self._w = 0
        self._is_empty = False
        return n

    def write_byte(self, c: int) -> None:
        """Append a single byte."""
        if self.free() < 1:
            self._malloc(1)
        self._buf[self._w] = c
        self._w += 1
        if self._w == self._size:
            self._w = 0
        self._is_empty = False

    def write_string(self, s: str) -> int:
        """Append the encoded text ``s``; return the byte count."""
        return self.write(string_to_bytes(s))

    def length(self) -> int:
        """Number of readable bytes."""
        if self._r == self._w:
            return 0 if self._is_empty else self._size
        if self._w > self._r:
            return self._w - self._r
        return self._size - self._r + self._w

    def buffer_len(self) -> int:
        """Length of the underlying storage."""
        return len(self._buf)

    def capacity(self) -> int:
        """Size of the ring."""
        return self._size

    def free(self) -> int:
        """Number of bytes that can be written without growing."""
        if self._r == self._w:
            return self._size if self._is_empty else 0
        if self._w < self._r:
            return self._r - self._w
        return self._size - self._w + self._r

    def byte_buffer(self) -> ByteBuffer | None:
        """Copy all readable bytes into a buffer, or ``None`` when empty."""
        if self._is_empty:
            return None
        bb = get_byte_buffer()
        head, tail = self._all_parts()
        bb.write(head)
        bb.write(tail)
        return bb

    def with_byte_buffer(self, data) -> ByteBuffer:
        """Copy all readable bytes followed by ``data`` into a buffer."""
        if self._is_empty:
            return ByteBuffer(data)
        bb = get_byte_buffer()
        head, tail = self._all_parts()
        bb.write(head)
        bb.write(tail)
        bb.write(data)
        return bb

    def is_full(self) -> bool:
        return self._r == self._w and not self._is_empty

    def is_empty(self) -> bool:
        return self._is_empty

    def reset(self) -> None:
        """Empty the buffer and halve its storage."""
        self._is_empty = True
        self._r = self._w = 0
        new_cap = self._size >> 1
        self._buf = bytearray(new_cap)
        self._size = new_cap
        self._mask = new_cap - 1

    def _all_parts(self) -> tuple[memoryview, memoryview]:
        view = memoryview(self._buf)
        if self._w > self._r:
            return view[self._r:self._w], view[:0]
        return view[self._r:], view[:self._w]

    def _malloc(self, extra: int) -> None:
        if self._size == 0 and extra < INIT_SIZE:
            new_cap = INIT_SIZE
        else:
            new_cap = ceil_to_power_of_two(self._size + extra)
        new_buf = bytearray(new_cap)
        old_len = self.length()
        if not self._is_empty:
            data = self.read(new_cap)
            new_buf[:len(data)] = data
        self._buf = new_buf
        self._r = 0
        self._w = old_len
        self._size = new_cap
        self._mask = new_cap - 1