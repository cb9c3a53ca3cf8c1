"""A self-calibrating pool of ring buffers."""

from __future__ import annotations

import threading

from .ringbuffer import RingBuffer

MIN_BIT_SIZE = 6
STEPS = 20
MIN_SIZE = 1 << MIN_BIT_SIZE
CALIBRATE_CALLS_THRESHOLD = 42000
MAX_PERCENTILE = 0.95


def size_index(n: int) -> int:
    """Return the size-class index of a buffer of length ``n``."""
    n = (n - 1) >> MIN_BIT_SIZE
    idx = n.bit_length() if n > 0 else 0
    return min(idx, STEPS - 1)


class RingBufferPool:
    """Pool of ring buffers that learns the most common buffer size.

    Every ``put`` records the size class of the returned buffer. Once a size
    class has been seen more than ``calibrate_threshold`` times, the pool
    recomputes the size of freshly created buffers and the largest size it
    keeps.
    """

    def __init__(self, calibrate_threshold: int = CALIBRATE_CALLS_THRESHOLD) -> None:
        self._threshold = calibrate_threshold
        self._calls = [0] * STEPS
        self._default_size = 0
        self._max_size = 0
        self._buffers: list[RingBuffer] = []
        self._lock = threading.Lock()
        self._calibrating = threading.Lock()

    @property
    def default_size(self) -> int:
        """Capacity requested for buffers created by :meth:`get`."""
        return self._default_size

    @property
    def max_size(self) -> int:
        """Largest capacity kept by :meth:`put`; zero means no limit."""
        return self._max_size

    def get(self) -> RingBuffer:
        """Return a pooled buffer, or a new one of the default size."""
        with self._lock:
            if self._buffers:
                return self._buffers.pop()
        return RingBuffer(self._default_size)

    def put(self, buffer: RingBuffer) -> None:
        """Hand ``buffer`` back to the pool; it must not be used afterwards."""
        idx = size_index(buffer.buffer_len())
        with self._lock:
            self._calls[idx] += 1
            over = self._calls[idx] > self._threshold
        if over:
            self._calibrate()

        max_size = self._max_size
        if max_size == 0 or buffer.capacity() <= max_size:
            buffer.reset()
            with self._lock:
                self._buffers.append(buffer)

    def _calibrate(self) -> None:
        if not self._calibrating.acquire(blocking=False):
            return
        try:
            with self._lock:
                counts = [(calls, MIN_SIZE << i) for i, calls in enumerate(self._calls)]
                self._calls = [0] * STEPS
            calls_sum = sum(calls for calls, _ in counts)
            counts.sort(key=lambda item: item[0], reverse=True)

            default_size = counts[0][1]
            max_size = default_size
            max_sum = int(calls_sum * MAX_PERCENTILE)
            running = 0
            for calls, size in counts:
                if running > max_sum:
                    break
                running += calls
                max_size = max(max_size, size)

            self._default_size = default_size
            self._max_size = max_size
        finally:
            self._calibrating.release()


_default_pool = RingBufferPool()


def get() -> RingBuffer:
    """Return a ring buffer from the shared pool."""
    return _default_pool.get()


def put(buffer: RingBuffer) -> None:
    """Return a ring buffer to the shared pool."""
    _default_pool.put(buffer)