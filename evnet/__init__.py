"""Networking building blocks: buffers, task queue, listeners and a framed JSON server and client."""

__version__ = "0.1.0"

__all__ = [
    "bitmath",
    "bytebuffer",
    "ringbuffer",
    "ringbuffer_pool",
    "taskqueue",
    "logsetup",
    "sockaddr",
    "reuseport",
    "listener",
    "socker",
]