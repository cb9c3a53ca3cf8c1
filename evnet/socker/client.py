"""A client that sends framed JSON requests and collects replies."""

from __future__ import annotations

import queue
import socket
import threading
from typing import Any, Callable, Optional

from ..logsetup import default_logger
from .framing import bytes_to_int
from .message import Message, RequestTimeoutError, new_message

TCP = "tcp"
UDS = "uds"
UDP = "udp"
DEFAULT_UDS_ADDR = "/tmp/us.socket"
DEFAULT_TCP_ADDR = ":20124"
INIT_API = "client.init"

_CLOSED = object()


class Callback:
    """The pending result of a request."""

    def __init__(self, err: Optional[BaseException] = None,
                 body: Optional["queue.Queue[Any]"] = None) -> None:
        self.err = err
        self.body = body

    def then(self, callback: Callable[[Any], None]) -> "Callback":
        """Wait for the next reply body and pass it to ``callback``.

        After :meth:`close` the callback receives ``None``. Nothing is
        called when the request failed to send.
        """
        if self.body is None:
            return self
        value = self.body.get()
        if value is _CLOSED:
            self.body.put(_CLOSED)
            value = None
        callback(value)
        return self

    def catch(self, callback: Callable[[Optional[BaseException]], None]) -> "Callback":
        """Pass the send error (or ``None``) to ``callback``."""
        callback(self.err)
        return self

    def close(self) -> None:
        """Stop waiting for further replies."""
        if self.body is not None:
            self.body.put(_CLOSED)


def _recv_exact(sock: socket.socket, n: int) -> Optional[bytes]:
    chunks = bytearray()
    while len(chunks) < n:
        chunk = sock.recv(n - len(chunks))
        if not chunk:
            return None
        chunks += chunk
    return bytes(chunks)


def _connect(mode: str, address: str) -> socket.socket:
    if mode in (UDS, "unix"):
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        target: Any = address
    elif mode == TCP:
        host, _, port = address.rpartition(":")
        host = host.strip("[]") or "127.0.0.1"
        sock = socket.socket(socket.AF_INET6 if ":" in host else socket.AF_INET, socket.SOCK_STREAM)
        target = (host, int(port))
    else:
        raise ValueError(f"unknown network {mode!r}")
    try:
        sock.connect(target)
    except BaseException:
        sock.close()
        raise
    return sock


class Client:
    """A connection to a socker server."""

    def __init__(self, sock: socket.socket, connect_timeout: float) -> None:
        self._sock = sock
        self.connect_timeout = connect_timeout
        self._replies: dict[str, "queue.Queue[Any]"] = {INIT_API: queue.Queue()}
        self._lock = threading.Lock()
        self._threads: list[threading.Thread] = []

    def _loop_read(self) -> None:
        log = default_logger()
        while True:
            try:
                header = _recv_exact(self._sock, 4)
                if header is None:
                    return
                data = _recv_exact(self._sock, bytes_to_int(header))
                if data is None:
                    return
            except OSError:
                return
            msg = Message()
            try:
                msg.parse(data)
            except ValueError as exc:
                log.error("%s", exc)
            with self._lock:
                target = self._replies.get(msg.api)
            if target is not None:
                target.put(msg.body)

    def send(self, api: str, context: Any) -> Callback:
        """Send a request to ``api``; replies arrive through the callback."""
        out: "queue.Queue[Any]" = queue.Queue()
        with self._lock:
            self._replies[api] = out
        try:
            self._sock.sendall(new_message(api, context).out())
        except OSError as exc:
            return Callback(err=exc)
        return Callback(body=out)

    def start(self) -> None:
        """Start reading and wait for the server's greeting.

        Raises :class:`RequestTimeoutError` when it does not come in time.
        """
        thread = threading.Thread(target=self._loop_read, daemon=True)
        self._threads.append(thread)
        thread.start()
        try:
            self._replies[INIT_API].get(timeout=self.connect_timeout)
        except queue.Empty:
            default_logger().error("connect timeout! ")
            raise RequestTimeoutError("connect timeout! ") from None
        default_logger().info("connect success! ")

    def wait(self) -> None:
        """Block until the reading thread ends."""
        for thread in self._threads:
            thread.join()

    def close(self) -> None:
        """Close the connection."""
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self._sock.close()


def new_client(mode: str, address: str, connect_timeout: float = 5.0) -> Client:
    """Connect to ``address`` over ``mode`` (``tcp`` or ``uds``)."""
    return Client(_connect(mode, address), connect_timeout)


def default_uds_client() -> Optional[Client]:
    """Connect to the default Unix socket, or return ``None`` on failure."""
    try:
        return new_client(UDS, DEFAULT_UDS_ADDR, 5.0)
    except OSError:
        return None


def default_tcp_client() -> Optional[Client]:
    """Connect to the default TCP port, or return ``None`` on failure."""
    try:
        return new_client(TCP, DEFAULT_TCP_ADDR, 5.0)
    except OSError:
        return None