"""A request/reply server over length-prefixed JSON frames."""

from __future__ import annotations

import platform
import queue
import socket
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterator, Optional

from ..listener import Listener, init_listener
from ..logsetup import default_logger
from .client import DEFAULT_TCP_ADDR, DEFAULT_UDS_ADDR, TCP, UDS, _recv_exact
from .framing import bytes_to_int
from .message import Action, Message, Reply, new_message
from .router import Router

DEFAULT_POOL_SIZE = 1 << 18
EXPIRY_DURATION = 10.0
VERSION = "0.0.6"


@dataclass
class Out:
    """A framed reply and what to do after sending it."""

    body: bytes
    action: Action = Action.NONE
    is_async: bool = False


class Server:
    """Dispatches requests to registered handlers and sends their replies."""

    def __init__(self, mode: str, addr: str, multicore: bool, pool_size: int, timeout: float) -> None:
        self.mode = mode
        self.addr = addr
        self.multicore = multicore
        self.timeout = timeout
        self._router = Router()
        self._pool = ThreadPoolExecutor(max_workers=max(1, pool_size))
        self._listener: Optional[Listener] = None
        self._ready = threading.Event()
        self._stopping = threading.Event()
        self._count_lock = threading.Lock()
        self.connected = 0
        self.disconnected = 0

    def router(self) -> Router:
        """Return the handler registry."""
        return self._router

    @property
    def address(self):
        """The bound address once :meth:`run` has started listening."""
        return self._listener.lnaddr if self._listener else None

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Wait until the server listens; report whether it does."""
        return self._ready.wait(timeout)

    def welcome_frame(self) -> bytes:
        """Return the greeting sent to every new connection."""
        return new_message("client.init", "hello world").out()

    def react(self, frame: bytes) -> Iterator[Out]:
        """Handle one frame (length prefix included), yielding the replies."""
        log = default_logger()
        msg = Message()
        try:
            msg.parse(frame[4:])
        except ValueError:
            msg.reset(False, {"code": 400, "msg": "message decode err! "})
            yield Out(msg.out())
            return
        log.debug("receive message - length: %d, body: %s", msg.body_length, msg.body_stringify())
        replies: "queue.Queue[Reply]" = queue.Queue()
        handler = self._router.get(msg.api)
        if handler is not None:
            data = msg.to_data()
            self._pool.submit(handler, data, replies)
        while True:
            try:
                reply = replies.get(timeout=self.timeout)
            except queue.Empty:
                msg.reset(False, {"code": 500, "msg": "process message timeout! "})
                yield Out(msg.out())
                return
            msg.reset(reply.is_async, reply.body)
            log.debug("reply   message - length: %d, body: %s", msg.body_length, msg.body_stringify())
            yield Out(msg.out(), Action(reply.status), msg.is_async)
            if reply.status != Action.CONTINUE:
                return

    def _serve_conn(self, conn: socket.socket) -> None:
        with self._count_lock:
            self.connected += 1
        try:
            conn.sendall(self.welcome_frame())
            while not self._stopping.is_set():
                header = _recv_exact(conn, 4)
                if header is None:
                    break
                body = _recv_exact(conn, bytes_to_int(header))
                if body is None:
                    break
                action = Action.NONE
                for out in self.react(header + body):
                    conn.sendall(out.body)
                    if out.action in (Action.CLOSE, Action.SHUTDOWN):
                        action = out.action
                if action == Action.SHUTDOWN:
                    self.shutdown()
                if action != Action.NONE and action in (Action.CLOSE, Action.SHUTDOWN):
                    break
        except OSError:
            pass
        finally:
            conn.close()
            with self._count_lock:
                self.disconnected += 1

    def run(self) -> None:
        """Listen and serve connections until :meth:`shutdown` is called."""
        print(f"socker v{VERSION} {platform.system().lower()}/{platform.machine().lower()}")
        network = "unix" if self.mode == UDS else self.mode
        self._listener = init_listener(network, self.addr, False)
        sock = self._listener.sock
        sock.setblocking(True)
        sock.settimeout(0.2)
        default_logger().info("server is listening on %s (multi-cores: %s)", self.address, self.multicore)
        self._ready.set()
        try:
            while not self._stopping.is_set():
                try:
                    conn, _ = sock.accept()
                except socket.timeout:
                    continue
                except OSError:
                    break
                conn.setblocking(True)
                threading.Thread(target=self._serve_conn, args=(conn,), daemon=True).start()
        finally:
            self._listener.close()

    def shutdown(self) -> None:
        """Stop accepting connections."""
        self._stopping.set()


def new_server(mode: str, addr: str, multicore: bool = True,
               pool_size: int = DEFAULT_POOL_SIZE, timeout: float = EXPIRY_DURATION) -> Server:
    """Create a server for ``mode`` (``tcp`` or ``uds``) at ``addr``."""
    return Server(mode, addr, multicore, pool_size, timeout)


def default_uds_server() -> Server:
    """Create a server on the default Unix socket path."""
    return new_server(UDS, DEFAULT_UDS_ADDR, True, DEFAULT_POOL_SIZE, EXPIRY_DURATION)


def default_tcp_server() -> Server:
    """Create a server on the default TCP port."""
    return new_server(TCP, DEFAULT_TCP_ADDR, True, DEFAULT_POOL_SIZE, EXPIRY_DURATION)