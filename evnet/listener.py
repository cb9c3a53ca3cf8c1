"""Listening endpoints for stream, datagram and Unix domain sockets."""

from __future__ import annotations

import os
import socket
import threading
from typing import Optional, Union

from .logsetup import default_logger
from .reuseport import UnsupportedProtocolError, tcp_socket, udp_socket, unix_socket
from .sockaddr import TCPAddr, UDPAddr, UnixAddr

Address = Union[TCPAddr, UDPAddr, UnixAddr]


def dup(fd: int) -> int:
    """Duplicate ``fd``; the copy is not inherited by child processes."""
    new_fd = os.dup(fd)
    os.set_inheritable(new_fd, False)
    return new_fd


class Listener:
    """A bound socket that accepts connections or datagrams."""

    def __init__(self, network: str, addr: str, reuse_port: bool = False) -> None:
        self.network = network
        self.addr = addr
        self.reuse_port = reuse_port
        self.sock: Optional[socket.socket] = None
        self.lnaddr: Optional[Address] = None
        self._closed = False
        self._close_lock = threading.Lock()

    def _normalize(self) -> None:
        if self.network in ("tcp", "tcp4", "tcp6"):
            self.sock, self.lnaddr = tcp_socket(self.network, self.addr, self.reuse_port)
            self.network = "tcp"
        elif self.network in ("udp", "udp4", "udp6"):
            self.sock, self.lnaddr = udp_socket(self.network, self.addr, self.reuse_port)
            self.network = "udp"
        elif self.network == "unix":
            _remove_path(self.addr)
            self.sock, self.lnaddr = unix_socket(self.network, self.addr, self.reuse_port)
        else:
            raise UnsupportedProtocolError()

    @property
    def fd(self) -> int:
        """The descriptor of the listening socket, or -1 when there is none."""
        return self.sock.fileno() if self.sock is not None else -1

    def dup(self) -> int:
        """Return a duplicate of the listening descriptor."""
        return dup(self.fd)

    def close(self) -> None:
        """Close the socket and remove a Unix socket file; later calls do nothing."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        log = default_logger()
        if self.sock is not None:
            try:
                self.sock.close()
            except OSError as exc:
                log.error("close: %s", exc)
        if self.network == "unix":
            try:
                _remove_path(self.addr)
            except OSError as exc:
                log.error("remove: %s", exc)

    def __enter__(self) -> "Listener":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _remove_path(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


def init_listener(network: str, addr: str, reuse_port: bool = False) -> Listener:
    """Create a listener for ``network`` bound to ``addr``."""
    listener = Listener(network, addr, reuse_port)
    listener._normalize()
    return listener