"""Non-blocking listening sockets, optionally with SO_REUSEPORT set."""

from __future__ import annotations

import ipaddress
import socket
from typing import Optional, Union

from .sockaddr import (
    TCPAddr,
    UDPAddr,
    UnixAddr,
    sockaddr_to_tcp_or_unix_addr,
    sockaddr_to_udp_addr,
)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

SOMAXCONN_PATH = "/proc/sys/net/core/somaxconn"
_MAX_BACKLOG = (1 << 16) - 1


class UnsupportedProtocolError(Exception):
    """Raised when a network protocol is not supported."""

    def __init__(self, message: str = "only unix, tcp/tcp4/tcp6, udp/udp4/udp6 are supported") -> None:
        super().__init__(message)


def max_listener_backlog(path: str = SOMAXCONN_PATH) -> int:
    """Return the system's maximum listen backlog, read from ``path``.

    Falls back to ``socket.SOMAXCONN`` when the value cannot be read;
    the result is capped at 65535.
    """
    try:
        with open(path, encoding="ascii", errors="replace") as f:
            line = f.readline()
    except OSError:
        return socket.SOMAXCONN
    if not line.endswith("\n"):
        return socket.SOMAXCONN
    fields = line.split()
    if not fields:
        return socket.SOMAXCONN
    try:
        n = int(fields[0])
    except ValueError:
        return socket.SOMAXCONN
    if n == 0:
        return socket.SOMAXCONN
    return min(n, _MAX_BACKLOG)


_listener_backlog_max_size = max_listener_backlog()


def _as_ip(host) -> Optional[IPAddress]:
    if host is None or isinstance(host, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return host
    return ipaddress.ip_address(host)


def _is_v4(ip: IPAddress) -> bool:
    return isinstance(ip, ipaddress.IPv4Address) or ip.ipv4_mapped is not None


def _determine(kind: str, proto: str, host) -> str:
    ip = _as_ip(host)
    if ip is not None:
        return kind + ("4" if _is_v4(ip) else "6")
    if proto in (kind, kind + "4", kind + "6"):
        return proto
    raise UnsupportedProtocolError(f"only {kind}/{kind}4/{kind}6 are supported")


def determine_tcp_proto(proto: str, host) -> str:
    """Choose ``tcp4`` or ``tcp6`` from the address, else keep ``proto``."""
    return _determine("tcp", proto, host)


def determine_udp_proto(proto: str, host) -> str:
    """Choose ``udp4`` or ``udp6`` from the address, else keep ``proto``."""
    return _determine("udp", proto, host)


def _split_host_port(addr: str) -> tuple[str, str]:
    if addr.startswith("["):
        end = addr.find("]")
        if end < 0:
            raise ValueError(f"missing ']' in address {addr!r}")
        host, rest = addr[1:end], addr[end + 1:]
        if not rest.startswith(":"):
            raise ValueError(f"missing port in address {addr!r}")
        return host, rest[1:]
    i = addr.rfind(":")
    if i < 0:
        raise ValueError(f"missing port in address {addr!r}")
    host = addr[:i]
    if ":" in host:
        raise ValueError(f"too many colons in address {addr!r}")
    return host, addr[i + 1:]


def _parse_port(port: str, kind: str) -> int:
    if not port:
        return 0
    if port.isdigit():
        value = int(port)
        if value > 65535:
            raise ValueError(f"invalid port {port!r}")
        return value
    return socket.getservbyname(port, kind)


def _resolve(kind: str, proto: str, addr: str, sock_type: int) -> tuple[Optional[IPAddress], int, str]:
    if proto not in (kind, kind + "4", kind + "6"):
        raise UnsupportedProtocolError(f"unknown network {proto!r}")
    host, port_text = _split_host_port(addr)
    port = _parse_port(port_text, kind)
    if not host:
        return None, port, ""

    literal, _, zone = host.partition("%")
    try:
        ip: Optional[IPAddress] = ipaddress.ip_address(literal)
    except ValueError:
        ip = None
    if ip is not None:
        if proto.endswith("4") and not _is_v4(ip):
            raise OSError(f"no suitable address found for {addr!r}")
        if proto.endswith("6") and isinstance(ip, ipaddress.IPv4Address):
            raise OSError(f"no suitable address found for {addr!r}")
        return ip, port, zone if isinstance(ip, ipaddress.IPv6Address) else ""

    family = {"4": socket.AF_INET, "6": socket.AF_INET6}.get(proto[-1], socket.AF_UNSPEC)
    infos = socket.getaddrinfo(host, None, family, sock_type)
    candidates = [ipaddress.ip_address(str(info[4][0]).partition("%")[0]) for info in infos]
    if not candidates:
        raise OSError(f"no suitable address found for {addr!r}")
    v4 = [c for c in candidates if isinstance(c, ipaddress.IPv4Address)]
    return (v4[0] if v4 else candidates[0]), port, ""


def _sockaddr(kind: str, proto: str, addr: str, sock_type: int) -> tuple[int, tuple]:
    ip, port, zone = _resolve(kind, proto, addr, sock_type)
    version = _determine(kind, proto, ip)
    if version == kind:
        return socket.AF_INET, ("0.0.0.0", port)
    if version == kind + "4":
        if ip is None:
            host = "0.0.0.0"
        elif isinstance(ip, ipaddress.IPv6Address):
            host = str(ip.ipv4_mapped)
        else:
            host = str(ip)
        return socket.AF_INET, (host, port)
    if version == kind + "6":
        scope_id = socket.if_nametoindex(zone) if zone else 0
        host = "::" if ip is None else str(ip)
        return socket.AF_INET6, (host, port, 0, scope_id)
    raise UnsupportedProtocolError()


def _sys_socket(family: int, sock_type: int, proto: int = 0) -> socket.socket:
    sock = socket.socket(family, sock_type, proto)
    sock.setblocking(False)
    return sock


def _set_reuse_port(sock: socket.socket) -> None:
    option = getattr(socket, "SO_REUSEPORT", None)
    if option is None:
        raise OSError("SO_REUSEPORT is not supported on this platform")
    sock.setsockopt(socket.SOL_SOCKET, option, 1)


def tcp_socket(proto: str, addr: str, reuse_port: bool) -> tuple[socket.socket, TCPAddr]:
    """Create a non-blocking listening TCP socket bound to ``addr``.

    Returns the socket and the address it is bound to.
    """
    family, sockaddr = _sockaddr("tcp", proto, addr, socket.SOCK_STREAM)
    sock = _sys_socket(family, socket.SOCK_STREAM, socket.IPPROTO_TCP)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if reuse_port:
            _set_reuse_port(sock)
        sock.bind(sockaddr)
        sock.listen(_listener_backlog_max_size)
        bound = sockaddr_to_tcp_or_unix_addr(family, sock.getsockname())
    except BaseException:
        sock.close()
        raise
    return sock, bound


def udp_socket(proto: str, addr: str, reuse_port: bool) -> tuple[socket.socket, UDPAddr]:
    """Create a non-blocking UDP socket bound to ``addr`` with broadcast allowed.

    Returns the socket and the address it is bound to.
    """
    family, sockaddr = _sockaddr("udp", proto, addr, socket.SOCK_DGRAM)
    sock = _sys_socket(family, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if reuse_port:
            _set_reuse_port(sock)
        sock.bind(sockaddr)
        bound = sockaddr_to_udp_addr(family, sock.getsockname())
    except BaseException:
        sock.close()
        raise
    return sock, bound


def unix_socket(proto: str, addr: str, reuse_port: bool) -> tuple[socket.socket, UnixAddr]:
    """Create a non-blocking listening Unix stream socket at path ``addr``.

    Returns the socket and its address.
    """
    if proto in ("unixgram", "unixpacket"):
        raise UnsupportedProtocolError("only unix is supported for domain sockets")
    if proto != "unix":
        raise UnsupportedProtocolError(f"unknown network {proto!r}")
    sock = _sys_socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if reuse_port:
            _set_reuse_port(sock)
        sock.bind(addr)
        sock.listen(_listener_backlog_max_size)
    except BaseException:
        sock.close()
        raise
    return sock, UnixAddr(addr)