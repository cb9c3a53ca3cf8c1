"""Conversion of socket-module addresses into typed network addresses."""

from __future__ import annotations

import ipaddress
import socket
from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from .bitmath import bytes_to_string

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def _join_host_port(host: str, port: int) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


@dataclass(frozen=True)
class _IPAddr:
    ip: IPAddress
    port: int
    zone: str = ""

    network: ClassVar[str] = ""

    def __str__(self) -> str:
        host = str(self.ip)
        if self.zone:
            host = f"{host}%{self.zone}"
        return _join_host_port(host, self.port)


@dataclass(frozen=True)
class TCPAddr(_IPAddr):
    """The address of a TCP endpoint."""

    network: ClassVar[str] = "tcp"


@dataclass(frozen=True)
class UDPAddr(_IPAddr):
    """The address of a UDP endpoint."""

    network: ClassVar[str] = "udp"


@dataclass(frozen=True)
class UnixAddr:
    """The address of a Unix domain socket endpoint."""

    name: str
    net: str = "unix"

    @property
    def network(self) -> str:
        return self.net

    def __str__(self) -> str:
        return self.name


def int2decimal(i: int) -> str:
    """Render a non-negative integer in decimal."""
    if i < 0:
        raise ValueError("negative value")
    return str(i)


def ip6_zone_to_string(zone: int) -> str:
    """Map an IPv6 scope id to an interface name, or its decimal form."""
    if zone == 0:
        return ""
    try:
        return socket.if_indextoname(zone)
    except (OSError, OverflowError):
        return int2decimal(zone)


def _inet4(sockaddr) -> tuple[IPAddress, int]:
    host, port = sockaddr[0], sockaddr[1]
    return ipaddress.IPv4Address(host), int(port)


def _inet6(sockaddr) -> tuple[IPAddress, int, str]:
    host, port = sockaddr[0], sockaddr[1]
    scope_id = sockaddr[3] if len(sockaddr) > 3 else 0
    ip = ipaddress.IPv6Address(str(host).partition("%")[0])
    return ip, int(port), ip6_zone_to_string(int(scope_id))


def sockaddr_to_tcp_or_unix_addr(family: int, sockaddr) -> Optional[Union[TCPAddr, UnixAddr]]:
    """Convert a socket-module address into a TCP or Unix address.

    Returns ``None`` when the family is not supported.
    """
    if family == socket.AF_INET:
        ip, port = _inet4(sockaddr)
        return TCPAddr(ip, port)
    if family == socket.AF_INET6:
        ip, port, zone = _inet6(sockaddr)
        return TCPAddr(ip, port, zone)
    if family == getattr(socket, "AF_UNIX", None):
        name = bytes_to_string(sockaddr) if isinstance(sockaddr, (bytes, bytearray)) else str(sockaddr)
        return UnixAddr(name)
    return None


def sockaddr_to_udp_addr(family: int, sockaddr) -> Optional[UDPAddr]:
    """Convert a socket-module address into a UDP address.

    Returns ``None`` when the family is not supported.
    """
    if family == socket.AF_INET:
        ip, port = _inet4(sockaddr)
        return UDPAddr(ip, port)
    if family == socket.AF_INET6:
        ip, port, zone = _inet6(sockaddr)
        return UDPAddr(ip, port, zone)
    return None