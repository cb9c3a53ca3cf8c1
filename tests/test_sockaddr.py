import ipaddress
import socket

import pytest

from evnet.sockaddr import (
    TCPAddr,
    UDPAddr,
    UnixAddr,
    int2decimal,
    ip6_zone_to_string,
    sockaddr_to_tcp_or_unix_addr,
    sockaddr_to_udp_addr,
)


def test_ipv4_tcp_address():
    addr = sockaddr_to_tcp_or_unix_addr(socket.AF_INET, ("127.0.0.1", 8080))
    assert isinstance(addr, TCPAddr)
    assert addr.ip == ipaddress.IPv4Address("127.0.0.1")
    assert addr.port == 8080
    assert addr.zone == ""
    assert addr.network == "tcp"
    assert str(addr) == "127.0.0.1:8080"


def test_ipv6_tcp_address_is_bracketed():
    addr = sockaddr_to_tcp_or_unix_addr(socket.AF_INET6, ("::1", 9000, 0, 0))
    assert addr.ip == ipaddress.IPv6Address("::1")
    assert addr.zone == ""
    assert str(addr) == "[::1]:9000"


def test_ipv6_zone_from_unknown_index_is_decimal():
    addr = sockaddr_to_tcp_or_unix_addr(socket.AF_INET6, ("fe80::1", 80, 0, 999999))
    assert addr.zone == int2decimal(999999)
    assert str(addr).startswith("[fe80::1%")


def test_ipv6_host_zone_suffix_is_stripped():
    addr = sockaddr_to_tcp_or_unix_addr(socket.AF_INET6, ("fe80::1%eth9", 80, 0, 0))
    assert addr.ip == ipaddress.IPv6Address("fe80::1")
    assert str(addr) == "[fe80::1]:80"


def test_unix_address():
    addr = sockaddr_to_tcp_or_unix_addr(socket.AF_UNIX, "/tmp/evnet.sock")
    assert isinstance(addr, UnixAddr)
    assert addr.network == "unix"
    assert str(addr) == "/tmp/evnet.sock"


def test_unix_address_from_bytes():
    addr = sockaddr_to_tcp_or_unix_addr(socket.AF_UNIX, b"/tmp/evnet.sock")
    assert addr.name == "/tmp/evnet.sock"


def test_unsupported_family_gives_none():
    assert sockaddr_to_tcp_or_unix_addr(-12345, ("x", 1)) is None


def test_udp_address():
    addr = sockaddr_to_udp_addr(socket.AF_INET, ("10.0.0.2", 53))
    assert isinstance(addr, UDPAddr)
    assert addr.network == "udp"
    assert str(addr) == "10.0.0.2:53"


def test_udp_rejects_unix():
    assert sockaddr_to_udp_addr(socket.AF_UNIX, "/tmp/evnet.sock") is None


def test_udp_and_tcp_addresses_differ_by_type():
    tcp = sockaddr_to_tcp_or_unix_addr(socket.AF_INET, ("127.0.0.1", 1))
    udp = sockaddr_to_udp_addr(socket.AF_INET, ("127.0.0.1", 1))
    assert str(tcp) == str(udp)
    assert tcp.network == "tcp" and udp.network == "udp"


def test_int2decimal():
    assert int2decimal(0) == "0"
    assert int2decimal(1234) == "1234"
    with pytest.raises(ValueError):
        int2decimal(-1)


def test_zone_zero_is_empty():
    assert ip6_zone_to_string(0) == ""


def test_zone_known_interface_name():
    index, name = socket.if_nameindex()[0]
    assert ip6_zone_to_string(index) == name