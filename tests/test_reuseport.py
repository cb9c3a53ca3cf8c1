import ipaddress
import socket

import pytest

from evnet.reuseport import (
    UnsupportedProtocolError,
    determine_tcp_proto,
    determine_udp_proto,
    max_listener_backlog,
    tcp_socket,
    udp_socket,
    unix_socket,
)
from evnet.sockaddr import TCPAddr, UDPAddr, UnixAddr


def _write(tmp_path, text):
    path = tmp_path / "somaxconn"
    path.write_text(text)
    return str(path)


def test_backlog_reads_value(tmp_path):
    assert max_listener_backlog(_write(tmp_path, "4096\n")) == 4096


def test_backlog_is_capped(tmp_path):
    assert max_listener_backlog(_write(tmp_path, "100000\n")) == 65535


@pytest.mark.parametrize("text", ["0\n", "abc\n", "\n", "", "128"])
def test_backlog_falls_back(tmp_path, text):
    assert max_listener_backlog(_write(tmp_path, text)) == socket.SOMAXCONN


def test_backlog_missing_file(tmp_path):
    assert max_listener_backlog(str(tmp_path / "absent")) == socket.SOMAXCONN


def test_determine_tcp_proto():
    assert determine_tcp_proto("tcp", ipaddress.ip_address("127.0.0.1")) == "tcp4"
    assert determine_tcp_proto("tcp", ipaddress.ip_address("::1")) == "tcp6"
    assert determine_tcp_proto("tcp6", ipaddress.ip_address("::ffff:10.0.0.1")) == "tcp4"
    assert determine_tcp_proto("tcp6", None) == "tcp6"
    assert determine_tcp_proto("tcp", None) == "tcp"


def test_determine_tcp_proto_rejects_other_network():
    with pytest.raises(UnsupportedProtocolError):
        determine_tcp_proto("udp", None)


def test_determine_udp_proto():
    assert determine_udp_proto("udp", "127.0.0.1") == "udp4"
    assert determine_udp_proto("udp4", "::1") == "udp6"
    assert determine_udp_proto("udp4", None) == "udp4"
    with pytest.raises(UnsupportedProtocolError):
        determine_udp_proto("tcp", None)


def test_tcp_socket_listens():
    sock, addr = tcp_socket("tcp", "127.0.0.1:0", False)
    with sock:
        assert isinstance(addr, TCPAddr)
        assert addr.ip == ipaddress.ip_address("127.0.0.1")
        assert addr.port > 0
        assert sock.getblocking() is False
        assert sock.family == socket.AF_INET
        with socket.create_connection(("127.0.0.1", addr.port), timeout=2) as client:
            assert client.getpeername()[1] == addr.port


def test_tcp_socket_wildcard_address():
    sock, addr = tcp_socket("tcp", ":0", False)
    with sock:
        assert sock.family == socket.AF_INET
        assert addr.ip == ipaddress.ip_address("0.0.0.0")


def test_tcp_socket_reuse_port_shares_port():
    first, addr = tcp_socket("tcp4", "127.0.0.1:0", True)
    with first:
        second, addr2 = tcp_socket("tcp4", f"127.0.0.1:{addr.port}", True)
        with second:
            assert addr2.port == addr.port


def test_tcp_socket_without_reuse_port_conflicts():
    first, addr = tcp_socket("tcp", "127.0.0.1:0", False)
    with first:
        with pytest.raises(OSError):
            tcp_socket("tcp", f"127.0.0.1:{addr.port}", False)


def test_tcp_socket_bad_network():
    with pytest.raises(UnsupportedProtocolError):
        tcp_socket("unix", "127.0.0.1:0", False)


def test_tcp_socket_missing_port():
    with pytest.raises(ValueError):
        tcp_socket("tcp", "127.0.0.1", False)


def test_udp_socket_receives():
    sock, addr = udp_socket("udp", "127.0.0.1:0", False)
    with sock:
        assert isinstance(addr, UDPAddr)
        assert addr.port > 0
        assert sock.getblocking() is False
        assert sock.getsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST) != 0
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as client:
            client.sendto(b"ping", ("127.0.0.1", addr.port))
            sock.settimeout(2)
            data, _ = sock.recvfrom(16)
        assert data == b"ping"


def test_udp_socket_bad_network():
    with pytest.raises(UnsupportedProtocolError):
        udp_socket("tcp", "127.0.0.1:0", False)


def test_unix_socket_listens(tmp_path):
    path = str(tmp_path / "evnet.sock")
    sock, addr = unix_socket("unix", path, False)
    with sock:
        assert addr == UnixAddr(path)
        assert str(addr) == path
        assert sock.getblocking() is False
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as client:
            client.connect(path)
            assert client.getpeername() == path


def test_unix_socket_rejects_datagram(tmp_path):
    with pytest.raises(UnsupportedProtocolError):
        unix_socket("unixgram", str(tmp_path / "g.sock"), False)
    assert not (tmp_path / "g.sock").exists()


def test_unix_socket_path_in_use(tmp_path):
    path = str(tmp_path / "busy.sock")
    sock, _ = unix_socket("unix", path, False)
    with sock:
        with pytest.raises(OSError):
            unix_socket("unix", path, False)