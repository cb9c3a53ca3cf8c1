import os

import pytest

from evnet.listener import dup, init_listener
from evnet.reuseport import UnsupportedProtocolError


def test_tcp_listener_normalizes_network():
    with init_listener("tcp4", "127.0.0.1:0", False) as ln:
        assert ln.network == "tcp"
        assert ln.lnaddr.port > 0
        assert ln.fd >= 0


def test_udp_listener_normalizes_network():
    with init_listener("udp", "127.0.0.1:0", False) as ln:
        assert ln.network == "udp"
        assert ln.lnaddr.port > 0


def test_dup_returns_distinct_descriptor():
    with init_listener("tcp", "127.0.0.1:0", False) as ln:
        new_fd = ln.dup()
        try:
            assert new_fd != ln.fd
            assert os.get_inheritable(new_fd) is False
        finally:
            os.close(new_fd)


def test_dup_of_bad_fd_raises():
    with pytest.raises(OSError):
        dup(-1)


def test_unix_listener_removes_file_on_close(tmp_path):
    path = str(tmp_path / "sock")
    ln = init_listener("unix", path, False)
    assert os.path.exists(path)
    ln.close()
    ln.close()
    assert not os.path.exists(path)
    assert ln.sock.fileno() == -1


def test_unsupported_network():
    with pytest.raises(UnsupportedProtocolError):
        init_listener("ipx", "x", False)