import queue
import socket
import threading

import pytest

from evnet.socker.client import Callback, new_client
from evnet.socker.framing import bytes_to_int
from evnet.socker.message import Message, RequestTimeoutError, new_message


def _fake_server(greet=True):
    srv = socket.socket()
    srv.bind(("127.0.0.1", 0))
    srv.listen(1)

    def run():
        conn, _ = srv.accept()
        with conn:
            if greet:
                conn.sendall(new_message("client.init", "hello world").out())
            header = conn.recv(4)
            if len(header) < 4:
                return
            data = b""
            size = bytes_to_int(header)
            while len(data) < size:
                data += conn.recv(size - len(data))
            msg = Message()
            msg.parse(data)
            conn.sendall(new_message(msg.api, {"echo": msg.to_data()}).out())
            conn.sendall(new_message(msg.api, "second").out())

    t = threading.Thread(target=run, daemon=True)
    t.start()
    return srv, srv.getsockname()[1]


def test_send_and_receive_replies():
    srv, port = _fake_server()
    client = new_client("tcp", f"127.0.0.1:{port}", 5)
    try:
        client.start()
        got = []
        client.send("session.login", {"xxx": "111"}).then(got.append).then(got.append).close()
        assert got == [{"echo": {"xxx": "111"}}, "second"]
    finally:
        client.close()
        srv.close()


def test_start_times_out_without_greeting():
    srv, port = _fake_server(greet=False)
    client = new_client("tcp", f"127.0.0.1:{port}", 0.1)
    try:
        with pytest.raises(RequestTimeoutError):
            client.start()
    finally:
        client.close()
        srv.close()


def test_connect_failure(tmp_path):
    with pytest.raises(OSError):
        new_client("uds", str(tmp_path / "none"), 1)


def test_callback_catch_and_closed_then():
    err = OSError("boom")
    seen = []
    Callback(err=err).catch(seen.append)
    assert seen == [err]
    cb = Callback(body=queue.Queue())
    cb.close()
    cb.then(seen.append).then(seen.append)
    assert seen == [err, None, None]