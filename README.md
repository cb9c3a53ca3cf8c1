# evnet

evnet is a small toolkit of networking building blocks for POSIX systems:
byte and ring buffers with pools, a task queue, helpers for opening
non-blocking listening sockets, and a ready-made request/reply server and
client that exchange length-prefixed JSON messages.

It has no third-party dependencies.

## Modules

- `evnet.bitmath`: `is_power_of_two`, `ceil_to_power_of_two`,
  `floor_to_power_of_two` (both never return less than 2;
  `ceil_to_power_of_two` raises `ValueError` for values above 2**62), and
  `bytes_to_string` / `string_to_bytes`, which round-trip any bytes.
- `evnet.bytebuffer`: `ByteBuffer`, an append-only buffer (`write`, `bytes`,
  `reset`, `len()`), and a shared reuse pool through `get()` and `put()`.
- `evnet.ringbuffer`: `RingBuffer`, a circular byte buffer. Its size is
  rounded up to a power of two; it grows when a write does not fit and
  halves its storage every time it is drained or `reset`. Reading from an
  empty buffer raises `RingBufferEmptyError`.
- `evnet.ringbuffer_pool`: `RingBufferPool`, a pool of ring buffers that
  counts the sizes of buffers handed back and, after enough of them, picks
  the size of new buffers and the largest size worth keeping. The module
  functions `get()` and `put()` use a shared pool; `size_index(n)` gives a
  length's size class.
- `evnet.taskqueue`: `TaskQueue`, a thread-safe FIFO of callables
  (`enqueue`, `dequeue` returning `None` when empty, `empty`, `len()`).
- `evnet.logsetup`: `default_logger()` returns a shared `logging.Logger`.
  Set `EVNET_LOGGING_MODE=prod` (any case) for JSON lines at INFO and
  above; any other value gives human-readable lines at DEBUG and above.
  `create_default_logger(mode)` builds either one; `cleanup()` flushes it.
- `evnet.sockaddr`: `TCPAddr`, `UDPAddr` and `UnixAddr`, and functions that
  turn `socket` module addresses into them
  (`sockaddr_to_tcp_or_unix_addr`, `sockaddr_to_udp_addr`).
- `evnet.reuseport`: `tcp_socket`, `udp_socket` and `unix_socket` open
  non-blocking sockets with `SO_REUSEADDR` (and `SO_REUSEPORT` when asked),
  bind them, and for stream sockets listen with the system's maximum
  backlog (`max_listener_backlog`). Unknown networks raise
  `UnsupportedProtocolError`.
- `evnet.listener`: `init_listener(network, addr, reuse_port)` returns a
  `Listener` for `tcp`/`tcp4`/`tcp6`, `udp`/`udp4`/`udp6` or `unix`. It has
  `sock`, `fd`, `lnaddr`, `dup()` and `close()`, and works as a context
  manager. A `unix` listener removes a stale socket file before binding and
  removes it again on close.
- `evnet.socker`: the framed JSON protocol: `framing`, `message`, `router`,
  `server` and `client`.

## Ring buffer

```python
from evnet.ringbuffer import RingBuffer, RingBufferEmptyError

rb = RingBuffer(64)
rb.write(b"abcd" * 4)
print(rb.length(), rb.free())      # 16 48

head, tail = rb.lazy_read(8)       # peek without consuming
rb.shift(8)                        # consume what was peeked

rb.write_byte(ord("z"))
print(rb.byte_buffer().bytes())    # b'abcdabcdz'

try:
    RingBuffer(64).read_byte()
except RingBufferEmptyError:
    print("nothing to read")
```

## Listening sockets

```python
from evnet.listener import init_listener

with init_listener("tcp", "127.0.0.1:0", False) as ln:
    print(ln.lnaddr)               # e.g. 127.0.0.1:43817
```

## Framed JSON messages

Every frame on the wire is a 4-byte big-endian length followed by a JSON
object of the form `{"api": ..., "body": ...}`; a `None` body is left out.

```python
from evnet.socker.message import new_message

msg = new_message("session.login", {"user": "alice"})
frame = msg.out()                  # length prefix + JSON bytes
```

### Server

A `Server` greets every new connection with a `client.init` message, then
routes each request by its `api` name to the handler registered on its
`Router`. A handler is called in a worker thread with the decoded body and a
queue, and answers by putting `Reply` objects on it. A reply with status
`Action.CONTINUE` is sent and the server waits for the next one; any other
status ends the request. `Action.CLOSE` closes the connection and
`Action.SHUTDOWN` stops the server. If no reply arrives within the server's
timeout (10 seconds by default), the client gets
`{"code": 500, "msg": "process message timeout! "}`; a frame that is not
valid JSON gets `{"code": 400, "msg": "message decode err! "}`.

```python
import threading

from evnet.socker.message import Action, Reply
from evnet.socker.server import default_tcp_server


def handle_login(data, replies):
    replies.put(Reply(status=Action.CONTINUE, body={"qr": "xxx"}))
    replies.put(Reply(status=Action.DONE, body={"code": 200, "msg": "success"}))


server = default_tcp_server()      # listens on :20124
server.router().register("session.login", handle_login)
threading.Thread(target=server.run, daemon=True).start()
server.wait_until_ready(5)
# ...
server.shutdown()
```

`run()` blocks until `shutdown()` is called and serves each connection in
its own thread. `new_server(mode, addr, multicore, pool_size, timeout)`
takes `"tcp"` or `"uds"`; `default_uds_server()` uses `/tmp/us.socket`.

### Client

```python
from evnet.socker.client import default_tcp_client

client = default_tcp_client()      # None if the server is not reachable
client.start()                     # waits for the greeting
client.send("session.login", {"user": "alice"}).then(print).then(print).close()
client.close()
```

`start()` raises `RequestTimeoutError` when the greeting does not arrive
within the connect timeout (5 seconds by default). `send` returns a
`Callback`: each `then` waits for the next reply body to that API, and
`catch` receives the send error, if any. `new_client(mode, address,
connect_timeout)` connects explicitly; `default_uds_client()` uses
`/tmp/us.socket`.

## What evnet does not do

evnet does not include an event-loop engine: there is no epoll-based
poller, no reactor that spreads connections over several event loops, no
load-balancing strategy between loops and no options object for
configuring such a server. The buffers, task queue and listeners are the
pieces such an engine would be built from, and the `socker` server instead
uses a plain thread per connection. There is no command-line program.