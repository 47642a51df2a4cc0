# sockecho

Small socket servers and clients built on the standard library alone:

- a sequential TCP echo server that greets each client and echoes every
  line back until it receives `QUIT`;
- a TCP echo server that handles clients one at a time, in a thread per
  client, or in a separate process per client, and tells each client its
  own address and port in the greeting;
- a UDP echo server and an interactive UDP client;
- an interactive TCP echo client;
- a resource server that keeps a set of shared counters, each guarded by
  its own lock, and increments the one a client names.

All servers listen on port 2015 on every interface by default, and the
clients connect to `127.0.0.1:2015`. Servers run until interrupted with
Ctrl-C. Debug messages go to standard error; `--quiet` hides them.

## Installation

```
pip install .
```

## Commands

Sequential TCP echo server (`--host`, `--port`, `--backlog`, `--quiet`):

```
sockecho-tcp-server
```

TCP echo server with a choice of concurrency model; `--mode` is `serial`,
`thread` (the default) or `fork`:

```
sockecho-server --mode serial
```

Interactive TCP client (`--host`, `--port`, `--quiet`). It prints the
server's greeting, then prompts `Insert your message: `, sends each line
and prints `Server response: ...`. Typing `QUIT` ends the session. If
standard input ends first, it exits with status 1.

```
sockecho-client
```

UDP echo server and client. Each message travels as one datagram. When
the server receives `QUIT` it sends nothing back and carries on serving
other datagrams; the client stops after sending it.

```
sockecho-udp-server
sockecho-udp-client
```

Resource counter server (`--host`, `--port`, `--backlog` default 16,
`--resources` default 5, `--delay` default 3 seconds, `--quiet`). Each
client is served in its own thread and given an increasing client id.
Every newline-terminated line a client sends is read as a resource
number from its leading integer; numbers outside `1..resources-1`, and
lines without a number, select resource 0. The server increments that
resource's counter, holds its lock for `--delay` seconds to simulate
work, and replies with `[risorsa <id>] contatore: <value>` (no trailing
newline). The line `QUIT` ends the connection.

```
sockecho-resource-server
```

## Library use

`sockecho.protocol` holds the shared settings and helpers: `send_all`,
`recv_line` (reads byte by byte up to a newline), `recv_message` (one
receive of at most `bufsize` bytes) and `is_quit`, plus the
`ConnectionClosed` exception, raised when the peer closes the connection
before sending any data.

```python
from sockecho.echo_client import EchoClient

with EchoClient("127.0.0.1", 2015, "QUIT\n") as client:
    print(client.receive_welcome())
    print(client.exchange("hello"))  # a newline is appended if missing
    client.exchange("QUIT")          # returns None, nothing is read back
```

`sockecho.echo_client.run` and `sockecho.udp_echo.run_client` take input
and output streams, so they can be driven from code as well as from a
terminal.

`sockecho.resource_server.ResourceCounters(size, sleep_time)` can be used
on its own as a set of independently locked counters: `process(client_id,
resource_id)` increments a counter and returns its new value, `value(
resource_id)` reads it, and an out-of-range id raises `ValueError`.

## Limitations

- There is no dedicated client for the resource server. Its replies carry
  no trailing newline, so `sockecho-client`, which waits for a newline,
  is not suited to talking to it; use a raw tool such as `nc` instead.
- The resource server does not print periodic statistics; it only logs
  each lock, update and unlock as it happens.

## Tests

```
pip install .[test]
pytest
```