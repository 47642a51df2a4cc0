"""Shared settings and line-oriented socket helpers for the echo servers and clients."""

from __future__ import annotations

import socket

SERVER_ADDRESS = "127.0.0.1"
SERVER_PORT = 2015
MAX_CONN_QUEUE = 3
BUFFER_SIZE = 1024

QUIT_COMMAND = b"QUIT\n"
"""Quit command for servers that keep the line terminator in the message."""

QUIT_WORD = b"QUIT"
"""Quit command for servers that compare the message without its terminator."""

RESOURCE_COUNT = 5
PROCESSING_DELAY = 3
STATS_INTERVAL = 10


class ConnectionClosed(Exception):
    """The peer closed the connection before any data arrived."""


def _as_bytes(value: bytes | str) -> bytes:
    return value.encode() if isinstance(value, str) else bytes(value)


def send_all(sock: socket.socket, data: bytes | str) -> int:
    """Send every byte of ``data`` and return how many were sent."""
    payload = _as_bytes(data)
    sock.sendall(payload)
    return len(payload)


def recv_line(sock: socket.socket) -> bytes:
    """Read one byte at a time up to and including a newline.

    If the peer closes midway, the bytes read so far are returned. If it
    closes before sending anything, ConnectionClosed is raised.
    """
    line = bytearray()
    while True:
        chunk = sock.recv(1)
        if not chunk:
            if not line:
                raise ConnectionClosed("peer closed the connection")
            return bytes(line)
        line += chunk
        if chunk == b"\n":
            return bytes(line)


def recv_message(sock: socket.socket, bufsize: int = BUFFER_SIZE) -> bytes:
    """Read whatever a single receive returns, at most ``bufsize`` bytes."""
    data = sock.recv(bufsize)
    if not data:
        raise ConnectionClosed("peer closed the connection")
    return data


def is_quit(message: bytes | str, command: bytes | str = QUIT_COMMAND) -> bool:
    """Tell whether ``message`` is exactly the quit command."""
    return _as_bytes(message) == _as_bytes(command)