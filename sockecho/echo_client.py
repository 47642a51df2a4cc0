"""Interactive TCP echo client: shows the server greeting, then echoes typed lines."""

from __future__ import annotations

import argparse
import logging
import socket
import sys
from typing import TextIO

from sockecho.protocol import (
    BUFFER_SIZE,
    QUIT_COMMAND,
    SERVER_ADDRESS,
    SERVER_PORT,
    ConnectionClosed,
    is_quit,
    send_all,
)

logger = logging.getLogger(__name__)


def _as_bytes(value: bytes | str) -> bytes:
    return value.encode() if isinstance(value, str) else bytes(value)


class EchoClient:
    """A TCP connection to an echo server that speaks newline-terminated messages."""

    def __init__(
        self,
        host: str = SERVER_ADDRESS,
        port: int = SERVER_PORT,
        quit_command: bytes | str = QUIT_COMMAND,
    ) -> None:
        self.host = host
        self.port = port
        self.quit_command = _as_bytes(quit_command)
        self._sock: socket.socket | None = None

    @property
    def _socket(self) -> socket.socket:
        if self._sock is None:
            raise RuntimeError("client is not connected")
        return self._sock

    def connect(self) -> EchoClient:
        """Open the connection to the server."""
        if self._sock is not None:
            raise RuntimeError("client is already connected")
        self._sock = socket.create_connection((self.host, self.port))
        logger.debug("Connection established!")
        return self

    def _receive_line(self) -> bytes:
        sock = self._socket
        data = bytearray()
        while not data.endswith(b"\n"):
            chunk = sock.recv(BUFFER_SIZE)
            if not chunk:
                if not data:
                    raise ConnectionClosed("server closed the connection")
                break
            data += chunk
        return bytes(data)

    def receive_welcome(self) -> bytes:
        """Read the greeting the server sends right after the connection opens."""
        welcome = self._receive_line()
        logger.debug("Received message of %d bytes...", len(welcome))
        return welcome

    def exchange(self, message: bytes | str) -> bytes | None:
        """Send one message and return the server's reply.

        A newline is appended if the message lacks one. When the message is
        the quit command nothing is read back and None is returned.
        """
        payload = _as_bytes(message)
        if not payload.endswith(b"\n"):
            payload += b"\n"
        sent = send_all(self._socket, payload)
        logger.debug("Sent message of %d bytes...", sent)
        if is_quit(payload, self.quit_command):
            logger.debug("Sent QUIT command ...")
            return None
        reply = self._receive_line()
        logger.debug("Received answer of %d bytes...", len(reply))
        return reply

    def close(self) -> None:
        """Close the connection; closing twice is harmless."""
        if self._sock is not None:
            self._sock.close()
            self._sock = None
            logger.debug("Socket closed...")

    def __enter__(self) -> EchoClient:
        if self._sock is None:
            self.connect()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def run(
    host: str = SERVER_ADDRESS,
    port: int = SERVER_PORT,
    input_stream: TextIO | None = None,
    output_stream: TextIO | None = None,
    quit_command: bytes | str = QUIT_COMMAND,
) -> int:
    """Show the greeting, then send input lines until the quit command.

    Returns the number of replies received. Raises EOFError if the input
    ends before the quit command is sent.
    """
    source = sys.stdin if input_stream is None else input_stream
    sink = sys.stdout if output_stream is None else output_stream
    replies = 0
    with EchoClient(host, port, quit_command) as client:
        sink.write(client.receive_welcome().decode(errors="replace"))
        sink.flush()
        while True:
            sink.write("Insert your message: ")
            sink.flush()
            line = source.readline()
            if not line:
                raise EOFError("input ended before the quit command")
            reply = client.exchange(line)
            if reply is None:
                break
            sink.write(f"Server response: {reply.decode(errors='replace')}\n")
            sink.flush()
            replies += 1
    logger.debug("Exiting...")
    return replies


def main(argv: list[str] | None = None) -> int:
    """Run the interactive TCP echo client."""
    parser = argparse.ArgumentParser(description="TCP echo client.")
    parser.add_argument("--host", default=SERVER_ADDRESS)
    parser.add_argument("--port", type=int, default=SERVER_PORT)
    parser.add_argument("--quiet", action="store_true", help="hide debug messages")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.quiet else logging.DEBUG,
        format="%(message)s",
        stream=sys.stderr,
    )
    try:
        run(args.host, args.port)
    except EOFError:
        print("Error while reading from stdin, exiting...", file=sys.stderr)
        return 1
    except ConnectionClosed as exc:
        print(f"echo client: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        print(f"echo client: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())