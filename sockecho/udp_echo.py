"""UDP echo server and interactive client exchanging one datagram per message."""

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
    is_quit,
)

logger = logging.getLogger(__name__)


def create_server_socket(host: str = "", port: int = SERVER_PORT) -> socket.socket:
    """Create a UDP socket bound to ``host``:``port`` with SO_REUSEADDR enabled."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        logger.debug("Bound address to socket...")
    except OSError:
        sock.close()
        raise
    return sock


def handle_datagram(
    sock: socket.socket,
    quit_command: bytes | str = QUIT_COMMAND,
    bufsize: int = BUFFER_SIZE,
) -> bytes | None:
    """Receive one datagram and echo it back to its sender.

    Returns the echoed payload, or None when the datagram was the quit
    command, which is acknowledged by sending nothing back.
    """
    data, address = sock.recvfrom(bufsize)
    logger.debug("Received message of %d bytes...", len(data))
    if is_quit(data, quit_command):
        logger.debug("Received QUIT command...")
        return None
    if data:
        sent = sock.sendto(data, address)
        logger.debug("Sent message of %d bytes back...", sent)
    return data


def serve(sock: socket.socket, quit_command: bytes | str = QUIT_COMMAND) -> None:
    """Echo datagrams forever; a quit command only ends that client's session."""
    while True:
        handle_datagram(sock, quit_command)


def run_client(
    host: str = SERVER_ADDRESS,
    port: int = SERVER_PORT,
    input_stream: TextIO | None = None,
    output_stream: TextIO | None = None,
    quit_command: bytes | str = QUIT_COMMAND,
) -> int:
    """Send each input line to the server and print its reply until the quit command.

    Returns the number of replies received. Raises EOFError if the input
    ends before the quit command is sent.
    """
    source = sys.stdin if input_stream is None else input_stream
    sink = sys.stdout if output_stream is None else output_stream
    replies = 0
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        logger.debug("Socket created...")
        server = (host, port)
        while True:
            sink.write("Insert your message: ")
            sink.flush()
            line = source.readline()
            if not line:
                raise EOFError("input ended before the quit command")
            message = line.encode()
            sent = sock.sendto(message, server)
            logger.debug("Sent message of %d bytes...", sent)
            if is_quit(message, quit_command):
                logger.debug("Sent QUIT command ...")
                break
            reply, _address = sock.recvfrom(BUFFER_SIZE)
            logger.debug("Received answer of %d bytes...", len(reply))
            sink.write(f"Server response: {reply.decode(errors='replace')}\n")
            sink.flush()
            replies += 1
    logger.debug("Exiting...")
    return replies


def _configure_logging(quiet: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if quiet else logging.DEBUG,
        format="%(message)s",
        stream=sys.stderr,
    )


def server_main(argv: list[str] | None = None) -> int:
    """Run the UDP echo server."""
    parser = argparse.ArgumentParser(description="UDP echo server.")
    parser.add_argument("--host", default="", help="address to bind (default: all)")
    parser.add_argument("--port", type=int, default=SERVER_PORT)
    parser.add_argument("--quiet", action="store_true", help="hide debug messages")
    args = parser.parse_args(argv)
    _configure_logging(args.quiet)
    try:
        with create_server_socket(args.host, args.port) as sock:
            serve(sock)
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        print(f"udp echo server: {exc}", file=sys.stderr)
        return 1
    return 0


def client_main(argv: list[str] | None = None) -> int:
    """Run the interactive UDP echo client."""
    parser = argparse.ArgumentParser(description="UDP echo client.")
    parser.add_argument("--host", default=SERVER_ADDRESS)
    parser.add_argument("--port", type=int, default=SERVER_PORT)
    parser.add_argument("--quiet", action="store_true", help="hide debug messages")
    args = parser.parse_args(argv)
    _configure_logging(args.quiet)
    try:
        run_client(args.host, args.port)
    except EOFError:
        print("Error while reading from stdin, exiting...", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        print(f"udp echo client: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(server_main())