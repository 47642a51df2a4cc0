"""Sequential TCP echo server that greets each client and echoes lines."""

from __future__ import annotations

import argparse
import logging
import socket
import sys

from sockecho.protocol import (
    MAX_CONN_QUEUE,
    QUIT_COMMAND,
    SERVER_PORT,
    ConnectionClosed,
    is_quit,
    recv_line,
    send_all,
)

logger = logging.getLogger(__name__)


def welcome_message(quit_command: bytes | str = QUIT_COMMAND) -> bytes:
    """Build the greeting sent to every new client."""
    command = quit_command.decode() if isinstance(quit_command, bytes) else quit_command
    return (
        "Hi! I'm an echo server. I will send you back whatever"
        f" you send me. I will stop if you send me {command}"
    ).encode()


def handle_connection(sock: socket.socket, quit_command: bytes | str = QUIT_COMMAND) -> int:
    """Greet the client, echo its lines until it quits, then close the socket.

    Returns the number of lines echoed back.
    """
    echoed = 0
    with sock:
        greeting = welcome_message(quit_command)
        send_all(sock, greeting)
        logger.debug("Welcome message <<%s>> has been sent", greeting.decode())
        while True:
            try:
                line = recv_line(sock)
            except ConnectionClosed:
                logger.debug("Client closed the connection")
                break
            logger.debug("Received command of %d bytes...", len(line))
            if is_quit(line, quit_command):
                logger.debug("Received QUIT command...")
                break
            sent = send_all(sock, line)
            echoed += 1
            logger.debug("Sent message of %d bytes back...", sent)
    logger.debug("Socket closed...")
    return echoed


def create_listener(
    host: str = "", port: int = SERVER_PORT, backlog: int = MAX_CONN_QUEUE
) -> socket.socket:
    """Create a listening TCP socket with SO_REUSEADDR enabled."""
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        listener.bind((host, port))
        logger.debug("Bound address to socket...")
        listener.listen(backlog)
        logger.debug("Socket is listening...")
    except OSError:
        listener.close()
        raise
    return listener


def serve(listener: socket.socket, quit_command: bytes | str = QUIT_COMMAND) -> None:
    """Accept connections forever and handle them one after another."""
    while True:
        client, _address = listener.accept()
        logger.debug("Incoming connection accepted...")
        handle_connection(client, quit_command)
        logger.debug("Done!")


def main(argv: list[str] | None = None) -> int:
    """Run the sequential TCP echo server."""
    parser = argparse.ArgumentParser(description="Sequential TCP echo server.")
    parser.add_argument("--host", default="", help="address to bind (default: all)")
    parser.add_argument("--port", type=int, default=SERVER_PORT)
    parser.add_argument("--backlog", type=int, default=MAX_CONN_QUEUE)
    parser.add_argument("--quiet", action="store_true", help="hide debug messages")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.quiet else logging.DEBUG,
        format="%(message)s",
        stream=sys.stderr,
    )
    try:
        with create_listener(args.host, args.port, args.backlog) as listener:
            serve(listener)
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        print(f"echo server: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())