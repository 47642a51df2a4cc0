"""TCP echo server that handles clients serially, in threads or in separate processes."""

from __future__ import annotations

import argparse
import enum
import logging
import multiprocessing
import socket
import sys
import threading

from sockecho.protocol import (
    MAX_CONN_QUEUE,
    QUIT_COMMAND,
    SERVER_PORT,
    ConnectionClosed,
    is_quit,
    recv_line,
    send_all,
)
from sockecho.tcp_echo import create_listener

logger = logging.getLogger(__name__)


class Mode(enum.Enum):
    """How the server deals with concurrent connections."""

    SERIAL = "serial"
    THREADED = "thread"
    FORKED = "fork"


def personal_welcome(
    client_ip: str, client_port: int, quit_command: bytes | str = QUIT_COMMAND
) -> bytes:
    """Build the greeting that tells the client its own address and port."""
    command = quit_command.decode() if isinstance(quit_command, bytes) else quit_command
    return (
        f"Hi! I'm an echo server. You are {client_ip} talking on port {client_port}.\n"
        "I will send you back whatever you send me. "
        f"I will stop if you send me {command} :-)\n"
    ).encode()


def handle_client(
    sock: socket.socket,
    address: tuple[str, int],
    quit_command: bytes | str = QUIT_COMMAND,
) -> int:
    """Greet the client, echo its lines until it quits or hangs up, then close.

    Returns the number of lines echoed back.
    """
    client_ip, client_port = address[0], address[1]
    echoed = 0
    with sock:
        send_all(sock, personal_welcome(client_ip, client_port, quit_command))
        while True:
            try:
                line = recv_line(sock)
            except ConnectionClosed:
                break
            if is_quit(line, quit_command):
                break
            send_all(sock, line)
            echoed += 1
    return echoed


def serve_serial(listener: socket.socket, quit_command: bytes | str = QUIT_COMMAND) -> None:
    """Accept connections forever and handle each one before the next."""
    logger.debug("Starting serial server")
    while True:
        client, address = listener.accept()
        logger.debug("Incoming connection accepted...")
        handle_client(client, address, quit_command)
        logger.debug("Done!")


def _thread_handler(
    client: socket.socket, address: tuple[str, int], quit_command: bytes | str
) -> None:
    handle_client(client, address, quit_command)
    logger.debug("Work finished, thread exiting...")


def serve_threaded(listener: socket.socket, quit_command: bytes | str = QUIT_COMMAND) -> None:
    """Accept connections forever, handling each in its own detached thread."""
    while True:
        client, address = listener.accept()
        logger.debug("Incoming connection accepted...")
        worker = threading.Thread(
            target=_thread_handler, args=(client, address, quit_command), daemon=True
        )
        worker.start()
        logger.debug("New thread created to handle the request!")


def _process_handler(
    client: socket.socket, address: tuple[str, int], quit_command: bytes | str
) -> None:
    handle_client(client, address, quit_command)
    logger.debug("Child: connection handled, exiting...")


def serve_forked(listener: socket.socket, quit_command: bytes | str = QUIT_COMMAND) -> None:
    """Accept connections forever, handling each in its own worker process."""
    while True:
        client, address = listener.accept()
        logger.debug("Incoming connection accepted...")
        worker = multiprocessing.Process(
            target=_process_handler, args=(client, address, quit_command), daemon=True
        )
        worker.start()
        client.close()
        logger.debug("Parent: child %d created", worker.pid)
        # Joins any workers that have already finished.
        multiprocessing.active_children()


_SERVERS = {
    Mode.SERIAL: serve_serial,
    Mode.THREADED: serve_threaded,
    Mode.FORKED: serve_forked,
}


def serve(
    listener: socket.socket,
    mode: Mode | str = Mode.THREADED,
    quit_command: bytes | str = QUIT_COMMAND,
) -> None:
    """Run the server loop chosen by ``mode``; raises ValueError for an unknown mode."""
    _SERVERS[Mode(mode)](listener, quit_command)


def main(argv: list[str] | None = None) -> int:
    """Run the concurrent TCP echo server."""
    parser = argparse.ArgumentParser(description="TCP echo server with selectable concurrency.")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in Mode],
        default=Mode.THREADED.value,
        help="serial, thread or fork (default: thread)",
    )
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
            serve(listener, Mode(args.mode))
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        print(f"echo server: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())