"""Multithreaded TCP server that updates shared counters, one lock per resource."""

from __future__ import annotations

import argparse
import logging
import re
import socket
import sys
import threading
import time

from sockecho.protocol import (
    PROCESSING_DELAY,
    QUIT_WORD,
    RESOURCE_COUNT,
    SERVER_PORT,
    ConnectionClosed,
    is_quit,
    recv_line,
    send_all,
)
from sockecho.tcp_echo import create_listener as _create_tcp_listener

logger = logging.getLogger(__name__)

LISTEN_BACKLOG = 16

_LEADING_INTEGER = re.compile(rb"[ \t\n\v\f\r]*([+-]?[0-9]+)")


class ResourceCounters:
    """A fixed set of counters, each updated under its own lock."""

    def __init__(self, size: int = RESOURCE_COUNT, sleep_time: float = PROCESSING_DELAY) -> None:
        if size < 1:
            raise ValueError("there must be at least one resource")
        if sleep_time < 0:
            raise ValueError("sleep_time must not be negative")
        self.size = size
        self.sleep_time = sleep_time
        self._locks = [threading.Lock() for _ in range(size)]
        self._counts = [0] * size

    def _check(self, resource_id: int) -> None:
        if not 0 <= resource_id < self.size:
            raise ValueError(f"resource {resource_id} out of range 0..{self.size - 1}")

    def process(self, client_id: int, resource_id: int) -> int:
        """Increment the counter of ``resource_id`` while holding its lock.

        The lock is held for ``sleep_time`` seconds to simulate work.
        Returns the updated counter.
        """
        self._check(resource_id)
        logger.info("Resource %d queued by client %d...", resource_id, client_id)
        with self._locks[resource_id]:
            logger.info(
                "Resource %d LOCKED by client %d! Processing...", resource_id, client_id
            )
            self._counts[resource_id] += 1
            updated = self._counts[resource_id]
            logger.info("New counter for resource %d: %d", resource_id, updated)
            if self.sleep_time:
                time.sleep(self.sleep_time)
        logger.info("Resource %d UNLOCKED", resource_id)
        return updated

    def value(self, resource_id: int) -> int:
        """Return the current counter of ``resource_id``."""
        self._check(resource_id)
        with self._locks[resource_id]:
            return self._counts[resource_id]


def parse_resource_id(text: bytes | str, size: int = RESOURCE_COUNT) -> int:
    """Read a leading integer as a resource id; anything not in 1..size-1 maps to 0."""
    raw = text.encode() if isinstance(text, str) else bytes(text)
    match = _LEADING_INTEGER.match(raw)
    number = int(match.group(1)) if match else 0
    return number if 0 < number < size else 0


def format_reply(resource_id: int, counter: int) -> bytes:
    """Build the reply sent after a resource has been processed."""
    return f"[risorsa {resource_id}] contatore: {counter}".encode()


def handle_client(
    sock: socket.socket,
    address: tuple[str, int],
    client_id: int,
    counters: ResourceCounters,
    quit_command: bytes | str = QUIT_WORD,
) -> int:
    """Serve one client's resource requests until it quits or hangs up.

    Each request is a line naming a resource; the reply reports the updated
    counter. Returns the number of requests processed.
    """
    logger.info("Client %d connected on port %d", client_id, address[1])
    processed = 0
    with sock:
        while True:
            try:
                line = recv_line(sock)
            except ConnectionClosed:
                break
            if not line.endswith(b"\n"):
                break
            message = line[:-1]
            if is_quit(message, quit_command):
                break
            resource_id = parse_resource_id(message, counters.size)
            counter = counters.process(client_id, resource_id)
            send_all(sock, format_reply(resource_id, counter))
            processed += 1
    logger.info("Connection handler for client %d finished", client_id)
    return processed


def create_listener(
    host: str = "", port: int = SERVER_PORT, backlog: int = LISTEN_BACKLOG
) -> socket.socket:
    """Create a listening TCP socket with SO_REUSEADDR enabled."""
    return _create_tcp_listener(host, port, backlog)


def serve(
    listener: socket.socket,
    counters: ResourceCounters,
    quit_command: bytes | str = QUIT_WORD,
) -> None:
    """Accept connections forever, each handled by a detached thread with a new client id."""
    logger.info("Server ready to accept connections!")
    client_id = 0
    while True:
        client, address = listener.accept()
        logger.info("Connection accepted")
        worker = threading.Thread(
            target=handle_client,
            args=(client, address, client_id, counters, quit_command),
            daemon=True,
        )
        worker.start()
        logger.debug("New thread handling the request...")
        client_id += 1


def main(argv: list[str] | None = None) -> int:
    """Run the shared-counter resource server."""
    parser = argparse.ArgumentParser(description="Multithreaded shared-counter server.")
    parser.add_argument("--host", default="", help="address to bind (default: all)")
    parser.add_argument("--port", type=int, default=SERVER_PORT)
    parser.add_argument("--backlog", type=int, default=LISTEN_BACKLOG)
    parser.add_argument("--resources", type=int, default=RESOURCE_COUNT)
    parser.add_argument("--delay", type=float, default=PROCESSING_DELAY,
                        help="seconds each resource is held while processing")
    parser.add_argument("--quiet", action="store_true", help="hide progress messages")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(message)s",
        stream=sys.stderr,
    )
    try:
        counters = ResourceCounters(args.resources, args.delay)
    except ValueError as exc:
        print(f"resource server: {exc}", file=sys.stderr)
        return 2
    try:
        with create_listener(args.host, args.port, args.backlog) as listener:
            serve(listener, counters)
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        print(f"resource server: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())