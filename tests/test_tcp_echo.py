import socket
import threading

import pytest

from sockecho.protocol import QUIT_COMMAND, ConnectionClosed, recv_line
from sockecho.tcp_echo import (
    create_listener,
    handle_connection,
    main,
    serve,
    welcome_message,
)

WELCOME = (
    b"Hi! I'm an echo server. I will send you back whatever"
    b" you send me. I will stop if you send me QUIT\n"
)


def _run_handler(sock):
    result = {}

    def target():
        result["echoed"] = handle_connection(sock, QUIT_COMMAND)

    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    return thread, result


def test_welcome_message_text():
    assert welcome_message(b"QUIT\n") == WELCOME


def test_welcome_message_accepts_text_command():
    assert welcome_message("STOP\n").endswith(b"send me STOP\n")


def test_handle_connection_echoes_until_quit():
    server_side, client = socket.socketpair()
    thread, result = _run_handler(server_side)
    with client:
        assert recv_line(client) == WELCOME
        for line in (b"hello\n", b"second line\n"):
            client.sendall(line)
            assert recv_line(client) == line
        client.sendall(QUIT_COMMAND)
        thread.join(timeout=5)
        assert result["echoed"] == 2
        with pytest.raises(ConnectionClosed):
            recv_line(client)


def test_handle_connection_stops_when_client_leaves():
    server_side, client = socket.socketpair()
    thread, result = _run_handler(server_side)
    assert recv_line(client) == WELCOME
    client.close()
    thread.join(timeout=5)
    assert result["echoed"] == 0


def test_create_listener_sets_reuseaddr_and_listens():
    with create_listener("127.0.0.1", 0, 3) as listener:
        host, port = listener.getsockname()
        assert host == "127.0.0.1"
        assert port > 0
        assert listener.getsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR) != 0
        with socket.create_connection((host, port), timeout=5):
            conn, _ = listener.accept()
            conn.close()
        assert listener.type == socket.SOCK_STREAM


def test_serve_handles_clients_one_after_another():
    listener = create_listener("127.0.0.1", 0, 3)
    address = listener.getsockname()
    threading.Thread(target=serve, args=(listener, QUIT_COMMAND), daemon=True).start()
    for text in (b"one\n", b"two\n"):
        with socket.create_connection(address, timeout=5) as client:
            assert recv_line(client) == WELCOME
            client.sendall(text)
            assert recv_line(client) == text
            client.sendall(QUIT_COMMAND)
            with pytest.raises(ConnectionClosed):
                recv_line(client)


def test_main_reports_bind_failure():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as occupied:
        occupied.bind(("127.0.0.1", 0))
        occupied.listen(1)
        port = occupied.getsockname()[1]
        assert main(["--host", "127.0.0.1", "--port", str(port), "--quiet"]) == 1


def test_main_rejects_bad_port():
    with pytest.raises(SystemExit) as excinfo:
        main(["--port", "not-a-port"])
    assert excinfo.value.code == 2