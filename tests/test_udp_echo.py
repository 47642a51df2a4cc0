import io
import socket
import threading

import pytest

from sockecho.udp_echo import (
    create_server_socket,
    handle_datagram,
    run_client,
    serve,
)


@pytest.fixture
def server_socket():
    sock = create_server_socket("127.0.0.1", 0)
    yield sock
    sock.close()


@pytest.fixture
def peer():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.settimeout(2.0)
    yield sock
    sock.close()


@pytest.fixture
def running_server():
    sock = create_server_socket("127.0.0.1", 0)
    thread = threading.Thread(target=serve, args=(sock,), daemon=True)
    thread.start()
    yield sock.getsockname()[1]


def test_server_socket_is_bound_with_reuseaddr(server_socket):
    host, port = server_socket.getsockname()
    assert host == "127.0.0.1"
    assert port > 0
    assert server_socket.getsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR) > 0


def test_handle_datagram_echoes_to_sender(server_socket, peer):
    peer.sendto(b"hello\n", server_socket.getsockname())
    result = handle_datagram(server_socket)
    reply, address = peer.recvfrom(1024)
    assert result == b"hello\n"
    assert reply == b"hello\n"
    assert address == server_socket.getsockname()


def test_handle_datagram_quit_sends_nothing(server_socket, peer):
    peer.settimeout(0.3)
    peer.sendto(b"QUIT\n", server_socket.getsockname())
    assert handle_datagram(server_socket) is None
    with pytest.raises(socket.timeout):
        peer.recvfrom(1024)


def test_handle_datagram_custom_quit_command(server_socket, peer):
    peer.sendto(b"QUIT\n", server_socket.getsockname())
    assert handle_datagram(server_socket, quit_command=b"QUIT") == b"QUIT\n"
    assert peer.recvfrom(1024)[0] == b"QUIT\n"


def test_handle_datagram_truncates_to_bufsize(server_socket, peer):
    peer.sendto(b"abcdefgh", server_socket.getsockname())
    result = handle_datagram(server_socket, bufsize=4)
    assert result == b"abcd"
    assert peer.recvfrom(1024)[0] == b"abcd"


def test_run_client_round_trip(running_server):
    out = io.StringIO()
    count = run_client(
        "127.0.0.1", running_server, io.StringIO("hello\nworld\nQUIT\n"), out
    )
    assert count == 2
    text = out.getvalue()
    assert "Server response: hello\n\n" in text
    assert "Server response: world\n\n" in text
    assert text.count("Insert your message: ") == 3


def test_run_client_quit_first_receives_nothing(running_server):
    out = io.StringIO()
    count = run_client("127.0.0.1", running_server, io.StringIO("QUIT\n"), out)
    assert count == 0
    assert "Server response" not in out.getvalue()


def test_run_client_eof_raises(running_server):
    out = io.StringIO()
    with pytest.raises(EOFError):
        run_client("127.0.0.1", running_server, io.StringIO("ping\n"), out)
    assert "Server response: ping\n" in out.getvalue()


def test_server_keeps_running_after_quit(running_server):
    first = io.StringIO()
    run_client("127.0.0.1", running_server, io.StringIO("QUIT\n"), first)
    second = io.StringIO()
    count = run_client("127.0.0.1", running_server, io.StringIO("again\nQUIT\n"), second)
    assert count == 1
    assert "Server response: again\n" in second.getvalue()