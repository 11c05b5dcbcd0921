import socket
import threading

import pytest

from cpuchat.chat_server import ChatServer, main, relay


def _recv_exactly(sock, size):
    data = b""
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            break
        data += chunk
    return data


def test_relay_forwards_and_closes_source_on_disconnect(capsys):
    source, source_peer = socket.socketpair()
    target, target_peer = socket.socketpair()
    lock = threading.Lock()
    try:
        source_peer.sendall(b"hello there\n")
        source_peer.close()
        relay(source, target, lock)
        target_peer.settimeout(5)
        assert _recv_exactly(target_peer, 12) == b"hello there\n"
        assert source.fileno() == -1
        assert "Client disconnected!" in capsys.readouterr().out
    finally:
        for sock in (source, source_peer, target, target_peer):
            sock.close()


def test_relay_ignores_closed_target():
    source, source_peer = socket.socketpair()
    target, target_peer = socket.socketpair()
    target_peer.close()
    target.close()
    try:
        source_peer.sendall(b"lost")
        source_peer.close()
        relay(source, target, threading.Lock())
        assert source.fileno() == -1
    finally:
        source.close()
        source_peer.close()


def test_server_relays_between_two_clients(capsys):
    server = ChatServer("127.0.0.1", 0)
    port = server.bind()
    assert port == server.port
    assert port > 0
    thread = threading.Thread(target=server.serve)
    thread.start()
    first = socket.create_connection(("127.0.0.1", port), timeout=5)
    second = socket.create_connection(("127.0.0.1", port), timeout=5)
    try:
        first.sendall(b"ping\n")
        assert _recv_exactly(second, 5) == b"ping\n"
        second.sendall(b"pong\n")
        assert _recv_exactly(first, 5) == b"pong\n"
    finally:
        first.close()
        second.close()
        thread.join(timeout=5)
        server.close()
    assert not thread.is_alive()
    out = capsys.readouterr().out
    assert f"Server started on port {port}" in out
    assert "Client 1 connected" in out
    assert "Client 2 connected" in out
    assert out.count("Client disconnected!") == 2


def test_bind_fails_on_port_in_use():
    blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    blocker.bind(("127.0.0.1", 0))
    blocker.listen(1)
    port = blocker.getsockname()[1]
    server = ChatServer("127.0.0.1", port)
    try:
        with pytest.raises(OSError):
            server.bind()
    finally:
        server.close()
        blocker.close()


def test_main_reports_failure_when_port_busy(capsys):
    blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    blocker.bind(("127.0.0.1", 0))
    blocker.listen(1)
    port = blocker.getsockname()[1]
    try:
        assert main(["--host", "127.0.0.1", "--port", str(port)]) == 1
    finally:
        blocker.close()
    assert "error:" in capsys.readouterr().err