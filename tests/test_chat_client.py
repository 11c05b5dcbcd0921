import io
import socket
import threading

import pytest

from cpuchat.chat_client import connect, main, receive_messages, send_messages


def _recv_all(sock):
    data = b""
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            return data
        data += chunk


def test_receive_messages_prints_and_reports_disconnect():
    sock, peer = socket.socketpair()
    output = io.StringIO()
    peer.sendall(b"hello\n")
    peer.close()
    receive_messages(sock, threading.Lock(), output)
    assert output.getvalue() == "\r\033[K> hello\n> \nServer disconnected!\n"
    assert sock.fileno() == -1


def test_receive_messages_closes_on_immediate_disconnect():
    sock, peer = socket.socketpair()
    peer.close()
    output = io.StringIO()
    receive_messages(sock, threading.Lock(), output)
    assert output.getvalue().endswith("Server disconnected!\n")
    assert sock.fileno() == -1


def test_send_messages_sends_each_line():
    sock, peer = socket.socketpair()
    output = io.StringIO()
    send_messages(sock, threading.Lock(), io.StringIO("hi\nthere\n"), output)
    sock.shutdown(socket.SHUT_WR)
    try:
        assert _recv_all(peer) == b"hi\nthere\n"
        assert output.getvalue() == "> " * 3
    finally:
        sock.close()
        peer.close()


def test_send_messages_closes_socket_when_peer_gone():
    sock, peer = socket.socketpair()
    peer.close()
    send_messages(sock, threading.Lock(), io.StringIO("a\n" * 50), io.StringIO())
    assert sock.fileno() == -1


def test_connect_reaches_listening_server():
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    port = listener.getsockname()[1]
    client = connect("127.0.0.1", port)
    conn, _ = listener.accept()
    try:
        assert client.getpeername() == ("127.0.0.1", port)
        client.sendall(b"abc")
        conn.settimeout(5)
        assert conn.recv(3) == b"abc"
    finally:
        conn.close()
        client.close()
        listener.close()


def test_connect_refused_raises():
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    with pytest.raises(OSError):
        connect("127.0.0.1", port)


def test_main_returns_failure_when_server_leaves(monkeypatch, capsys):
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    port = listener.getsockname()[1]

    def accept_and_close():
        conn, _ = listener.accept()
        conn.close()

    server = threading.Thread(target=accept_and_close)
    server.start()
    monkeypatch.setattr("sys.stdin", io.StringIO(""))
    try:
        assert main(["--host", "127.0.0.1", "--port", str(port)]) == 1
    finally:
        server.join(timeout=5)
        listener.close()
    out = capsys.readouterr().out
    assert "Connected to the server" in out
    assert "Server disconnected!" in out


def test_main_reports_connect_failure(capsys):
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    assert main(["--host", "127.0.0.1", "--port", str(port)]) == 1
    assert "connect:" in capsys.readouterr().err