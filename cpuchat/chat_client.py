"""Terminal chat client: prints what the server relays and sends typed lines."""

from __future__ import annotations

import argparse
import socket
import sys
import threading
from typing import IO, Optional

PORT = 8080
SIZE = 1024
HOST = "127.0.0.1"


def receive_messages(sock: socket.socket, lock: threading.Lock, output: IO[str]) -> None:
    """Print incoming messages until the server disconnects, then close ``sock``."""
    while True:
        try:
            data = sock.recv(SIZE)
        except OSError as exc:
            print(f"recv: {exc}", file=sys.stderr, flush=True)
            break
        if not data:
            with lock:
                output.write("\nServer disconnected!\n")
                output.flush()
            break
        text = data.decode("utf-8", errors="replace")
        with lock:
            output.write(f"\r\033[K> {text}> ")
            output.flush()
    sock.close()


def send_messages(sock: socket.socket, lock: threading.Lock,
                  source: IO[str], output: IO[str]) -> None:
    """Prompt for lines from ``source`` and send each one until input ends.

    On a send failure the socket is shut down and closed.
    """
    while True:
        with lock:
            output.write("> ")
            output.flush()
        line = source.readline(SIZE - 1)
        if not line:
            return
        try:
            sock.sendall(line.encode("utf-8"))
        except OSError as exc:
            print(f"send: {exc}", file=sys.stderr, flush=True)
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            sock.close()
            return


def connect(host: str = HOST, port: int = PORT) -> socket.socket:
    """Open a TCP connection to the chat server."""
    return socket.create_connection((host, port))


def main(argv: Optional[list[str]] = None) -> int:
    """Connect to the server and chat until it disconnects."""
    parser = argparse.ArgumentParser(description="Chat client.")
    parser.add_argument("--host", default=HOST, help="server address")
    parser.add_argument("--port", type=int, default=PORT, help="server port")
    args = parser.parse_args(argv)

    try:
        sock = connect(args.host, args.port)
    except OSError as exc:
        print(f"connect: {exc}", file=sys.stderr)
        return 1

    print("Connected to the server", flush=True)
    lock = threading.Lock()
    sender = threading.Thread(
        target=send_messages, args=(sock, lock, sys.stdin, sys.stdout), daemon=True
    )
    sender.start()
    receive_messages(sock, lock, sys.stdout)
    return 1


if __name__ == "__main__":
    sys.exit(main())