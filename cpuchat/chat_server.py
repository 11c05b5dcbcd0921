"""A two-party chat relay: whatever one client sends is passed to the other."""

from __future__ import annotations

import argparse
import socket
import sys
import threading
from typing import Optional

PORT = 8080
SIZE = 1024
CLIENTS = 2


def relay(source: socket.socket, target: socket.socket, lock: threading.Lock) -> None:
    """Forward data from ``source`` to ``target`` until ``source`` goes away.

    The source socket is closed when the peer disconnects or a receive fails.
    Failures to deliver to the target are ignored.
    """
    while True:
        try:
            data = source.recv(SIZE)
        except OSError as exc:
            print(f"recv: {exc}", file=sys.stderr, flush=True)
            break
        if not data:
            print("Client disconnected!", flush=True)
            break
        with lock:
            try:
                target.sendall(data)
            except OSError:
                pass
    source.close()


class ChatServer:
    """Accepts exactly two clients and relays messages between them."""

    def __init__(self, host: str = "0.0.0.0", port: int = PORT) -> None:
        self.host = host
        self.port = port
        self._listener: Optional[socket.socket] = None

    def bind(self) -> int:
        """Start listening; return the port actually bound."""
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            listener.bind((self.host, self.port))
            listener.listen(CLIENTS)
        except OSError:
            listener.close()
            raise
        self._listener = listener
        self.port = listener.getsockname()[1]
        print(f"Server started on port {self.port}", flush=True)
        return self.port

    def serve(self) -> None:
        """Accept two clients, relay between them and return once both leave."""
        if self._listener is None:
            self.bind()
        assert self._listener is not None
        clients: list[socket.socket] = []
        try:
            for number in range(1, CLIENTS + 1):
                conn, _ = self._listener.accept()
                clients.append(conn)
                print(f"Client {number} connected", flush=True)
        except OSError:
            for conn in clients:
                conn.close()
            raise

        lock = threading.Lock()
        first, second = clients
        threads = [
            threading.Thread(target=relay, args=(first, second, lock)),
            threading.Thread(target=relay, args=(second, first, lock)),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    def close(self) -> None:
        """Stop listening."""
        if self._listener is not None:
            self._listener.close()
            self._listener = None


def main(argv: Optional[list[str]] = None) -> int:
    """Run the relay server until both clients have disconnected."""
    parser = argparse.ArgumentParser(description="Two-client chat relay server.")
    parser.add_argument("--host", default="0.0.0.0", help="address to listen on")
    parser.add_argument("--port", type=int, default=PORT, help="port to listen on")
    args = parser.parse_args(argv)

    server = ChatServer(args.host, args.port)
    try:
        server.bind()
        server.serve()
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        server.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())