"""TCP servers: a chat relay, an upper-casing echo server and a thread-per-client variant."""

from __future__ import annotations

import argparse
import selectors
import socket
import sys
import threading
from collections.abc import Callable, Sequence

from netprimer.sockets import Log, create_listener, numeric_address

_RECEIVE_LIMIT = 1024

Handler = Callable[[socket.socket, bytes], None]


def to_upper(data: bytes) -> bytes:
    """Upper-case the ASCII letters in ``data`` and leave every other byte unchanged."""
    return bytes(data).upper()


class _ClientHub:
    """Accepts clients on a listening socket and passes data from each to a handler."""

    def __init__(self, listener: socket.socket, log: Log | None, handle: Handler) -> None:
        self.listener = listener
        self._log = log
        self._handle = handle
        self._selector = selectors.DefaultSelector()
        self._selector.register(listener, selectors.EVENT_READ)
        self._clients: dict[socket.socket, str] = {}

    @property
    def clients(self) -> list[socket.socket]:
        return list(self._clients)

    def poll(self, timeout: float | None) -> int:
        events = self._selector.select(timeout)
        for key, _mask in events:
            sock = key.fileobj
            if sock is self.listener:
                self._accept()
            elif sock in self._clients:
                self._receive(sock)
        return len(events)

    def serve_forever(self) -> None:
        while True:
            self.poll(None)

    def close(self) -> None:
        for client in list(self._clients):
            self.drop(client)
        self._selector.close()
        self.listener.close()

    def drop(self, client: socket.socket) -> None:
        self._selector.unregister(client)
        del self._clients[client]
        client.close()

    def _accept(self) -> None:
        client, address = self.listener.accept()
        name = numeric_address(address)
        self._clients[client] = name
        self._selector.register(client, selectors.EVENT_READ)
        if self._log is not None:
            self._log(f"New connection from {name}")

    def _receive(self, client: socket.socket) -> None:
        try:
            data = client.recv(_RECEIVE_LIMIT)
        except ConnectionError:
            data = b""
        if not data:
            self.drop(client)
            return
        self._handle(client, data)


class ChatServer:
    """Relays whatever one client sends to every other connected client."""

    def __init__(self, listener: socket.socket, log: Log | None = None) -> None:
        self.listener = listener
        self._hub = _ClientHub(listener, log, self._relay)

    @property
    def connections(self) -> int:
        """Number of clients currently connected."""
        return len(self._hub.clients)

    def __enter__(self) -> ChatServer:
        return self

    def __exit__(self, *_exc_info) -> None:
        self.close()

    def poll(self, timeout: float | None = None) -> int:
        """Wait up to ``timeout`` seconds and handle every ready socket; return their number."""
        return self._hub.poll(timeout)

    def serve_forever(self) -> None:
        """Handle clients until interrupted."""
        self._hub.serve_forever()

    def close(self) -> None:
        """Close every client connection and the listening socket."""
        self._hub.close()

    def _relay(self, client: socket.socket, data: bytes) -> None:
        for other in self._hub.clients:
            if other is client:
                continue
            try:
                other.sendall(data)
            except OSError:
                # A broken peer is dropped when it next becomes readable.
                pass


class UpperServer:
    """Sends back to each client what it sent, upper-cased."""

    def __init__(self, listener: socket.socket, log: Log | None = None) -> None:
        self.listener = listener
        self._hub = _ClientHub(listener, log, self._echo)

    @property
    def connections(self) -> int:
        """Number of clients currently connected."""
        return len(self._hub.clients)

    def __enter__(self) -> UpperServer:
        return self

    def __exit__(self, *_exc_info) -> None:
        self.close()

    def poll(self, timeout: float | None = None) -> int:
        """Wait up to ``timeout`` seconds and handle every ready socket; return their number."""
        return self._hub.poll(timeout)

    def serve_forever(self) -> None:
        """Handle clients until interrupted."""
        self._hub.serve_forever()

    def close(self) -> None:
        """Close every client connection and the listening socket."""
        self._hub.close()

    def _echo(self, client: socket.socket, data: bytes) -> None:
        try:
            client.sendall(to_upper(data))
        except OSError:
            self._hub.drop(client)


def _echo_upper(client: socket.socket) -> None:
    with client:
        while True:
            try:
                data = client.recv(_RECEIVE_LIMIT)
                if not data:
                    return
                client.sendall(to_upper(data))
            except OSError:
                return


def serve_upper_forking(listener: socket.socket, log: Log | None = None) -> None:
    """Accept clients forever, serving each one upper-cased echoes in a thread of its own."""
    while True:
        client, address = listener.accept()
        if log is not None:
            log(f"New connection from {numeric_address(address)}")
        threading.Thread(target=_echo_upper, args=(client,), daemon=True).start()


def _serve_chat(listener: socket.socket) -> None:
    with ChatServer(listener, print) as server:
        server.serve_forever()


def _serve_upper(listener: socket.socket) -> None:
    with UpperServer(listener, print) as server:
        server.serve_forever()


def _serve_forking(listener: socket.socket) -> None:
    serve_upper_forking(listener, print)


def _run(
    argv: Sequence[str] | None,
    prog: str,
    description: str,
    serve: Callable[[socket.socket], None],
) -> int:
    parser = argparse.ArgumentParser(prog=prog, description=description)
    parser.add_argument("--port", default="8080", help="port to listen on (default: 8080)")
    args = parser.parse_args(argv)

    try:
        with create_listener(
            None, args.port, socket.AF_INET, socket.SOCK_STREAM, log=print
        ) as listener:
            print("Waiting for connections...")
            try:
                serve(listener)
            except KeyboardInterrupt:
                print("Closing listening socket...")
    except OSError as exc:
        print(f"Server failed. ({exc})", file=sys.stderr)
        return 1

    print("Finished.")
    return 0


def chat_main(argv: Sequence[str] | None = None) -> int:
    """Run the chat relay server."""
    return _run(argv, "tcp_serve_chat", "Relay messages between TCP clients.", _serve_chat)


def upper_main(argv: Sequence[str] | None = None) -> int:
    """Run the upper-casing echo server."""
    return _run(argv, "tcp_serve_toupper", "Echo client data upper-cased.", _serve_upper)


def fork_main(argv: Sequence[str] | None = None) -> int:
    """Run the upper-casing echo server with one worker per client."""
    return _run(
        argv,
        "tcp_serve_toupper_fork",
        "Echo client data upper-cased, one worker per client.",
        _serve_forking,
    )


if __name__ == "__main__":
    raise SystemExit(upper_main())