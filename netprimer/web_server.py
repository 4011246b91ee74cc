"""A small static-file HTTP server that multiplexes clients with a selector."""

from __future__ import annotations

import argparse
import os
import selectors
import socket
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from netprimer.sockets import Log, create_listener, numeric_address

MAX_REQUEST_SIZE = 2047
MAX_PATH_LENGTH = 100
_CHUNK_SIZE = 1024

_BAD_REQUEST = (
    b"HTTP/1.1 400 Bad Request\r\n"
    b"Connection: close\r\n"
    b"Content-Length: 11\r\n\r\nBad Request"
)
_NOT_FOUND = (
    b"HTTP/1.1 404 Not Found\r\n"
    b"Connection: close\r\n"
    b"Content-Length: 9\r\n\r\nNot Found"
)

_CONTENT_TYPES = {
    ".css": "text/css",
    ".csv": "text/csv",
    ".gif": "image/gif",
    ".htm": "text/html",
    ".html": "text/html",
    ".ico": "image/x-icon",
    ".jpeg": "image/jpeg",
    ".jpg": "image/jpeg",
    ".js": "application/javascript",
    ".json": "application/json",
    ".png": "image/png",
    ".pdf": "application/pdf",
    ".svg": "image/svg+xml",
    ".txt": "text/plain",
}


def content_type(path: str | os.PathLike) -> str:
    """Return the media type for ``path`` judged by the text from its last dot."""
    text = os.fspath(path)
    dot = text.rfind(".")
    if dot < 0:
        return "application/octet-stream"
    return _CONTENT_TYPES.get(text[dot:], "application/octet-stream")


def parse_request_path(request: bytes | str) -> str | None:
    """Return the path of a GET request, or None while its headers are incomplete.

    Raises ValueError when the request is not a well-formed GET request.
    """
    text = request.decode("latin-1") if isinstance(request, (bytes, bytearray)) else request
    end_of_head = text.find("\r\n\r\n")
    if end_of_head < 0:
        return None
    head = text[:end_of_head]
    if not head.startswith("GET /"):
        raise ValueError("Bad Request")
    end_of_path = head.find(" ", 4)
    if end_of_path < 0:
        raise ValueError("Bad Request")
    return head[4:end_of_path]


def resolve_resource(root: str | os.PathLike, path: str) -> Path:
    """Map a request path to a file below ``root``; "/" means "/index.html".

    Raises ValueError for a path that is too long or not absolute, and
    FileNotFoundError for a path containing ".." or naming no regular file.
    """
    if path == "/":
        path = "/index.html"
    if len(path) > MAX_PATH_LENGTH or not path.startswith("/"):
        raise ValueError(f"Bad request path: {path!r}")
    if ".." in path:
        raise FileNotFoundError(path)
    full_path = Path(root) / path.lstrip("/")
    if not full_path.is_file():
        raise FileNotFoundError(str(full_path))
    return full_path


@dataclass
class _Client:
    address: str
    request: bytearray = field(default_factory=bytearray)


class HttpServer:
    """Serves files below ``root`` to any number of clients, one request each."""

    def __init__(
        self,
        listener: socket.socket,
        root: str | os.PathLike = "public",
        log: Log | None = None,
    ) -> None:
        self.listener = listener
        self.root = Path(root)
        self._log = log
        self._selector = selectors.DefaultSelector()
        self._selector.register(listener, selectors.EVENT_READ)
        self._clients: dict[socket.socket, _Client] = {}
        self._closed = False

    @property
    def connections(self) -> int:
        """Number of clients currently connected."""
        return len(self._clients)

    def __enter__(self) -> HttpServer:
        return self

    def __exit__(self, *_exc_info) -> None:
        self.close()

    def poll(self, timeout: float | None = None) -> int:
        """Wait up to ``timeout`` seconds and handle every ready socket.

        Returns the number of sockets that were ready.
        """
        events = self._selector.select(timeout)
        for key, _mask in events:
            sock = key.fileobj
            if sock is self.listener:
                self._accept()
            elif sock in self._clients:
                self._receive(sock)
        return len(events)

    def serve_forever(self) -> None:
        """Handle clients until interrupted."""
        while True:
            self.poll()

    def close(self) -> None:
        """Close every client connection and the listening socket."""
        if self._closed:
            return
        self._closed = True
        for client in list(self._clients):
            self._drop(client)
        self._selector.close()
        self.listener.close()

    def _say(self, message: str) -> None:
        if self._log is not None:
            self._log(message)

    def _accept(self) -> None:
        client, address = self.listener.accept()
        name = numeric_address(address)
        self._clients[client] = _Client(name)
        self._selector.register(client, selectors.EVENT_READ)
        self._say(f"New connection from {name}.")

    def _receive(self, sock: socket.socket) -> None:
        state = self._clients[sock]
        if len(state.request) >= MAX_REQUEST_SIZE:
            self._reply_and_drop(sock, _BAD_REQUEST)
            return
        try:
            data = sock.recv(MAX_REQUEST_SIZE - len(state.request))
        except ConnectionError:
            data = b""
        if not data:
            self._say(f"Unexpected disconnect from {state.address}.")
            self._drop(sock)
            return

        state.request += data
        try:
            path = parse_request_path(bytes(state.request))
        except ValueError:
            self._reply_and_drop(sock, _BAD_REQUEST)
            return
        if path is not None:
            self._serve(sock, state, path)

    def _serve(self, sock: socket.socket, state: _Client, path: str) -> None:
        self._say(f"serve_resource {state.address} {path}")
        try:
            full_path = resolve_resource(self.root, path)
        except ValueError:
            self._reply_and_drop(sock, _BAD_REQUEST)
            return
        except OSError:
            self._reply_and_drop(sock, _NOT_FOUND)
            return

        try:
            resource = full_path.open("rb")
        except OSError:
            self._reply_and_drop(sock, _NOT_FOUND)
            return

        with resource:
            length = os.fstat(resource.fileno()).st_size
            head = (
                "HTTP/1.1 200 OK\r\n"
                "Connection: close\r\n"
                f"Content-Length: {length}\r\n"
                f"Content-Type: {content_type(full_path.name)}\r\n"
                "\r\n"
            ).encode("ascii")
            try:
                sock.sendall(head)
                while chunk := resource.read(_CHUNK_SIZE):
                    sock.sendall(chunk)
            except OSError:
                pass
        self._drop(sock)

    def _reply_and_drop(self, sock: socket.socket, response: bytes) -> None:
        try:
            sock.sendall(response)
        except OSError:
            pass
        self._drop(sock)

    def _drop(self, sock: socket.socket) -> None:
        self._selector.unregister(sock)
        del self._clients[sock]
        sock.close()


def main(argv: Sequence[str] | None = None) -> int:
    """Serve files from a directory over HTTP."""
    parser = argparse.ArgumentParser(prog="web_server", description="Serve static files.")
    parser.add_argument("--port", default="8080", help="port to listen on (default: 8080)")
    parser.add_argument("--root", default="public", help="directory to serve (default: public)")
    args = parser.parse_args(argv)

    try:
        listener = create_listener(
            None, args.port, socket.AF_INET, socket.SOCK_STREAM, log=print
        )
        with HttpServer(listener, args.root, log=print) as server:
            try:
                server.serve_forever()
            except KeyboardInterrupt:
                print("\nClosing socket...")
    except OSError as exc:
        print(f"Server failed. ({exc})", file=sys.stderr)
        return 1

    print("Finished.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())