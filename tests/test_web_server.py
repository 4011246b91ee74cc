import socket

import pytest

from netprimer.sockets import create_listener
from netprimer.web_server import (
    HttpServer,
    content_type,
    parse_request_path,
    resolve_resource,
)


@pytest.fixture
def site(tmp_path):
    (tmp_path / "index.html").write_bytes(b"<p>home</p>")
    (tmp_path / "hello.txt").write_bytes(b"hello")
    return tmp_path


@pytest.fixture
def served(site):
    listener = create_listener("127.0.0.1", 0, socket.AF_INET, socket.SOCK_STREAM)
    logs = []
    server = HttpServer(listener, site, log=logs.append)
    yield server, logs
    server.close()


def _request(server, payload):
    port = server.listener.getsockname()[1]
    with socket.create_connection(("127.0.0.1", port)) as client:
        client.sendall(payload)
        client.settimeout(0.05)
        chunks = []
        for _ in range(200):
            server.poll(0.05)
            try:
                data = client.recv(4096)
            except TimeoutError:
                continue
            if not data:
                break
            chunks.append(data)
        return b"".join(chunks)


@pytest.mark.parametrize(
    "path, expected",
    [
        ("style.css", "text/css"),
        ("public/index.html", "text/html"),
        ("page.htm", "text/html"),
        ("photo.jpg", "image/jpeg"),
        ("app.js", "application/javascript"),
        ("logo.svg", "image/svg+xml"),
        ("notes.txt", "text/plain"),
        ("archive.tar.gz", "application/octet-stream"),
        ("README", "application/octet-stream"),
        ("APP.JS", "application/octet-stream"),
    ],
)
def test_content_type(path, expected):
    assert content_type(path) == expected


def test_parse_request_path_returns_path():
    request = b"GET /index.html HTTP/1.1\r\nHost: localhost\r\n\r\n"
    assert parse_request_path(request) == "/index.html"


def test_parse_request_path_incomplete_returns_none():
    assert parse_request_path(b"GET /index.html HTTP/1.1\r\n") is None


def test_parse_request_path_accepts_text():
    assert parse_request_path("GET / HTTP/1.1\r\n\r\n") == "/"


@pytest.mark.parametrize(
    "request_bytes",
    [b"POST / HTTP/1.1\r\n\r\n", b"GET /nospace\r\n\r\n", b"get / HTTP/1.1\r\n\r\n"],
)
def test_parse_request_path_rejects_bad_requests(request_bytes):
    with pytest.raises(ValueError):
        parse_request_path(request_bytes)


def test_resolve_resource_root_maps_to_index(site):
    assert resolve_resource(site, "/") == site / "index.html"


def test_resolve_resource_finds_file(site):
    assert resolve_resource(site, "/hello.txt").read_bytes() == b"hello"


def test_resolve_resource_rejects_parent_reference(site):
    with pytest.raises(FileNotFoundError):
        resolve_resource(site, "/../hello.txt")


def test_resolve_resource_rejects_long_path(site):
    with pytest.raises(ValueError):
        resolve_resource(site, "/" + "a" * 100)


def test_resolve_resource_missing_file(site):
    with pytest.raises(FileNotFoundError):
        resolve_resource(site, "/missing.txt")


def test_resolve_resource_directory_is_not_found(site):
    (site / "sub").mkdir()
    with pytest.raises(FileNotFoundError):
        resolve_resource(site, "/sub")


def test_server_serves_file(served):
    server, logs = served
    response = _request(server, b"GET /hello.txt HTTP/1.1\r\nHost: localhost\r\n\r\n")
    assert response == (
        b"HTTP/1.1 200 OK\r\n"
        b"Connection: close\r\n"
        b"Content-Length: 5\r\n"
        b"Content-Type: text/plain\r\n"
        b"\r\n"
        b"hello"
    )
    assert "New connection from 127.0.0.1." in logs
    assert "serve_resource 127.0.0.1 /hello.txt" in logs
    assert server.connections == 0


def test_server_serves_index_for_root(served):
    server, _logs = served
    response = _request(server, b"GET / HTTP/1.1\r\n\r\n")
    head, _, body = response.partition(b"\r\n\r\n")
    assert body == b"<p>home</p>"
    assert b"Content-Type: text/html" in head
    assert b"Content-Length: 11" in head


def test_server_missing_file_is_404(served):
    server, _logs = served
    response = _request(server, b"GET /missing.txt HTTP/1.1\r\n\r\n")
    assert response == (
        b"HTTP/1.1 404 Not Found\r\n"
        b"Connection: close\r\n"
        b"Content-Length: 9\r\n\r\nNot Found"
    )


def test_server_parent_path_is_404(served):
    server, _logs = served
    response = _request(server, b"GET /../hello.txt HTTP/1.1\r\n\r\n")
    assert response.startswith(b"HTTP/1.1 404 Not Found\r\n")


def test_server_bad_method_is_400(served):
    server, _logs = served
    response = _request(server, b"POST / HTTP/1.1\r\n\r\n")
    assert response == (
        b"HTTP/1.1 400 Bad Request\r\n"
        b"Connection: close\r\n"
        b"Content-Length: 11\r\n\r\nBad Request"
    )


def test_server_request_in_pieces(served):
    server, _logs = served
    port = server.listener.getsockname()[1]
    with socket.create_connection(("127.0.0.1", port)) as client:
        client.sendall(b"GET /hello.txt HT")
        for _ in range(5):
            server.poll(0.05)
        assert server.connections == 1
        client.sendall(b"TP/1.1\r\n\r\n")
        client.settimeout(2)
        data = b""
        for _ in range(100):
            server.poll(0.05)
            if server.connections == 0:
                break
        while chunk := client.recv(4096):
            data += chunk
    assert data.endswith(b"\r\n\r\nhello")


def test_server_drops_unexpected_disconnect(served):
    server, logs = served
    port = server.listener.getsockname()[1]
    client = socket.create_connection(("127.0.0.1", port))
    for _ in range(20):
        server.poll(0.05)
        if server.connections:
            break
    assert server.connections == 1
    client.close()
    for _ in range(20):
        server.poll(0.05)
        if not server.connections:
            break
    assert server.connections == 0
    assert "Unexpected disconnect from 127.0.0.1." in logs


def test_server_drops_oversized_request(served):
    server, _logs = served
    port = server.listener.getsockname()[1]
    with socket.create_connection(("127.0.0.1", port)) as client:
        client.sendall(b"A" * 2048)
        for _ in range(40):
            server.poll(0.05)
            if server.connections == 0 and _ > 2:
                break
        assert server.connections == 0


def test_close_is_idempotent(site):
    listener = create_listener("127.0.0.1", 0, socket.AF_INET, socket.SOCK_STREAM)
    server = HttpServer(listener, site)
    server.close()
    server.close()
    assert listener.fileno() == -1