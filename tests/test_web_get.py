import io
import socket
import threading

import pytest

from netprimer.web_get import (
    BodyDecoder,
    Url,
    WebGetError,
    build_request,
    fetch,
    main,
    parse_url,
)


def _serve_canned(response, hold=None):
    listener = socket.create_server(("127.0.0.1", 0))
    received = []

    def run():
        conn, _ = listener.accept()
        with conn:
            data = b""
            while b"\r\n\r\n" not in data:
                chunk = conn.recv(2048)
                if not chunk:
                    break
                data += chunk
            received.append(data)
            if hold is not None:
                hold.wait(5)
            else:
                conn.sendall(response)
        listener.close()

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return listener.getsockname()[1], thread, received


def test_parse_url_full():
    assert parse_url("http://example.com:8080/a/b?x=1#frag") == Url(
        "example.com", "8080", "a/b?x=1"
    )


def test_parse_url_defaults_port_and_path():
    assert parse_url("example.com") == Url("example.com", "80", "")


def test_parse_url_without_scheme_keeps_path():
    assert parse_url("example.com/index.html") == Url("example.com", "80", "index.html")


def test_parse_url_fragment_after_host():
    assert parse_url("http://example.com#top") == Url("example.com", "80", "")


def test_parse_url_rejects_other_protocols():
    with pytest.raises(WebGetError, match="Only 'http' is supported"):
        parse_url("https://example.com/")


def test_build_request_format():
    request = build_request(Url("example.com", "80", "index.html"))
    assert request == (
        b"GET /index.html HTTP/1.1\r\n"
        b"Host: example.com:80\r\n"
        b"Connection: close\r\n"
        b"User-Agent: netprimer web_get 1.0\r\n"
        b"\r\n"
    )


def test_decoder_content_length_split_across_feeds():
    decoder = BodyDecoder()
    assert decoder.feed(b"HTTP/1.1 200 OK\r\nContent-") == b""
    assert decoder.headers is None
    assert decoder.feed(b"Length: 5\r\n\r\nab") == b""
    assert decoder.headers == "HTTP/1.1 200 OK\r\nContent-Length: 5"
    assert decoder.feed(b"cdeXYZ") == b"abcde"
    assert decoder.done


def test_decoder_zero_length_is_done_at_once():
    decoder = BodyDecoder()
    assert decoder.feed(b"HTTP/1.1 204 No Content\r\nContent-Length: 0\r\n\r\n") == b""
    assert decoder.done


def test_decoder_chunked_byte_by_byte():
    data = (
        b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n"
        b"5\r\nhello\r\n6\r\n world\r\n0\r\n\r\n"
    )
    decoder = BodyDecoder()
    body = b"".join(decoder.feed(data[i : i + 1]) for i in range(len(data)))
    assert body == b"hello world"
    assert decoder.done


def test_decoder_chunked_hex_sizes():
    decoder = BodyDecoder()
    payload = b"0123456789"
    data = (
        b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n"
        b"a\r\n" + payload + b"\r\n0\r\n\r\n"
    )
    assert decoder.feed(data) == payload
    assert decoder.done


def test_decoder_rejects_negative_chunk():
    decoder = BodyDecoder()
    with pytest.raises(WebGetError):
        decoder.feed(b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n-5\r\n")


def test_decoder_connection_framing_waits_for_close():
    decoder = BodyDecoder()
    assert decoder.feed(b"HTTP/1.1 200 OK\r\n\r\nfirst ") == b""
    assert decoder.feed(b"second") == b""
    assert not decoder.done
    assert decoder.finish() == b"first second"
    assert decoder.done


def test_decoder_finish_without_headers_is_empty():
    decoder = BodyDecoder()
    decoder.feed(b"HTTP/1.1 200")
    assert decoder.finish() == b""
    assert not decoder.done


def test_fetch_content_length():
    body = b"hello world"
    response = f"HTTP/1.1 200 OK\r\nContent-Length: {len(body)}\r\n\r\n".encode() + body
    port, thread, received = _serve_canned(response)
    url = f"http://127.0.0.1:{port}/greeting"
    out = io.StringIO()
    assert fetch(url, timeout=5.0, out=out) == body
    thread.join(5)
    assert received[0] == build_request(parse_url(url))
    text = out.getvalue()
    assert "Received Headers:" in text
    assert text.endswith("Finished.\n")


def test_fetch_until_connection_closes():
    body = b"streamed until close"
    port, thread, _received = _serve_canned(b"HTTP/1.1 200 OK\r\n\r\n" + body)
    out = io.StringIO()
    assert fetch(f"http://127.0.0.1:{port}/", timeout=5.0, out=out) == body
    thread.join(5)
    assert "Connection closed by peer." in out.getvalue()


def test_fetch_times_out():
    hold = threading.Event()
    port, thread, _received = _serve_canned(b"", hold=hold)
    try:
        with pytest.raises(WebGetError, match="timeout"):
            fetch(f"http://127.0.0.1:{port}/", timeout=0.3, out=io.StringIO())
    finally:
        hold.set()
        thread.join(5)


def test_fetch_rejects_https_before_connecting():
    with pytest.raises(WebGetError):
        fetch("https://example.com/", out=io.StringIO())


def test_main_without_url_fails():
    assert main([]) == 1
    assert main(["ftp://example.com/"]) == 1