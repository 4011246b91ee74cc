"""Fetch an HTTP resource and print its headers and decoded body."""

from __future__ import annotations

import argparse
import codecs
import enum
import re
import select
import socket
import sys
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TextIO

from netprimer.sockets import connect_to

_RESPONSE_SIZE = 32768
_SELECT_INTERVAL = 0.2
_USER_AGENT = "netprimer web_get 1.0"

_DECIMAL = re.compile(r"\s*([+-]?[0-9]+)")
_HEX = re.compile(r"\s*([+-]?)(?:0[xX](?=[0-9a-fA-F]))?([0-9a-fA-F]+)")


class WebGetError(Exception):
    """A URL is unsupported or a response cannot be received."""


@dataclass(frozen=True)
class Url:
    """The parts of an HTTP URL needed to make a request."""

    hostname: str
    port: str = "80"
    path: str = ""


def parse_url(url: str) -> Url:
    """Split ``url`` into host, port and path; only the http scheme is accepted.

    The path is given without its leading slash and without any fragment.
    """
    protocol, separator, rest = url.partition("://")
    if not separator:
        rest = url
    elif protocol != "http":
        raise WebGetError(f"Unknown protocol '{protocol}'. Only 'http' is supported.")

    rest = rest.split("#", 1)[0]
    authority, slash, path = rest.partition("/")
    hostname, colon, port = authority.partition(":")
    return Url(hostname, port if colon else "80", path if slash else "")


def build_request(url: Url) -> bytes:
    """Return the GET request for ``url``."""
    return (
        f"GET /{url.path} HTTP/1.1\r\n"
        f"Host: {url.hostname}:{url.port}\r\n"
        "Connection: close\r\n"
        f"User-Agent: {_USER_AGENT}\r\n"
        "\r\n"
    ).encode("utf-8")


def _leading_int(text: str, pattern: re.Pattern, base: int) -> int:
    match = pattern.match(text)
    if not match:
        return 0
    return int("".join(match.groups()), base)


class _Framing(enum.Enum):
    LENGTH = "length"
    CHUNKED = "chunked"
    CONNECTION = "connection"


class BodyDecoder:
    """Separates response headers and decodes the body as data arrives.

    The body is framed by Content-Length, by chunked transfer encoding, or by
    the server closing the connection.
    """

    def __init__(self) -> None:
        self.headers: str | None = None
        self.done = False
        self._framing = _Framing.CONNECTION
        self._head = bytearray()
        self._body = bytearray()
        self._remaining = 0
        self._skip = 0

    def feed(self, data: bytes) -> bytes:
        """Take newly received bytes and return the body bytes now complete."""
        if self.done:
            return b""
        if self.headers is None:
            self._head += data
            index = self._head.find(b"\r\n\r\n")
            if index < 0:
                return b""
            self.headers = bytes(self._head[:index]).decode("latin-1")
            self._body += self._head[index + 4 :]
            self._head.clear()
            self._choose_framing()
        else:
            self._body += data
        return self._decode()

    def finish(self) -> bytes:
        """Signal that the connection closed; return any body it delimited."""
        if self.done or self.headers is None:
            return b""
        if self._framing is _Framing.CONNECTION:
            body = bytes(self._body)
            self._body.clear()
            self.done = True
            return body
        return b""

    def _choose_framing(self) -> None:
        headers = self.headers or ""
        marker = "\nContent-Length:"
        index = headers.find(marker + " ")
        if index >= 0:
            self._framing = _Framing.LENGTH
            self._remaining = _leading_int(headers[index + len(marker) :], _DECIMAL, 10)
            if self._remaining < 0:
                raise WebGetError(f"Invalid Content-Length: {self._remaining}")
        elif "\nTransfer-Encoding: chunked" in headers:
            self._framing = _Framing.CHUNKED
            self._remaining = 0
        else:
            self._framing = _Framing.CONNECTION

    def _decode(self) -> bytes:
        if self._framing is _Framing.LENGTH:
            if len(self._body) < self._remaining:
                return b""
            body = bytes(self._body[: self._remaining])
            self._body.clear()
            self.done = True
            return body
        if self._framing is _Framing.CHUNKED:
            return self._decode_chunks()
        return b""

    def _decode_chunks(self) -> bytes:
        out = bytearray()
        while True:
            if self._skip:
                taken = min(self._skip, len(self._body))
                del self._body[:taken]
                self._skip -= taken
                if self._skip:
                    break
            if self._remaining == 0:
                index = self._body.find(b"\r\n")
                if index < 0:
                    break
                size = _leading_int(bytes(self._body[:index]).decode("latin-1"), _HEX, 16)
                del self._body[: index + 2]
                if size < 0:
                    raise WebGetError(f"Invalid chunk size: {size}")
                if size == 0:
                    self.done = True
                    break
                self._remaining = size
            if len(self._body) < self._remaining:
                break
            out += self._body[: self._remaining]
            del self._body[: self._remaining]
            self._remaining = 0
            self._skip = 2
        return bytes(out)


def fetch(url: str, timeout: float = 5.0, out: TextIO | None = None) -> bytes:
    """Request ``url``, report progress, headers and body to ``out`` and return the body.

    Raises WebGetError for an unsupported URL, a timeout, or a response larger
    than the receive limit.
    """
    sink = sys.stdout if out is None else out
    text = codecs.getincrementaldecoder("utf-8")("replace")

    def log(line: str) -> None:
        sink.write(line + "\n")

    log(f"URL: {url}")
    parts = parse_url(url)
    log(f"hostname: {parts.hostname}")
    log(f"port: {parts.port}")
    log(f"path: {parts.path}")

    body = bytearray()
    with connect_to(parts.hostname, parts.port, socket.SOCK_STREAM, log=log) as sock:
        log("")
        request = build_request(parts)
        sock.sendall(request)
        sink.write("Sent Headers:\n" + request.decode("utf-8"))

        decoder = BodyDecoder()
        deadline = time.monotonic() + timeout
        received = 0
        while not decoder.done:
            if time.monotonic() > deadline:
                raise WebGetError(f"timeout after {timeout:.2f} seconds")
            if received >= _RESPONSE_SIZE:
                raise WebGetError("out of buffer space")

            ready, _, _ = select.select([sock], [], [], _SELECT_INTERVAL)
            if not ready:
                continue
            try:
                data = sock.recv(_RESPONSE_SIZE - received)
            except ConnectionError:
                data = b""

            if not data:
                tail = decoder.finish()
                body += tail
                sink.write(text.decode(tail, final=True))
                log("\nConnection closed by peer.")
                break

            received += len(data)
            had_headers = decoder.headers is not None
            chunk = decoder.feed(data)
            if not had_headers and decoder.headers is not None:
                log(f"Received Headers:\n{decoder.headers}")
                log("\nReceived Body:")
            body += chunk
            sink.write(text.decode(chunk))

        log("\nClosing socket...")
    log("Finished.")
    return bytes(body)


def main(argv: Sequence[str] | None = None) -> int:
    """Fetch a URL given on the command line."""
    parser = argparse.ArgumentParser(prog="web_get", description="Fetch an HTTP URL.")
    parser.add_argument("url", nargs="?", help="http URL to fetch")
    parser.add_argument("--timeout", type=float, default=5.0, help="seconds to wait")
    args = parser.parse_args(argv)

    if args.url is None:
        print("usage: web_get url", file=sys.stderr)
        return 1

    try:
        fetch(args.url, args.timeout)
    except WebGetError as exc:
        print(exc, file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Request failed. ({exc})", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())