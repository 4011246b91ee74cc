"""A one-shot HTTP server that answers a single client with the local time."""

from __future__ import annotations

import argparse
import enum
import socket
import sys
from collections.abc import Sequence
from datetime import datetime

from netprimer.clock import local_time_message
from netprimer.sockets import Log, create_listener, numeric_address

_PREAMBLE = (
    "HTTP/1.1 200 OK\r\n"
    "Connection: close\r\n"
    "Content-Type: text/plain\r\n\r\n"
)

_REQUEST_LIMIT = 1024


def _quiet(_message: str) -> None:
    """Discard a progress message."""


class Mode(enum.Enum):
    """Which address families the listener accepts."""

    IPV4 = "ipv4"
    IPV6 = "ipv6"
    DUAL = "dual"


def time_message(now: datetime | float | None = None) -> bytes:
    """Return the complete HTTP response carrying the local time."""
    return (_PREAMBLE + local_time_message(now)).encode("ascii")


def open_listener(
    mode: Mode = Mode.IPV4, port: int | str = 8080, log: Log | None = None
) -> socket.socket:
    """Open a listening TCP socket on every local address for ``mode``."""
    mode = Mode(mode)
    if mode is Mode.IPV4:
        return create_listener(None, port, socket.AF_INET, socket.SOCK_STREAM, log=log)
    return create_listener(
        None,
        port,
        socket.AF_INET6,
        socket.SOCK_STREAM,
        dual_stack=mode is Mode.DUAL,
        log=log,
    )


def serve_once(listener: socket.socket, log: Log | None = None) -> str:
    """Accept one client, read its request, send the time and close it.

    Returns the numeric address of the client that was served.
    """
    log = log or _quiet

    log("Waiting for connection...")
    client, client_address = listener.accept()
    with client:
        address = numeric_address(client_address)
        log(f"Client is connected... {address}")

        log("Reading request...")
        request = client.recv(_REQUEST_LIMIT)
        log(f"Received {len(request)} bytes.")

        log("Sending response...")
        head = _PREAMBLE.encode("ascii")
        body = local_time_message().encode("ascii")
        for part in (head, body):
            sent = client.send(part)
            log(f"Sent {sent} of {len(part)} bytes.")

        log("Closing connection...")
    return address


def main(argv: Sequence[str] | None = None) -> int:
    """Serve the local time to one client over HTTP."""
    parser = argparse.ArgumentParser(
        prog="time_server", description="Answer one HTTP client with the local time."
    )
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in Mode],
        default=Mode.IPV4.value,
        help="address families to accept (default: ipv4)",
    )
    parser.add_argument("--port", default="8080", help="port to listen on (default: 8080)")
    args = parser.parse_args(argv)

    try:
        with open_listener(Mode(args.mode), args.port, log=print) as listener:
            serve_once(listener, log=print)
            print("Closing listening socket...")
    except OSError as exc:
        print(f"Server failed. ({exc})", file=sys.stderr)
        return 1

    print("Finished.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())