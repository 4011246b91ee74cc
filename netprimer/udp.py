"""UDP tools: receive one datagram, send one datagram, and an upper-casing echo server."""

from __future__ import annotations

import argparse
import selectors
import socket
import sys
from collections.abc import Sequence

from netprimer.sockets import Log, create_listener, numeric_address, numeric_service
from netprimer.tcp_servers import to_upper

_RECEIVE_LIMIT = 1024
_DEFAULT_MESSAGE = "Hello World"


def _quiet(_message: str) -> None:
    """Discard a progress message."""


def receive_one(sock: socket.socket, log: Log | None = None) -> tuple[bytes, str, str]:
    """Wait for one datagram on ``sock``.

    Returns the data together with the numeric address and port of its sender.
    """
    log = log or _quiet
    data, sender = sock.recvfrom(_RECEIVE_LIMIT)
    log(f"Received ({len(data)} bytes): {data.decode('utf-8', 'replace')}")
    address = numeric_address(sender)
    service = numeric_service(sender)
    log(f"Remote address is: {address} {service}")
    return data, address, service


def send_message(
    host: str = "127.0.0.1",
    port: int | str = 8080,
    message: str | bytes = _DEFAULT_MESSAGE,
    log: Log | None = None,
) -> int:
    """Send ``message`` as a single datagram to ``host`` and ``port``.

    Returns the number of bytes sent.
    """
    log = log or _quiet
    payload = message.encode("utf-8") if isinstance(message, str) else bytes(message)

    log("Configuring remote address...")
    family, socktype, proto, _canonname, address = socket.getaddrinfo(
        host, port, 0, socket.SOCK_DGRAM
    )[0]
    log(f"Remote address is: {numeric_address(address)} {numeric_service(address)}")

    log("Creating socket...")
    with socket.socket(family, socktype, proto) as sock:
        log(f"Sending: {payload.decode('utf-8', 'replace')}")
        sent = sock.sendto(payload, address)
        log(f"Sent {sent} bytes.")
    return sent


def serve_upper(
    sock: socket.socket, limit: int | None = None, use_select: bool = False
) -> int:
    """Answer each datagram on ``sock`` with its upper-cased contents.

    Stops after ``limit`` datagrams, or never when ``limit`` is None. With
    ``use_select`` the socket is waited on through a selector before each read.
    Raises ConnectionError when an empty datagram arrives. Returns the number
    of datagrams answered.
    """
    if limit is not None and limit < 0:
        raise ValueError("limit must not be negative")

    selector = selectors.DefaultSelector() if use_select else None
    served = 0
    try:
        if selector is not None:
            selector.register(sock, selectors.EVENT_READ)
        while limit is None or served < limit:
            if selector is not None and not selector.select():
                continue
            data, sender = sock.recvfrom(_RECEIVE_LIMIT)
            if not data:
                raise ConnectionError("connection closed.")
            sock.sendto(to_upper(data), sender)
            served += 1
    finally:
        if selector is not None:
            selector.close()
    return served


def _port_parser(prog: str, description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog, description=description)
    parser.add_argument("--port", default="8080", help="port to use (default: 8080)")
    return parser


def recvfrom_main(argv: Sequence[str] | None = None) -> int:
    """Receive and describe one datagram."""
    parser = _port_parser("udp_recvfrom", "Receive a single UDP datagram.")
    args = parser.parse_args(argv)

    try:
        with create_listener(
            None, args.port, socket.AF_INET, socket.SOCK_DGRAM, log=print
        ) as sock:
            receive_one(sock, log=print)
    except OSError as exc:
        print(f"Receive failed. ({exc})", file=sys.stderr)
        return 1

    print("Finished.")
    return 0


def sendto_main(argv: Sequence[str] | None = None) -> int:
    """Send one datagram."""
    parser = _port_parser("udp_sendto", "Send a single UDP datagram.")
    parser.add_argument("--host", default="127.0.0.1", help="peer (default: 127.0.0.1)")
    parser.add_argument(
        "--message", default=_DEFAULT_MESSAGE, help="text to send (default: Hello World)"
    )
    args = parser.parse_args(argv)

    try:
        send_message(args.host, args.port, args.message, log=print)
    except OSError as exc:
        print(f"Send failed. ({exc})", file=sys.stderr)
        return 1

    print("Finished.")
    return 0


def upper_main(argv: Sequence[str] | None = None) -> int:
    """Run the upper-casing UDP echo server."""
    parser = _port_parser("udp_serve_toupper", "Echo UDP datagrams upper-cased.")
    parser.add_argument(
        "--simple",
        action="store_true",
        help="read the socket directly instead of waiting on it with select",
    )
    args = parser.parse_args(argv)

    try:
        with create_listener(
            None, args.port, socket.AF_INET, socket.SOCK_DGRAM, log=print
        ) as sock:
            print("Waiting for connections...")
            try:
                serve_upper(sock, use_select=not args.simple)
            except KeyboardInterrupt:
                print("Closing listening socket...")
    except ConnectionError as exc:
        print(f"connection closed. ({exc})", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Server failed. ({exc})", file=sys.stderr)
        return 1

    print("Finished.")
    return 0


if __name__ == "__main__":
    raise SystemExit(upper_main())