"""Socket helpers shared by the command-line tools."""

from __future__ import annotations

import argparse
import socket
from collections.abc import Callable, Sequence

Log = Callable[[str], None]

_NUMERIC = socket.NI_NUMERICHOST | socket.NI_NUMERICSERV


def _report(log: Log | None, message: str) -> None:
    """Pass a progress message to ``log`` when one is given."""
    if log is not None:
        log(message)


def create_listener(
    host: str | None = None,
    port: int | str = 8080,
    family: socket.AddressFamily = socket.AF_INET,
    socktype: socket.SocketKind = socket.SOCK_STREAM,
    backlog: int = 10,
    dual_stack: bool = False,
    log: Log | None = None,
) -> socket.socket:
    """Create a socket bound to a local address; stream sockets also listen.

    With ``dual_stack`` an IPv6 socket also accepts IPv4 connections.
    """
    if dual_stack and family != socket.AF_INET6:
        raise ValueError("dual_stack requires an IPv6 listener")

    _report(log, "Configuring local address...")
    infos = socket.getaddrinfo(host, port, family, socktype, 0, socket.AI_PASSIVE)
    sock_family, sock_type, proto, _canonname, address = infos[0]

    _report(log, "Creating socket...")
    sock = socket.socket(sock_family, sock_type, proto)
    try:
        if dual_stack:
            sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0)
        _report(log, "Binding socket to local address...")
        sock.bind(address)
        if sock_type == socket.SOCK_STREAM:
            _report(log, "Listening...")
            sock.listen(backlog)
    except BaseException:
        sock.close()
        raise
    return sock


def connect_to(
    host: str,
    port: int | str,
    socktype: socket.SocketKind = socket.SOCK_STREAM,
    log: Log | None = None,
) -> socket.socket:
    """Resolve ``host`` and ``port`` and return a socket connected to the first address."""
    _report(log, "Configuring remote address...")
    infos = socket.getaddrinfo(host, port, 0, socktype)
    sock_family, sock_type, proto, _canonname, address = infos[0]

    remote_host, remote_service = socket.getnameinfo(address, socket.NI_NUMERICHOST)
    _report(log, f"Remote address is: {remote_host} {remote_service}")

    _report(log, "Creating socket...")
    sock = socket.socket(sock_family, sock_type, proto)
    try:
        _report(log, "Connecting...")
        sock.connect(address)
    except BaseException:
        sock.close()
        raise
    _report(log, "Connected.")
    return sock


def numeric_address(sockaddr: tuple) -> str:
    """Return the numeric host part of a socket address."""
    return socket.getnameinfo(tuple(sockaddr), _NUMERIC)[0]


def numeric_service(sockaddr: tuple) -> str:
    """Return the numeric port of a socket address as text."""
    return socket.getnameinfo(tuple(sockaddr), _NUMERIC)[1]


def main(argv: Sequence[str] | None = None) -> int:
    """Report that the socket API is usable."""
    parser = argparse.ArgumentParser(
        prog="sock_init", description="Check that the socket API is ready."
    )
    parser.parse_args(argv)
    print("Ready to use socket API.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())