"""Resolve a hostname to all of its addresses."""

from __future__ import annotations

import argparse
import socket
import sys
from collections.abc import Sequence

from netprimer.sockets import numeric_address

_AI_ALL = getattr(socket, "AI_ALL", 0x0100)


def resolve(hostname: str) -> list[str]:
    """Return the numeric address of every result for ``hostname``, in resolver order.

    Raises socket.gaierror when the name cannot be resolved.
    """
    infos = socket.getaddrinfo(hostname, None, 0, 0, 0, _AI_ALL)
    return [numeric_address(info[4]) for info in infos]


def main(argv: Sequence[str] | None = None) -> int:
    """Print every address a hostname resolves to."""
    parser = argparse.ArgumentParser(prog="lookup", description="Resolve a hostname.")
    parser.add_argument("hostname", nargs="?", help="name to resolve")
    args = parser.parse_args(argv)

    if args.hostname is None:
        print("Usage:\n\tlookup hostname")
        print("Example:\n\tlookup example.com")
        return 0

    print(f"Resolving hostname '{args.hostname}'")
    try:
        addresses = resolve(args.hostname)
    except OSError as exc:
        print(f"getaddrinfo() failed. ({exc})", file=sys.stderr)
        return 1

    print("Remote address is:")
    for address in addresses:
        print(f"\t{address}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())