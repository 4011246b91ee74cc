"""List the IPv4 and IPv6 addresses of the local network interfaces."""

from __future__ import annotations

import argparse
import itertools
import socket
import sys
from collections.abc import Sequence
from dataclasses import dataclass

import psutil

_FAMILIES = (socket.AF_INET, socket.AF_INET6)


@dataclass(frozen=True)
class InterfaceAddress:
    """One internet address assigned to a network interface."""

    name: str
    family: socket.AddressFamily
    address: str

    @property
    def version(self) -> str:
        """Return "IPv4" or "IPv6"."""
        return "IPv4" if self.family == socket.AF_INET else "IPv6"


def list_addresses() -> list[InterfaceAddress]:
    """Return every IPv4 and IPv6 address of every interface, in system order."""
    return [
        InterfaceAddress(name, socket.AddressFamily(entry.family), entry.address)
        for name, entries in psutil.net_if_addrs().items()
        for entry in entries
        if entry.family in _FAMILIES
    ]


def format_address(entry: InterfaceAddress) -> str:
    """Format one address as a tab-separated line."""
    return f"{entry.name}\t{entry.version}\t\t{entry.address}"


def main(argv: Sequence[str] | None = None) -> int:
    """Print the local interface addresses."""
    parser = argparse.ArgumentParser(
        prog="list_addresses", description="List local network addresses."
    )
    parser.add_argument(
        "--grouped",
        action="store_true",
        help="print addresses grouped under each adapter name",
    )
    args = parser.parse_args(argv)

    try:
        entries = list_addresses()
    except OSError as exc:
        print(f"Failed to list interface addresses. ({exc})", file=sys.stderr)
        return 1

    if args.grouped:
        for name, group in itertools.groupby(entries, key=lambda e: e.name):
            print(f"\nAdapter name: {name}")
            for entry in group:
                print(f"\t{entry.version}\t{entry.address}")
    else:
        for entry in entries:
            print(format_address(entry))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())