"""Build DNS queries, send them over UDP and describe DNS messages as text."""

from __future__ import annotations

import argparse
import socket
import struct
import sys
from collections.abc import Sequence

_END_OF_MESSAGE = "End of message."
_HEADER_SIZE = 12
_RESPONSE_LIMIT = 1024

_TYPES = {"a": 1, "mx": 15, "txt": 16, "aaaa": 28, "any": 255}

_OPCODES = {0: "standard", 1: "reverse", 2: "status"}

_RCODES = {
    0: "success",
    1: "format error",
    2: "server failure",
    3: "name error",
    4: "not implemented",
    5: "refused",
}

_TYPE_A = 1
_TYPE_CNAME = 5
_TYPE_MX = 15
_TYPE_TXT = 16
_TYPE_AAAA = 28


class DnsFormatError(ValueError):
    """A DNS message is too short or runs past its end."""


def record_type(name: str) -> int:
    """Return the numeric record type for one of: a, aaaa, txt, mx, any."""
    try:
        return _TYPES[name]
    except KeyError:
        raise ValueError(
            f"Unknown type '{name}'. Use a, aaaa, txt, mx, or any."
        ) from None


def build_query(hostname: str, qtype: int, query_id: int = 0xABCD) -> bytes:
    """Return a recursive DNS query for one question about ``hostname``."""
    if len(hostname) > 255:
        raise ValueError("Hostname too long.")
    if not 0 <= qtype <= 0xFFFF:
        raise ValueError(f"Record type out of range: {qtype}")
    if not 0 <= query_id <= 0xFFFF:
        raise ValueError(f"Query id out of range: {query_id}")

    header = struct.pack("!6H", query_id, 0x0100, 1, 0, 0, 0)
    name = bytearray()
    for label in (hostname.split(".") if hostname else []):
        encoded = label.encode("ascii")
        if len(encoded) > 63:
            raise ValueError(f"Label too long: {label!r}")
        name.append(len(encoded))
        name += encoded
    name.append(0)
    return header + bytes(name) + struct.pack("!HH", qtype, 1)


def _name(
    message: bytes, offset: int, pointers: frozenset[int] = frozenset()
) -> tuple[list[str], str, int]:
    """Decode a name; return its labels, its display text and the offset after it."""
    end = len(message)
    labels: list[str] = []
    parts: list[str] = []
    while True:
        if offset + 2 > end:
            raise DnsFormatError(_END_OF_MESSAGE)
        first = message[offset]
        if first & 0xC0 == 0xC0:
            if offset in pointers:
                raise DnsFormatError("Compression pointer loop.")
            target = ((first & 0x3F) << 8) + message[offset + 1]
            sub_labels, sub_display, _ = _name(message, target, pointers | {offset})
            labels.extend(sub_labels)
            parts.append(f" (pointer {target}) {sub_display}")
            return labels, "".join(parts), offset + 2

        length = first
        if offset + 1 + length + 1 > end:
            raise DnsFormatError(_END_OF_MESSAGE)
        if length == 0:
            return labels, "".join(parts), offset + 1
        label = message[offset + 1 : offset + 1 + length].decode("latin-1")
        labels.append(label)
        parts.append(label)
        offset += 1 + length
        if not message[offset]:
            return labels, "".join(parts), offset + 1
        parts.append(".")


def read_name(message: bytes, offset: int) -> tuple[str, int]:
    """Decode the possibly compressed name at ``offset``.

    Returns the dotted name and the offset just past its encoding.
    """
    labels, _display, next_offset = _name(bytes(message), offset)
    return ".".join(labels), next_offset


def _display_name(message: bytes, offset: int) -> tuple[str, int]:
    _labels, display, next_offset = _name(message, offset)
    return display, next_offset


def _describe_rdata(message: bytes, rtype: int, offset: int, rdata: bytes) -> list[str]:
    rdlen = len(rdata)
    if rdlen == 4 and rtype == _TYPE_A:
        return ["Address " + ".".join(str(octet) for octet in rdata)]
    if rdlen == 16 and rtype == _TYPE_AAAA:
        groups = (f"{hi:02x}{lo:02x}" for hi, lo in zip(rdata[::2], rdata[1::2]))
        return ["Address " + ":".join(groups)]
    if rtype == _TYPE_MX and rdlen > 3:
        (preference,) = struct.unpack_from("!H", rdata)
        exchange_name, _ = _display_name(message, offset + 2)
        return [f"  pref: {preference}", f"MX: {exchange_name}"]
    if rtype == _TYPE_TXT:
        return [f"TXT: '{rdata[1:].decode('latin-1')}'"]
    if rtype == _TYPE_CNAME:
        alias, _ = _display_name(message, offset)
        return [f"CNAME: {alias}"]
    return []


def format_message(message: bytes) -> str:
    """Describe a DNS query or response field by field, one item per line.

    Raises DnsFormatError when the message is shorter than its contents claim.
    """
    msg = bytes(message)
    if len(msg) < _HEADER_SIZE:
        raise DnsFormatError("Message is too short to be valid.")

    flags = msg[2]
    qr = (flags & 0x80) >> 7
    opcode = (flags & 0x78) >> 3
    aa = (flags & 0x04) >> 2
    tc = (flags & 0x02) >> 1
    rd = flags & 0x01

    lines = [
        f"ID = {msg[0]:X} {msg[1]:X}",
        f"QR = {qr} {'response' if qr else 'query'}",
        f"OPCODE = {opcode} {_OPCODES.get(opcode, '?')}",
        f"AA = {aa} {'authoritative' if aa else ''}",
        f"TC = {tc} {'message truncated' if tc else ''}",
        f"RD = {rd} {'recursion desired' if rd else ''}",
    ]

    if qr:
        rcode = msg[3] & 0x0F
        lines.append(f"RCODE = {rcode} {_RCODES.get(rcode, '?')}")
        if rcode:
            return "\n".join(lines) + "\n"

    qdcount, ancount, nscount, arcount = struct.unpack_from("!4H", msg, 4)
    lines += [
        f"QDCOUNT = {qdcount}",
        f"ANCOUNT = {ancount}",
        f"NSCOUNT = {nscount}",
        f"ARCOUNT = {arcount}",
    ]

    end = len(msg)
    offset = _HEADER_SIZE

    for number in range(1, qdcount + 1):
        if offset >= end:
            raise DnsFormatError(_END_OF_MESSAGE)
        name, offset = _display_name(msg, offset)
        if offset + 4 > end:
            raise DnsFormatError(_END_OF_MESSAGE)
        qtype, qclass = struct.unpack_from("!HH", msg, offset)
        offset += 4
        lines += [
            f"Query {number:2d}",
            f"  name: {name}",
            f"  type: {qtype}",
            f" class: {qclass}",
        ]

    for number in range(1, ancount + nscount + arcount + 1):
        if offset >= end:
            raise DnsFormatError(_END_OF_MESSAGE)
        name, offset = _display_name(msg, offset)
        if offset + 10 > end:
            raise DnsFormatError(_END_OF_MESSAGE)
        rtype, rclass, ttl, rdlen = struct.unpack_from("!HHIH", msg, offset)
        offset += 10
        lines += [
            f"Answer {number:2d}",
            f"  name: {name}",
            f"  type: {rtype}",
            f" class: {rclass}",
            f"   ttl: {ttl}",
            f" rdlen: {rdlen}",
        ]
        if offset + rdlen > end:
            raise DnsFormatError(_END_OF_MESSAGE)
        lines += _describe_rdata(msg, rtype, offset, msg[offset : offset + rdlen])
        offset += rdlen

    if offset != end:
        lines.append("There is some unread data left over.")

    lines.append("")
    return "\n".join(lines) + "\n"


def exchange(
    query: bytes,
    server: str = "8.8.8.8",
    port: int | str = 53,
    timeout: float | None = None,
) -> bytes:
    """Send ``query`` to a DNS server over UDP and return the first datagram received."""
    family, socktype, proto, _canonname, address = socket.getaddrinfo(
        server, port, 0, socket.SOCK_DGRAM
    )[0]
    with socket.socket(family, socktype, proto) as sock:
        sock.settimeout(timeout)
        sock.sendto(query, address)
        return sock.recv(_RESPONSE_LIMIT)


def main(argv: Sequence[str] | None = None) -> int:
    """Query a DNS server and print both the query and the response."""
    parser = argparse.ArgumentParser(prog="dns_query", description="Send a DNS query.")
    parser.add_argument("hostname", nargs="?", help="name to look up")
    parser.add_argument("type", nargs="?", help="a, aaaa, txt, mx or any")
    parser.add_argument("--server", default="8.8.8.8", help="DNS server (default: 8.8.8.8)")
    parser.add_argument("--port", default="53", help="DNS server port (default: 53)")
    parser.add_argument("--timeout", type=float, default=None, help="seconds to wait")
    args = parser.parse_args(argv)

    if args.type is None:
        print("Usage:\n\tdns_query hostname type")
        print("Example:\n\tdns_query example.com aaaa")
        return 0

    if len(args.hostname) > 255:
        print("Hostname too long.", file=sys.stderr)
        return 1

    try:
        query = build_query(args.hostname, record_type(args.type))
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    print("Configuring remote address...")
    print("Creating socket...")
    try:
        response = exchange(query, args.server, args.port, args.timeout)
    except OSError as exc:
        print(f"Query failed. ({exc})", file=sys.stderr)
        return 1

    print(f"Sent {len(query)} bytes.")
    try:
        print(format_message(query), end="")
        print(f"Received {len(response)} bytes.")
        print(format_message(response), end="")
    except DnsFormatError as exc:
        print(exc, file=sys.stderr)
        return 1
    print()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())