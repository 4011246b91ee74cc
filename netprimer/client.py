"""An interactive client that relays console lines to a TCP or UDP peer."""

from __future__ import annotations

import argparse
import queue
import select
import socket
import sys
import threading
from collections.abc import Callable, Iterable, Sequence
from typing import TextIO

from netprimer.sockets import connect_to

_POLL_INTERVAL = 0.1
_RECEIVE_LIMIT = 4096


def _read_lines(stdin: Iterable[str], lines: queue.Queue) -> None:
    """Queue each input line, then None once input ends."""
    try:
        for line in stdin:
            lines.put(line)
    finally:
        lines.put(None)


def _step(sock: socket.socket, lines: queue.Queue, write: Callable[[str], None]) -> bool:
    """Handle pending network data and queued input; return False when done."""
    readable, _, _ = select.select([sock], [], [], _POLL_INTERVAL)
    if readable:
        try:
            data = sock.recv(_RECEIVE_LIMIT)
        except ConnectionError:
            data = b""
        if not data:
            write("Connection closed by peer.\n")
            return False
        write(f"Received ({len(data)} bytes): {data.decode('utf-8', 'replace')}")

    while True:
        try:
            line = lines.get_nowait()
        except queue.Empty:
            return True
        if line is None:
            return False
        write(f"Sending: {line}")
        sent = sock.send(line.encode("utf-8"))
        write(f"Sent {sent} bytes.\n")


def run_client(
    host: str,
    port: int | str,
    socktype: socket.SocketKind = socket.SOCK_STREAM,
    stdin: Iterable[str] | None = None,
    stdout: TextIO | None = None,
) -> None:
    """Connect to a peer, print what it sends and send each line read from ``stdin``.

    Stops when the peer closes the connection or the input ends.
    """
    source = sys.stdin if stdin is None else stdin
    sink = sys.stdout if stdout is None else stdout

    def write(text: str) -> None:
        sink.write(text)
        sink.flush()

    def log(line: str) -> None:
        write(line + "\n")

    with connect_to(host, port, socktype, log=log) as sock:
        log("To send data, enter text followed by enter.")
        lines: queue.Queue = queue.Queue()
        threading.Thread(target=_read_lines, args=(source, lines), daemon=True).start()
        while _step(sock, lines, write):
            pass
        log("Closing socket...")
    log("Finished.")


def _main(argv: Sequence[str] | None, prog: str, socktype: socket.SocketKind) -> int:
    parser = argparse.ArgumentParser(prog=prog, description="Talk to a remote peer.")
    parser.add_argument("hostname", nargs="?", help="peer to connect to")
    parser.add_argument("port", nargs="?", help="peer port")
    args = parser.parse_args(argv)

    if args.port is None:
        print(f"usage: {prog} hostname port", file=sys.stderr)
        return 1

    try:
        run_client(args.hostname, args.port, socktype)
    except OSError as exc:
        print(f"Connection failed. ({exc})", file=sys.stderr)
        return 1
    return 0


def tcp_main(argv: Sequence[str] | None = None) -> int:
    """Run the interactive client over TCP."""
    return _main(argv, "tcp_client", socket.SOCK_STREAM)


def udp_main(argv: Sequence[str] | None = None) -> int:
    """Run the interactive client over UDP."""
    return _main(argv, "udp_client", socket.SOCK_DGRAM)


if __name__ == "__main__":
    raise SystemExit(tcp_main())