"""Print the local time."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from datetime import datetime


def local_time_message(now: datetime | float | None = None) -> str:
    """Return "Local time is: " followed by the ctime-style local time and a newline.

    ``now`` may be a datetime, a POSIX timestamp, or None for the current time.
    """
    if now is None:
        stamp = datetime.now()
    elif isinstance(now, datetime):
        stamp = now.astimezone().replace(tzinfo=None) if now.tzinfo else now
    else:
        stamp = datetime.fromtimestamp(now)
    return f"Local time is: {stamp.ctime()}\n"


def main(argv: Sequence[str] | None = None) -> int:
    """Print the current local time."""
    parser = argparse.ArgumentParser(prog="time_console", description="Print the local time.")
    parser.parse_args(argv)
    print(local_time_message(), end="")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())