"""Reconstruct discrete messages from a raw device log.

A raw log interleaves multi-line message bodies without delimiters. Every
message starts with a header line such as::

    I, [2011-10-19T15:02:36.011520 #1065]  INFO -- device: starting

and any following line that is not a header belongs to the same message.
"""

import re
from collections.abc import Iterable, Iterator, Sequence
from pathlib import Path

from device_test_harness.models.message import Level, Message

UNKNOWN_TIME = "??:??:??.??????"

HEADER_PATTERN = re.compile(
    r"^(?P<level>[DIWE]), \[(?P<stamp>[^\]]*)\][^:\n]*: ?(?P<body>.*)\Z",
    re.DOTALL,
)


class LogParseError(Exception):
    """Raised when a continuation line appears before any header line."""

    def __init__(self, line_number: int, line: str) -> None:
        super().__init__(
            f"Line {line_number} does not belong to any message: {line.rstrip()!r}"
        )
        self.line_number = line_number
        self.line = line


def extract_time(stamp: str) -> str:
    """Return the time of day from a header timestamp.

    Takes everything after the ``T`` up to the first whitespace, or
    UNKNOWN_TIME when the stamp has no ``T``.
    """
    _, sep, rest = stamp.partition("T")
    if not sep:
        return UNKNOWN_TIME
    parts = rest.split(maxsplit=1)
    return parts[0] if parts else ""


def read_messages(lines: Iterable[str]) -> Iterator[Message]:
    """Yield the messages encoded in a sequence of raw log lines.

    Lines keep their terminators; continuation lines are appended to the
    open message's body verbatim.

    Raises:
        LogParseError: If a non-header line arrives while no message is open

    """
    level: Level | None = None
    time = ""
    body: list[str] = []

    for line_number, line in enumerate(lines, 1):
        if header := HEADER_PATTERN.match(line):
            if level is not None:
                yield Message(level=level, time=time, text="".join(body))
            level = Level(header["level"])
            time = extract_time(header["stamp"])
            body = [header["body"]]
        elif level is None:
            raise LogParseError(line_number, line)
        else:
            body.append(line)

    if level is not None:
        yield Message(level=level, time=time, text="".join(body))


def read_log_file(path: Path) -> Sequence[Message]:
    """Reconstruct every message of a raw log file."""
    with path.open(encoding="utf-8", newline="") as f:
        return list(read_messages(f))
