"""Test identifiers and the file names derived from them."""

import re
from pathlib import Path
from typing import NamedTuple

ANONYMOUS_SUITE = "anonymous"
TEST_PREFIX = "test_"

_TEST_ID_PATTERN = re.compile(r"^test_(?P<name>.+)\((?P<suite>[^()]+)\)$", re.DOTALL)
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]+")

# A lone "%" is never produced by escaping, which always emits "%XX"
EMPTY_SEGMENT = "%"


class TestName(NamedTuple):
    """Suite and test name decoded from an engine test identifier."""

    __test__ = False

    suite_name: str
    test_name: str


def format_test_id(suite_name: str, method_name: str) -> str:
    """Build the engine identifier for a test method, e.g. 'test_x(Suite)'."""
    return f"{method_name}({suite_name})"


def parse_test_id(test_id: str) -> TestName:
    """Split an engine identifier into suite and test name.

    Identifiers of the form ``test_<name>(<suite>)`` lose their ``test_``
    prefix; anything else is an anonymous test named by the whole identifier.
    """
    if match := _TEST_ID_PATTERN.match(test_id):
        return TestName(match["suite"], match["name"])
    return TestName(ANONYMOUS_SUITE, test_id)


def sanitize(name: str) -> str:
    """Map a suite or test name to a filesystem-safe path segment.

    Every character outside ``[A-Za-z0-9_-]`` becomes ``%XX`` escapes of its
    UTF-8 bytes. ``%`` itself is escaped, so distinct names never collide.
    The empty name maps to ``EMPTY_SEGMENT``.
    """
    if not name:
        return EMPTY_SEGMENT
    return _UNSAFE_CHARS.sub(
        lambda m: "".join(f"%{b:02X}" for b in m.group().encode()), name
    )


def outcome_path(results_dir: Path, name: TestName) -> Path:
    """Location of the outcome record for a test."""
    return results_dir / sanitize(name.suite_name) / f"{sanitize(name.test_name)}.yaml"


def log_path(logs_dir: Path, name: TestName) -> Path:
    """Location of the raw device log for a test."""
    return logs_dir / f"{sanitize(name.suite_name)}.{sanitize(name.test_name)}.log"
