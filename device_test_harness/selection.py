"""Selection of the test cases a run executes."""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeAlias

from device_test_harness.engine import TestCase
from device_test_harness.naming import parse_test_id


@dataclass(frozen=True, kw_only=True)
class ExactMatch:
    """Matches a suite name, a test id or a bare test name exactly."""

    value: str


@dataclass(frozen=True, kw_only=True)
class PatternMatch:
    """Matches when a regular expression is found in the suite name or test id."""

    pattern: re.Pattern[str]

    @classmethod
    def compile(cls, pattern: str) -> "PatternMatch":
        return cls(pattern=re.compile(pattern))


TestFilter: TypeAlias = ExactMatch | PatternMatch


def matches(test_filter: TestFilter, test: TestCase) -> bool:
    """Evaluate a single filter against a test case."""
    match test_filter:
        case ExactMatch(value=value):
            return value in (
                test.suite_name,
                test.test_id,
                test.method_name,
                parse_test_id(test.test_id).test_name,
            )
        case PatternMatch(pattern=pattern):
            return any(
                pattern.search(candidate)
                for candidate in (test.suite_name, test.test_id)
            )


def select_tests(
    tests: Sequence[TestCase], filters: Sequence[TestFilter] = ()
) -> Sequence[TestCase]:
    """Keep the tests accepted by at least one filter, preserving order.

    With no filters every test is kept; otherwise tests no filter accepts are
    rejected.
    """
    if not filters:
        return list(tests)
    return [test for test in tests if any(matches(f, test) for f in filters)]
