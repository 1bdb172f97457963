"""Synchronous execution engine for device test suites."""

import inspect
import logging
import time
import traceback
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import ClassVar, Literal, Protocol

from device_test_harness.models.outcome import FaultDetail
from device_test_harness.naming import format_test_id
from device_test_harness.target import BlockDevice

log = logging.getLogger(__name__)


class DeviceTestSuite:
    """Base class for suites of device tests.

    Each ``test_*`` method is one test. A fresh instance is created per test,
    with the device target and the device logger attached.
    """

    __test__ = False

    suite_name: ClassVar[str | None] = None

    def __init__(self, target: BlockDevice | None, log: logging.Logger) -> None:
        self.target = target
        self.log = log

    @classmethod
    def name(cls) -> str:
        return cls.suite_name or cls.__name__

    def setup(self) -> None:
        """Run before each test method."""

    def teardown(self) -> None:
        """Run after each test method, even when it raised."""


@dataclass(frozen=True, kw_only=True)
class TestCase:
    """One test method of a suite."""

    __test__ = False

    suite_cls: type[DeviceTestSuite]
    method_name: str

    @property
    def suite_name(self) -> str:
        return self.suite_cls.name()

    @property
    def test_id(self) -> str:
        return format_test_id(self.suite_name, self.method_name)


def collect_tests(
    suite_classes: Iterable[type[DeviceTestSuite]],
) -> Sequence[TestCase]:
    """List the test methods of each suite in definition order."""
    tests: list[TestCase] = []
    for suite_cls in suite_classes:
        seen: set[str] = set()
        # Walk the MRO base-first so inherited tests keep their position
        for klass in reversed(suite_cls.__mro__):
            for method_name, member in vars(klass).items():
                if (
                    method_name.startswith("test_")
                    and inspect.isfunction(member)
                    and method_name not in seen
                ):
                    seen.add(method_name)
                    tests.append(
                        TestCase(suite_cls=suite_cls, method_name=method_name)
                    )
    return tests


@dataclass(frozen=True, kw_only=True)
class Fault:
    """A failure or error raised while running a test."""

    kind: Literal["failure", "error"]
    test_id: str
    message: str
    backtrace: Sequence[str] = ()

    @classmethod
    def from_exception(cls, test_id: str, exc: BaseException) -> "Fault":
        kind: Literal["failure", "error"] = (
            "failure" if isinstance(exc, AssertionError) else "error"
        )
        message = str(exc) if kind == "failure" else f"{type(exc).__name__}: {exc}"
        backtrace = [
            line.rstrip("\n") for line in traceback.format_tb(exc.__traceback__)
        ]
        return cls(kind=kind, test_id=test_id, message=message, backtrace=backtrace)

    def single_character_display(self) -> str:
        return "F" if self.kind == "failure" else "E"

    def long_display(self) -> str:
        label = "Failure" if self.kind == "failure" else "Error"
        lines = [f"{label}:", f"{self.test_id}:", self.message]
        lines.extend(self.backtrace)
        return "\n".join(lines)

    def to_detail(self) -> FaultDetail:
        return FaultDetail(
            kind=self.kind, message=self.message, backtrace=list(self.backtrace)
        )


@dataclass(kw_only=True)
class RunResult:
    """Accumulates counts while a run is in progress."""

    run_count: int = 0
    fault_count: int = 0
    faults: list[Fault] = field(default_factory=list)

    def add_fault(self, fault: Fault) -> None:
        self.faults.append(fault)
        self.fault_count += 1


class RunListener(Protocol):
    """Receiver of the lifecycle events emitted by SuiteRunner."""

    def run_started(self, result: RunResult) -> None: ...

    def run_finished(self, elapsed: float) -> None: ...

    def test_started(self, test_id: str) -> None: ...

    def test_finished(self, test_id: str) -> None: ...

    def fault_observed(self, fault: Fault) -> None: ...


@dataclass(frozen=True, kw_only=True)
class SuiteRunner:
    """Runs test cases one after another, reporting to a listener.

    Exceptions raised by test bodies become faults. Anything that is not an
    Exception, such as KeyboardInterrupt, stops the run.
    """

    target: BlockDevice | None
    log: logging.Logger

    def run(self, tests: Sequence[TestCase], listener: RunListener) -> RunResult:
        result = RunResult()
        started = time.monotonic()
        log.debug("Running %d test(s)", len(tests))

        listener.run_started(result)
        for test in tests:
            listener.test_started(test.test_id)
            for fault in self._run_test(test):
                result.add_fault(fault)
                listener.fault_observed(fault)
            result.run_count += 1
            listener.test_finished(test.test_id)
        listener.run_finished(time.monotonic() - started)

        return result

    def _run_test(self, test: TestCase) -> Sequence[Fault]:
        faults: list[Fault] = []
        suite = test.suite_cls(self.target, self.log)
        try:
            suite.setup()
            getattr(suite, test.method_name)()
        except Exception as exc:
            faults.append(Fault.from_exception(test.test_id, exc))
        finally:
            try:
                suite.teardown()
            except Exception as exc:
                faults.append(Fault.from_exception(test.test_id, exc))
        return faults
