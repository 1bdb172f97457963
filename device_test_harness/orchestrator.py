"""Run orchestrator: turns engine events into console output, per-test
device logs and persisted outcome records."""

import logging
import sys
import time
from collections.abc import Mapping, Sequence
from contextlib import ExitStack
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Literal, Protocol, TextIO

from device_test_harness.device_log import DeviceLog
from device_test_harness.engine import Fault, RunListener, RunResult, TestCase
from device_test_harness.models.outcome import OutcomeRecord, save_outcome
from device_test_harness.naming import (
    TestName,
    log_path,
    outcome_path,
    parse_test_id,
)

log = logging.getLogger(__name__)


class OutputLevel(IntEnum):
    """How much the orchestrator prints to the console."""

    QUIET = 0
    NORMAL = 1
    VERBOSE = 2


class OrchestratorStateError(Exception):
    """Raised when engine events arrive out of order."""


class Runner(Protocol):
    """Anything that can drive test cases and report to a RunListener."""

    def run(self, tests: Sequence[TestCase], listener: RunListener) -> RunResult: ...


@dataclass(kw_only=True)
class Console:
    """Console writer gated by the configured output level.

    Progress marks belong to normal output only: verbose output names each
    test on its own line instead, and quiet output shows neither.
    """

    stream: TextIO = field(default_factory=lambda: sys.stdout)
    level: OutputLevel = OutputLevel.NORMAL

    def write(
        self, text: str = "", level: OutputLevel = OutputLevel.NORMAL, end: str = "\n"
    ) -> None:
        if level <= self.level:
            self.stream.write(f"{text}{end}")

    def progress(self, mark: str) -> None:
        """Write a progress mark and make it visible immediately."""
        if self.level == OutputLevel.NORMAL:
            self.stream.write(mark)
            self.stream.flush()


@dataclass(kw_only=True)
class _ActiveTest:
    name: TestName
    test_id: str
    record: OutcomeRecord
    sink: ExitStack
    started: float
    marked: bool = False


@dataclass(kw_only=True)
class RunOrchestrator:
    """Mediates a single run between the execution engine and storage.

    Each test gets its own device log file, opened when the test starts and
    closed when it finishes, and one outcome record persisted on finish.
    """

    results_dir: Path
    logs_dir: Path
    device_log: DeviceLog
    console: Console = field(default_factory=Console)

    outcomes: dict[str, list[OutcomeRecord]] = field(
        default_factory=dict, init=False
    )
    faults: list[Fault] = field(default_factory=list, init=False)
    _state: Literal["idle", "started", "finished"] = field(default="idle", init=False)
    _active: _ActiveTest | None = field(default=None, init=False)

    @property
    def records(self) -> Sequence[OutcomeRecord]:
        return [record for records in self.outcomes.values() for record in records]

    @property
    def total_run(self) -> int:
        return len(self.records)

    @property
    def total_passed(self) -> int:
        return sum(1 for record in self.records if record.passed)

    @property
    def total_failed(self) -> int:
        return self.total_run - self.total_passed

    def run(
        self, runner: Runner, tests: Sequence[TestCase]
    ) -> Mapping[str, Sequence[OutcomeRecord]]:
        """Drive the tests through a runner with this orchestrator listening.

        If the runner raises while a test is active, that test is closed out as
        an error before the exception propagates, so its device log is released
        and its outcome record still reaches storage. The runner's exception is
        the one that propagates, even if closing out the test fails too.
        """
        try:
            runner.run(tests, self)
        except BaseException as exc:
            if self._active is not None:
                self._abort_active(self._active, exc)
            raise
        return self.outcomes

    def _abort_active(self, active: _ActiveTest, exc: BaseException) -> None:
        log.error("Run aborted during %s: %s", active.test_id, exc)
        try:
            self.fault_observed(Fault.from_exception(active.test_id, exc))
            self.test_finished(active.test_id)
        except Exception:
            log.exception("Failed to close out %s after abort", active.test_id)
        finally:
            if self._active is active:
                self._active = None
                active.sink.close()

    def run_started(self, result: RunResult) -> None:
        if self._state != "idle":
            raise OrchestratorStateError(f"Run already {self._state}")
        self._state = "started"
        log.debug("Run started")
        self.console.write("Started")

    def test_started(self, test_id: str) -> None:
        if self._state != "started":
            raise OrchestratorStateError(
                f"Test {test_id} started while run is {self._state}"
            )
        if self._active is not None:
            raise OrchestratorStateError(
                f"Test {test_id} started before {self._active.test_id} finished"
            )

        name = parse_test_id(test_id)
        device_log_path = log_path(self.logs_dir, name)
        record = OutcomeRecord.started(
            name.suite_name, name.test_name, device_log_path
        )

        sink = ExitStack()
        sink.enter_context(self.device_log.redirect(device_log_path))
        self._active = _ActiveTest(
            name=name,
            test_id=test_id,
            record=record,
            sink=sink,
            started=time.monotonic(),
        )
        self.outcomes.setdefault(name.suite_name, [])

        log.debug("Test started: suite=%s test=%s", name.suite_name, name.test_name)
        self.console.write(test_id, OutputLevel.VERBOSE)

    def fault_observed(self, fault: Fault) -> None:
        self.faults.append(fault)
        if self._active is None:
            log.warning("Fault outside of any test: %s", fault.message)
            return

        self._active.record = self._active.record.with_fault(fault.to_detail())
        log.debug("Fault in %s: %s", self._active.test_id, fault.message)
        self.console.progress(fault.single_character_display())
        self._active.marked = True

    def test_finished(self, test_id: str) -> None:
        active = self._active
        if active is None or active.test_id != test_id:
            raise OrchestratorStateError(
                f"Test {test_id} finished but was never started"
            )
        self._active = None
        active.sink.close()

        record = active.record.finalized(time.monotonic() - active.started)
        save_outcome(record, outcome_path(self.results_dir, active.name))
        self.outcomes[active.name.suite_name].append(record)

        log.debug(
            "Test finished: suite=%s test=%s status=%s duration=%.3fs",
            record.suite_name,
            record.test_name,
            record.status,
            record.duration,
        )
        if not active.marked:
            self.console.progress(".")

    def run_finished(self, elapsed: float) -> None:
        if self._state != "started":
            raise OrchestratorStateError(f"Run finished while {self._state}")
        self._state = "finished"

        self.console.write()
        self.console.write(f"Finished in {elapsed:f} seconds.")
        for number, fault in enumerate(self.faults, 1):
            self.console.write()
            self.console.write(f"{number:3d}) {fault.long_display()}")
        self.console.write()
        self.console.write(
            f"{self.total_run} tests, {self.total_passed} passed, "
            f"{self.total_failed} failed",
            OutputLevel.QUIET,
        )
        log.info(
            "Run finished: total=%d passed=%d failed=%d",
            self.total_run,
            self.total_passed,
            self.total_failed,
        )
