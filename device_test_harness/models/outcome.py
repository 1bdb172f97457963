"""Models for persisted per-test outcomes."""

from collections.abc import Sequence
from pathlib import Path
from typing import Literal, Self, TypeAlias

import yaml
from pydantic import Field

from device_test_harness.models.base import Model

Status: TypeAlias = Literal["pass", "fail", "error"]
FaultKind: TypeAlias = Literal["failure", "error"]


class FaultDetail(Model):
    """A failure or error raised by a test body."""

    kind: FaultKind = Field(..., description="'failure' for assertions, else 'error'")
    message: str = Field(..., description="Exception message")
    backtrace: Sequence[str] = Field(
        default_factory=list, description="Formatted traceback lines"
    )


class OutcomeRecord(Model):
    """Durable result of one executed test.

    Records are immutable: every state change produces a new record.
    """

    suite_name: str = Field(..., description="Suite the test belongs to")
    test_name: str = Field(..., description="Test name without the 'test_' prefix")
    status: Status = Field(default="pass", description="Outcome of the test")
    faults: Sequence[FaultDetail] = Field(
        default_factory=list, description="Faults observed while the test ran"
    )
    log_path: Path = Field(..., description="Raw log captured for this test")
    duration: float = Field(default=0.0, description="Elapsed seconds")

    @classmethod
    def started(cls, suite_name: str, test_name: str, log_path: Path) -> Self:
        """Create the record for a test that has just begun."""
        return cls(suite_name=suite_name, test_name=test_name, log_path=log_path)

    @property
    def passed(self) -> bool:
        return self.status == "pass"

    def with_fault(self, detail: FaultDetail) -> Self:
        """Return a copy with the fault attached and the status recomputed.

        Errors outrank failures: one error makes the whole test an error.
        """
        faults = [*self.faults, detail]
        status: Status = (
            "error" if any(f.kind == "error" for f in faults) else "fail"
        )
        return self.model_copy(update={"faults": faults, "status": status})

    def finalized(self, duration: float) -> Self:
        """Return a copy carrying the test's elapsed time."""
        return self.model_copy(update={"duration": duration})


def save_outcome(record: OutcomeRecord, path: Path) -> Path:
    """Write an outcome record as a YAML document.

    Args:
        record: Record to persist
        path: Destination file, parent directories are created

    Returns:
        Path to the written file

    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(
            record.model_dump(mode="json"), f, sort_keys=False, allow_unicode=True
        )
    return path


def load_outcome(path: Path) -> OutcomeRecord:
    """Read an outcome record written by save_outcome."""
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return OutcomeRecord.model_validate(data)


def load_outcomes(results_dir: Path) -> Sequence[OutcomeRecord]:
    """Load every outcome record below a results directory, ordered by path."""
    return [load_outcome(path) for path in sorted(results_dir.rglob("*.yaml"))]
