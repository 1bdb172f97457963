"""Tests for OutcomeRecord and its persistence."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from device_test_harness.models.outcome import (
    FaultDetail,
    OutcomeRecord,
    load_outcome,
    load_outcomes,
    save_outcome,
)
from device_test_harness.testing.factories import (
    FaultDetailFactory,
    OutcomeRecordFactory,
)


def test_started_record_passes() -> None:
    """A freshly started record has no faults and passes."""
    record = OutcomeRecord.started("Suite", "reads", Path("logs/Suite.reads.log"))

    assert record.status == "pass"
    assert record.passed
    assert record.faults == []
    assert record.duration == 0.0


def test_with_fault_marks_failure() -> None:
    """A failure fault makes the record fail and keeps its detail."""
    record = OutcomeRecordFactory.build()
    detail = FaultDetail(kind="failure", message="expected 0, got 1")

    failed = record.with_fault(detail)

    assert failed.status == "fail"
    assert not failed.passed
    assert failed.faults == [detail]
    assert record.passed


def test_error_outranks_failure() -> None:
    """Any error fault makes the whole record an error."""
    record = (
        OutcomeRecordFactory.build()
        .with_fault(FaultDetailFactory.build(kind="failure"))
        .with_fault(FaultDetailFactory.build(kind="error"))
        .with_fault(FaultDetailFactory.build(kind="failure"))
    )

    assert record.status == "error"
    assert len(record.faults) == 3


def test_records_are_immutable() -> None:
    """Records cannot be modified in place."""
    record = OutcomeRecordFactory.build()

    with pytest.raises(ValidationError):
        record.status = "fail"  # type: ignore[misc]


def test_finalized_sets_duration() -> None:
    """finalized returns a copy with the elapsed time."""
    record = OutcomeRecordFactory.build(duration=0.0)

    assert record.finalized(1.25).duration == 1.25
    assert record.duration == 0.0


def test_save_then_load_round_trips(tmp_path: Path) -> None:
    """A persisted record loads back equal in every field."""
    record = (
        OutcomeRecordFactory.build(suite_name="TrimSuite", test_name="discard")
        .with_fault(
            FaultDetail(
                kind="error",
                message="OSError: [Errno 5] Input/output error",
                backtrace=['  File "trim.py", line 3, in test_discard'],
            )
        )
        .finalized(0.5)
    )
    path = tmp_path / "results" / "TrimSuite" / "discard.yaml"

    saved = save_outcome(record, path)
    loaded = load_outcome(saved)

    assert saved == path
    assert loaded == record
    save_outcome(loaded, tmp_path / "again.yaml")
    assert (tmp_path / "again.yaml").read_text() == path.read_text()


def test_saved_record_is_plain_yaml(tmp_path: Path) -> None:
    """Persisted records are generic YAML mappings."""
    record = OutcomeRecordFactory.build(suite_name="S", test_name="t")
    path = save_outcome(record, tmp_path / "t.yaml")

    data = yaml.safe_load(path.read_text())

    assert data["suite_name"] == "S"
    assert data["test_name"] == "t"
    assert data["status"] == "pass"
    assert data["log_path"] == str(record.log_path)


def test_load_outcomes_reads_all_records_in_order(tmp_path: Path) -> None:
    """Loads every record below a results directory sorted by path."""
    first = OutcomeRecordFactory.build(suite_name="A", test_name="one")
    second = OutcomeRecordFactory.build(suite_name="B", test_name="two")
    save_outcome(second, tmp_path / "B" / "two.yaml")
    save_outcome(first, tmp_path / "A" / "one.yaml")

    assert load_outcomes(tmp_path) == [first, second]
