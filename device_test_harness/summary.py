"""Summaries of persisted outcome records."""

from collections.abc import Sequence
from typing import Any

from device_test_harness.models.outcome import OutcomeRecord


def summarize(records: Sequence[OutcomeRecord]) -> dict[str, Any]:
    """Format outcome records for JSON output."""
    results = [
        {
            "suite": record.suite_name,
            "test": record.test_name,
            "status": record.status,
            "duration": record.duration,
            "faults": len(record.faults),
            "log_path": str(record.log_path),
        }
        for record in records
    ]

    return {
        "total": len(results),
        "passed": sum(1 for r in results if r["status"] == "pass"),
        "failed": sum(1 for r in results if r["status"] == "fail"),
        "errors": sum(1 for r in results if r["status"] == "error"),
        "results": results,
    }
