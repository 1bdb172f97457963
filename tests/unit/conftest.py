"""Shared fixtures for unit tests."""

import uuid
from collections.abc import Generator

import pytest

from device_test_harness.device_log import DeviceLog


@pytest.fixture
def device_log() -> Generator[DeviceLog]:
    """Device log backed by a logger unique to the test."""
    device_log = DeviceLog(f"device.test-{uuid.uuid4().hex}")
    yield device_log
    for handler in device_log.handlers:
        device_log.logger.removeHandler(handler)
        handler.close()
