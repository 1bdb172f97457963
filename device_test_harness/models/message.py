"""Models for messages reconstructed from raw device logs."""

from enum import StrEnum

from pydantic import Field

from device_test_harness.models.base import Model


class Level(StrEnum):
    """Severity of a device log message, keyed by its header letter."""

    DEBUG = "D"
    INFO = "I"
    WARN = "W"
    ERROR = "E"


class Message(Model):
    """A single structured entry of a raw device log."""

    level: Level = Field(..., description="Severity taken from the header letter")
    time: str = Field(..., description="Time of day, e.g. '15:02:36.011520'")
    text: str = Field(..., description="Body including continuation lines")
