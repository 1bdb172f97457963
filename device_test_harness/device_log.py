"""Per-test device log capture on top of the logging module."""

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

log = logging.getLogger(__name__)

DEVICE_LOGGER_NAME = "device"

LEVEL_LETTERS = {
    logging.DEBUG: "D",
    logging.INFO: "I",
    logging.WARNING: "W",
    logging.ERROR: "E",
    logging.CRITICAL: "E",
}


def level_letter(levelno: int) -> str:
    """Header letter for a logging level, rounding custom levels down."""
    for threshold in sorted(LEVEL_LETTERS, reverse=True):
        if levelno >= threshold:
            return LEVEL_LETTERS[threshold]
    return "D"


class DeviceLogFormatter(logging.Formatter):
    """Formats records as header lines understood by log_reader.

    Output looks like
    ``I, [2011-10-19T15:02:36.011520 #1065]  INFO -- device: message``;
    extra lines of a multi-line message follow unchanged.
    """

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).isoformat(
            timespec="microseconds"
        )
        body = record.getMessage()
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            body = f"{body}\n{record.exc_text}"
        return (
            f"{level_letter(record.levelno)}, "
            f"[{stamp} #{record.process or os.getpid()}]"
            f" {record.levelname:>5} -- {record.name}: {body}"
        )


class DeviceLog:
    """Owner of the logger that test bodies write device output to.

    The logger does not propagate, so its output only reaches the handlers
    installed by redirect().
    """

    def __init__(self, name: str = DEVICE_LOGGER_NAME) -> None:
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

    @property
    def handlers(self) -> list[logging.Handler]:
        return list(self.logger.handlers)

    @contextmanager
    def redirect(self, path: Path) -> Iterator[Path]:
        """Send device output to a fresh file until the context exits.

        The handlers in place before entry are restored on every exit path.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, mode="w", encoding="utf-8")
        handler.setFormatter(DeviceLogFormatter())

        previous = self.handlers
        for old in previous:
            self.logger.removeHandler(old)
        self.logger.addHandler(handler)
        log.debug("Device log redirected to %s", path)
        try:
            yield path
        finally:
            self.logger.removeHandler(handler)
            handler.close()
            for old in previous:
                self.logger.addHandler(old)
            log.debug("Device log restored from %s", path)
