"""Block-level access to the device under test."""

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, kw_only=True)
class BlockDevice:
    """A block device, or an image file standing in for one.

    Every access opens the device anew, so a test never sees a stale handle
    after another test has rewritten the device.
    """

    path: Path
    block_size: int = 4096

    def __post_init__(self) -> None:
        if self.block_size <= 0:
            raise ValueError(f"Block size must be positive, got {self.block_size}")

    @property
    def size(self) -> int:
        """Size of the device in bytes."""
        fd = os.open(self.path, os.O_RDONLY)
        try:
            return os.lseek(fd, 0, os.SEEK_END)
        finally:
            os.close(fd)

    @property
    def block_count(self) -> int:
        return self.size // self.block_size

    def read_block(self, index: int) -> bytes:
        """Read one whole block."""
        self._check_index(index)
        fd = os.open(self.path, os.O_RDONLY)
        try:
            return os.pread(fd, self.block_size, index * self.block_size)
        finally:
            os.close(fd)

    def write_block(self, index: int, data: bytes) -> None:
        """Write one whole block and flush it to the device."""
        if len(data) != self.block_size:
            raise ValueError(
                f"Expected {self.block_size} bytes, got {len(data)}"
            )
        self._check_index(index)
        fd = os.open(self.path, os.O_WRONLY)
        try:
            os.pwrite(fd, data, index * self.block_size)
            os.fsync(fd)
        finally:
            os.close(fd)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.block_count:
            raise IndexError(
                f"Block {index} is outside {self.path} ({self.block_count} blocks)"
            )
