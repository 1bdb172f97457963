"""Run profiles loaded from YAML files."""

from pathlib import Path
from typing import Literal

import yaml
from pydantic import Field, ValidationError

from device_test_harness.models.base import Model
from device_test_harness.orchestrator import OutputLevel

VERBOSITY_LEVELS: dict[str, OutputLevel] = {
    "quiet": OutputLevel.QUIET,
    "normal": OutputLevel.NORMAL,
    "verbose": OutputLevel.VERBOSE,
}


class ProfileError(Exception):
    """Raised when a profile file cannot be parsed or validated."""


class TargetConfig(Model):
    """The block device the suites run against."""

    device: Path = Field(..., description="Block device or image file")
    block_size: int = Field(default=4096, gt=0, description="Block size in bytes")


class HarnessConfig(Model):
    """Settings for one harness run."""

    target: TargetConfig | None = Field(
        default=None, description="Device under test (None for host-only suites)"
    )
    output_dir: Path = Field(
        default=Path("output"), description="Root for results and device logs"
    )
    verbosity: Literal["quiet", "normal", "verbose"] = Field(
        default="normal", description="Console output level"
    )

    @property
    def results_dir(self) -> Path:
        return self.output_dir / "results"

    @property
    def logs_dir(self) -> Path:
        return self.output_dir / "logs"

    @property
    def output_level(self) -> OutputLevel:
        return VERBOSITY_LEVELS[self.verbosity]


def load_profile(path: Path) -> HarnessConfig:
    """Load and validate a YAML run profile.

    Relative paths in the profile are resolved against the profile's
    directory.

    Raises:
        FileNotFoundError: If the profile does not exist
        ProfileError: If the profile is not valid YAML or fails validation

    """
    if not path.exists():
        raise FileNotFoundError(f"Profile not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ProfileError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ProfileError(f"Profile {path} must be a mapping")

    try:
        config = HarnessConfig.model_validate(data)
    except ValidationError as e:
        raise ProfileError(f"Invalid profile {path}: {e}") from e

    base = path.parent
    updates: dict[str, object] = {"output_dir": base / config.output_dir}
    if config.target is not None:
        updates["target"] = config.target.model_copy(
            update={"device": base / config.target.device}
        )
    return config.model_copy(update=updates)
