"""Tests for run profile loading."""

from pathlib import Path

import pytest

from device_test_harness.config import HarnessConfig, ProfileError, load_profile
from device_test_harness.orchestrator import OutputLevel


def test_loads_profile(tmp_path: Path) -> None:
    """Loads a profile and resolves relative paths against its directory."""
    path = tmp_path / "profile.yaml"
    path.write_text(
        """
target:
  device: images/disk.img
  block_size: 512
output_dir: out
verbosity: verbose
"""
    )

    config = load_profile(path)

    assert config.target is not None
    assert config.target.device == tmp_path / "images" / "disk.img"
    assert config.target.block_size == 512
    assert config.results_dir == tmp_path / "out" / "results"
    assert config.logs_dir == tmp_path / "out" / "logs"
    assert config.output_level is OutputLevel.VERBOSE


def test_absolute_paths_are_kept(tmp_path: Path) -> None:
    """Absolute device paths are used as given."""
    path = tmp_path / "profile.yaml"
    path.write_text("target:\n  device: /dev/sdz\n")

    config = load_profile(path)

    assert config.target is not None
    assert config.target.device == Path("/dev/sdz")
    assert config.target.block_size == 4096


def test_empty_profile_uses_defaults(tmp_path: Path) -> None:
    """An empty profile runs host-only suites with default output."""
    path = tmp_path / "profile.yaml"
    path.write_text("")

    config = load_profile(path)

    assert config.target is None
    assert config.output_dir == tmp_path / "output"
    assert config.output_level is OutputLevel.NORMAL


def test_missing_profile(tmp_path: Path) -> None:
    """Raises FileNotFoundError for a missing profile."""
    with pytest.raises(FileNotFoundError):
        load_profile(tmp_path / "missing.yaml")


def test_invalid_yaml(tmp_path: Path) -> None:
    """Raises ProfileError for malformed YAML."""
    path = tmp_path / "profile.yaml"
    path.write_text("target: [unclosed\n")

    with pytest.raises(ProfileError, match="Invalid YAML"):
        load_profile(path)


def test_invalid_values(tmp_path: Path) -> None:
    """Raises ProfileError when validation fails."""
    path = tmp_path / "profile.yaml"
    path.write_text("target:\n  device: disk.img\n  block_size: 0\n")

    with pytest.raises(ProfileError, match="Invalid profile"):
        load_profile(path)


def test_non_mapping_profile(tmp_path: Path) -> None:
    """Raises ProfileError when the document is not a mapping."""
    path = tmp_path / "profile.yaml"
    path.write_text("- just\n- a list\n")

    with pytest.raises(ProfileError, match="must be a mapping"):
        load_profile(path)


def test_unknown_verbosity_rejected() -> None:
    """Only quiet, normal and verbose are accepted."""
    with pytest.raises(ValueError):
        HarnessConfig.model_validate({"verbosity": "loud"})
