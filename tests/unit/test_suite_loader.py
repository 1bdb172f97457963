"""Tests for loading suites from files."""

from pathlib import Path

import pytest

from device_test_harness.suite_loader import SuiteLoadError, load_suites

SUITE_SOURCE = '''
from device_test_harness.engine import DeviceTestSuite


class {name}(DeviceTestSuite):
    def test_reads(self):
        pass
'''


def write_suite(path: Path, name: str) -> Path:
    path.write_text(SUITE_SOURCE.format(name=name))
    return path


def test_loads_suites_from_file(tmp_path: Path) -> None:
    """Loads suite classes defined in a file."""
    path = write_suite(tmp_path / "reads.py", "ReadSuite")

    suites = load_suites([path])

    assert [s.__name__ for s in suites] == ["ReadSuite"]


def test_loads_suites_from_directory(tmp_path: Path) -> None:
    """Loads every Python file of a directory in name order."""
    write_suite(tmp_path / "b_writes.py", "WriteSuite")
    write_suite(tmp_path / "a_reads.py", "ReadSuite")

    suites = load_suites([tmp_path])

    assert [s.__name__ for s in suites] == ["ReadSuite", "WriteSuite"]


def test_imported_suites_are_not_collected_twice(tmp_path: Path) -> None:
    """Only suites defined in the module itself count."""
    path = tmp_path / "extends.py"
    path.write_text(
        "from device_test_harness.engine import DeviceTestSuite\n"
        "class OwnSuite(DeviceTestSuite):\n"
        "    def test_x(self):\n"
        "        pass\n"
    )

    suites = load_suites([path])

    assert [s.__name__ for s in suites] == ["OwnSuite"]


def test_no_suite_specified() -> None:
    """Raises when no path is given."""
    with pytest.raises(SuiteLoadError, match="No suite specified"):
        load_suites([])


def test_missing_path(tmp_path: Path) -> None:
    """Raises for a path that does not exist."""
    with pytest.raises(SuiteLoadError, match="Suite not found"):
        load_suites([tmp_path / "missing.py"])


def test_import_failure(tmp_path: Path) -> None:
    """Wraps errors raised while importing a suite file."""
    path = tmp_path / "broken.py"
    path.write_text("raise ImportError('no such driver')\n")

    with pytest.raises(SuiteLoadError, match="no such driver"):
        load_suites([path])


def test_module_without_suites(tmp_path: Path) -> None:
    """Raises when a file defines no suite."""
    path = tmp_path / "empty.py"
    path.write_text("VALUE = 1\n")

    with pytest.raises(SuiteLoadError, match="No device test suites"):
        load_suites([path])


def test_same_suite_name_in_two_files(tmp_path: Path) -> None:
    """Two suites sharing a name would share result files, so loading fails."""
    first = write_suite(tmp_path / "a.py", "Basic")
    second = write_suite(tmp_path / "b.py", "Basic")

    with pytest.raises(SuiteLoadError, match="Suite name 'Basic' defined in both"):
        load_suites([first, second])


def test_explicit_suite_name_collision(tmp_path: Path) -> None:
    """The suite_name override counts as the suite's name."""
    write_suite(tmp_path / "a.py", "Basic")
    (tmp_path / "b.py").write_text(
        "from device_test_harness.engine import DeviceTestSuite\n"
        "class Renamed(DeviceTestSuite):\n"
        "    suite_name = 'Basic'\n"
        "    def test_x(self):\n"
        "        pass\n"
    )

    with pytest.raises(SuiteLoadError, match="'Basic'"):
        load_suites([tmp_path])


def test_repeated_paths_load_once(tmp_path: Path) -> None:
    """A file passed twice, directly or through its directory, loads once."""
    path = write_suite(tmp_path / "reads.py", "ReadSuite")

    suites = load_suites([path, tmp_path, tmp_path / "." / "reads.py"])

    assert [s.__name__ for s in suites] == ["ReadSuite"]
