"""Loading of device test suites from Python files."""

import importlib.util
import inspect
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from types import ModuleType

from device_test_harness.engine import DeviceTestSuite

log = logging.getLogger(__name__)

MODULE_PREFIX = "device_test_harness_suites"


class SuiteLoadError(Exception):
    """Raised when requested suites cannot be found or imported."""


def load_suites(paths: Sequence[Path]) -> Sequence[type[DeviceTestSuite]]:
    """Import suite files and collect the suites they define.

    Args:
        paths: Python files, or directories whose ``*.py`` files are loaded

    Returns:
        Suite classes in file order, then definition order

    Raises:
        SuiteLoadError: If no path is given, a path does not exist, a module
            fails to import, a module defines no suite, or two suites share
            a name

    """
    if not paths:
        raise SuiteLoadError("No suite specified")

    suites: dict[str, type[DeviceTestSuite]] = {}
    for file in suite_files(paths):
        found = find_suites(import_file(file))
        if not found:
            raise SuiteLoadError(f"No device test suites defined in {file}")
        for suite in found:
            # Suite names key the result and log files on disk
            if (existing := suites.get(suite.name())) is not None:
                raise SuiteLoadError(
                    f"Suite name '{suite.name()}' defined in both "
                    f"{inspect.getfile(existing)} and {file}"
                )
            suites[suite.name()] = suite
        log.debug("Loaded %d suite(s) from %s", len(found), file)
    return list(suites.values())


def suite_files(paths: Sequence[Path]) -> Sequence[Path]:
    """Expand suite paths into Python files, each listed once in first-seen order."""
    files: dict[Path, Path] = {}
    for path in paths:
        if not path.exists():
            raise SuiteLoadError(f"Suite not found: {path}")
        for file in sorted(path.glob("*.py")) if path.is_dir() else [path]:
            files.setdefault(file.resolve(), file)
    return list(files.values())


def import_file(path: Path) -> ModuleType:
    """Import a Python file as a uniquely named module."""
    module_name = f"{MODULE_PREFIX}_{path.stem}_{abs(hash(path.resolve())):x}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise SuiteLoadError(f"Cannot import {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        del sys.modules[module_name]
        raise SuiteLoadError(f"Failed to load {path}: {e}") from e
    return module


def find_suites(module: ModuleType) -> Sequence[type[DeviceTestSuite]]:
    """Suites defined in a module itself, excluding imported ones."""
    return [
        member
        for _, member in vars(module).items()
        if inspect.isclass(member)
        and issubclass(member, DeviceTestSuite)
        and member is not DeviceTestSuite
        and member.__module__ == module.__name__
    ]
