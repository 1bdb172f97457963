"""CLI entry point for the device test harness."""

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from device_test_harness.config import load_profile
from device_test_harness.device_log import DeviceLog
from device_test_harness.engine import SuiteRunner, collect_tests
from device_test_harness.log_reader import read_log_file
from device_test_harness.models.outcome import load_outcomes
from device_test_harness.orchestrator import Console, RunOrchestrator
from device_test_harness.selection import (
    ExactMatch,
    PatternMatch,
    TestFilter,
    select_tests,
)
from device_test_harness.suite_loader import SuiteLoadError, load_suites
from device_test_harness.summary import summarize
from device_test_harness.target import BlockDevice

EXIT_SELECTION_ERROR = 2


def build_filters(names: Sequence[str], patterns: Sequence[str]) -> list[TestFilter]:
    """Turn --name and --pattern options into test filters."""
    filters: list[TestFilter] = [ExactMatch(value=name) for name in names]
    filters.extend(PatternMatch.compile(pattern) for pattern in patterns)
    return filters


def run(
    profile_path: Path,
    suite_paths: Sequence[Path],
    filters: Sequence[TestFilter] = (),
    verbosity: str | None = None,
) -> int:
    """Run the selected device tests and return the exit code.

    Test faults are part of the outcome, not of the exit status: a run that
    completes returns 0 whatever its tally.
    """
    log = logging.getLogger("device_test_harness")

    config = load_profile(profile_path)
    if verbosity is not None:
        config = config.model_copy(update={"verbosity": verbosity})
    log.info("Loaded profile %s (output_dir=%s)", profile_path, config.output_dir)

    suites = load_suites(suite_paths)
    tests = select_tests(collect_tests(suites), filters)
    log.info("Selected %d test(s) from %d suite(s)", len(tests), len(suites))

    target = (
        BlockDevice(path=config.target.device, block_size=config.target.block_size)
        if config.target is not None
        else None
    )
    device_log = DeviceLog()
    orchestrator = RunOrchestrator(
        results_dir=config.results_dir,
        logs_dir=config.logs_dir,
        device_log=device_log,
        console=Console(stream=sys.stdout, level=config.output_level),
    )
    orchestrator.run(SuiteRunner(target=target, log=device_log.logger), tests)
    log.info(
        "Run complete: %d passed, %d failed",
        orchestrator.total_passed,
        orchestrator.total_failed,
    )

    return 0


def show_log(log_path: Path) -> int:
    """Print the messages reconstructed from a raw device log."""
    for message in read_log_file(log_path):
        print(f"[{message.level.name:<5}] {message.time} {message.text}", end="")
        if not message.text.endswith("\n"):
            print()
    return 0


def show_summary(results_dir: Path) -> int:
    """Print the JSON summary of the outcome records in a results directory."""
    if not results_dir.is_dir():
        raise FileNotFoundError(f"Results directory not found: {results_dir}")
    print(json.dumps(summarize(load_outcomes(results_dir)), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="device-test-harness",
        description="Run integration test suites against block storage devices",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run device test suites")
    run_parser.add_argument(
        "--profile",
        type=Path,
        required=True,
        help="YAML profile describing the target and output directory",
    )
    run_parser.add_argument(
        "suites",
        type=Path,
        nargs="*",
        help="Suite files or directories of suite files",
    )
    run_parser.add_argument(
        "--name",
        action="append",
        default=[],
        help="Run only suites or tests with this exact name (repeatable)",
    )
    run_parser.add_argument(
        "--pattern",
        action="append",
        default=[],
        help="Run only suites or tests matching this regex (repeatable)",
    )
    output = run_parser.add_mutually_exclusive_group()
    output.add_argument(
        "-q", "--quiet", action="store_true", help="Only print the final tally"
    )
    output.add_argument(
        "-v", "--verbose", action="store_true", help="Echo each test as it runs"
    )

    log_parser = subparsers.add_parser(
        "log", help="Print the messages of a raw device log"
    )
    log_parser.add_argument("log_file", type=Path, help="Raw device log file")

    summary_parser = subparsers.add_parser(
        "summary", help="Print a JSON summary of persisted outcomes"
    )
    summary_parser.add_argument(
        "results_dir", type=Path, help="Results directory of a previous run"
    )

    return parser


def dispatch(args: argparse.Namespace) -> int:
    match args.command:
        case "run":
            verbosity = None
            if args.quiet:
                verbosity = "quiet"
            elif args.verbose:
                verbosity = "verbose"
            return run(
                profile_path=args.profile,
                suite_paths=args.suites,
                filters=build_filters(args.name, args.pattern),
                verbosity=verbosity,
            )
        case "log":
            return show_log(args.log_file)
        case "summary":
            return show_summary(args.results_dir)
    raise ValueError(f"Unknown command: {args.command}")


def main() -> None:
    """CLI entry point."""
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "verbose", False) else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        exit_code = dispatch(args)
    except SuiteLoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_SELECTION_ERROR)
    except Exception as e:
        logging.getLogger("device_test_harness").debug("Unhandled error", exc_info=e)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
