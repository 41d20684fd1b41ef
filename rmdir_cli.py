#!/usr/bin/env python3
"""
rmdir — recursive directory removal

Removes one or more directories. Empty directories go right away; non-empty
ones need --force (or --brutal, which also kills processes that still have
files open inside the tree) and an interactive confirmation unless --yes is
given.

Usage:
    rmdir <dir> [dir2 ...]          # remove empty directories
    rmdir -f <dir>                  # remove a non-empty directory after confirmation
    rmdir -b <dir>                  # same, killing processes using the directory first
    rmdir -f -y <dir>               # no confirmation prompt
"""

import argparse
import sys
import time
from dataclasses import dataclass
from enum import Enum
from importlib import metadata
from typing import Optional, Sequence

from auxiliary import format_bytes, format_count, format_path_for_display
from console_ui import ConsoleUI
from directory_inspector import DirectoryStatus, SizeReport, check_directory, compute_size
from file_operations import DeletionError, remove_tree
from process_inspector import KillReport, ProcessInspector, get_process_inspector
from rmdir_config import ConfigManager, RmdirConfig

DIST_NAME = "rmdir-cli"
UNKNOWN_VERSION = "0.0.0+unknown"

# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


class UsageError(Exception):
    """Bad command line; reported with the usage text, exit status 1"""


@dataclass(frozen=True)
class Options:
    force: bool = False
    brutal_mode: bool = False
    non_interactive: bool = False
    show_help: bool = False
    show_version: bool = False
    targets: tuple[str, ...] = ()


class Outcome(Enum):
    SUCCEEDED = "succeeded"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class TargetResult:
    path: str
    outcome: Outcome
    reason: Optional[str] = None


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise UsageError(message)


# (short, long, dest, help)
FLAGS = (
    ("-h", "--help", "show_help", "Print usage and exit"),
    ("-v", "--version", "show_version", "Print version and exit"),
    ("-f", "--force", "force", "Permit deleting non-empty directories (with confirmation unless -y)"),
    ("-b", "--brutal", "brutal_mode", "Like --force, plus: terminate processes with open files in the tree first"),
    ("-y", "--yes", "non_interactive", "Skip interactive confirmation"),
)
_SHORT_FLAGS = {short[1]: dest for short, _long, dest, _help in FLAGS}
_LONG_FLAGS = {long: dest for _short, long, dest, _help in FLAGS}


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="rmdir",
        usage="%(prog)s [options] <dir> [dir2 ...]",
        description="Recursively remove directories.",
        add_help=False,
        allow_abbrev=False,
    )
    for short, long, dest, help_text in FLAGS:
        parser.add_argument(short, long, dest=dest, action="store_true", help=help_text)
    return parser


def _scan_flags(argv: Sequence[str]) -> tuple[list[int], set[str]]:
    """Find unknown option tokens before a bare "--".

    Returns their indexes and the dests of every known flag seen, including
    letters inside a bad short group such as "-hx".
    """
    unknown: list[int] = []
    requested: set[str] = set()
    for index, token in enumerate(argv):
        if token == "--":
            break
        if not token.startswith("-"):
            continue
        if token.startswith("--"):
            if token in _LONG_FLAGS:
                requested.add(_LONG_FLAGS[token])
            else:
                unknown.append(index)
            continue
        letters = token[1:]
        requested.update(_SHORT_FLAGS[c] for c in letters if c in _SHORT_FLAGS)
        if not letters or any(c not in _SHORT_FLAGS for c in letters):
            unknown.append(index)
    return unknown, requested


def parse_args(argv: Sequence[str], parser: Optional[argparse.ArgumentParser] = None) -> Options:
    """Turn raw arguments into Options.

    Targets keep their command-line order. A token starting with "-" that is
    not a known flag (or a group of known short flags) raises UsageError,
    unless it follows a bare "--" or --help/--version was given.
    """
    argv = list(argv)
    unknown, requested = _scan_flags(argv)
    wants_help = "show_help" in requested
    wants_version = "show_version" in requested
    if unknown and not (wants_help or wants_version):
        raise UsageError(f"Unknown option: {argv[unknown[0]]}")

    # Only validated flags reach argparse; it leaves every target in extras, in order
    parser = parser or build_parser()
    skip = set(unknown)
    args, extras = parser.parse_known_args([token for i, token in enumerate(argv) if i not in skip])

    targets: list[str] = []
    only_targets = False
    for token in extras:
        if token == "--" and not only_targets:
            only_targets = True
        else:
            targets.append(token)

    return Options(
        force=args.force,
        brutal_mode=args.brutal_mode,
        non_interactive=args.non_interactive,
        show_help=args.show_help or wants_help,
        show_version=args.show_version or wants_version,
        targets=tuple(targets),
    )


def get_version() -> str:
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        return UNKNOWN_VERSION


# ---------------------------------------------------------------------------
# Rmdir
# ---------------------------------------------------------------------------


class Rmdir:
    """Runs the per-target removal workflow for a parsed command line."""

    # Give killed processes a moment to release their handles
    KILL_SETTLE_SECONDS = 0.5

    def __init__(
        self,
        options: Options,
        ui: Optional[ConsoleUI] = None,
        config: Optional[RmdirConfig] = None,
        inspector: Optional[ProcessInspector] = None,
    ):
        self.options = options
        self.ui = ui or ConsoleUI()
        self.config = config or RmdirConfig()
        self._inspector = inspector

    @property
    def inspector(self) -> ProcessInspector:
        # Only brutal mode needs one; build it on first use
        if self._inspector is None:
            self._inspector = get_process_inspector(config=self.config)
        return self._inspector

    # -- confirmation ----------------------------------------------------------

    def measure(self, path: str) -> SizeReport:
        progress = self.ui.create_activity_progress()
        with progress:
            progress.add_task(f"Measuring {format_path_for_display(path)}...", total=None)
            return compute_size(path)

    def confirm(self, path: str, size_report: Optional[SizeReport] = None) -> bool:
        """Ask whether *path* may be deleted; --yes answers for the user."""
        if self.options.non_interactive:
            return True

        if size_report is None:
            size_report = self.measure(path)

        self.ui.console.print()
        self.ui.print_header("Remove directory", format_path_for_display(path))
        self.ui.print_plain(
            f"  Contains {format_count(size_report.total_files, 'file')}, {format_bytes(size_report.total_bytes)}"
        )
        if self.options.brutal_mode:
            self.ui.console.print(
                "  Running processes with open files in this directory will be forcefully terminated.",
                style="yellow bold",
                markup=False,
            )

        try:
            answer = self.ui.ask_line("Delete this directory and everything in it? [y/N]")
        except (EOFError, KeyboardInterrupt):
            self.ui.console.print()
            answer = ""
        return answer.strip().lower() in ("y", "yes")

    # -- brutal mode -----------------------------------------------------------

    def terminate_holders(self, path: str) -> KillReport:
        """Kill whatever holds files open under *path*; never fails the target."""
        scan = self.inspector.list_open_handles(path)
        for warning in scan.warnings:
            self.ui.print_warning(f"Process scan: {warning}")

        report = self.inspector.kill_processes(scan.handles)
        if not scan.handles:
            self.ui.print_info("No processes with open files found")
        for handle in report.killed:
            self.ui.print_info(f"Killed {handle.name or 'process'} (pid {handle.pid})")
        for failure in report.failed:
            handle = failure.handle
            self.ui.print_warning(f"Could not kill {handle.name or 'process'} (pid {handle.pid}): {failure.reason}")

        if report.killed:
            time.sleep(self.KILL_SETTLE_SECONDS)
        return report

    # -- per-target workflow ---------------------------------------------------

    def _delete(self, path: str) -> TargetResult:
        try:
            remove_tree(path)
        except DeletionError as e:
            self.ui.print_error(f"Failed to remove {path}: {e.reason}")
            return TargetResult(path, Outcome.FAILED, e.reason)
        self.ui.print_success(f"Removed {path}")
        return TargetResult(path, Outcome.SUCCEEDED)

    def process_target(self, path: str) -> TargetResult:
        check = check_directory(path)
        if not check.ok:
            reason = check.describe(path)
            self.ui.print_error(reason)
            return TargetResult(path, Outcome.FAILED, reason)

        if check.status is DirectoryStatus.EMPTY:
            return self._delete(path)

        if not (self.options.force or self.options.brutal_mode):
            reason = check.describe(path)
            self.ui.print_error(reason)
            self.ui.print_error("Use --force to remove it, or --brutal to also terminate processes using it.")
            return TargetResult(path, Outcome.FAILED, reason)

        if not self.confirm(path):
            self.ui.print_info(f"Cancelled: {path}")
            return TargetResult(path, Outcome.CANCELLED)

        if self.options.brutal_mode:
            self.terminate_holders(path)

        return self._delete(path)

    # -- summary & main entry point --------------------------------------------

    def summary(self, results: list[TargetResult]) -> int:
        """Report the tally and return the exit status."""
        total = len(results)
        succeeded = sum(1 for r in results if r.outcome is Outcome.SUCCEEDED)
        cancelled = sum(1 for r in results if r.outcome is Outcome.CANCELLED)

        if succeeded == total:
            if total > 1:
                self.ui.print_success(f"Removed all {total} directories")
            return 0

        message = f"{succeeded} of {total} directories removed"
        if cancelled:
            message += f" ({cancelled} cancelled)"
        self.ui.print_error(message)
        return 1

    def run(self) -> int:
        results: list[TargetResult] = []
        for target in self.options.targets:
            try:
                results.append(self.process_target(target))
            except OSError as e:
                self.ui.print_error(f"Failed to remove {target}: {e}")
                results.append(TargetResult(target, Outcome.FAILED, str(e)))
        return self.summary(results)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    ui = ConsoleUI()

    try:
        options = parse_args(sys.argv[1:] if argv is None else argv, parser)
    except UsageError as e:
        ui.print_error(str(e))
        ui.print_usage(parser.format_help(), error=True)
        return 1

    if options.show_help:
        ui.print_usage(parser.format_help())
        return 0
    if options.show_version:
        ui.print_plain(get_version())
        return 0

    if not options.targets:
        ui.print_error("No directory specified")
        ui.print_usage(parser.format_help(), error=True)
        return 1

    app = Rmdir(options, ui=ui, config=ConfigManager().load())
    try:
        return app.run()
    except KeyboardInterrupt:
        ui.print_error("\nInterrupted")
        return 1


if __name__ == "__main__":
    sys.exit(main())
