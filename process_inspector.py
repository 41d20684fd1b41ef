#!/usr/bin/env python3
"""
Process Inspector Module

Finds processes holding files open below a directory and force-terminates
them ahead of a brutal-mode deletion. Everything is best-effort: a missing
tool, a non-zero exit or a timeout turns into "no known processes" plus a
warning, and a failed kill is reported next to the successful ones. None of
the public methods raise.

Platform variants:
    PosixProcessInspector    lsof +D <dir>, SIGKILL
    WindowsProcessInspector  handle.exe (tasklist fallback), taskkill /F
"""

import csv
import io
import ntpath
import os
import re
import shutil
import signal
import subprocess
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Union

from rmdir_config import DEFAULT_HANDLE_TOOL, DEFAULT_KILL_TIMEOUT, DEFAULT_SCAN_TIMEOUT, RmdirConfig

PathLike = Union[str, os.PathLike]
Runner = Callable[..., subprocess.CompletedProcess]


@dataclass(frozen=True)
class ProcessHandle:
    """A process holding at least one file open; identity is the pid"""

    pid: int
    name: str = field(default="", compare=False)


@dataclass
class ProcessScan:
    """Processes found by a scan, with any warnings from the underlying tools"""

    handles: set[ProcessHandle] = field(default_factory=set)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class KillFailure:
    handle: ProcessHandle
    reason: str


@dataclass
class KillReport:
    """Partition of termination attempts into successes and failures"""

    killed: list[ProcessHandle] = field(default_factory=list)
    failed: list[KillFailure] = field(default_factory=list)


class ProcessInspector(ABC):
    """Lists and terminates processes with open handles under a directory"""

    def __init__(
        self,
        runner: Optional[Runner] = None,
        scan_timeout: float = DEFAULT_SCAN_TIMEOUT,
        kill_timeout: float = DEFAULT_KILL_TIMEOUT,
    ):
        self.runner = runner or subprocess.run
        self.scan_timeout = scan_timeout
        self.kill_timeout = kill_timeout

    # -- public API ------------------------------------------------------------

    def list_open_handles(self, path: PathLike) -> ProcessScan:
        """Return the processes holding files open anywhere under *path*."""
        scan = ProcessScan()
        self._scan(self._absolute(path), scan)
        # Never report ourselves, e.g. when the working directory is inside the target
        scan.handles.discard(ProcessHandle(os.getpid()))
        return scan

    def kill_processes(self, handles: Iterable[ProcessHandle]) -> KillReport:
        """Forcefully terminate each process independently."""
        report = KillReport()
        for handle in sorted(set(handles), key=lambda h: h.pid):
            reason = self._kill(handle)
            if reason is None:
                report.killed.append(handle)
            else:
                report.failed.append(KillFailure(handle, reason))
        return report

    # -- platform hooks --------------------------------------------------------

    def _absolute(self, path: PathLike) -> str:
        return os.path.abspath(path)

    @abstractmethod
    def _scan(self, path: str, scan: ProcessScan):
        """Add handles (and warnings) for *path* to *scan*."""

    @abstractmethod
    def _kill(self, handle: ProcessHandle) -> Optional[str]:
        """Terminate *handle*; return None on success or the failure reason."""

    # -- helpers ---------------------------------------------------------------

    def _run(
        self, command: list[str], timeout: float, quiet_codes: tuple[int, ...] = ()
    ) -> tuple[Optional[subprocess.CompletedProcess], Optional[str]]:
        """Run an external command, returning (result, None) or (None, problem).

        Exit codes in *quiet_codes* mean "nothing found" and return (None, None).
        """
        tool = command[0]
        try:
            result = self.runner(
                command,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=timeout,
                check=False,
            )
        except FileNotFoundError:
            return None, f"{tool} not found"
        except subprocess.TimeoutExpired:
            return None, f"{tool} timed out after {timeout:g}s"
        except OSError as e:
            return None, f"{tool} could not be started: {e}"

        if result.returncode in quiet_codes and not (result.stdout or "").strip():
            return None, None
        if result.returncode != 0:
            detail = _first_line(result.stderr) or _first_line(result.stdout)
            problem = f"{tool} exited with status {result.returncode}"
            return None, f"{problem}: {detail}" if detail else problem
        return result, None


def _first_line(text: Optional[str]) -> str:
    for line in (text or "").splitlines():
        if line.strip():
            return line.strip()
    return ""


class PosixProcessInspector(ProcessInspector):
    """lsof-based scanning and SIGKILL termination"""

    def _scan(self, path: str, scan: ProcessScan):
        # lsof exits 1 without output when nothing is open under path
        result, problem = self._run(["lsof", "+D", path], self.scan_timeout, quiet_codes=(1,))
        if result is None:
            if problem:
                scan.warnings.append(problem)
            return
        scan.handles.update(parse_lsof_output(result.stdout or ""))

    def _kill(self, handle: ProcessHandle) -> Optional[str]:
        try:
            os.kill(handle.pid, signal.SIGKILL)
        except ProcessLookupError:
            return "no such process"
        except PermissionError:
            return "permission denied"
        except OSError as e:
            return e.strerror or str(e)
        return None


class WindowsProcessInspector(ProcessInspector):
    """handle.exe scanning with a tasklist fallback, taskkill termination"""

    def __init__(
        self,
        runner: Optional[Runner] = None,
        scan_timeout: float = DEFAULT_SCAN_TIMEOUT,
        kill_timeout: float = DEFAULT_KILL_TIMEOUT,
        handle_tool: str = DEFAULT_HANDLE_TOOL,
        which: Optional[Callable[[str], Optional[str]]] = None,
    ):
        super().__init__(runner, scan_timeout, kill_timeout)
        self.handle_tool = handle_tool
        self.which = which or shutil.which

    def _absolute(self, path: PathLike) -> str:
        return ntpath.abspath(path)

    def _scan(self, path: str, scan: ProcessScan):
        tool = self.which(self.handle_tool)
        if tool:
            result, problem = self._run([tool, "-accepteula", "-nobanner", path], self.scan_timeout)
            if result is not None:
                scan.handles.update(parse_handle_output(result.stdout or ""))
                return
            scan.warnings.append(problem)

        # Fallback: match the directory against tasklist's verbose output
        result, problem = self._run(["tasklist", "/v", "/fo", "csv", "/nh"], self.scan_timeout)
        if result is None:
            scan.warnings.append(problem)
            return
        scan.handles.update(parse_tasklist_output(result.stdout or "", path))

    def _kill(self, handle: ProcessHandle) -> Optional[str]:
        result, problem = self._run(["taskkill", "/F", "/PID", str(handle.pid)], self.kill_timeout)
        return problem if result is None else None


# ---------------------------------------------------------------------------
# Output parsers
# ---------------------------------------------------------------------------

_HANDLE_LINE = re.compile(r"^\s*(?P<name>\S.*?)\s+pid:\s*(?P<pid>\d+)\b", re.IGNORECASE)


def parse_lsof_output(output: str) -> set[ProcessHandle]:
    """Parse `lsof` tabular output (COMMAND PID USER ...) into handles."""
    handles: set[ProcessHandle] = set()
    for line in output.splitlines():
        parts = line.split(None, 2)
        if len(parts) < 2:
            continue
        try:
            pid = int(parts[1])
        except ValueError:
            continue  # header or garbage
        handles.add(ProcessHandle(pid, parts[0]))
    return handles


def parse_handle_output(output: str) -> set[ProcessHandle]:
    """Parse Sysinternals handle output ("name pid: 123 type: File ...")."""
    handles: set[ProcessHandle] = set()
    for line in output.splitlines():
        match = _HANDLE_LINE.match(line)
        if match:
            handles.add(ProcessHandle(int(match.group("pid")), match.group("name")))
    return handles


def parse_tasklist_output(output: str, path: str) -> set[ProcessHandle]:
    """Select tasklist CSV rows whose text mentions *path* (case-insensitive).

    This is a loose approximation: tasklist does not report open files, only
    window titles and similar text, so matches can be missed or spurious.
    """
    needle = path.rstrip("\\/").lower()
    handles: set[ProcessHandle] = set()
    if not needle:
        return handles
    for row in csv.reader(io.StringIO(output)):
        if len(row) < 2:
            continue
        try:
            pid = int(row[1])
        except ValueError:
            continue
        if needle in ",".join(row).lower():
            handles.add(ProcessHandle(pid, row[0]))
    return handles


def get_process_inspector(
    platform: Optional[str] = None,
    config: Optional[RmdirConfig] = None,
    runner: Optional[Runner] = None,
) -> ProcessInspector:
    """Select the inspector variant for *platform* (defaults to sys.platform)."""
    platform = platform or sys.platform
    config = config or RmdirConfig()
    if platform.startswith(("win32", "cygwin")):
        return WindowsProcessInspector(
            runner=runner,
            scan_timeout=config.scan_timeout,
            kill_timeout=config.kill_timeout,
            handle_tool=config.handle_tool,
        )
    return PosixProcessInspector(runner=runner, scan_timeout=config.scan_timeout, kill_timeout=config.kill_timeout)
