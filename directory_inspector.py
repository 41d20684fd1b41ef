#!/usr/bin/env python3
"""
Directory Inspector Module

Classifies a target path before deletion and gathers the size figures shown
in the confirmation prompt. Nothing here raises on filesystem errors: a bad
target becomes a DirectoryCheck value, and unreadable subtrees simply drop
out of the size report.
"""

import errno
import os
import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, os.PathLike]


class DirectoryStatus(Enum):
    """Classification of a target path"""

    MISSING = "missing"
    NOT_A_DIRECTORY = "not_a_directory"
    PERMISSION_DENIED = "permission_denied"
    ACCESS_ERROR = "access_error"
    EMPTY = "empty"
    NON_EMPTY = "non_empty"


@dataclass(frozen=True)
class DirectoryCheck:
    """Result of inspecting a target path"""

    status: DirectoryStatus
    message: Optional[str] = None  # underlying OS message for ACCESS_ERROR

    @property
    def ok(self) -> bool:
        return self.status in (DirectoryStatus.EMPTY, DirectoryStatus.NON_EMPTY)

    def describe(self, path: str) -> str:
        """Human-readable explanation for a rejected target"""
        if self.status is DirectoryStatus.MISSING:
            return f"Directory does not exist: {path}"
        if self.status is DirectoryStatus.NOT_A_DIRECTORY:
            return f"Not a directory: {path}"
        if self.status is DirectoryStatus.PERMISSION_DENIED:
            return f"Permission denied: {path}"
        if self.status is DirectoryStatus.ACCESS_ERROR:
            return f"Cannot access {path}: {self.message}"
        if self.status is DirectoryStatus.EMPTY:
            return f"Empty directory: {path}"
        return f"Directory is not empty: {path}"


@dataclass(frozen=True)
class SizeReport:
    """Aggregate size of the regular files below a directory"""

    total_bytes: int = 0
    total_files: int = 0


def _classify_error(error: OSError) -> DirectoryCheck:
    if isinstance(error, FileNotFoundError) or error.errno == errno.ENOENT:
        return DirectoryCheck(DirectoryStatus.MISSING)
    if isinstance(error, PermissionError) or error.errno in (errno.EACCES, errno.EPERM):
        return DirectoryCheck(DirectoryStatus.PERMISSION_DENIED)
    if isinstance(error, NotADirectoryError):
        return DirectoryCheck(DirectoryStatus.NOT_A_DIRECTORY)
    return DirectoryCheck(DirectoryStatus.ACCESS_ERROR, error.strerror or str(error))


def check_directory(path: PathLike) -> DirectoryCheck:
    """Stat *path* and classify it.

    Symlinks are followed for the classification, so a link to a directory
    is treated as that directory. Errors are returned, never raised. A
    directory whose entries cannot be listed is reported as non-empty.
    """
    try:
        st = os.stat(path)
    except OSError as e:
        return _classify_error(e)

    if not stat.S_ISDIR(st.st_mode):
        return DirectoryCheck(DirectoryStatus.NOT_A_DIRECTORY)

    return DirectoryCheck(DirectoryStatus.EMPTY if is_empty(path) else DirectoryStatus.NON_EMPTY)


def is_empty(path: PathLike) -> bool:
    """Return True iff *path* has no direct entries.

    A read error counts as "not empty" so the caller falls back to the
    force/confirmation path instead of deleting silently.
    """
    try:
        with os.scandir(path) as entries:
            return next(entries, None) is None
    except OSError:
        return False


def compute_size(path: PathLike) -> SizeReport:
    """Return total bytes and file count for the regular files under *path*.

    Directories, symlinks and special files are not counted. Unreadable
    directories and files are skipped, so the report may be partial.
    """
    total = 0
    count = 0
    # os.walk ignores listing errors unless onerror is given
    for dirpath, _dirnames, filenames in os.walk(path, followlinks=False):
        for f in filenames:
            try:
                st = os.lstat(Path(dirpath) / f)
            except OSError:
                continue
            if stat.S_ISREG(st.st_mode):
                total += st.st_size
                count += 1
    return SizeReport(total_bytes=total, total_files=count)
