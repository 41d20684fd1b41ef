#!/usr/bin/env python3
"""
File Operations Module

Recursive removal of a target directory. All gating (emptiness, --force,
confirmation) happens in the caller; remove_tree deletes whatever it is
given and reports failure as a DeletionError carrying the OS message.
"""

import os
import shutil
from pathlib import Path
from typing import Union


class DeletionError(Exception):
    """Raised when a directory tree could not be removed"""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


def _describe(error: OSError) -> str:
    if error.filename and error.strerror:
        return f"{error.strerror}: {error.filename}"
    return str(error)


def remove_tree(path: Union[str, os.PathLike]) -> None:
    """Delete *path* and everything below it.

    A symlink is removed as a link; the directory it points to is left
    alone. The first error aborts the removal and is not retried.
    """
    target = Path(path)
    try:
        if target.is_symlink():
            target.unlink()
        else:
            shutil.rmtree(target)
    except OSError as e:
        raise DeletionError(str(path), _describe(e)) from e
