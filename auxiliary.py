#!/usr/bin/env python3
"""
Auxiliary utility functions for rmdir-cli

Formatting helpers shared by the orchestrator and the confirmation prompt.
"""

import os
import pathlib
from typing import Optional


def format_bytes(size_bytes: int) -> str:
    """Format byte size into human-readable string

    Args:
        size_bytes: Size in bytes to format

    Returns:
        Formatted string like "1.2 GiB", "345.0 MiB", "12.0 KiB", or "789 B"
    """
    if size_bytes >= 1024**3:
        return f"{size_bytes / (1024**3):.1f} GiB"
    if size_bytes >= 1024**2:
        return f"{size_bytes / (1024**2):.1f} MiB"
    if size_bytes >= 1024:
        return f"{size_bytes / 1024:.1f} KiB"
    return f"{size_bytes} B"


def format_count(count: int, singular: str, plural: Optional[str] = None) -> str:
    """Format a count with the matching noun, e.g. "1 file" or "2,048 files"."""
    noun = singular if count == 1 else (plural or f"{singular}s")
    return f"{count:,} {noun}"


def format_path_for_display(path: str, home_path: Optional[str] = None) -> str:
    """Format a path for display by replacing a leading home directory with ~

    Args:
        path: Path to format
        home_path: Home directory path (defaults to platform home)

    Returns:
        Path with home directory replaced by ~ if applicable
    """
    if home_path is None:
        home_path = str(pathlib.Path.home())

    home = home_path.rstrip("/\\")
    if home and path.startswith(home) and path[len(home) : len(home) + 1] in ("", "/", os.sep):
        return "~" + path[len(home) :]
    return path
