#!/usr/bin/env python3
"""
rmdir-cli Configuration Manager

Optional user configuration for the rmdir command, stored as JSON in a
.rmdir-cli directory under the user's home. Only tuning knobs for the
brutal-mode process inspection live here; nothing about deletions is
ever recorded.
"""

import json
import pathlib
from dataclasses import dataclass
from typing import Optional

DEFAULT_SCAN_TIMEOUT = 5.0
DEFAULT_KILL_TIMEOUT = 3.0
DEFAULT_HANDLE_TOOL = "handle.exe"


@dataclass
class RmdirConfig:
    """Configuration container for the rmdir command"""

    scan_timeout: float = DEFAULT_SCAN_TIMEOUT  # seconds per open-file enumeration call
    kill_timeout: float = DEFAULT_KILL_TIMEOUT  # seconds per termination attempt
    handle_tool: str = DEFAULT_HANDLE_TOOL

    @classmethod
    def from_dict(cls, data: dict) -> "RmdirConfig":
        """Create from dictionary, ignoring unknown keys and falling back on bad values"""
        defaults = cls()
        return cls(
            scan_timeout=_positive_float(data.get("scan_timeout"), defaults.scan_timeout),
            kill_timeout=_positive_float(data.get("kill_timeout"), defaults.kill_timeout),
            handle_tool=str(data.get("handle_tool") or defaults.handle_tool),
        )


def _positive_float(value, default: float) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return result if result > 0 else default


class ConfigManager:
    """Loads the rmdir configuration file"""

    def __init__(self, config_dir: Optional[pathlib.Path] = None):
        """Initialize configuration manager

        Args:
            config_dir: Override default .rmdir-cli directory location
        """
        if config_dir:
            self.config_dir = config_dir
        else:
            self.config_dir = pathlib.Path.home() / ".rmdir-cli"

        self.config_file = self.config_dir / "config.json"

    def load(self) -> RmdirConfig:
        """Load configuration from file"""
        if not self.config_file.is_file():
            return RmdirConfig()
        try:
            with self.config_file.open(encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError):
            # If config is corrupted or unreadable, return default
            return RmdirConfig()
        if not isinstance(data, dict):
            return RmdirConfig()
        return RmdirConfig.from_dict(data)
