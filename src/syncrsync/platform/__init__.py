"""
sync-rsync platform layer.

Path bridging and process execution, including the Windows-specific
shell and WSL adaptations.
"""

from __future__ import annotations

import platform

from syncrsync.platform.base import CommandResult, run_command


def get_platform_name() -> str:
    """Get the current platform name."""
    return platform.system().lower()


def is_linux() -> bool:
    """Check if running on Linux."""
    return platform.system().lower() == "linux"


def is_windows() -> bool:
    """Check if running on Windows."""
    return platform.system().lower() == "windows"


__all__ = [
    "CommandResult",
    "run_command",
    "get_platform_name",
    "is_linux",
    "is_windows",
]
