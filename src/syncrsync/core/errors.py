"""
sync-rsync error taxonomy.

Configuration errors are fatal to a config build. Every other error is
scoped to a single site and handled by the orchestrator.
"""

from __future__ import annotations


class SyncRsyncError(Exception):
    """Base class for all sync-rsync errors."""


class ConfigError(SyncRsyncError):
    """Raw settings are malformed or cannot be resolved into sites."""


class PathTranslationError(SyncRsyncError):
    """The path bridge executable failed or could not be started."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Path translation failed for {path!r}: {reason}")
        self.path = path
        self.reason = reason


class ProcessSpawnError(SyncRsyncError):
    """An executable could not be started."""

    def __init__(self, executable: str, reason: str) -> None:
        super().__init__(f"Unable to start {executable}: {reason}")
        self.executable = executable
        self.reason = reason


class SyncExitError(SyncRsyncError):
    """The sync executable exited with a non-tolerated code."""

    def __init__(self, executable: str, returncode: int) -> None:
        super().__init__(f"{executable} returned {returncode}")
        self.executable = executable
        self.returncode = returncode


class PostSyncCommandError(SyncRsyncError):
    """The after-sync command exited non-zero."""

    def __init__(self, command: str, returncode: int) -> None:
        super().__init__(f"afterSync command {command} returned {returncode}")
        self.command = command
        self.returncode = returncode


class SiteSkipped(SyncRsyncError):
    """A site was not applicable to this run. Logged, never a failure."""
