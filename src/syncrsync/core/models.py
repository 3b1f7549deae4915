"""
sync-rsync data models.

Resolved sites and configuration. Both are frozen: a settings change
produces a new :class:`Config` instead of mutating the current one.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType


class Direction(Enum):
    """Transfer direction relative to the local tree."""

    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class WorkspaceContext:
    """The workspace the templates are resolved against."""

    root: str | None = None

    @property
    def local_root(self) -> str | None:
        """Workspace root with a trailing separator."""
        if self.root is None:
            return None
        if self.root.endswith(os.sep) or self.root.endswith("/"):
            return self.root
        return self.root + os.sep

    @property
    def folder_basename(self) -> str | None:
        if self.root is None:
            return None
        return os.path.basename(self.root.rstrip("/\\"))


@dataclass(frozen=True)
class Site:
    """A resolved local <-> remote synchronization target."""

    name: str | None = None
    local_path: str | None = None
    remote_path: str | None = None
    translated_local_path: str | None = None
    up_only: bool = False
    down_only: bool = False
    delete_files: bool = False
    flags: str = "rlptzv"
    exclude: tuple[str, ...] = (".git", ".vscode")
    include: tuple[str, ...] = ()
    chmod: str | None = None
    shell: str | None = None
    executable_shell: str | None = None
    executable: str = "rsync"
    after_sync: tuple[str, ...] = ()
    options: tuple[tuple[str, ...], ...] = ()
    args: tuple[str, ...] = ()

    @property
    def key(self) -> str:
        """Registry key: the name, falling back to the remote path."""
        return self.name or self.remote_path or ""

    def describe(self) -> str:
        return self.name or self.remote_path or self.local_path or "<unnamed site>"


@dataclass(frozen=True)
class Config:
    """Fully resolved, immutable sync configuration."""

    sites: tuple[Site, ...]
    site_map: Mapping[str, Site] = field(default_factory=lambda: MappingProxyType({}))
    on_save: bool = False
    on_save_individual: bool = False
    on_load_individual: bool = False
    show_progress: bool = True
    notification: bool = False
    auto_show_output: bool = False
    auto_show_output_on_error: bool = True
    auto_hide_output: bool = False
    cygpath: str | None = None
    use_wsl: bool = False
    watch_globs: tuple[str, ...] = ()
