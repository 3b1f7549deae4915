"""
Argument construction for the sync executable.

Arguments follow rsync conventions: combined short flags first, then long
options, include/exclude patterns, source, destination and finally the
site's verbatim extra arguments.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import PurePath

from syncrsync.core.errors import SiteSkipped
from syncrsync.core.models import Direction, Site

DRY_RUN_FLAG = "n"


def build_option(group: Sequence[str]) -> list[str]:
    """Render one option group: ``[name]`` or ``[name, value]``."""
    if not group:
        return []
    name, *rest = group
    if name.startswith("-"):
        return [name, *rest]
    value = rest[0] if rest else None
    if len(name) == 1:
        return [f"-{name}"] + ([value] if value is not None else [])
    return [f"--{name}={value}" if value is not None else f"--{name}"]


def relative_to_site(site: Site, file_path: str) -> str:
    """Path of ``file_path`` relative to the site's local root, POSIX style."""
    if site.local_path is None:
        raise SiteSkipped(f"{site.describe()} has no local path")
    root = os.path.abspath(site.local_path)
    target = os.path.abspath(file_path)
    try:
        common = os.path.commonpath([root, target])
    except ValueError:
        common = None
    if common != root or target == root:
        raise SiteSkipped(f"{file_path} is not inside {site.local_path}")
    return PurePath(os.path.relpath(target, root)).as_posix()


def endpoints(
    site: Site, direction: Direction, file_path: str | None = None
) -> tuple[str, str]:
    """Return ``(source, destination)`` for a site, optionally scoped to a file."""
    local = site.translated_local_path or ""
    remote = site.remote_path or ""
    if file_path is not None:
        relative = relative_to_site(site, file_path)
        local += relative
        remote += relative
    if direction == Direction.DOWN:
        return remote, local
    return local, remote


def build_sync_arguments(
    site: Site,
    direction: Direction,
    dry_run: bool = False,
    show_progress: bool = False,
    file_path: str | None = None,
) -> list[str]:
    """Build the full argument list for one sync invocation."""
    args: list[str] = []

    short_flags = site.flags.lstrip("-")
    if dry_run:
        short_flags += DRY_RUN_FLAG
    if short_flags:
        args.append(f"-{short_flags}")

    if show_progress:
        args.append("--progress")
    if site.delete_files:
        args.append("--delete")
    if site.chmod:
        args.append(f"--chmod={site.chmod}")
    if site.shell:
        args.append(f"--rsh={site.shell}")

    for group in site.options:
        args.extend(build_option(group))

    args.extend(f"--include={pattern}" for pattern in site.include)
    args.extend(f"--exclude={pattern}" for pattern in site.exclude)

    source, destination = endpoints(site, direction, file_path)
    args.extend([source, destination])

    args.extend(site.args)
    return args
