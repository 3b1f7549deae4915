"""
Filesystem watch subscriptions.

Watchdog delivers events on its observer thread; matching file events are
handed to the event loop that owns the subscription. A single save shows up
as several raw events, so events for the same path are coalesced before the
callback runs.
"""

from __future__ import annotations

import asyncio
import fnmatch
from collections.abc import Callable, Iterable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from syncrsync.core.logging import get_logger
from syncrsync.sync.debounce import DEFAULT_QUIET_WINDOW, KeyedDebouncer

logger = get_logger(__name__)


def matches_glob(relative_path: str, pattern: str) -> bool:
    """Glob match where a leading ``**/`` may also match zero directories."""
    if fnmatch.fnmatch(relative_path, pattern):
        return True
    if pattern.startswith("**/"):
        return fnmatch.fnmatch(relative_path, pattern[3:])
    return False


class _GlobHandler(FileSystemEventHandler):
    def __init__(self, subscription: WatchSubscription) -> None:
        self.subscription = subscription

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in ("opened", "closed_no_write"):
            return
        for raw_path in (event.src_path, getattr(event, "dest_path", "")):
            if raw_path and self.subscription.matches(str(raw_path)):
                self.subscription.dispatch(str(raw_path))
                return


class WatchSubscription:
    """Watches ``root`` recursively and reports paths matching ``globs``."""

    def __init__(
        self,
        root: Path,
        globs: Iterable[str],
        callback: Callable[[str], None],
        loop: asyncio.AbstractEventLoop,
        settle_seconds: float = DEFAULT_QUIET_WINDOW,
    ) -> None:
        self.root = root.resolve()
        self.globs = tuple(globs)
        self.callback = callback
        self.loop = loop
        self._settle = KeyedDebouncer(self._deliver, settle_seconds)
        self._observer: Observer | None = None

    @property
    def active(self) -> bool:
        return self._observer is not None

    def matches(self, path: str) -> bool:
        try:
            relative = Path(path).resolve().relative_to(self.root).as_posix()
        except ValueError:
            return False
        return any(matches_glob(relative, pattern) for pattern in self.globs)

    def dispatch(self, path: str) -> None:
        """Queue ``path`` from any thread; the callback runs once it settles."""
        if self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self._settle, path)

    async def _deliver(self, path: str) -> None:
        if self._observer is not None:
            self.callback(path)

    def start(self) -> None:
        if self._observer is not None:
            return
        observer = Observer()
        observer.schedule(_GlobHandler(self), str(self.root), recursive=True)
        observer.start()
        self._observer = observer
        logger.info("Watcher started", root=str(self.root), globs=list(self.globs))

    def close(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=2.0)
        self._observer = None
        self._settle.cancel()
        logger.info("Watcher closed", root=str(self.root))
