"""
sync-rsync controller.

The command surface a host (the CLI, or an editor integration) talks to.
It owns the current configuration, rebuilding it and the watch
subscription together whenever settings change, and routes commands and
file events to the orchestrator.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from syncrsync.core.errors import ConfigError
from syncrsync.core.logging import get_logger
from syncrsync.core.models import Config, Direction, WorkspaceContext
from syncrsync.core.output import Notifier, OutputChannel
from syncrsync.core.resolver import ConfigResolver, SiteRegistry
from syncrsync.core.session import StatusIndicator, SyncSession
from syncrsync.core.settings import RawSettings
from syncrsync.sync.debounce import DEFAULT_QUIET_WINDOW, Debouncer
from syncrsync.sync.orchestrator import RunnerFactory, SyncOrchestrator
from syncrsync.sync.watcher import WatchSubscription

logger = get_logger(__name__)

Picker = Callable[[list[str]], Awaitable[str | None]]


async def _no_pick(keys: list[str]) -> str | None:
    return None


class SyncController:
    """Host-facing commands and event hooks."""

    def __init__(
        self,
        workspace: WorkspaceContext,
        output: OutputChannel,
        notifier: Notifier,
        indicator: StatusIndicator | None = None,
        picker: Picker | None = None,
        debounce_seconds: float = DEFAULT_QUIET_WINDOW,
        runner_factory: RunnerFactory | None = None,
    ) -> None:
        self.workspace = workspace
        self.output = output
        self.notifier = notifier
        self.picker = picker or _no_pick
        self.resolver = ConfigResolver()
        self.session = SyncSession(output, notifier, indicator)
        self.orchestrator = SyncOrchestrator(self.session, runner_factory)
        self.config: Config | None = None
        self.registry: SiteRegistry | None = None
        self.debounced_sync_up = Debouncer(self._batch_up, debounce_seconds)
        self._watch: WatchSubscription | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    # ==================== Configuration ====================

    def reload(self, raw: RawSettings) -> Config | None:
        """Rebuild the configuration and the watch subscription."""
        try:
            config = self.resolver.build(raw, self.workspace)
        except ConfigError as e:
            logger.error("Configuration rejected", error=str(e))
            self.output.append_line(f"ERROR > {e}")
            self.notifier.error(f"Sync-Rsync: {e}")
            self.config = None
            self.registry = None
            self._close_watch()
            return None

        self.config = config
        self.registry = SiteRegistry(config)
        if self._loop is not None:
            self._rewatch(config)
        return config

    def start_watching(self) -> None:
        """Enable watch subscriptions. Must be called from the event loop."""
        self._loop = asyncio.get_running_loop()
        if self.config is not None:
            self._rewatch(self.config)

    def _rewatch(self, config: Config) -> None:
        self._close_watch()
        if not config.watch_globs or self.workspace.root is None or self._loop is None:
            return

        self.output.append_line(f"Activating watcher on globs: {', '.join(config.watch_globs)}")
        subscription = WatchSubscription(
            Path(self.workspace.root), config.watch_globs, self._on_watch_event, self._loop
        )
        try:
            subscription.start()
        except OSError as e:
            self.output.append_line(f"Unable to create watcher: {e}")
            logger.error("Watcher failed", error=str(e))
            return
        self._watch = subscription

    def _close_watch(self) -> None:
        if self._watch is not None:
            self.output.append_line("Closing watcher")
            self._watch.close()
            self._watch = None

    @property
    def watching(self) -> bool:
        return self._watch is not None and self._watch.active

    # ==================== Commands ====================

    async def sync_up(self) -> bool:
        return await self._batch(Direction.UP, dry_run=False)

    async def sync_down(self) -> bool:
        return await self._batch(Direction.DOWN, dry_run=False)

    async def compare_up(self) -> bool:
        return await self._batch(Direction.UP, dry_run=True)

    async def compare_down(self) -> bool:
        return await self._batch(Direction.DOWN, dry_run=True)

    async def sync_up_single(self) -> bool:
        return await self._single(Direction.UP)

    async def sync_down_single(self) -> bool:
        return await self._single(Direction.DOWN)

    async def sync_up_file(self, file_path: str) -> bool:
        return await self._file(file_path, Direction.UP)

    async def sync_down_file(self, file_path: str) -> bool:
        return await self._file(file_path, Direction.DOWN)

    def show_output(self) -> None:
        """Reveal the output; a finished run is acknowledged and the status returns to idle."""
        self.output.show()
        self.session.acknowledge()

    def kill_sync(self) -> bool:
        return self.session.kill()

    # ==================== Host events ====================

    def on_file_saved(self, file_path: str) -> None:
        config = self.config
        if config is None:
            return
        if config.on_save:
            self.debounced_sync_up(config)
        elif config.on_save_individual:
            self._spawn(self.sync_up_file(file_path))

    def on_file_opened(self, file_path: str) -> None:
        config = self.config
        if config is not None and config.on_load_individual:
            self._spawn(self.sync_down_file(file_path))

    def _on_watch_event(self, path: str) -> None:
        logger.debug("Watch event", path=path)
        if self.config is not None:
            self.debounced_sync_up(self.config)

    async def drain(self) -> None:
        """Wait for pending debounced and event-triggered syncs."""
        task = self.debounced_sync_up.flush()
        pending = list(self._tasks) + ([task] if task is not None else [])
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def close(self) -> None:
        self.debounced_sync_up.cancel()
        self._close_watch()
        self.output.close()

    # ==================== Internals ====================

    def _require_config(self) -> Config | None:
        if self.config is None:
            self.notifier.error("Sync-Rsync: no valid configuration")
        return self.config

    async def _batch(self, direction: Direction, dry_run: bool) -> bool:
        config = self._require_config()
        if config is None:
            return False
        return await self.orchestrator.run_batch(config, direction, dry_run=dry_run)

    async def _batch_up(self, config: Config) -> bool:
        return await self.orchestrator.run_batch(config, Direction.UP)

    async def _single(self, direction: Direction) -> bool:
        config = self._require_config()
        if config is None or self.registry is None:
            return False

        key = await self.picker(self.registry.keys())
        site = self.registry.get(key)
        if site is None:
            return True

        return await self.orchestrator.run_one(config, site, direction)

    async def _file(self, file_path: str, direction: Direction) -> bool:
        config = self._require_config()
        if config is None:
            return False
        return await self.orchestrator.run_single_file(config, file_path, direction)

    def _spawn(self, coro: Awaitable[bool]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
