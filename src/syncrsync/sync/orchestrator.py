"""
sync-rsync orchestration.

Runs the sync executable across sites, one site at a time and in the
configured order. A failing site is reported and the batch moves on; a
cancelled run stops before its next site. Results are reduced to a single
success flag, and nothing raised inside a run escapes it.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable, Sequence
from datetime import datetime
from functools import partial

from syncrsync.core.errors import (
    PostSyncCommandError,
    SiteSkipped,
    SyncExitError,
    SyncRsyncError,
)
from syncrsync.core.logging import get_logger, run_logging
from syncrsync.core.models import Config, Direction, Site
from syncrsync.core.output import Notifier, OutputChannel
from syncrsync.core.session import SyncRun, SyncSession
from syncrsync.platform.process import ProcessRunner
from syncrsync.sync.arguments import build_sync_arguments

logger = get_logger(__name__)

# rsync: "errors selecting input/output files, dirs"
VANISHED_SOURCE_EXIT = 3

RunnerFactory = Callable[[Config], ProcessRunner]


class SyncOrchestrator:
    """Sequences sync runs across the sites of a configuration."""

    def __init__(
        self,
        session: SyncSession,
        runner_factory: RunnerFactory | None = None,
    ) -> None:
        self.session = session
        self.runner_factory = runner_factory or partial(ProcessRunner.for_config, session.output)

    @property
    def output(self) -> OutputChannel:
        return self.session.output

    @property
    def notifier(self) -> Notifier:
        return self.session.notifier

    async def run_batch(self, config: Config, direction: Direction, dry_run: bool = False) -> bool:
        """Sync every site of ``config`` in one direction."""
        return await self._run(config, config.sites, direction, dry_run=dry_run)

    async def run_single_file(self, config: Config, file_path: str, direction: Direction) -> bool:
        """Sync one file across every site that contains it."""
        return await self._run(config, config.sites, direction, file_path=file_path)

    async def run_one(
        self, config: Config, site: Site, direction: Direction, dry_run: bool = False
    ) -> bool:
        """Sync a single, explicitly chosen site."""
        return await self._run(config, [site], direction, dry_run=dry_run)

    async def _run(
        self,
        config: Config,
        sites: Sequence[Site],
        direction: Direction,
        dry_run: bool = False,
        file_path: str | None = None,
    ) -> bool:
        run = self.session.start()
        success = False
        with run_logging(run.id, direction=direction.value, dry_run=dry_run, file=file_path):
            try:
                runner = self.runner_factory(config)
                success = await self._run_sites(
                    runner, run, config, sites, direction, dry_run, file_path
                )
            except Exception as e:
                logger.error("Sync run aborted", error=str(e))
                self.output.append_line(f"ERROR > {e}")
                self.notifier.error(f"Sync-Rsync: {e}")
                success = False
            finally:
                self.session.finish(run, success, config)
        return success

    async def _run_sites(
        self,
        runner: ProcessRunner,
        run: SyncRun,
        config: Config,
        sites: Sequence[Site],
        direction: Direction,
        dry_run: bool,
        file_path: str | None,
    ) -> bool:
        success = True

        for site in sites:
            if run.is_cancelled:
                self.output.append_line("\nSync cancelled")
                logger.info("Sync run cancelled", next_site=site.describe())
                break

            try:
                await self._sync_site(runner, run, config, site, direction, dry_run, file_path)
            except SiteSkipped as e:
                self.output.append_line(f"\n{e}")
                logger.info("Site skipped", site=site.describe(), reason=str(e))
            except SyncRsyncError as e:
                logger.error("Site failed", site=site.describe(), error=str(e))
                self.notifier.error(f"Sync-Rsync: {e}")
                success = False

        return success and not run.is_cancelled

    async def _sync_site(
        self,
        runner: ProcessRunner,
        run: SyncRun,
        config: Config,
        site: Site,
        direction: Direction,
        dry_run: bool,
        file_path: str | None,
    ) -> None:
        if direction == Direction.DOWN and site.up_only:
            raise SiteSkipped(f"{site.remote_path} is upOnly")
        if direction == Direction.UP and site.down_only:
            raise SiteSkipped(f"{site.remote_path} is downOnly")

        if not await asyncio.to_thread(os.path.exists, site.local_path):
            raise SiteSkipped(f"{site.local_path} does not exist")

        arguments = build_sync_arguments(
            site,
            direction,
            dry_run=dry_run,
            show_progress=config.show_progress,
            file_path=file_path,
        )

        verb = "comparing" if dry_run else "syncing"
        self.output.append_line(f"\n{datetime.now().isoformat(sep=' ', timespec='seconds')} {verb}")

        returncode = await runner.run(
            site.executable, arguments, shell=site.executable_shell, run=run
        )

        if returncode == VANISHED_SOURCE_EXIT and file_path is not None:
            logger.info("Tolerating vanished source", site=site.describe(), file=file_path)
            return
        if returncode != 0:
            raise SyncExitError(site.executable, returncode)

        if direction != Direction.UP or dry_run or not site.after_sync:
            return
        if run.is_cancelled:
            return

        command, *command_args = site.after_sync
        returncode = await runner.run(
            command, command_args, shell=site.executable_shell, run=run
        )
        if returncode != 0:
            raise PostSyncCommandError(command, returncode)
