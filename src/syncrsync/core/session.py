"""
sync-rsync session state.

A :class:`SyncSession` tracks the batch currently driving the status
indicator. Each batch gets its own :class:`SyncRun`, which owns the
cancellation flag and the handle of the process it is waiting on, so
killing a run never reaches into another run started concurrently.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import TYPE_CHECKING

import psutil

from syncrsync.core.logging import get_logger

if TYPE_CHECKING:
    from asyncio.subprocess import Process

    from syncrsync.core.models import Config
    from syncrsync.core.output import Notifier, OutputChannel

logger = get_logger(__name__)

COMMAND_KILL_SYNC = "kill-sync"
COMMAND_SHOW_OUTPUT = "show-output"


class SessionState(Enum):
    """State of the session's current batch."""

    IDLE = auto()
    RUNNING = auto()
    SUCCEEDED = auto()
    FAILED = auto()
    CANCELLED = auto()


@dataclass
class StatusIndicator:
    """Status widget model: what the host should display."""

    text: str = "Rsync: idle"
    color: str | None = None
    command: str = COMMAND_SHOW_OUTPUT
    _listeners: list[Callable[[StatusIndicator], None]] = field(default_factory=list, repr=False)

    def update(self, text: str, color: str | None, command: str) -> None:
        self.text = text
        self.color = color
        self.command = command
        for listener in self._listeners:
            try:
                listener(self)
            except Exception as e:
                logger.warning("Status listener error", error=str(e))

    def add_listener(self, listener: Callable[[StatusIndicator], None]) -> None:
        self._listeners.append(listener)


def terminate_process_tree(pid: int) -> None:
    """Terminate a process and everything it spawned."""
    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return

    # Shell-wrapped invocations leave the sync executable as a child.
    for proc in [*parent.children(recursive=True), parent]:
        try:
            proc.terminate()
        except psutil.NoSuchProcess:
            continue


class SyncRun:
    """One orchestration run: its cancellation flag and tracked process."""

    def __init__(self) -> None:
        self.id = str(uuid.uuid4())
        self.started_at = datetime.now()
        self.ended_at: datetime | None = None
        self.process: Process | None = None
        self._cancelled = False

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def is_finished(self) -> bool:
        return self.ended_at is not None

    @property
    def duration_seconds(self) -> float | None:
        if self.ended_at is None:
            return None
        return (self.ended_at - self.started_at).total_seconds()

    def attach(self, process: Process) -> None:
        self.process = process

    def detach(self, process: Process) -> None:
        if self.process is process:
            self.process = None

    def cancel(self) -> None:
        """Flag the run as cancelled and terminate its tracked process."""
        self._cancelled = True
        process = self.process
        if process is not None and process.returncode is None:
            logger.info("Terminating process", run_id=self.id, pid=process.pid)
            terminate_process_tree(process.pid)


class SyncSession:
    """
    Drives the status indicator across sync runs.

    ``start`` makes a new run current; only the current run may move the
    session out of RUNNING. ``kill`` targets the most recently started run.
    """

    def __init__(
        self,
        output: OutputChannel,
        notifier: Notifier,
        indicator: StatusIndicator | None = None,
    ) -> None:
        self.output = output
        self.notifier = notifier
        self.indicator = indicator or StatusIndicator()
        self.state = SessionState.IDLE
        self.current_run: SyncRun | None = None

    @property
    def is_running(self) -> bool:
        return self.state == SessionState.RUNNING

    def start(self) -> SyncRun:
        """Begin a new run and make it current."""
        run = SyncRun()
        if self.is_running and self.current_run is not None:
            logger.warning(
                "Starting a run while another is active",
                run_id=run.id,
                active_run_id=self.current_run.id,
            )
        self.current_run = run
        self.state = SessionState.RUNNING
        self.indicator.update("Rsync: syncing", "mediumseagreen", COMMAND_KILL_SYNC)
        logger.info("Sync run started", run_id=run.id)
        return run

    def finish(self, run: SyncRun, success: bool, config: Config) -> SessionState:
        """Record the outcome of ``run`` and apply the output policy."""
        run.ended_at = datetime.now()

        if run.is_cancelled:
            state = SessionState.CANCELLED
        elif success:
            state = SessionState.SUCCEEDED
        else:
            state = SessionState.FAILED

        logger.info(
            "Sync run finished",
            run_id=run.id,
            state=state.name,
            duration_seconds=run.duration_seconds,
        )

        if run is not self.current_run:
            return state

        self.state = state

        if state == SessionState.SUCCEEDED:
            if config.auto_hide_output:
                self.output.hide()
            self.indicator.update("Rsync: done", None, COMMAND_SHOW_OUTPUT)
            if config.notification:
                self.notifier.info("Sync Completed")
        else:
            if config.auto_show_output_on_error:
                self.output.show()
            if state == SessionState.CANCELLED:
                self.indicator.update("Rsync: cancelled", "yellow", COMMAND_SHOW_OUTPUT)
            else:
                self.indicator.update("Rsync: failed", "red", COMMAND_SHOW_OUTPUT)

        return state

    def kill(self) -> bool:
        """Cancel the current run. Returns False when nothing is running."""
        run = self.current_run
        if run is None or run.is_finished:
            return False
        logger.info("Sync run kill requested", run_id=run.id)
        run.cancel()
        return True

    def acknowledge(self) -> None:
        """Return a finished session to IDLE."""
        if self.state in (SessionState.SUCCEEDED, SessionState.FAILED, SessionState.CANCELLED):
            self.state = SessionState.IDLE
            self.indicator.update("Rsync: idle", None, COMMAND_SHOW_OUTPUT)
