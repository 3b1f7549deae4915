"""
sync-rsync output surfaces.

The output channel collects everything the spawned processes print, plus
the invocation lines and skip notices written by the orchestrator. It is
persisted to a log file and mirrored to the console while shown.
"""

from __future__ import annotations

from pathlib import Path
from typing import IO, Protocol

from rich.console import Console

from syncrsync.core.logging import get_logger

logger = get_logger(__name__)


class OutputChannel:
    """Append-only text sink for process output."""

    def __init__(
        self,
        log_file: Path | None = None,
        console: Console | None = None,
        name: str = "Sync-Rsync",
    ) -> None:
        self.name = name
        self.log_file = log_file
        self.console = console or Console(stderr=True)
        self.visible = False
        self._chunks: list[str] = []
        self._handle: IO[str] | None = None

    @property
    def text(self) -> str:
        return "".join(self._chunks)

    def append(self, text: str) -> None:
        if not text:
            return
        self._chunks.append(text)
        self._write(text)
        if self.visible:
            self.console.print(text, end="", markup=False, highlight=False, soft_wrap=True)

    def append_line(self, text: str) -> None:
        self.append(text + "\n")

    def show(self) -> None:
        self.visible = True

    def hide(self) -> None:
        self.visible = False

    def clear(self) -> None:
        self._chunks.clear()

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def _write(self, text: str) -> None:
        if self.log_file is None:
            return
        if self._handle is None:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            self._handle = open(self.log_file, "a", encoding="utf-8")
        self._handle.write(text)
        self._handle.flush()


class Notifier(Protocol):
    """User-visible notifications."""

    def info(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class ConsoleNotifier:
    """Notifier printing to a rich console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    def info(self, message: str) -> None:
        self.console.print(f"[green]{message}[/green]")

    def error(self, message: str) -> None:
        logger.error("User notification", message=message)
        self.console.print(f"[red]{message}[/red]")
