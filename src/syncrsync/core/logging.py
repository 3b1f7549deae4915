"""
sync-rsync structured logging.

Diagnostic logging for config builds and sync runs. Raw process output goes
to the output channel instead (see :mod:`syncrsync.core.output`).

Runs can overlap (a save during a batch starts a second one), so every event
emitted while a run is active carries that run's ``run_id`` through
structlog's context variables; each asyncio task sees only its own run.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from syncrsync.core.config import LoggingConfig


def log_file_path(log_directory: Path, day: date | None = None) -> Path:
    """Daily diagnostic log file."""
    day = day or date.today()
    return log_directory / f"sync-rsync_{day.strftime('%Y%m%d')}.log"


def setup_logging(config: LoggingConfig) -> None:
    """Configure structured logging for sync-rsync.

    Safe to call again: handlers from a previous call are replaced, so a
    changed log directory or level takes effect.
    """
    handlers: list[logging.Handler] = []

    if config.console_enabled:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, config.level))
        handlers.append(console_handler)

    if config.file_enabled:
        config.log_directory.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path(config.log_directory), encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    logging.basicConfig(
        level=logging.DEBUG,
        handlers=handlers or [logging.NullHandler()],
        format="%(message)s",
        force=True,
    )

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if config.json_format:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name or "syncrsync")


@contextmanager
def run_logging(run_id: str, **context: Any) -> Iterator[None]:
    """Tag every event logged inside the block with ``run_id`` and ``context``."""
    with structlog.contextvars.bound_contextvars(run_id=run_id, **context):
        yield
