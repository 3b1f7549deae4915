"""
sync-rsync blocking command execution.

Used where a short-lived helper must finish before work can continue,
such as path bridge executables during config resolution.
"""

from __future__ import annotations

import subprocess
import time

from syncrsync.core.logging import get_logger

logger = get_logger(__name__)


class CommandResult:
    """Result of a command execution."""

    def __init__(
        self,
        returncode: int,
        stdout: str,
        stderr: str,
        command: str | list[str],
        duration_seconds: float = 0.0,
    ) -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.command = command
        self.duration_seconds = duration_seconds

    @property
    def success(self) -> bool:
        return self.returncode == 0

    def __repr__(self) -> str:
        cmd = self.command if isinstance(self.command, str) else " ".join(self.command)
        return f"CommandResult(rc={self.returncode}, cmd='{cmd[:50]}...')"


def run_command(command: list[str], timeout: int = 30) -> CommandResult:
    """Run a command to completion, capturing its output.

    Spawn failures and timeouts are reported as a ``-1`` return code with
    the reason in ``stderr``.
    """
    logger.debug("Running command", command=command)
    start_time = time.time()

    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return CommandResult(
            returncode=-1,
            stdout="",
            stderr=f"Command timed out after {timeout}s",
            command=command,
            duration_seconds=timeout,
        )
    except OSError as e:
        return CommandResult(
            returncode=-1,
            stdout="",
            stderr=str(e),
            command=command,
            duration_seconds=time.time() - start_time,
        )

    if result.returncode != 0:
        logger.warning(
            "Command failed",
            command=command,
            returncode=result.returncode,
            stderr=result.stderr[:500] if result.stderr else "",
        )

    return CommandResult(
        returncode=result.returncode,
        stdout=result.stdout,
        stderr=result.stderr,
        command=command,
        duration_seconds=time.time() - start_time,
    )
