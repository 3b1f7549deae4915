"""
Asynchronous process execution for sync runs.

Spawns the sync executable (or an after-sync command), streams its
combined output into the output channel as it arrives and resolves to the
exit code. On Windows a shell override or the WSL bridge changes how the
command line is framed.
"""

from __future__ import annotations

import asyncio
import codecs
import shlex
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from syncrsync.core.errors import ProcessSpawnError
from syncrsync.core.logging import get_logger
from syncrsync.platform import is_windows

if TYPE_CHECKING:
    from asyncio.subprocess import Process

    from syncrsync.core.models import Config
    from syncrsync.core.output import OutputChannel
    from syncrsync.core.session import SyncRun

logger = get_logger(__name__)

SPAWN_FAILED = 1
READ_CHUNK_SIZE = 4096


@dataclass(frozen=True)
class Invocation:
    """How a command is handed to the operating system."""

    program: str | None = None
    args: tuple[str, ...] = ()
    shell_command: str | None = None
    shell_executable: str | None = None

    @property
    def uses_shell(self) -> bool:
        return self.shell_command is not None


def build_invocation(
    executable: str,
    arguments: Sequence[str],
    shell: str | None = None,
    use_wsl: bool = False,
    windows: bool | None = None,
) -> Invocation:
    """Frame ``executable`` and ``arguments`` for the host platform.

    cmd.exe cannot host another shell through the usual switches, so on
    Windows a shell override receives the whole command line as one
    quoted argument instead.
    """
    if windows is None:
        windows = is_windows()

    if windows and shell:
        command_line = " ".join([executable, *arguments])
        return Invocation(shell_command=f"{shell} '{command_line}'")

    if windows and use_wsl:
        return Invocation(shell_command=" ".join(["wsl", executable, *arguments]))

    if shell:
        return Invocation(
            shell_command=shlex.join([executable, *arguments]),
            shell_executable=shell,
        )

    return Invocation(program=executable, args=tuple(arguments))


class ProcessRunner:
    """Runs commands and streams their output to the output channel."""

    def __init__(
        self,
        output: OutputChannel,
        use_wsl: bool = False,
        auto_show_output: bool = False,
        windows: bool | None = None,
    ) -> None:
        self.output = output
        self.use_wsl = use_wsl
        self.auto_show_output = auto_show_output
        self.windows = windows

    @classmethod
    def for_config(cls, output: OutputChannel, config: Config) -> ProcessRunner:
        return cls(output, use_wsl=config.use_wsl, auto_show_output=config.auto_show_output)

    async def run(
        self,
        executable: str,
        arguments: Sequence[str] = (),
        shell: str | None = None,
        run: SyncRun | None = None,
    ) -> int:
        """Run a command to completion. Returns 0 only on a clean zero exit."""
        self.output.append_line(f"> {executable} {' '.join(arguments)} ")
        if self.auto_show_output:
            self.output.show()

        invocation = build_invocation(
            executable, arguments, shell=shell, use_wsl=self.use_wsl, windows=self.windows
        )

        try:
            process = await self._spawn(executable, invocation)
        except ProcessSpawnError as e:
            logger.error("Process spawn failed", executable=executable, error=e.reason)
            self.output.append_line(f"ERROR > {e.reason}")
            return SPAWN_FAILED

        if run is not None:
            run.attach(process)

        try:
            await self._stream(process)
            returncode = await process.wait()
        finally:
            if run is not None:
                run.detach(process)

        logger.debug("Process exited", executable=executable, returncode=returncode)
        return 0 if returncode == 0 else returncode

    async def _spawn(self, executable: str, invocation: Invocation) -> Process:
        try:
            if invocation.uses_shell:
                return await asyncio.create_subprocess_shell(
                    invocation.shell_command,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.STDOUT,
                    executable=invocation.shell_executable,
                )
            return await asyncio.create_subprocess_exec(
                invocation.program,
                *invocation.args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise ProcessSpawnError(executable, str(e)) from e

    async def _stream(self, process: Process) -> None:
        if process.stdout is None:
            return
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            chunk = await process.stdout.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            self.output.append(decoder.decode(chunk))
        self.output.append(decoder.decode(b"", final=True))
