"""
Path translation for the sync executable.

On hosts where the sync executable runs in a POSIX environment (Cygwin,
MSYS, WSL) local paths must be rewritten into that environment's syntax.
The rewrite is delegated to a bridge executable: ``cygpath`` when
configured, else ``wsl wslpath``.
"""

from __future__ import annotations

from syncrsync.core.errors import PathTranslationError
from syncrsync.core.logging import get_logger
from syncrsync.platform.base import CommandResult, run_command

logger = get_logger(__name__)

WSL_BRIDGE = ["wsl", "wslpath"]


class PathTranslator:
    """Translate local paths to and from the sync executable's syntax."""

    def __init__(self, cygpath: str | None = None, use_wsl: bool = False) -> None:
        self.cygpath = cygpath or None
        self.use_wsl = use_wsl

    @property
    def is_bridged(self) -> bool:
        return self.cygpath is not None or self.use_wsl

    def translate(self, path: str | None) -> str | None:
        if path is None:
            return None

        if path.startswith("/"):
            return path

        if self.cygpath:
            return self._bridge(path, [self.cygpath, path])

        if self.use_wsl:
            escaped = path.replace("\\", "\\\\")
            return self._bridge(path, [*WSL_BRIDGE, escaped])

        return path

    def untranslate(self, path: str | None) -> str | None:
        if path is None or not self.cygpath:
            return path
        return self._bridge(path, [self.cygpath, "-w", path])

    def _bridge(self, path: str, command: list[str]) -> str:
        result: CommandResult = run_command(command)
        if not result.success:
            reason = result.stderr.strip() or f"exit code {result.returncode}"
            raise PathTranslationError(path, reason)

        translated = result.stdout.strip()
        logger.debug("Translated path", path=path, translated=translated)
        return translated
