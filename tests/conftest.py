"""
Pytest configuration and fixtures for sync-rsync tests.
"""

import io
import sys
import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, Generator

import pytest
from rich.console import Console

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from syncrsync.core.output import OutputChannel  # noqa: E402
from syncrsync.core.session import StatusIndicator, SyncSession  # noqa: E402


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class RecordingNotifier:
    """Notifier that keeps messages for assertions."""

    def __init__(self) -> None:
        self.infos: list[str] = []
        self.errors: list[str] = []

    def info(self, message: str) -> None:
        self.infos.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


class FakeRunner:
    """Stands in for ProcessRunner; records calls and returns scripted codes.

    ``on_call`` may be a callable receiving ``(call_index, executable,
    arguments, run)`` and returning the exit code.
    """

    def __init__(
        self,
        codes: Sequence[int] | None = None,
        on_call: Callable[[int, str, list[str], Any], int] | None = None,
    ) -> None:
        self.codes = list(codes or [])
        self.on_call = on_call
        self.calls: list[dict[str, Any]] = []

    async def run(
        self,
        executable: str,
        arguments: Sequence[str] = (),
        shell: str | None = None,
        run: Any = None,
    ) -> int:
        index = len(self.calls)
        self.calls.append(
            {"executable": executable, "arguments": list(arguments), "shell": shell, "run": run}
        )
        if self.on_call is not None:
            return self.on_call(index, executable, list(arguments), run)
        if index < len(self.codes):
            return self.codes[index]
        return 0


@pytest.fixture
def output(temp_dir: Path) -> Generator[OutputChannel, None, None]:
    """An output channel writing to a temporary log and a silent console."""
    channel = OutputChannel(temp_dir / "output.log", console=Console(file=io.StringIO()))
    yield channel
    channel.close()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def indicator() -> StatusIndicator:
    return StatusIndicator()


@pytest.fixture
def session(
    output: OutputChannel, notifier: RecordingNotifier, indicator: StatusIndicator
) -> SyncSession:
    return SyncSession(output, notifier, indicator)


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow running tests")


@pytest.fixture
def fake_runner() -> type[FakeRunner]:
    """The FakeRunner class, for building scripted runners in tests."""
    return FakeRunner
