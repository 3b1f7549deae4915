"""
Tests for syncrsync.core.output module.
"""

import io
from pathlib import Path

from rich.console import Console

from syncrsync.core.output import ConsoleNotifier, OutputChannel


class TestOutputChannel:
    """Tests for OutputChannel."""

    def test_collects_text(self, output: OutputChannel) -> None:
        output.append("abc")
        output.append_line("def")
        assert output.text == "abcdef\n"

    def test_persists_to_file(self, temp_dir: Path) -> None:
        log_file = temp_dir / "nested" / "output.log"
        channel = OutputChannel(log_file, console=Console(file=io.StringIO()))
        channel.append_line("hello")
        channel.close()
        assert log_file.read_text() == "hello\n"

    def test_mirrors_only_when_visible(self) -> None:
        buffer = io.StringIO()
        channel = OutputChannel(console=Console(file=buffer))

        channel.append_line("hidden")
        channel.show()
        channel.append_line("shown")
        channel.hide()
        channel.append_line("hidden again")

        assert buffer.getvalue() == "shown\n"

    def test_markup_is_not_interpreted(self) -> None:
        buffer = io.StringIO()
        channel = OutputChannel(console=Console(file=buffer))
        channel.show()
        channel.append_line("[red]x[/red]")
        assert "[red]x[/red]" in buffer.getvalue()

    def test_clear(self, output: OutputChannel) -> None:
        output.append("x")
        output.clear()
        assert output.text == ""


class TestConsoleNotifier:
    """Tests for ConsoleNotifier."""

    def test_messages(self) -> None:
        buffer = io.StringIO()
        notifier = ConsoleNotifier(Console(file=buffer))
        notifier.info("Sync Completed")
        notifier.error("Sync-Rsync: rsync returned 1")
        assert "Sync Completed" in buffer.getvalue()
        assert "rsync returned 1" in buffer.getvalue()
