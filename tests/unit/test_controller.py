"""
Tests for syncrsync.sync.controller module.
"""

import asyncio
from pathlib import Path

import pytest

from syncrsync.core.models import WorkspaceContext
from syncrsync.core.session import SessionState, StatusIndicator
from syncrsync.core.settings import parse_raw_settings
from syncrsync.sync.controller import SyncController


def make_controller(temp_dir, output, notifier, runner, picker=None) -> SyncController:
    return SyncController(
        WorkspaceContext(str(temp_dir)),
        output,
        notifier,
        indicator=StatusIndicator(),
        picker=picker,
        debounce_seconds=0.05,
        runner_factory=lambda config: runner,
    )


def picker_for(key):
    async def _pick(keys: list[str]):
        return key

    return _pick


class TestReload:
    """Tests for configuration reloads."""

    def test_valid_settings(self, temp_dir: Path, output, notifier, fake_runner) -> None:
        controller = make_controller(temp_dir, output, notifier, fake_runner())
        config = controller.reload(parse_raw_settings({"remote": "h:/r"}))

        assert config is not None
        assert controller.config is config
        assert controller.registry is not None
        assert controller.registry.keys() == ["h:/r/"]

    def test_invalid_settings_clear_config(
        self, temp_dir: Path, output, notifier, fake_runner
    ) -> None:
        controller = make_controller(temp_dir, output, notifier, fake_runner())
        controller.reload(parse_raw_settings({"remote": "h:/r"}))

        assert controller.reload(parse_raw_settings({"local": "/x"})) is None
        assert controller.config is None
        assert controller.registry is None
        assert notifier.errors
        assert "ERROR > " in output.text

    @pytest.mark.asyncio
    async def test_commands_without_config(
        self, temp_dir: Path, output, notifier, fake_runner
    ) -> None:
        runner = fake_runner()
        controller = make_controller(temp_dir, output, notifier, runner)

        assert not await controller.sync_up()
        assert not await controller.sync_up_single()
        assert not await controller.sync_down_file(str(temp_dir / "a"))
        assert runner.calls == []
        assert notifier.errors == ["Sync-Rsync: no valid configuration"] * 3


class TestCommands:
    """Tests for the command surface."""

    @pytest.mark.asyncio
    async def test_batch_commands(self, temp_dir: Path, output, notifier, fake_runner) -> None:
        runner = fake_runner()
        controller = make_controller(temp_dir, output, notifier, runner)
        controller.reload(parse_raw_settings({"remote": "h:/r"}))

        assert await controller.sync_up()
        assert await controller.sync_down()
        assert await controller.compare_up()
        assert await controller.compare_down()

        local = f"{temp_dir}/"
        assert runner.calls[0]["arguments"][-2:] == [local, "h:/r/"]
        assert runner.calls[1]["arguments"][-2:] == ["h:/r/", local]
        assert runner.calls[2]["arguments"][0].endswith("n")
        assert runner.calls[3]["arguments"][0].endswith("n")

    @pytest.mark.asyncio
    async def test_single_site(self, temp_dir: Path, output, notifier, fake_runner) -> None:
        runner = fake_runner()
        controller = make_controller(
            temp_dir, output, notifier, runner, picker=picker_for("b")
        )
        controller.reload(
            parse_raw_settings(
                {"sites": [{"name": "a", "remote": "h:/a"}, {"name": "b", "remote": "h:/b"}]}
            )
        )

        assert await controller.sync_down_single()
        assert len(runner.calls) == 1
        assert runner.calls[0]["arguments"][-2] == "h:/b/"

    @pytest.mark.asyncio
    async def test_single_site_dismissed_is_noop(
        self, temp_dir: Path, output, notifier, fake_runner
    ) -> None:
        runner = fake_runner()
        controller = make_controller(
            temp_dir, output, notifier, runner, picker=picker_for("unknown")
        )
        controller.reload(parse_raw_settings({"remote": "h:/r"}))

        assert await controller.sync_up_single()
        assert runner.calls == []
        assert controller.session.current_run is None

    @pytest.mark.asyncio
    async def test_single_file(self, temp_dir: Path, output, notifier, fake_runner) -> None:
        runner = fake_runner()
        controller = make_controller(temp_dir, output, notifier, runner)
        controller.reload(parse_raw_settings({"remote": "h:/r"}))

        assert await controller.sync_up_file(str(temp_dir / "pkg" / "a.py"))
        assert runner.calls[0]["arguments"][-1] == "h:/r/pkg/a.py"

    def test_show_output(self, temp_dir: Path, output, notifier, fake_runner) -> None:
        controller = make_controller(temp_dir, output, notifier, fake_runner())
        controller.show_output()
        assert output.visible
        assert controller.session.state == SessionState.IDLE

    @pytest.mark.asyncio
    async def test_show_output_acknowledges_finished_run(
        self, temp_dir: Path, output, notifier, fake_runner
    ) -> None:
        controller = make_controller(temp_dir, output, notifier, fake_runner(codes=[1]))
        controller.reload(parse_raw_settings({"remote": "h:/r"}))

        assert not await controller.sync_up()
        assert controller.session.state == SessionState.FAILED
        assert controller.session.indicator.text == "Rsync: failed"

        controller.show_output()

        assert controller.session.state == SessionState.IDLE
        assert controller.session.indicator.text == "Rsync: idle"

    def test_kill_when_idle(self, temp_dir: Path, output, notifier, fake_runner) -> None:
        controller = make_controller(temp_dir, output, notifier, fake_runner())
        assert not controller.kill_sync()


class TestHostEvents:
    """Tests for save, open and watch hooks."""

    @pytest.mark.asyncio
    async def test_on_save_is_debounced(
        self, temp_dir: Path, output, notifier, fake_runner
    ) -> None:
        runner = fake_runner()
        controller = make_controller(temp_dir, output, notifier, runner)
        controller.reload(parse_raw_settings({"remote": "h:/r", "onSave": True}))

        for _ in range(10):
            controller.on_file_saved(str(temp_dir / "a.py"))
        await asyncio.sleep(0.2)

        assert len(runner.calls) == 1

    @pytest.mark.asyncio
    async def test_on_save_uses_config_of_last_event(
        self, temp_dir: Path, output, notifier, fake_runner
    ) -> None:
        runner = fake_runner()
        controller = make_controller(temp_dir, output, notifier, runner)
        controller.reload(parse_raw_settings({"remote": "h:/old", "onSave": True}))

        controller.on_file_saved(str(temp_dir / "a.py"))
        controller.reload(parse_raw_settings({"remote": "h:/new", "onSave": True}))
        controller.on_file_saved(str(temp_dir / "a.py"))
        await asyncio.sleep(0.2)

        assert len(runner.calls) == 1
        assert runner.calls[0]["arguments"][-1] == "h:/new/"

    @pytest.mark.asyncio
    async def test_on_save_individual(
        self, temp_dir: Path, output, notifier, fake_runner
    ) -> None:
        runner = fake_runner()
        controller = make_controller(temp_dir, output, notifier, runner)
        controller.reload(parse_raw_settings({"remote": "h:/r", "onSaveIndividual": True}))

        controller.on_file_saved(str(temp_dir / "b.txt"))
        await controller.drain()

        assert runner.calls[0]["arguments"][-2:] == [f"{temp_dir}/b.txt", "h:/r/b.txt"]

    @pytest.mark.asyncio
    async def test_on_save_disabled(self, temp_dir: Path, output, notifier, fake_runner) -> None:
        runner = fake_runner()
        controller = make_controller(temp_dir, output, notifier, runner)
        controller.reload(parse_raw_settings({"remote": "h:/r"}))

        controller.on_file_saved(str(temp_dir / "b.txt"))
        await controller.drain()
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_on_file_opened(self, temp_dir: Path, output, notifier, fake_runner) -> None:
        runner = fake_runner()
        controller = make_controller(temp_dir, output, notifier, runner)
        controller.reload(parse_raw_settings({"remote": "h:/r", "onLoadIndividual": True}))

        controller.on_file_opened(str(temp_dir / "c.txt"))
        await controller.drain()

        assert runner.calls[0]["arguments"][-2:] == ["h:/r/c.txt", f"{temp_dir}/c.txt"]

    @pytest.mark.asyncio
    async def test_watch_lifecycle(self, temp_dir: Path, output, notifier, fake_runner) -> None:
        controller = make_controller(temp_dir, output, notifier, fake_runner())
        controller.reload(parse_raw_settings({"remote": "h:/r", "watchGlobs": ["**/*.py"]}))
        assert not controller.watching

        controller.start_watching()
        try:
            assert controller.watching
            assert "Activating watcher on globs: **/*.py" in output.text

            controller.reload(parse_raw_settings({"remote": "h:/r"}))
            assert not controller.watching
            assert "Closing watcher" in output.text
        finally:
            controller.close()

    @pytest.mark.asyncio
    async def test_watch_event_triggers_debounced_sync(
        self, temp_dir: Path, output, notifier, fake_runner
    ) -> None:
        runner = fake_runner()
        controller = make_controller(temp_dir, output, notifier, runner)
        controller.reload(parse_raw_settings({"remote": "h:/r"}))

        controller._on_watch_event(str(temp_dir / "a.py"))
        controller._on_watch_event(str(temp_dir / "b.py"))
        await controller.drain()

        assert len(runner.calls) == 1
