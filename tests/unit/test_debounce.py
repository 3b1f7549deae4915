"""
Tests for syncrsync.sync.debounce module.
"""

import asyncio

import pytest

from syncrsync.sync.debounce import Debouncer, KeyedDebouncer


class Recorder:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def __call__(self, *args) -> bool:
        self.calls.append(args)
        return True


class TestDebouncer:
    """Tests for Debouncer."""

    @pytest.mark.asyncio
    async def test_burst_collapses_to_one_call(self) -> None:
        recorder = Recorder()
        debounced = Debouncer(recorder, 0.05)

        for i in range(10):
            debounced(i)
            await asyncio.sleep(0.005)

        assert debounced.pending
        await asyncio.sleep(0.15)
        assert recorder.calls == [(9,)]
        assert not debounced.pending

    @pytest.mark.asyncio
    async def test_separate_bursts(self) -> None:
        recorder = Recorder()
        debounced = Debouncer(recorder, 0.02)

        debounced("a")
        await asyncio.sleep(0.1)
        debounced("b")
        await asyncio.sleep(0.1)

        assert recorder.calls == [("a",), ("b",)]

    @pytest.mark.asyncio
    async def test_cancel(self) -> None:
        recorder = Recorder()
        debounced = Debouncer(recorder, 0.02)
        debounced("a")
        debounced.cancel()
        await asyncio.sleep(0.08)
        assert recorder.calls == []

    @pytest.mark.asyncio
    async def test_flush(self) -> None:
        recorder = Recorder()
        debounced = Debouncer(recorder, 10)
        assert debounced.flush() is None

        debounced("now")
        task = debounced.flush()
        assert task is not None
        assert await task is True
        assert recorder.calls == [("now",)]
        assert debounced.last_task is task


class TestKeyedDebouncer:
    """Tests for KeyedDebouncer."""

    @pytest.mark.asyncio
    async def test_collapses_per_key(self) -> None:
        recorder = Recorder()
        debounced = KeyedDebouncer(recorder, 0.05)

        for _ in range(5):
            debounced("a.txt")
            debounced("b.txt")
        assert debounced.pending
        await asyncio.sleep(0.15)

        assert sorted(recorder.calls) == [("a.txt",), ("b.txt",)]
        assert not debounced.pending

    @pytest.mark.asyncio
    async def test_key_fires_again_after_window(self) -> None:
        recorder = Recorder()
        debounced = KeyedDebouncer(recorder, 0.02)

        debounced("a.txt")
        await asyncio.sleep(0.08)
        debounced("a.txt")
        await asyncio.sleep(0.08)

        assert recorder.calls == [("a.txt",), ("a.txt",)]

    @pytest.mark.asyncio
    async def test_cancel(self) -> None:
        recorder = Recorder()
        debounced = KeyedDebouncer(recorder, 0.02)
        debounced("a.txt")
        debounced.cancel()
        await asyncio.sleep(0.08)
        assert recorder.calls == []
