"""
Trigger coalescing.

Editors save several files at once and watchers report events in storms;
both should result in a single sync.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Hashable
from functools import partial
from typing import Any

from syncrsync.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_QUIET_WINDOW = 0.1


class Debouncer:
    """Delay calls to an async function until the quiet window has passed.

    Each call restarts the window; when it expires the function runs once
    with the arguments of the last call.
    """

    def __init__(
        self,
        func: Callable[..., Awaitable[Any]],
        wait: float = DEFAULT_QUIET_WINDOW,
    ) -> None:
        self.func = func
        self.wait = wait
        self.last_task: asyncio.Task[Any] | None = None
        self._handle: asyncio.TimerHandle | None = None
        self._pending_args: tuple[tuple[Any, ...], dict[str, Any]] = ((), {})
        self._tasks: set[asyncio.Task[Any]] = set()
        self._coalesced = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
            self._coalesced += 1
        self._pending_args = (args, kwargs)
        self._handle = loop.call_later(self.wait, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            self._coalesced = 0

    def flush(self) -> asyncio.Task[Any] | None:
        """Fire a pending call now instead of waiting out the window."""
        if self._handle is None:
            return None
        self._handle.cancel()
        return self._fire()

    def _fire(self) -> asyncio.Task[Any]:
        self._handle = None
        args, kwargs = self._pending_args
        if self._coalesced:
            logger.debug("Coalesced triggers", count=self._coalesced + 1)
        self._coalesced = 0

        task = asyncio.ensure_future(self.func(*args, **kwargs))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self.last_task = task
        return task


class KeyedDebouncer:
    """One quiet window per key.

    Bursts for the same key collapse into a single call with that key;
    different keys do not hold each other back.
    """

    def __init__(
        self,
        func: Callable[..., Awaitable[Any]],
        wait: float = DEFAULT_QUIET_WINDOW,
    ) -> None:
        self.func = func
        self.wait = wait
        self._debouncers: dict[Hashable, Debouncer] = {}

    @property
    def pending(self) -> bool:
        return any(debouncer.pending for debouncer in self._debouncers.values())

    def __call__(self, key: Hashable) -> None:
        debouncer = self._debouncers.get(key)
        if debouncer is None:
            debouncer = Debouncer(partial(self._run, key), self.wait)
            self._debouncers[key] = debouncer
        debouncer()

    def cancel(self) -> None:
        for debouncer in self._debouncers.values():
            debouncer.cancel()
        self._debouncers.clear()

    async def _run(self, key: Hashable) -> Any:
        self._debouncers.pop(key, None)
        return await self.func(key)
