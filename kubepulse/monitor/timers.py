"""One-shot asyncio timer with cancel/reschedule semantics."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from kubepulse.observability.logging import get_logger

_log = get_logger("monitor.timers")


class ReschedulableTimer:
    """Runs an async callback once after a delay.

    ``schedule()`` replaces any pending deadline, which gives debounce
    behaviour when called repeatedly.  A callback that has already started
    is not affected by ``cancel()``; use ``shutdown()`` to stop it too.
    """

    def __init__(self, callback: Callable[[], Awaitable[object]], *, name: str) -> None:
        self._callback = callback
        self._name = name
        self._handle: asyncio.TimerHandle | None = None
        self._inflight: set[asyncio.Task[None]] = set()

    @property
    def scheduled(self) -> bool:
        return self._handle is not None

    @property
    def running(self) -> bool:
        return bool(self._inflight)

    def schedule(self, delay: float) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(max(0.0, delay), self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def wait_idle(self) -> None:
        """Wait for callbacks that already fired to finish."""
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def shutdown(self) -> None:
        self.cancel()
        for task in list(self._inflight):
            task.cancel()
        await self.wait_idle()

    def _fire(self) -> None:
        self._handle = None
        task = asyncio.get_running_loop().create_task(self._run(), name=self._name)
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _run(self) -> None:
        try:
            await self._callback()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            _log.error("timer_callback_failed", timer=self._name, error=str(exc))
