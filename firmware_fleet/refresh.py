"""Cancellable refresh countdown for periodic inventory reloads."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import suppress
import logging
import math
import time
from typing import Any

from .const import COUNTDOWN_TICK, MIN_REFRESH_INTERVAL

_LOGGER = logging.getLogger(__name__)

SleepCallable = Callable[[float], Awaitable[Any]]
MonotonicCallable = Callable[[], float]


def format_countdown(seconds: float) -> str:
    """Return ``seconds`` as ``m:ss``, clamped at zero."""

    remaining = max(0, math.floor(seconds))
    minutes, secs = divmod(remaining, 60)
    return f"{minutes}:{secs:02d}"


class RefreshCountdown:
    """Tick once per second and trigger a refresh when the deadline passes.

    The countdown owns a single asyncio task. ``stop()`` tears it down (page
    unmount) and ``reschedule()`` restarts it against a new deadline when the
    inputs change.
    """

    def __init__(
        self,
        interval: float,
        on_refresh: Callable[[], Awaitable[Any]],
        *,
        tick: float = COUNTDOWN_TICK,
        on_tick: Callable[[str], None] | None = None,
        monotonic: MonotonicCallable = time.monotonic,
        sleep: SleepCallable = asyncio.sleep,
    ) -> None:
        """Initialise a stopped countdown."""

        self._interval = max(float(interval), float(MIN_REFRESH_INTERVAL))
        self._on_refresh = on_refresh
        self._tick = tick
        self._on_tick = on_tick
        self._monotonic = monotonic
        self._sleep = sleep
        self._deadline: float | None = None
        self._task: asyncio.Task[None] | None = None
        self.refresh_count = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def remaining(self) -> float:
        """Return the seconds left until the next refresh."""

        if self._deadline is None:
            return 0.0
        return max(0.0, self._deadline - self._monotonic())

    @property
    def display(self) -> str:
        return format_countdown(self.remaining)

    def start(self, *, delay: float | None = None) -> None:
        """Start ticking; the first refresh fires after ``delay`` seconds."""

        if self.running:
            return
        self._deadline = self._monotonic() + (
            self._interval if delay is None else max(0.0, delay)
        )
        self._task = asyncio.create_task(self._run())
        self._task.add_done_callback(self._finalise)

    async def stop(self) -> None:
        """Cancel the ticking task and wait for it to finish."""

        task = self._task
        self._task = None
        self._deadline = None
        if task is not None and not task.done():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    async def reschedule(
        self, *, interval: float | None = None, delay: float | None = None
    ) -> None:
        """Restart the countdown, optionally with a new interval."""

        await self.stop()
        if interval is not None:
            self._interval = max(float(interval), float(MIN_REFRESH_INTERVAL))
        self.start(delay=delay)

    async def refresh_now(self) -> None:
        """Refresh immediately and restart the countdown."""

        await self._fire()
        if self._deadline is not None:
            self._deadline = self._monotonic() + self._interval

    def _finalise(self, finished: asyncio.Task[None]) -> None:
        if finished.cancelled():
            _LOGGER.debug("Refresh countdown cancelled")
            return
        exception = finished.exception()
        if exception is not None:
            _LOGGER.error(
                "Refresh countdown stopped with an exception", exc_info=exception
            )

    async def _fire(self) -> None:
        self.refresh_count += 1
        try:
            await self._on_refresh()
        except asyncio.CancelledError:
            raise
        except Exception:  # noqa: BLE001 - keep the countdown alive
            _LOGGER.exception("Periodic refresh failed")

    async def _run(self) -> None:
        while True:
            deadline = self._deadline
            if deadline is None:
                return
            remaining = deadline - self._monotonic()
            if remaining <= 0:
                await self._fire()
                self._deadline = self._monotonic() + self._interval
                continue
            if self._on_tick is not None:
                self._on_tick(format_countdown(remaining))
            await self._sleep(min(self._tick, remaining))
