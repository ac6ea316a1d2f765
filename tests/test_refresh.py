from __future__ import annotations

import asyncio
import logging

import pytest

from firmware_fleet.refresh import RefreshCountdown, format_countdown


class FakeClock:
    """Monotonic clock advanced by the fake sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay
        await asyncio.sleep(0)


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(1800, "30:00"), (65.9, "1:05"), (9, "0:09"), (0, "0:00"), (-3, "0:00")],
)
def test_format_countdown(seconds: float, expected: str) -> None:
    assert format_countdown(seconds) == expected


def test_interval_is_clamped_to_minimum() -> None:
    async def _noop() -> None:
        return None

    countdown = RefreshCountdown(5, _noop)

    assert countdown.interval == 30
    assert not countdown.running
    assert countdown.remaining == 0.0


def test_countdown_fires_and_rearms() -> None:
    async def _run() -> None:
        clock = FakeClock()
        fired: list[float] = []
        done = asyncio.Event()
        ticks: list[str] = []

        async def _refresh() -> None:
            fired.append(clock.now)
            if len(fired) == 2:
                done.set()

        countdown = RefreshCountdown(
            30,
            _refresh,
            on_tick=ticks.append,
            monotonic=clock.monotonic,
            sleep=clock.sleep,
        )
        countdown.start()
        assert countdown.display == "0:30"

        await asyncio.wait_for(done.wait(), 5)
        await countdown.stop()

        assert fired == [30.0, 60.0]
        assert countdown.refresh_count == 2
        assert ticks[0] == "0:30"
        assert "0:01" in ticks
        assert not countdown.running

    asyncio.run(_run())


def test_start_with_zero_delay_fires_immediately() -> None:
    async def _run() -> None:
        clock = FakeClock()
        fired = asyncio.Event()
        fired_at: list[float] = []

        async def _refresh() -> None:
            fired_at.append(clock.now)
            fired.set()

        countdown = RefreshCountdown(
            60, _refresh, monotonic=clock.monotonic, sleep=clock.sleep
        )
        countdown.start(delay=0)
        await asyncio.wait_for(fired.wait(), 5)
        await countdown.stop()

        assert fired_at[0] == 0.0

    asyncio.run(_run())


def test_refresh_errors_do_not_stop_countdown(caplog: pytest.LogCaptureFixture) -> None:
    async def _run() -> None:
        clock = FakeClock()
        calls = 0
        done = asyncio.Event()

        async def _refresh() -> None:
            nonlocal calls
            calls += 1
            if calls == 2:
                done.set()
            raise RuntimeError("inventory backend down")

        countdown = RefreshCountdown(
            30, _refresh, monotonic=clock.monotonic, sleep=clock.sleep
        )
        with caplog.at_level(logging.ERROR):
            countdown.start()
            await asyncio.wait_for(done.wait(), 5)
            await countdown.stop()

        assert calls == 2
        assert "Periodic refresh failed" in caplog.text

    asyncio.run(_run())


def test_reschedule_applies_new_interval() -> None:
    async def _run() -> None:
        clock = FakeClock()
        gate = asyncio.Event()

        async def _refresh() -> None:
            return None

        async def _blocking_sleep(delay: float) -> None:
            await gate.wait()

        countdown = RefreshCountdown(
            300, _refresh, monotonic=clock.monotonic, sleep=_blocking_sleep
        )
        countdown.start()
        assert countdown.display == "5:00"

        clock.now = 100.0
        await countdown.reschedule(interval=120)

        assert countdown.running
        assert countdown.interval == 120
        assert countdown.display == "2:00"
        await countdown.stop()
        assert countdown.remaining == 0.0

    asyncio.run(_run())


def test_refresh_now_resets_deadline() -> None:
    async def _run() -> None:
        clock = FakeClock()
        gate = asyncio.Event()
        fired: list[float] = []

        async def _refresh() -> None:
            fired.append(clock.now)

        async def _blocking_sleep(delay: float) -> None:
            await gate.wait()

        countdown = RefreshCountdown(
            60, _refresh, monotonic=clock.monotonic, sleep=_blocking_sleep
        )
        countdown.start()
        clock.now = 45.0

        await countdown.refresh_now()

        assert fired == [45.0]
        assert countdown.remaining == 60.0
        await countdown.stop()

    asyncio.run(_run())
