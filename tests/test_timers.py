"""Tests for the per-connection timer manager."""
import asyncio

import pytest

from chat_broker import TimerManager


class Counter:
    def __init__(self):
        self.calls = 0

    async def __call__(self):
        self.calls += 1


@pytest.mark.asyncio
async def test_timer_fires_once_after_delay():
    timers = TimerManager()
    fired = Counter()

    timers.arm("c1", 0.05, fired)
    assert timers.is_armed("c1")
    await asyncio.sleep(0.15)

    assert fired.calls == 1
    assert not timers.is_armed("c1")
    assert len(timers) == 0


@pytest.mark.asyncio
async def test_rearm_cancels_previous_callback():
    timers = TimerManager()
    first, second = Counter(), Counter()

    timers.arm("c1", 0.05, first)
    timers.arm("c1", 0.05, second)
    await asyncio.sleep(0.15)

    assert first.calls == 0
    assert second.calls == 1


@pytest.mark.asyncio
async def test_disarm_prevents_firing():
    timers = TimerManager()
    fired = Counter()

    timers.arm("c1", 0.05, fired)
    assert timers.disarm("c1") is True
    await asyncio.sleep(0.1)

    assert fired.calls == 0
    assert timers.disarm("c1") is False


@pytest.mark.asyncio
async def test_timers_are_per_connection():
    timers = TimerManager()
    c1, c2 = Counter(), Counter()

    timers.arm("c1", 0.05, c1)
    timers.arm("c2", 0.05, c2)
    timers.disarm("c1")
    await asyncio.sleep(0.1)

    assert c1.calls == 0
    assert c2.calls == 1


@pytest.mark.asyncio
async def test_failing_callback_is_contained():
    timers = TimerManager()

    async def boom():
        raise RuntimeError("boom")

    timers.arm("c1", 0.01, boom)
    await asyncio.sleep(0.05)

    assert not timers.is_armed("c1")


@pytest.mark.asyncio
async def test_disarm_all():
    timers = TimerManager()
    fired = Counter()

    for cid in ("c1", "c2", "c3"):
        timers.arm(cid, 0.05, fired)

    assert timers.disarm_all() == 3
    await asyncio.sleep(0.1)
    assert fired.calls == 0


@pytest.mark.asyncio
async def test_disarmed_timer_task_ends_cancelled():
    timers = TimerManager()
    timers.arm("c1", 1.0, Counter())
    task = timers._timers["c1"]

    timers.disarm("c1")
    with pytest.raises(asyncio.CancelledError):
        await task
    assert task.cancelled()
