from __future__ import annotations

import asyncio

import pytest

from cruiser.exceptions import SchedulerUnavailableError
from cruiser.scheduling import AsyncioScheduler, ManualScheduler, Scheduler


def test_schedulers_satisfy_protocol() -> None:
    assert isinstance(ManualScheduler(), Scheduler)
    assert isinstance(AsyncioScheduler(), Scheduler)


def test_manual_scheduler_runs_nothing_until_advanced() -> None:
    scheduler = ManualScheduler()
    calls: list[str] = []
    scheduler.schedule(lambda: calls.append("soon"))
    scheduler.schedule(lambda: calls.append("later"), 0.5)

    assert calls == []
    assert scheduler.pending == 2

    assert scheduler.run_pending() == 1
    assert calls == ["soon"]

    assert scheduler.advance(0.49) == 0
    assert scheduler.advance(0.01) == 1
    assert calls == ["soon", "later"]
    assert scheduler.now == pytest.approx(0.5)


def test_manual_scheduler_orders_by_due_time_then_fifo() -> None:
    scheduler = ManualScheduler()
    calls: list[str] = []
    scheduler.schedule(lambda: calls.append("b"), 0.2)
    scheduler.schedule(lambda: calls.append("a1"), 0.1)
    scheduler.schedule(lambda: calls.append("a2"), 0.1)

    scheduler.advance(1.0)
    assert calls == ["a1", "a2", "b"]


def test_manual_scheduler_cancel_skips_callback() -> None:
    scheduler = ManualScheduler()
    calls: list[str] = []
    handle = scheduler.schedule(lambda: calls.append("x"), 0.1)
    scheduler.cancel(handle)
    scheduler.cancel(handle)

    assert scheduler.pending == 0
    assert scheduler.advance(1.0) == 0
    assert calls == []


def test_manual_scheduler_runs_callbacks_scheduled_while_advancing() -> None:
    scheduler = ManualScheduler()
    calls: list[float] = []

    def first() -> None:
        calls.append(scheduler.now)
        scheduler.schedule(lambda: calls.append(scheduler.now), 0.1)

    scheduler.schedule(first, 0.1)
    scheduler.advance(0.5)

    assert calls == [pytest.approx(0.1), pytest.approx(0.2)]
    assert scheduler.now == pytest.approx(0.5)


def test_manual_scheduler_run_all_jumps_the_clock() -> None:
    scheduler = ManualScheduler()
    calls: list[str] = []
    scheduler.schedule(lambda: calls.append("far"), 30.0)

    assert scheduler.run_all() == 1
    assert calls == ["far"]
    assert scheduler.now == pytest.approx(30.0)


def test_manual_scheduler_refuses_to_go_backwards() -> None:
    with pytest.raises(ValueError):
        ManualScheduler().advance(-1.0)


def test_asyncio_scheduler_without_loop_raises() -> None:
    with pytest.raises(SchedulerUnavailableError):
        AsyncioScheduler().schedule(lambda: None)


@pytest.mark.asyncio
async def test_asyncio_scheduler_defers_to_next_tick_and_supports_cancel() -> None:
    scheduler = AsyncioScheduler()
    calls: list[str] = []

    scheduler.schedule(lambda: calls.append("tick"))
    cancelled = scheduler.schedule(lambda: calls.append("cancelled"), 0.01)
    scheduler.schedule(lambda: calls.append("timer"), 0.02)
    scheduler.cancel(cancelled)
    assert calls == []

    await asyncio.sleep(0)
    assert calls == ["tick"]

    await asyncio.sleep(0.05)
    assert calls == ["tick", "timer"]


def test_manual_scheduler_clock_reaches_target_when_a_callback_raises() -> None:
    scheduler = ManualScheduler()
    calls: list[str] = []

    def broken() -> None:
        raise RuntimeError("boom")

    scheduler.schedule(broken, 0.1)
    scheduler.schedule(lambda: calls.append("after"), 0.2)

    with pytest.raises(RuntimeError, match="boom"):
        scheduler.advance(1.0)

    assert scheduler.now == pytest.approx(1.0)
    assert calls == []
    assert scheduler.pending == 1

    assert scheduler.run_pending() == 1
    assert calls == ["after"]
