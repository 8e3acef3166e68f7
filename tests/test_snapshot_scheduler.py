import asyncio

import pytest

from workers.snapshot_scheduler import SchedulerState, SnapshotScheduler


@pytest.mark.asyncio
async def test_tick_while_running_is_a_noop():
    release = asyncio.Event()
    runs = []

    async def cycle():
        runs.append(1)
        await release.wait()

    scheduler = SnapshotScheduler(name="t", interval_s=60, cycle_fn=cycle)

    first = asyncio.create_task(scheduler.tick())
    await asyncio.sleep(0)
    assert scheduler.state is SchedulerState.RUNNING

    assert await scheduler.tick() is False
    assert await scheduler.tick() is False

    release.set()
    assert await first is True
    assert scheduler.state is SchedulerState.IDLE
    assert runs == [1]
    assert scheduler.cycles_started == 1
    assert scheduler.ticks_suppressed == 2
    assert scheduler.last_finished_at >= scheduler.last_started_at


@pytest.mark.asyncio
async def test_failed_cycle_returns_to_idle():
    calls = []

    async def cycle():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("upstream down")

    scheduler = SnapshotScheduler(name="t", interval_s=60, cycle_fn=cycle)

    assert await scheduler.tick() is True
    assert scheduler.state is SchedulerState.IDLE
    assert scheduler.cycles_failed == 1

    assert await scheduler.tick() is True
    assert scheduler.cycles_started == 2
    assert scheduler.cycles_failed == 1


@pytest.mark.asyncio
async def test_timer_never_overlaps_slow_cycles():
    active = 0
    max_active = 0
    runs = 0

    async def slow_cycle():
        nonlocal active, max_active, runs
        active += 1
        runs += 1
        max_active = max(max_active, active)
        await asyncio.sleep(0.08)
        active -= 1

    scheduler = SnapshotScheduler(name="slow", interval_s=0.01, cycle_fn=slow_cycle)
    scheduler.start()
    await asyncio.sleep(0.2)
    await scheduler.stop()

    assert max_active == 1
    assert runs >= 2
    assert scheduler.ticks_suppressed > 0
    assert scheduler.state is SchedulerState.IDLE


@pytest.mark.asyncio
async def test_stop_waits_for_inflight_cycle():
    finished = asyncio.Event()

    async def cycle():
        await asyncio.sleep(0.05)
        finished.set()

    scheduler = SnapshotScheduler(name="t", interval_s=10, cycle_fn=cycle, run_on_start=True)
    scheduler.start()
    await asyncio.sleep(0.01)
    await scheduler.stop()

    assert finished.is_set()
    assert not scheduler.is_running


@pytest.mark.asyncio
async def test_run_on_start_false_waits_one_interval():
    runs = []

    async def cycle():
        runs.append(1)

    scheduler = SnapshotScheduler(name="t", interval_s=10, cycle_fn=cycle, run_on_start=False)
    scheduler.start()
    await asyncio.sleep(0.02)
    await scheduler.stop()

    assert runs == []


def test_interval_must_be_positive():
    async def cycle():
        return None

    with pytest.raises(ValueError):
        SnapshotScheduler(name="t", interval_s=0, cycle_fn=cycle)
