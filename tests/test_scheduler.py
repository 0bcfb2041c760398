from __future__ import annotations

import asyncio

import pytest

from core.scheduler import Scheduler, SchedulerState


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _pass_taking(clock: FakeClock, duration: float, starts: list[float]):
    async def run_pass() -> None:
        starts.append(clock.now)
        clock.now += duration

    return run_pass


def test_passes_run_on_fixed_interval() -> None:
    clock = FakeClock()
    starts: list[float] = []
    scheduler = Scheduler(_pass_taking(clock, 10, starts), 60, clock=clock, sleep=clock.sleep)

    asyncio.run(scheduler.run(max_passes=3))

    assert starts == [0, 60, 120]
    assert clock.sleeps == [50, 50]
    assert scheduler.passes_completed == 3
    assert scheduler.state is SchedulerState.IDLE


def test_overrunning_pass_delays_next_tick() -> None:
    clock = FakeClock()
    starts: list[float] = []
    scheduler = Scheduler(_pass_taking(clock, 90, starts), 60, clock=clock, sleep=clock.sleep)

    asyncio.run(scheduler.run(max_passes=3))

    assert starts == [0, 90, 180]
    assert clock.sleeps == []


def test_schedule_realigns_after_an_overrun() -> None:
    clock = FakeClock()
    starts: list[float] = []
    durations = iter([90, 10, 10])

    async def run_pass() -> None:
        starts.append(clock.now)
        clock.now += next(durations)

    scheduler = Scheduler(run_pass, 60, clock=clock, sleep=clock.sleep)
    asyncio.run(scheduler.run(max_passes=3))

    assert starts == [0, 90, 150]


def test_passes_never_overlap() -> None:
    clock = FakeClock()
    active = 0
    peak = 0
    states: list[SchedulerState] = []

    async def run_pass() -> None:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        states.append(scheduler.state)
        await asyncio.sleep(0)
        clock.now += 5
        active -= 1

    scheduler = Scheduler(run_pass, 1, clock=clock, sleep=clock.sleep)
    asyncio.run(scheduler.run(max_passes=4))

    assert peak == 1
    assert states == [SchedulerState.RUNNING] * 4


def test_failing_pass_does_not_stop_the_loop() -> None:
    clock = FakeClock()
    calls = 0

    async def run_pass() -> None:
        nonlocal calls
        calls += 1
        raise RuntimeError("pass blew up")

    scheduler = Scheduler(run_pass, 30, clock=clock, sleep=clock.sleep)
    asyncio.run(scheduler.run(max_passes=2))

    assert calls == 2
    assert scheduler.state is SchedulerState.IDLE


def test_interval_must_be_positive() -> None:
    async def run_pass() -> None:
        return None

    with pytest.raises(ValueError):
        Scheduler(run_pass, 0)
