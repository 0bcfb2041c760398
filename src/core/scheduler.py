"""Fixed-interval scheduler for polling passes.

The scheduler is a two-state loop (IDLE, RUNNING). Passes never overlap:
the next tick is computed from the previous one, and when a pass overruns
the interval the next pass starts as soon as the overrunning one finishes.
Clock and sleep are injectable so tests can drive many ticks instantly.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from typing import Any, Awaitable, Callable, Optional

LOGGER = logging.getLogger(__name__)


class SchedulerState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"


class Scheduler:
    """Run ``run_pass`` every ``interval_seconds`` until cancelled."""

    def __init__(
        self,
        run_pass: Callable[[], Awaitable[Any]],
        interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._run_pass = run_pass
        self._interval = interval_seconds
        self._clock = clock
        self._sleep = sleep
        self.state = SchedulerState.IDLE
        self.passes_completed = 0

    async def run(self, max_passes: Optional[int] = None) -> None:
        """Loop forever, or until ``max_passes`` passes have completed."""

        next_tick = self._clock()
        while max_passes is None or self.passes_completed < max_passes:
            delay = next_tick - self._clock()
            if delay > 0:
                await self._sleep(delay)

            await self._tick()

            next_tick += self._interval
            now = self._clock()
            if next_tick < now:
                LOGGER.warning(
                    "Pass overran the %ss interval; next pass starts immediately",
                    self._interval,
                )
                next_tick = now

    async def _tick(self) -> None:
        self.state = SchedulerState.RUNNING
        try:
            await self._run_pass()
        except asyncio.CancelledError:
            raise
        except Exception:
            LOGGER.exception("Polling pass failed")
        finally:
            self.state = SchedulerState.IDLE
            self.passes_completed += 1
