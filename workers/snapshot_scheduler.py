# workers/snapshot_scheduler.py
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Set


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class SnapshotScheduler:
    """
    Fixed-interval, single-flight trigger for sync cycles.

    State machine: IDLE -> RUNNING -> IDLE.
      - Every interval the timer calls tick().
      - tick() while RUNNING is a no-op (returns False), however long the
        running cycle takes.
      - Any exception from the cycle is logged and counted; the timer keeps going.

    A running cycle is never cancelled: stop() waits for it to finish.
    """

    def __init__(
        self,
        *,
        name: str,
        interval_s: float,
        cycle_fn: Callable[[], Awaitable[Any]],
        run_on_start: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        if float(interval_s) <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s!r}")

        self._name = str(name)
        self._interval_s = float(interval_s)
        self._cycle_fn = cycle_fn
        self._run_on_start = bool(run_on_start)
        self._logger = logger or logging.getLogger(self.__class__.__name__)

        self._state = SchedulerState.IDLE
        self._task: asyncio.Task | None = None
        self._inflight: Set[asyncio.Task] = set()
        self._stop = asyncio.Event()

        self.cycles_started = 0
        self.cycles_failed = 0
        self.ticks_suppressed = 0
        self.last_started_at: Optional[datetime] = None
        self.last_finished_at: Optional[datetime] = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def interval_s(self) -> float:
        return self._interval_s

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> bool:
        """
        Try to run one cycle.

        Returns:
            True if a cycle ran, False if one was already in flight.
        """
        # check-and-set happens with no await in between, so it is atomic on the event loop
        if self._state is SchedulerState.RUNNING:
            self.ticks_suppressed += 1
            self._logger.debug("Scheduler %s: previous cycle still running, tick skipped", self._name)
            return False

        self._state = SchedulerState.RUNNING
        self.cycles_started += 1
        self.last_started_at = datetime.now(tz=timezone.utc)
        try:
            await self._cycle_fn()
        except Exception as exc:
            self.cycles_failed += 1
            self._logger.exception("Scheduler %s: cycle failed: %s", self._name, exc)
        finally:
            self.last_finished_at = datetime.now(tz=timezone.utc)
            self._state = SchedulerState.IDLE
        return True

    def start(self) -> None:
        """Start the timer loop in background."""
        if self._task is None:
            self._stop.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the timer loop and wait for an in-flight cycle to finish."""
        self._stop.set()
        if self._task is not None:
            await self._task
            self._task = None
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

    async def _run(self) -> None:
        self._logger.info("Scheduler %s started interval_s=%s", self._name, self._interval_s)
        fire = self._run_on_start
        while not self._stop.is_set():
            if fire:
                self._spawn_tick()
            fire = True
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval_s)
            except asyncio.TimeoutError:
                pass
        self._logger.info("Scheduler %s stopped", self._name)

    def _spawn_tick(self) -> None:
        # the cycle runs in its own task so a slow cycle never delays the timer
        task = asyncio.create_task(self.tick())
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    def status(self) -> dict:
        return {
            "name": self._name,
            "state": self._state.value,
            "interval_s": self._interval_s,
            "timer_running": self.is_running,
            "cycles_started": self.cycles_started,
            "cycles_failed": self.cycles_failed,
            "ticks_suppressed": self.ticks_suppressed,
            "last_started_at": self.last_started_at.isoformat() if self.last_started_at else None,
            "last_finished_at": self.last_finished_at.isoformat() if self.last_finished_at else None,
        }
