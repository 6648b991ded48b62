"""
sim/scheduler.py
Geofence Telemetry Simulator — Simulation Scheduler

Owns the fixed-interval tick loop and the play / pause / speed /
scenario commands that gate it.

Timing model:
  - One tick every SIMULATION_TICK_MS (100 ms) while playing
  - At most one tick per pump(); late intervals are dropped, never
    compensated with a larger step or a burst of catch-up ticks
  - The speed multiplier never changes the interval, only the distance
    and drain covered per tick
  - pause() and a successful load_scenario() disarm the timer before
    returning; no tick fires after either takes effect

The clock is injected. MonotonicClock drives real-time runs;
ManualClock lets tests step time without waiting on the wall clock.
Commands and ticks are serialized by one re-entrant lock so a command
issued from another thread never interleaves with a tick.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from core.constants import SIMULATION_TICK_MS
from sim.telemetry_engine import TelemetryEngine

logger = logging.getLogger("SCHEDULER")


# ---------------------------------------------------------------------------
# Clocks
# ---------------------------------------------------------------------------

class MonotonicClock:
    """Wall-clock time source for real-time runs."""

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


class ManualClock:
    """Deterministic time source. sleep() advances time instantly."""

    def __init__(self, start: float = 0.0):
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError(f"ManualClock cannot go backward ({seconds})")
        self._now += seconds
        return self._now

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            self.advance(seconds)


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------

class SimulationScheduler:
    """
    Usage:
        clock     = ManualClock()
        scheduler = SimulationScheduler(engine, clock)
        scheduler.play()
        clock.advance(0.1)
        scheduler.pump()          # fires one tick

        scheduler.run(30.0)       # real-time loop (MonotonicClock)
    """

    def __init__(
        self,
        engine: TelemetryEngine,
        clock=None,
        interval_ms: int = SIMULATION_TICK_MS,
    ):
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self._engine    = engine
        self._clock     = clock if clock is not None else MonotonicClock()
        self._interval  = interval_ms / 1000.0
        self._lock      = threading.RLock()
        self._next_due: Optional[float] = None
        self.ticks_fired   = 0
        self.ticks_dropped = 0

    @property
    def engine(self) -> TelemetryEngine:
        return self._engine

    @property
    def interval_s(self) -> float:
        return self._interval

    def is_armed(self) -> bool:
        with self._lock:
            return self._next_due is not None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def play(self) -> None:
        with self._lock:
            self._engine.play()
            if self._next_due is None:
                self._next_due = self._clock.now() + self._interval
                logger.debug(f"SCHEDULER: armed, first tick at {self._next_due:.3f}")

    def pause(self) -> None:
        with self._lock:
            self._disarm()
            self._engine.pause()

    def set_speed(self, multiplier: float) -> bool:
        with self._lock:
            return self._engine.set_speed(multiplier)

    def load_scenario(self, name: str) -> bool:
        with self._lock:
            if not self._engine.load_scenario(name):
                return False
            self._disarm()
            return True

    def log_mitigation_action(self, action: str) -> None:
        with self._lock:
            self._engine.log_mitigation_action(action)

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def pump(self) -> bool:
        """Fire one tick if one is due. Returns True when a tick ran."""
        with self._lock:
            if self._next_due is None:
                return False
            if not self._engine.is_playing():
                # engine paused / reloaded directly, not through the scheduler
                self._disarm()
                return False
            now = self._clock.now()
            if now < self._next_due:
                return False

            self._engine.tick()
            self.ticks_fired += 1

            self._next_due += self._interval
            missed = 0
            while self._next_due <= now:
                self._next_due += self._interval
                missed += 1
            if missed:
                self.ticks_dropped += missed
                logger.debug(f"SCHEDULER: {missed} late tick(s) dropped")
            return True

    def run(self, duration_s: float) -> int:
        """
        Drive the loop for duration_s of clock time. Returns ticks fired.
        Returns early once the timer is disarmed (paused / reloaded).
        """
        fired = 0
        end = self._clock.now() + duration_s
        while self._clock.now() < end:
            if self.pump():
                fired += 1
            with self._lock:
                due = self._next_due
            if due is None:
                break
            self._clock.sleep(min(due, end) - self._clock.now())
        return fired

    def _disarm(self) -> None:
        if self._next_due is not None:
            logger.debug("SCHEDULER: disarmed")
        self._next_due = None

    def __repr__(self) -> str:
        return (
            f"SimulationScheduler(interval={self._interval * 1000:.0f}ms, "
            f"armed={self._next_due is not None}, fired={self.ticks_fired})"
        )
