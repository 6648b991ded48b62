"""
core/clock/sim_clock.py
Geofence Telemetry Simulator — Simulation Clock

Monotonic timestep manager for the telemetry engine.
Every event log entry and scenario anomaly window references
SimClock.elapsed_ms() so that scripted events line up with ticks
rather than with wall-clock time.

Design constraints:
  - Monotonic: time never goes backward
  - Deterministic: same dt sequence → same timestamps
  - No wall-clock dependency: runs identically on any machine
  - Simulated time advances by exactly one dt per tick; the speed
    multiplier scales distance per tick, never the tick itself
"""

import threading
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class ClockEvent:
    """Record of a labelled clock tick — used for post-run audit."""
    tick:      int
    time_s:    float
    label:     str


class SimClock:
    """
    Monotonic simulation clock.

    Usage:
        clock = SimClock(dt=0.1)           # 10 Hz, one engine tick
        clock.start()
        clock.step()                       # advance one tick
        clock.step()
        clock.label("GPS_JUMP")            # mark the current tick in history
        clock.elapsed_ms()                 # 200
        clock.history()                    # [CLOCK_START @0, GPS_JUMP @2]

    The clock does NOT auto-advance — the engine calls step()
    explicitly once per tick.
    """

    def __init__(self, dt: float = 0.1, start_time: float = 0.0):
        """
        Args:
            dt:         Simulation timestep in seconds (default 100 ms).
            start_time: Scenario T=0 offset in seconds (default 0.0).
        """
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")

        self._dt:         float        = dt
        self._start_time: float        = start_time
        self._current:    float        = start_time
        self._tick:       int          = 0
        self._lock:       threading.Lock = threading.Lock()
        self._history:    List[ClockEvent] = []
        self._running:    bool          = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Mark clock as running. Records T=0 event."""
        with self._lock:
            self._running = True
            self._history.append(ClockEvent(
                tick=self._tick, time_s=self._current, label="CLOCK_START"
            ))

    def reset(self) -> None:
        """Reset to initial state. Clears history."""
        with self._lock:
            self._current = self._start_time
            self._tick    = 0
            self._running = False
            self._history.clear()

    # ------------------------------------------------------------------
    # Advance
    # ------------------------------------------------------------------

    def step(self) -> float:
        """Advance clock by one dt. Returns the new current time in seconds."""
        with self._lock:
            if not self._running:
                raise RuntimeError("SimClock.step() called before start()")
            self._tick    += 1
            # Recomputed from the tick count so 0.1 s steps do not accumulate
            # float error across thousands of ticks.
            self._current = self._start_time + self._tick * self._dt
            return self._current

    def label(self, label: str) -> None:
        """Attach a label to the current tick without advancing."""
        with self._lock:
            self._history.append(ClockEvent(
                tick=self._tick, time_s=self._current, label=label
            ))

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def tick(self) -> int:
        """Current tick count (0 at scenario load)."""
        with self._lock:
            return self._tick

    def elapsed(self) -> float:
        """Time elapsed since T=0, in seconds."""
        with self._lock:
            return self._current - self._start_time

    def elapsed_ms(self) -> int:
        """Time elapsed since T=0 in whole milliseconds."""
        with self._lock:
            return int(round(self._tick * self._dt * 1000.0))

    def history(self) -> List[ClockEvent]:
        """Return a snapshot of labelled clock events for audit."""
        with self._lock:
            return list(self._history)

    def __repr__(self) -> str:
        return (
            f"SimClock(t={self._current:.3f}s, "
            f"tick={self._tick}, dt={self._dt}s, "
            f"running={self._running})"
        )
