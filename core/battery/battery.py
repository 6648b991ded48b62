"""
core/battery/battery.py
Geofence Telemetry Simulator — Battery Model

Per-tick linear drain scaled by the speed multiplier:
  - Primary drone  : 0.05 % per tick at x1
  - Friendly drones: 0.005 % per tick at x1 (10x slower)

Boundary conditions:
  - Level clamped to [0, 100]; drain stops at 0
  - depleted_now is True only on the tick the level first reaches 0
  - At 0 % the drone's used speed is forced to 0 (no displacement)
  - battery_pct = None means the drone has no battery model: no drain,
    never grounded
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.constants import BATTERY_MAX, BATTERY_MIN


@dataclass
class BatteryStep:
    battery_pct:    Optional[float]
    depleted_now:   bool = False


def drain(battery_pct: Optional[float], rate_per_tick: float, speed_multiplier: float) -> BatteryStep:
    """Apply one tick of drain."""
    if battery_pct is None:
        return BatteryStep(None)
    level = min(max(battery_pct, BATTERY_MIN), BATTERY_MAX)
    if level <= BATTERY_MIN:
        return BatteryStep(BATTERY_MIN)
    level = max(BATTERY_MIN, level - rate_per_tick * speed_multiplier)
    return BatteryStep(level, depleted_now=(level == BATTERY_MIN))


def is_depleted(battery_pct: Optional[float]) -> bool:
    return battery_pct is not None and battery_pct <= BATTERY_MIN


def used_speed(speed_ms: float, battery_pct: Optional[float]) -> float:
    """Speed actually flown this tick: nominal speed, or 0 on a flat battery."""
    if is_depleted(battery_pct):
        return 0.0
    return max(0.0, speed_ms)
