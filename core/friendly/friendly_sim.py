"""
core/friendly/friendly_sim.py
Geofence Telemetry Simulator — Friendly-Drone Simulator

Fixed pool of non-threat drones flying an independent random walk:
  - heading jitter uniform in [−5°, +5°] each tick
  - standard kinematics with map-edge reflection
  - battery drain at 1/10th of the primary rate, no depletion log
Friendly drones never take part in breach detection and never write
to the event log.
"""

from __future__ import annotations

from typing import List

import numpy as np

from core.battery.battery import drain, used_speed
from core.constants import FRIENDLY_DRAIN_PER_TICK, MAP_HEIGHT, MAP_WIDTH, TICK_DT_S
from core.kinematics.kinematics import advance
from core.telemetry.telemetry_types import DroneTelemetry, Point

POOL_SIZE          = 3
HEADING_JITTER_DEG = 5.0
ALTITUDE_RANGE_M   = (90.0, 110.0)
SPEED_RANGE_MS     = (10.0, 15.0)
FRIENDLY_SIGNAL_DBM = -65.0


class FriendlyDroneSimulator:
    """
    Usage:
        rng  = np.random.default_rng(seed=7)
        pool = FriendlyDroneSimulator(rng)
        pool.reset(now_s)                 # session start / scenario load
        pool.step(speed_multiplier, now_s)
        pool.drones()                     # deep copies
    """

    def __init__(
        self,
        rng: np.random.Generator,
        pool_size: int = POOL_SIZE,
        width: float = MAP_WIDTH,
        height: float = MAP_HEIGHT,
    ):
        self._rng    = rng
        self._size   = pool_size
        self._width  = width
        self._height = height
        self._drones: List[DroneTelemetry] = []

    def reset(self, now_s: float = 0.0) -> None:
        """Spawn a fresh pool with randomized state and full batteries."""
        self._drones = [
            DroneTelemetry(
                drone_id    = f"FR-{i + 1:03d}",
                position    = Point(
                    float(self._rng.uniform(0.0, self._width)),
                    float(self._rng.uniform(0.0, self._height)),
                ),
                altitude_m  = float(self._rng.uniform(*ALTITUDE_RANGE_M)),
                speed_ms    = float(self._rng.uniform(*SPEED_RANGE_MS)),
                heading_deg = float(self._rng.uniform(0.0, 360.0)),
                signal_dbm  = FRIENDLY_SIGNAL_DBM,
                battery_pct = 100.0,
                timestamp_s = now_s,
            )
            for i in range(self._size)
        ]

    def step(self, speed_multiplier: float, now_s: float = 0.0) -> None:
        for drone in self._drones:
            drone.battery_pct = drain(
                drone.battery_pct, FRIENDLY_DRAIN_PER_TICK, speed_multiplier
            ).battery_pct
            effective = used_speed(drone.speed_ms, drone.battery_pct) * speed_multiplier

            heading = drone.heading_deg + self._rng.uniform(-HEADING_JITTER_DEG, HEADING_JITTER_DEG)
            drone.position, drone.heading_deg = advance(
                drone.position, float(heading), effective, TICK_DT_S,
                self._width, self._height,
            )
            drone.timestamp_s = now_s

    def drones(self) -> List[DroneTelemetry]:
        return [d.copy() for d in self._drones]

    def __len__(self) -> int:
        return len(self._drones)
