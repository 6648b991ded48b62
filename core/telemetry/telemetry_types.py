"""
core/telemetry/telemetry_types.py
Geofence Telemetry Simulator — Telemetry Data Model

Planar records shared by every engine module. Coordinates are metres
on the map plane (origin top-left, +x East, +y South). Headings are
compass degrees: 0 = North (towards y = 0), increasing clockwise.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


@dataclass
class DroneTelemetry:
    """
    One drone's telemetry frame.

    The primary (threat) drone is written only by the engine tick;
    friendly drones only by the friendly-drone simulator.
    """
    drone_id:       str
    position:       Point
    altitude_m:     float
    speed_ms:       float                   # nominal speed, ≥ 0
    heading_deg:    float                   # [0, 360), 0 = North
    signal_dbm:     float
    battery_pct:    Optional[float] = 100.0 # None = battery not modelled
    timestamp_s:    float = 0.0

    def copy(self) -> "DroneTelemetry":
        return copy.deepcopy(self)


@dataclass(frozen=True)
class Geofence:
    """Circular restricted zone. Immutable for the lifetime of a scenario run."""
    center:     Point
    radius_m:   float

    def __post_init__(self):
        if not self.radius_m > 0:
            raise ValueError(f"Geofence radius must be positive, got {self.radius_m}")


@dataclass
class SimulationState:
    is_playing:         bool  = False
    speed_multiplier:   float = 1.0


@dataclass
class BreachState:
    """Derived each tick from primary telemetry + geofence. Never set by commands."""
    is_breached:    bool            = False
    eta_s:          Optional[float] = None      # None when not computable
    distance_m:     float           = field(default=float("inf"))
