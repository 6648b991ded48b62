"""
core/kinematics/kinematics.py
Geofence Telemetry Simulator — Planar Kinematics

Pure functions shared by the primary drone and the friendly pool:
  - compass heading + speed → per-tick displacement
  - specular reflection off the four map edges
  - bounded sensor noise on altitude / signal strength
  - bearing pointing away from a reference point (diversion)

Heading convention: 0° = North = towards y = 0, clockwise positive.
The −90° rotation maps compass heading onto the standard maths angle
before the trig is applied.
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

import numpy as np

from core.constants import (
    ALTITUDE_JITTER_M, ALTITUDE_MAX_M, ALTITUDE_MIN_M,
    MAP_HEIGHT, MAP_WIDTH,
    SIGNAL_JITTER_DBM, SIGNAL_MAX_DBM, SIGNAL_MIN_DBM,
)
from core.telemetry.telemetry_types import Point


def normalize_heading(heading_deg: float) -> float:
    """Wrap any heading into [0, 360)."""
    h = math.fmod(heading_deg, 360.0)
    if h < 0.0:
        h += 360.0
    # fmod of a tiny negative value can round back up to 360.0
    if h >= 360.0:
        h = 0.0
    return h


def distance(a: Point, b: Point) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def displacement(heading_deg: float, effective_speed_ms: float, dt_s: float) -> Tuple[float, float]:
    """(dx, dy) covered in one step of dt_s at effective_speed_ms."""
    rad = math.radians(heading_deg - 90.0)
    step = effective_speed_ms * dt_s
    return math.cos(rad) * step, math.sin(rad) * step


def reflect_off_bounds(
    x: float,
    y: float,
    heading_deg: float,
    width: float = MAP_WIDTH,
    height: float = MAP_HEIGHT,
) -> Tuple[float, float, float]:
    """
    Bounce off the map edges.

    X outside [0, width]  → heading = 360 − heading, x clamped.
    Y outside [0, height] → heading = 180 − heading, y clamped.
    Both apply independently in the same step. Heading returned normalized.
    """
    if x < 0.0 or x > width:
        heading_deg = 360.0 - heading_deg
        x = min(max(x, 0.0), width)
    if y < 0.0 or y > height:
        heading_deg = 180.0 - heading_deg
        y = min(max(y, 0.0), height)
    return x, y, normalize_heading(heading_deg)


def advance(
    position: Point,
    heading_deg: float,
    effective_speed_ms: float,
    dt_s: float,
    width: float = MAP_WIDTH,
    height: float = MAP_HEIGHT,
) -> Tuple[Point, float]:
    """One kinematic step: displacement then boundary reflection."""
    dx, dy = displacement(heading_deg, effective_speed_ms, dt_s)
    x, y, heading = reflect_off_bounds(
        position.x + dx, position.y + dy, heading_deg, width, height
    )
    return Point(x, y), heading


def perturb_sensors(
    altitude_m: float,
    signal_dbm: float,
    rng: np.random.Generator,
) -> Tuple[float, float]:
    """
    Bounded sensor noise for the primary drone.
    Altitude ±0.5 m clamped to [80, 130]; signal ±1 dBm clamped to [−85, −50].
    """
    altitude = altitude_m + rng.uniform(-ALTITUDE_JITTER_M, ALTITUDE_JITTER_M)
    signal   = signal_dbm + rng.uniform(-SIGNAL_JITTER_DBM, SIGNAL_JITTER_DBM)
    return (
        float(np.clip(altitude, ALTITUDE_MIN_M, ALTITUDE_MAX_M)),
        float(np.clip(signal, SIGNAL_MIN_DBM, SIGNAL_MAX_DBM)),
    )


def heading_away_from(point: Point, origin: Point) -> Optional[float]:
    """
    Compass heading pointing from origin through point (i.e. directly away
    from origin). None when the two coincide and the direction is undefined.
    """
    dx = point.x - origin.x
    dy = point.y - origin.y
    if dx == 0.0 and dy == 0.0:
        return None
    angle_deg = math.degrees(math.atan2(dy, dx))
    return (angle_deg + 90.0 + 360.0) % 360.0
