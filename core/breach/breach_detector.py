"""
core/breach/breach_detector.py
Geofence Telemetry Simulator — Breach Detector

Recomputes breach state for the primary drone after every tick:

  distance   = |position − geofence.center|
  breached   = distance ≤ radius
  eta        = (distance − radius) / effective_speed   if not breached and speed > 0
             = None                                    otherwise

Notifications are edge-triggered, not level-triggered:
  - clear → breached               : WARNING, once per entry into the zone
  - entering the approach band     : INFO, once per approach
    (not breached and distance < 1.5 × radius)
  - breached → clear               : no notification

The approach notification is armed at start, disarmed when it fires,
and re-armed when the approach episode ends (drone leaves the band or
enters the zone). A drone hovering in the band is notified only once.

ETA is not clamped: just outside the edge with a large speed it can be
a small positive number; callers display positive finite values only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from core.constants import APPROACH_BAND_FACTOR
from core.kinematics.kinematics import distance
from core.telemetry.telemetry_types import BreachState, Geofence, Point
from logs.event_log_schema import LogType

logger = logging.getLogger("BREACH")

ETA_DISPLAY_LIMIT_S = 60.0     # beyond this the alert shows ">1 min"


def evaluate(position: Point, geofence: Geofence, effective_speed_ms: float) -> BreachState:
    """Level evaluation with no memory."""
    d = distance(position, geofence.center)
    breached = d <= geofence.radius_m
    eta: Optional[float] = None
    if not breached and effective_speed_ms > 0.0:
        eta = (d - geofence.radius_m) / effective_speed_ms
    return BreachState(is_breached=breached, eta_s=eta, distance_m=d)


@dataclass
class BreachUpdate:
    state:          BreachState
    notifications:  List[Tuple[LogType, str]] = field(default_factory=list)


class BreachDetector:
    """
    Stateful wrapper around evaluate() that carries the previous breach
    flag and the approach latch between ticks.
    """

    def __init__(self, approach_factor: float = APPROACH_BAND_FACTOR):
        self._approach_factor = approach_factor
        self.reset()

    def reset(self) -> None:
        self._state          = BreachState()
        self._approach_armed = True

    @property
    def state(self) -> BreachState:
        return self._state

    def update(
        self,
        drone_id: str,
        position: Point,
        geofence: Geofence,
        effective_speed_ms: float,
    ) -> BreachUpdate:
        prev = self._state
        new  = evaluate(position, geofence, effective_speed_ms)
        notes: List[Tuple[LogType, str]] = []

        in_band = (
            not new.is_breached
            and new.distance_m < geofence.radius_m * self._approach_factor
        )

        if new.is_breached and not prev.is_breached:
            notes.append((
                LogType.WARNING,
                f"GEOFENCE BREACH! Drone {drone_id} entered restricted zone.",
            ))
            logger.info(f"BREACH: {drone_id} at d={new.distance_m:.1f} m "
                        f"(r={geofence.radius_m:.0f} m)")
        elif in_band and self._approach_armed:
            notes.append((
                LogType.INFO,
                f"Drone {drone_id} approaching restricted zone.",
            ))
            self._approach_armed = False
            logger.debug(f"BREACH: {drone_id} approaching, d={new.distance_m:.1f} m")

        if not in_band:
            self._approach_armed = True

        self._state = new
        return BreachUpdate(state=new, notifications=notes)


def alert_summary(state: BreachState) -> Tuple[str, str]:
    """
    Operator alert title and message for the current breach state.
    ETA shown to one decimal only when 0 < eta < 60 s.
    """
    eta = state.eta_s
    if eta is not None and 0.0 < eta < ETA_DISPLAY_LIMIT_S:
        eta_display = f"{eta:.1f}s"
    else:
        eta_display = ">1 min"
    if state.is_breached:
        return "GEOFENCE BREACHED", "Drone has entered a restricted no-fly zone."
    return "PROXIMITY ALERT", f"Drone will breach geofence in approx. {eta_display}."
