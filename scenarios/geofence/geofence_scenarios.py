"""
scenarios/geofence/geofence_scenarios.py
Geofence Telemetry Simulator — Scenario Catalog

Immutable templates selected by key or display name. Loading a
scenario copies its initial telemetry; the templates themselves are
never mutated.

Scenarios:
  normal    "Normal Approach"    DR-001 from the NW corner towards a 200 m zone
  breach    "Imminent Breach"    DR-002 already close to a 250 m zone, 30 m/s
  spoofing  "GPS Spoofing Demo"  DR-003 heading SW; GPS jump at T+5.1 s

Coordinate system: metres on a 1000 × 1000 map, origin top-left.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from core.telemetry.telemetry_types import DroneTelemetry, Geofence, Point
from sim.gps_spoof_injector import PositionJump


@dataclass(frozen=True)
class Scenario:
    key:                str
    name:               str
    initial_telemetry:  DroneTelemetry
    geofence:           Geofence
    waypoints:          Tuple[Point, ...] = ()
    anomaly:            Optional[PositionJump] = None

    def fresh_telemetry(self, now_s: float = 0.0) -> DroneTelemetry:
        telemetry = self.initial_telemetry.copy()
        telemetry.timestamp_s = now_s
        return telemetry


SPOOF_JUMP = PositionJump(
    activation_ms = 5000,
    window_ms     = 200,
    target        = Point(350.0, 350.0),
    label         = "DR-003 GPS jump",
)


SCENARIOS: Dict[str, Scenario] = {
    "normal": Scenario(
        key  = "normal",
        name = "Normal Approach",
        initial_telemetry = DroneTelemetry(
            drone_id    = "DR-001",
            position    = Point(50.0, 50.0),
            altitude_m  = 100.0,
            speed_ms    = 25.0,
            heading_deg = 45.0,
            signal_dbm  = -60.0,
            battery_pct = 100.0,
        ),
        geofence = Geofence(center=Point(500.0, 500.0), radius_m=200.0),
    ),
    "breach": Scenario(
        key  = "breach",
        name = "Imminent Breach",
        initial_telemetry = DroneTelemetry(
            drone_id    = "DR-002",
            position    = Point(200.0, 200.0),
            altitude_m  = 120.0,
            speed_ms    = 30.0,
            heading_deg = 45.0,
            signal_dbm  = -55.0,
            battery_pct = 100.0,
        ),
        geofence = Geofence(center=Point(500.0, 500.0), radius_m=250.0),
    ),
    "spoofing": Scenario(
        key  = "spoofing",
        name = "GPS Spoofing Demo",
        initial_telemetry = DroneTelemetry(
            drone_id    = "DR-003",
            position    = Point(800.0, 800.0),
            altitude_m  = 90.0,
            speed_ms    = 20.0,
            heading_deg = 225.0,
            signal_dbm  = -70.0,
            battery_pct = 100.0,
        ),
        geofence = Geofence(center=Point(400.0, 400.0), radius_m=150.0),
        anomaly  = SPOOF_JUMP,
    ),
}

DEFAULT_SCENARIO = "normal"


def get_scenario(name: str, catalog: Optional[Dict[str, Scenario]] = None) -> Optional[Scenario]:
    """Look up by key ("spoofing") or display name ("GPS Spoofing Demo")."""
    catalog = SCENARIOS if catalog is None else catalog
    if name in catalog:
        return catalog[name]
    for scenario in catalog.values():
        if scenario.name == name:
            return scenario
    return None


def scenario_names(catalog: Optional[Dict[str, Scenario]] = None) -> List[str]:
    catalog = SCENARIOS if catalog is None else catalog
    return list(catalog.keys())
