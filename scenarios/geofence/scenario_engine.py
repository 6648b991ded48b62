"""
scenarios/geofence/scenario_engine.py
Geofence Telemetry Simulator — Scenario Engine

Holds the scenario catalog and the active scenario, and exposes a
per-tick hook for scenario-specific anomalies. The hook runs after
normal kinematics; an anomaly overrides the primary position for that
tick only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from core.telemetry.telemetry_types import Point
from scenarios.geofence.geofence_scenarios import SCENARIOS, Scenario, get_scenario
from sim.gps_spoof_injector import GPSSpoofInjector

logger = logging.getLogger("SCENARIO")


@dataclass
class AnomalyEvent:
    position:   Point
    message:    str


class ScenarioEngine:

    def __init__(self, catalog: Optional[Dict[str, Scenario]] = None):
        self._catalog  = dict(SCENARIOS if catalog is None else catalog)
        self._active:  Optional[Scenario] = None
        self._injector = GPSSpoofInjector()

    @property
    def active(self) -> Optional[Scenario]:
        return self._active

    @property
    def catalog(self) -> Dict[str, Scenario]:
        return dict(self._catalog)

    def lookup(self, name: str) -> Optional[Scenario]:
        return get_scenario(name, self._catalog)

    def load(self, scenario: Scenario) -> None:
        """Activate scenario and re-arm its anomaly latch."""
        self._active = scenario
        self._injector.clear_attacks()
        if scenario.anomaly is not None:
            self._injector.add_attack(scenario.anomaly)
        logger.debug(f"SCENARIO: active={scenario.key!r} anomaly={scenario.anomaly is not None}")

    def on_tick(self, elapsed_ms: int) -> Optional[AnomalyEvent]:
        jump = self._injector.check(elapsed_ms)
        if jump is None:
            return None
        return AnomalyEvent(position=Point(jump.target.x, jump.target.y), message=jump.message)

    def anomalies_fired(self) -> int:
        return self._injector.fired_count()
