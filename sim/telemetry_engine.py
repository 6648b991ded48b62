"""
sim/telemetry_engine.py
Geofence Telemetry Simulator — Telemetry Engine

The single owned simulation context. Holds every piece of mutable
simulation state and is the only thing allowed to write it:

  telemetry        primary (threat) drone
  friendly pool    FriendlyDroneSimulator
  geofence         from the active scenario
  simulation state play flag + speed multiplier
  breach state     BreachDetector (derived, never set by commands)
  event log        EventLog (append-only, cleared on scenario load)

Tick order (one call = one 100 ms step):
  1. battery drain      (primary; depletion WARNING once)
  2. kinematics         (battery-gated effective speed, edge reflection)
  3. sensor noise       (altitude / signal)
  4. scenario hook      (may override position for this tick)
  5. friendly pool      (random walk, slow drain)
  6. breach detection   (edge-triggered WARNING / INFO)

Command input errors never raise: invalid speed multipliers and unknown
scenario names are ignored, unknown mitigation actions are logged only.
The presentation side reads snapshot() and calls the command methods;
it never touches engine state directly.
"""

from __future__ import annotations

import copy
import logging
import math
import numbers
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np

from core.battery.battery import drain, used_speed
from core.breach.breach_detector import BreachDetector
from core.clock.sim_clock import SimClock
from core.constants import MAP_HEIGHT, MAP_WIDTH, PRIMARY_DRAIN_PER_TICK, TICK_DT_S
from core.friendly.friendly_sim import FriendlyDroneSimulator
from core.kinematics.kinematics import advance, perturb_sensors
from core.mitigation.mitigation import MitigationController
from core.telemetry.telemetry_types import (
    BreachState,
    DroneTelemetry,
    Geofence,
    SimulationState,
)
from logs.event_log_schema import EventLog, LogEntry, LogType
from scenarios.geofence.geofence_scenarios import DEFAULT_SCENARIO, Scenario
from scenarios.geofence.scenario_engine import ScenarioEngine

logger = logging.getLogger("ENGINE")


# ---------------------------------------------------------------------------
# Read surface
# ---------------------------------------------------------------------------

@dataclass
class EngineSnapshot:
    """Deep copy of everything the presentation layer may read."""
    scenario_name:      str
    telemetry:          DroneTelemetry
    friendly_drones:    List[DroneTelemetry]
    simulation_state:   SimulationState
    breach_state:       BreachState
    geofence:           Geofence
    log:                List[LogEntry] = field(default_factory=list)
    tick:               int   = 0
    elapsed_ms:         int   = 0


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class TelemetryEngine:
    """
    Usage:
        engine = TelemetryEngine(rng=np.random.default_rng(seed=42))
        engine.load_scenario("spoofing")
        engine.play()
        for _ in range(60):
            engine.tick()
        snap = engine.snapshot()

    Ticking is driven externally (SimulationScheduler in real use,
    direct tick() calls in tests).
    """

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        scenario: str = DEFAULT_SCENARIO,
        scenario_engine: Optional[ScenarioEngine] = None,
        time_source: Callable[[], float] = time.time,
        width: float = MAP_WIDTH,
        height: float = MAP_HEIGHT,
    ):
        self._rng         = rng if rng is not None else np.random.default_rng()
        self._time        = time_source
        self._width       = width
        self._height      = height
        self._scenarios   = scenario_engine or ScenarioEngine()
        self._clock       = SimClock(dt=TICK_DT_S)
        self._friendly    = FriendlyDroneSimulator(self._rng, width=width, height=height)
        self._breach      = BreachDetector()
        self._mitigation  = MitigationController()
        self._log         = EventLog()
        self._state       = SimulationState()

        initial = self._scenarios.lookup(scenario)
        if initial is None:
            raise ValueError(f"Unknown initial scenario {scenario!r}")
        # Session start: same reset as a scenario load, without the log entry.
        self._reset(initial)

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    @property
    def telemetry(self) -> DroneTelemetry:
        return self._telemetry.copy()

    @property
    def friendly_drones(self) -> List[DroneTelemetry]:
        return self._friendly.drones()

    @property
    def simulation_state(self) -> SimulationState:
        return SimulationState(self._state.is_playing, self._state.speed_multiplier)

    @property
    def breach_state(self) -> BreachState:
        s = self._breach.state
        return BreachState(s.is_breached, s.eta_s, s.distance_m)

    @property
    def geofence(self) -> Geofence:
        return self._geofence

    @property
    def log(self) -> EventLog:
        return self._log.copy()

    @property
    def scenario(self) -> Scenario:
        return copy.deepcopy(self._scenario)

    @property
    def clock(self) -> SimClock:
        return self._clock

    def is_playing(self) -> bool:
        return self._state.is_playing

    def snapshot(self) -> EngineSnapshot:
        return EngineSnapshot(
            scenario_name    = self._scenario.name,
            telemetry        = self.telemetry,
            friendly_drones  = self.friendly_drones,
            simulation_state = self.simulation_state,
            breach_state     = self.breach_state,
            geofence         = self._geofence,
            log              = self._log.entries(),
            tick             = self._clock.tick(),
            elapsed_ms       = self._clock.elapsed_ms(),
        )

    # ------------------------------------------------------------------
    # Command surface
    # ------------------------------------------------------------------

    def play(self) -> None:
        self._state.is_playing = True
        self._emit("Simulation started.", LogType.INFO)

    def pause(self) -> None:
        self._state.is_playing = False
        self._emit("Simulation paused.", LogType.INFO)

    def set_speed(self, multiplier: float) -> bool:
        """Returns False (and changes nothing) for non-positive / non-finite input."""
        if (
            isinstance(multiplier, bool)
            or not isinstance(multiplier, numbers.Real)
            or not math.isfinite(multiplier)
            or multiplier <= 0
        ):
            logger.warning(f"ENGINE: speed multiplier {multiplier!r} rejected")
            return False
        self._state.speed_multiplier = float(multiplier)
        self._emit(f"Simulation speed set to x{self._state.speed_multiplier:g}.", LogType.INFO)
        return True

    def load_scenario(self, name: str) -> bool:
        """Returns False (no state change) when name is not in the catalog."""
        scenario = self._scenarios.lookup(name)
        if scenario is None:
            logger.warning(f"ENGINE: unknown scenario {name!r} — ignored")
            return False
        self._reset(scenario)
        self._emit(f'Scenario loaded: "{scenario.name}"', LogType.INFO)
        logger.info(f"ENGINE: scenario {scenario.key!r} loaded")
        return True

    def log_mitigation_action(self, action: str) -> None:
        result = self._mitigation.apply(action, self._telemetry, self._geofence)
        # ACTION entry first, then any diversion note
        for log_type, message in result.notifications:
            self._emit(message, log_type)
        if result.heading_deg is not None:
            self._telemetry.heading_deg = result.heading_deg

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """
        Advance the simulation by one fixed 100 ms step.

        Unconditional single step: the play flag is not checked here.
        SimulationScheduler only calls tick() while playing, so a paused
        session never advances unless tick() is called directly.
        """
        self._clock.step()
        now        = self._time()
        multiplier = self._state.speed_multiplier
        t          = self._telemetry

        battery = drain(t.battery_pct, PRIMARY_DRAIN_PER_TICK, multiplier)
        t.battery_pct = battery.battery_pct
        if battery.depleted_now:
            self._emit(f"CRITICAL: Drone {t.drone_id} battery depleted.", LogType.WARNING)

        effective_speed = used_speed(t.speed_ms, t.battery_pct) * multiplier
        t.position, t.heading_deg = advance(
            t.position, t.heading_deg, effective_speed, TICK_DT_S,
            self._width, self._height,
        )
        t.altitude_m, t.signal_dbm = perturb_sensors(t.altitude_m, t.signal_dbm, self._rng)

        anomaly = self._scenarios.on_tick(self._clock.elapsed_ms())
        if anomaly is not None:
            t.position = anomaly.position
            self._clock.label("GPS_JUMP")
            self._emit(anomaly.message, LogType.WARNING)

        t.timestamp_s = now

        self._friendly.step(multiplier, now)

        update = self._breach.update(t.drone_id, t.position, self._geofence, effective_speed)
        for log_type, message in update.notifications:
            self._emit(message, log_type)

        logger.debug(
            f"ENGINE: tick={self._clock.tick()} pos=({t.position.x:.1f}, {t.position.y:.1f}) "
            f"hdg={t.heading_deg:.1f} d={update.state.distance_m:.1f}"
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _reset(self, scenario: Scenario) -> None:
        now = self._time()
        self._scenario  = scenario
        self._telemetry = scenario.fresh_telemetry(now)
        self._geofence  = scenario.geofence
        self._state     = SimulationState(is_playing=False, speed_multiplier=1.0)
        self._breach.reset()
        self._log.clear()
        self._friendly.reset(now)
        self._clock.reset()
        self._clock.start()
        self._scenarios.load(scenario)

    def _emit(self, message: str, log_type: LogType) -> None:
        self._log.append(LogEntry(
            timestamp_s = self._time(),
            message     = message,
            log_type    = log_type,
            tick        = self._clock.tick(),
            sim_time_s  = self._clock.elapsed(),
        ))

    def __repr__(self) -> str:
        return (
            f"TelemetryEngine(scenario={self._scenario.key!r}, "
            f"playing={self._state.is_playing}, tick={self._clock.tick()})"
        )
