"""
tests/test_breach_mitigation.py
Geofence Telemetry Simulator — Breach Detector + Mitigation Tests

Criteria verified:
  D1 — breached == (distance ≤ radius) after every tick, randomized
  D2 — ETA = (distance − radius) / effective speed; None when grounded
  D3 — breach WARNING is edge-triggered (one per entry)
  D4 — approach INFO fires once per approach; re-armed after the zone
  D5 — leaving the zone writes nothing
  D6 — operator alert text
  M1 — every action logged as ACTION
  M2 — divert heading contract, including the centre fallback
  M3 — non-divert actions change nothing

Run:
    PYTHONPATH=. python -m pytest tests/test_breach_mitigation.py -v
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import math

import numpy as np
import pytest

from core.breach.breach_detector import BreachDetector, alert_summary, evaluate
from core.kinematics.kinematics import distance
from core.mitigation.mitigation import (
    MITIGATION_ACTIONS,
    MitigationController,
    is_divert_command,
)
from core.telemetry.telemetry_types import BreachState, DroneTelemetry, Geofence, Point
from logs.event_log_schema import LogType
from sim.telemetry_engine import TelemetryEngine

from engine_helpers import make_engine, messages_of

BREACH_MSG   = "GEOFENCE BREACH!"
APPROACH_MSG = "approaching restricted zone"


# ---------------------------------------------------------------------------
# D1 — level correctness
# ---------------------------------------------------------------------------

class TestD1Level:
    def test_d1_boundary_counts_as_breached(self):
        fence = Geofence(Point(500.0, 500.0), 100.0)
        assert evaluate(Point(600.0, 500.0), fence, 10.0).is_breached

    def test_d1_just_outside_not_breached(self):
        fence = Geofence(Point(500.0, 500.0), 100.0)
        assert not evaluate(Point(600.001, 500.0), fence, 10.0).is_breached

    def test_d1_randomized_engine_ticks(self):
        rng = np.random.default_rng(seed=2024)
        for trial in range(25):
            engine = make_engine(
                float(rng.uniform(0, 1000)), float(rng.uniform(0, 1000)),
                float(rng.uniform(0, 360)), float(rng.uniform(0, 60)),
                centre=(float(rng.uniform(100, 900)), float(rng.uniform(100, 900))),
                radius=float(rng.uniform(10, 400)),
                seed=trial,
            )
            engine.set_speed(float(rng.choice([0.5, 1.0, 2.0, 5.0])))
            for _ in range(80):
                engine.tick()
                snap = engine.snapshot()
                d = distance(snap.telemetry.position, snap.geofence.center)
                assert snap.breach_state.distance_m == pytest.approx(d)
                assert snap.breach_state.is_breached == (d <= snap.geofence.radius_m)

    def test_d1_invalid_radius_rejected(self):
        with pytest.raises(ValueError):
            Geofence(Point(0.0, 0.0), 0.0)


# ---------------------------------------------------------------------------
# D2 — ETA
# ---------------------------------------------------------------------------

class TestD2ETA:
    def test_d2_eta_value(self):
        state = evaluate(Point(500.0, 100.0), Geofence(Point(500.0, 500.0), 200.0), 20.0)
        assert state.distance_m == pytest.approx(400.0)
        assert state.eta_s == pytest.approx(10.0)

    def test_d2_eta_none_at_zero_speed(self):
        assert evaluate(Point(0.0, 0.0), Geofence(Point(500.0, 500.0), 200.0), 0.0).eta_s is None

    def test_d2_eta_none_when_breached(self):
        assert evaluate(Point(500.0, 500.0), Geofence(Point(500.0, 500.0), 200.0), 20.0).eta_s is None

    def test_d2_engine_eta_uses_effective_speed(self):
        engine = make_engine(500.0, 100.0, 180.0, 20.0)
        engine.set_speed(2.0)
        engine.tick()
        b = engine.breach_state
        # 4 m covered → d = 396; (396 − 100) / 40
        assert b.distance_m == pytest.approx(396.0)
        assert b.eta_s == pytest.approx(296.0 / 40.0)

    def test_d2_grounded_drone_has_no_eta(self):
        engine = make_engine(500.0, 100.0, 180.0, 20.0, battery=0.05)
        engine.tick()
        assert engine.telemetry.battery_pct == 0.0
        assert engine.breach_state.eta_s is None
        assert not engine.breach_state.is_breached

    def test_d2_initial_state(self):
        engine = make_engine(500.0, 100.0, 180.0, 20.0)
        b = engine.breach_state
        assert b == BreachState(is_breached=False, eta_s=None, distance_m=math.inf)


# ---------------------------------------------------------------------------
# D3 / D4 / D5 — edge-triggered notifications
# ---------------------------------------------------------------------------

class TestD3BreachEdge:
    def test_d3_radius_plus_one_to_minus_one_single_warning(self):
        # d = 101 → 99 on the first tick, then deeper inside
        engine = make_engine(500.0, 399.0, 180.0, 20.0)
        for _ in range(12):
            engine.tick()
            assert engine.breach_state.is_breached
        assert len(messages_of(engine, BREACH_MSG)) == 1
        entry = [e for e in engine.log.entries() if BREACH_MSG in e.message][0]
        assert entry.log_type == LogType.WARNING
        assert entry.message == "GEOFENCE BREACH! Drone DR-T01 entered restricted zone."

    def test_d3_detector_direct(self):
        det   = BreachDetector()
        fence = Geofence(Point(0.0, 0.0), 10.0)
        notes = []
        for d in (11.0, 9.0, 8.0, 7.0):
            notes += det.update("X", Point(d, 0.0), fence, 1.0).notifications
        warnings = [n for n in notes if n[0] == LogType.WARNING]
        assert len(warnings) == 1


class TestD4Approach:
    def test_d4_one_notice_per_approach(self):
        engine = make_engine(500.0, 100.0, 180.0, 20.0)
        for _ in range(160):
            engine.tick()
        approach = [e for e in engine.log.entries() if APPROACH_MSG in e.message]
        assert len(approach) == 1
        assert approach[0].log_type == LogType.INFO
        assert approach[0].message == "Drone DR-T01 approaching restricted zone."
        assert len(messages_of(engine, BREACH_MSG)) == 1
        # approach notice precedes the breach
        msgs = engine.log.messages()
        assert msgs.index(approach[0].message) < msgs.index(messages_of(engine, BREACH_MSG)[0])

    def test_d4_hovering_in_band_notifies_once(self):
        det   = BreachDetector()
        fence = Geofence(Point(0.0, 0.0), 100.0)
        notes = []
        for _ in range(20):
            notes += det.update("X", Point(120.0, 0.0), fence, 0.0).notifications
        assert len(notes) == 1
        assert notes[0][0] == LogType.INFO

    def test_d4_rearmed_after_leaving_band(self):
        det   = BreachDetector()
        fence = Geofence(Point(0.0, 0.0), 100.0)
        notes = []
        for x in (140.0, 200.0, 140.0):
            notes += det.update("X", Point(x, 0.0), fence, 5.0).notifications
        assert len(notes) == 2

    def test_d4_rearmed_after_exiting_zone(self):
        # straight through the zone: approach, breach, exit (still in band)
        engine = make_engine(500.0, 100.0, 180.0, 20.0)
        for _ in range(260):
            engine.tick()
        assert len(messages_of(engine, APPROACH_MSG)) == 2


class TestD5Exit:
    def test_d5_no_entry_on_exit(self):
        engine = make_engine(500.0, 100.0, 180.0, 20.0)
        for _ in range(249):
            engine.tick()
        assert engine.breach_state.is_breached
        count_inside = engine.log.count()
        warnings_inside = len(engine.log.by_type(LogType.WARNING))
        for _ in range(30):
            engine.tick()
        assert not engine.breach_state.is_breached
        assert len(engine.log.by_type(LogType.WARNING)) == warnings_inside
        # the only new entry is the re-armed approach notice
        new = engine.log.entries()[count_inside:]
        assert [e.message for e in new] == ["Drone DR-T01 approaching restricted zone."]


# ---------------------------------------------------------------------------
# D6 — alert text
# ---------------------------------------------------------------------------

class TestD6Alert:
    def test_d6_breached(self):
        title, msg = alert_summary(BreachState(True, None, 10.0))
        assert title == "GEOFENCE BREACHED"
        assert "restricted no-fly zone" in msg

    def test_d6_eta_shown_under_a_minute(self):
        title, msg = alert_summary(BreachState(False, 12.34, 300.0))
        assert title == "PROXIMITY ALERT"
        assert msg.endswith("12.3s.")

    @pytest.mark.parametrize("eta", [None, -1.0, 0.0, 60.0, 300.0])
    def test_d6_eta_hidden_otherwise(self, eta):
        assert alert_summary(BreachState(False, eta, 300.0))[1].endswith(">1 min.")


# ---------------------------------------------------------------------------
# M1 / M2 / M3 — mitigation
# ---------------------------------------------------------------------------

def _drone(x, y, heading=45.0):
    return DroneTelemetry("DR-M", Point(x, y), 100.0, 20.0, heading, -60.0, 80.0)


class TestM2Divert:
    def test_m2_literal_contract(self):
        """Drone at (600, 500), centre (500, 500): points due East, 90°."""
        result = MitigationController().apply(
            "Divert to Safe Waypoint", _drone(600.0, 500.0), Geofence(Point(500.0, 500.0), 200.0)
        )
        assert result.heading_deg == pytest.approx(90.0)
        assert result.notifications[0] == (
            LogType.ACTION, "Mitigation action taken: Divert to Safe Waypoint"
        )
        assert result.notifications[1] == (
            LogType.INFO, "Diverting drone DR-M to new heading 90° to exit restricted zone."
        )

    def test_m2_centre_fallback_north(self):
        result = MitigationController().apply(
            "Divert to Safe Waypoint", _drone(500.0, 500.0), Geofence(Point(500.0, 500.0), 200.0)
        )
        assert result.heading_deg == 0.0
        assert result.notifications[-1] == (LogType.INFO, "Drone at geofence center, diverting North.")

    def test_m2_engine_divert_changes_heading_only(self):
        engine = TelemetryEngine(rng=np.random.default_rng(seed=9), time_source=lambda: 0.0)
        before = engine.telemetry
        engine.log_mitigation_action("Divert to Safe Waypoint")
        after = engine.telemetry
        # DR-001 at (50, 50), centre (500, 500): away = NW
        assert after.heading_deg == pytest.approx(315.0)
        assert after.position == before.position
        assert after.speed_ms == before.speed_ms
        assert after.battery_pct == before.battery_pct
        assert engine.log.messages() == [
            "Mitigation action taken: Divert to Safe Waypoint",
            "Diverting drone DR-001 to new heading 315° to exit restricted zone.",
        ]

    def test_m2_divert_moves_drone_outward(self):
        engine = make_engine(520.0, 480.0, 135.0, 20.0)
        engine.log_mitigation_action("Divert to Safe Waypoint")
        assert engine.telemetry.heading_deg == pytest.approx(45.0)
        engine.tick()
        d1 = engine.breach_state.distance_m
        assert d1 > math.hypot(20.0, 20.0)
        engine.tick()
        assert engine.breach_state.distance_m > d1

    def test_m2_divert_command_matching(self):
        assert is_divert_command("Divert to Safe Waypoint")
        assert is_divert_command("  divert now")
        assert not is_divert_command("Notify Operator")


class TestM3Inert:
    @pytest.mark.parametrize("action", [a for a in MITIGATION_ACTIONS if not a.startswith("Divert")])
    def test_m3_catalog_actions_log_only(self, action):
        engine = TelemetryEngine(rng=np.random.default_rng(seed=9), time_source=lambda: 0.0)
        heading = engine.telemetry.heading_deg
        engine.log_mitigation_action(action)
        assert engine.telemetry.heading_deg == heading
        assert engine.log.count() == 1
        assert engine.log.last().log_type == LogType.ACTION
        assert engine.log.last().message == f"Mitigation action taken: {action}"

    def test_m3_unknown_action_logged_only(self):
        engine = TelemetryEngine(rng=np.random.default_rng(seed=9), time_source=lambda: 0.0)
        heading = engine.telemetry.heading_deg
        engine.log_mitigation_action('Launch "net" interceptor')
        assert engine.telemetry.heading_deg == heading
        assert engine.log.messages() == ['Mitigation action taken: Launch "net" interceptor']
