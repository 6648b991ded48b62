"""
tests/test_kinematics_battery.py
Geofence Telemetry Simulator — Kinematics + Battery Unit Tests

Criteria verified:
  K1 — heading normalized into [0, 360) after every update
  K2 — compass convention: 0° moves towards y = 0, 90° towards +x
  K3 — edge reflection: X → 360 − h, Y → 180 − h, both on a corner
  K4 — sensor noise stays within clamps
  K5 — diversion bearing points away from the reference point
  B1 — drain rate, floor at 0, single depletion edge
  B2 — used speed forced to 0 on a flat battery

Run:
    PYTHONPATH=. python -m pytest tests/test_kinematics_battery.py -v
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import math

import numpy as np
import pytest

from core.battery.battery import BatteryStep, drain, is_depleted, used_speed
from core.constants import (
    ALTITUDE_MAX_M, ALTITUDE_MIN_M, MAP_HEIGHT, MAP_WIDTH,
    PRIMARY_DRAIN_PER_TICK, SIGNAL_MAX_DBM, SIGNAL_MIN_DBM, TICK_DT_S,
)
from core.kinematics.kinematics import (
    advance,
    displacement,
    distance,
    heading_away_from,
    normalize_heading,
    perturb_sensors,
    reflect_off_bounds,
)
from core.telemetry.telemetry_types import Point


# ---------------------------------------------------------------------------
# K1 — heading normalization
# ---------------------------------------------------------------------------

class TestK1Normalize:
    @pytest.mark.parametrize("raw,expected", [
        (0.0, 0.0), (360.0, 0.0), (-10.0, 350.0), (725.0, 5.0), (-720.0, 0.0), (359.5, 359.5),
    ])
    def test_k1_normalize_values(self, raw, expected):
        assert normalize_heading(raw) == pytest.approx(expected)

    def test_k1_tiny_negative_wraps_below_360(self):
        h = normalize_heading(-1e-18)
        assert 0.0 <= h < 360.0

    def test_k1_random_walk_headings_stay_in_range(self):
        rng = np.random.default_rng(seed=11)
        pos, heading = Point(500.0, 500.0), 0.0
        for _ in range(2000):
            heading += rng.uniform(-400.0, 400.0)
            pos, heading = advance(pos, heading, float(rng.uniform(0, 400)), TICK_DT_S)
            assert 0.0 <= heading < 360.0
            assert 0.0 <= pos.x <= MAP_WIDTH
            assert 0.0 <= pos.y <= MAP_HEIGHT


# ---------------------------------------------------------------------------
# K2 — compass convention
# ---------------------------------------------------------------------------

class TestK2Displacement:
    def test_k2_north_moves_towards_y_zero(self):
        dx, dy = displacement(0.0, 10.0, TICK_DT_S)
        assert dx == pytest.approx(0.0, abs=1e-12)
        assert dy == pytest.approx(-1.0)

    def test_k2_east_moves_towards_positive_x(self):
        dx, dy = displacement(90.0, 10.0, TICK_DT_S)
        assert dx == pytest.approx(1.0)
        assert dy == pytest.approx(0.0, abs=1e-12)

    def test_k2_south_and_west(self):
        assert displacement(180.0, 10.0, TICK_DT_S)[1] == pytest.approx(1.0)
        assert displacement(270.0, 10.0, TICK_DT_S)[0] == pytest.approx(-1.0)

    def test_k2_zero_speed_no_motion(self):
        pos, heading = advance(Point(123.0, 456.0), 77.0, 0.0, TICK_DT_S)
        assert pos == Point(123.0, 456.0)
        assert heading == pytest.approx(77.0)

    def test_k2_step_length_matches_speed(self):
        dx, dy = displacement(33.0, 25.0, TICK_DT_S)
        assert math.hypot(dx, dy) == pytest.approx(2.5)


# ---------------------------------------------------------------------------
# K3 — reflection
# ---------------------------------------------------------------------------

class TestK3Reflection:
    def test_k3_top_edge_overshoot(self):
        """North-bound drone at y=2 overshooting y<0: clamped, heading 180 − 0."""
        pos, heading = advance(Point(500.0, 2.0), 0.0, 30.0, TICK_DT_S)
        assert pos.y == 0.0
        assert heading == pytest.approx(180.0)

    def test_k3_right_edge_overshoot(self):
        pos, heading = advance(Point(998.0, 500.0), 90.0, 50.0, TICK_DT_S)
        assert pos.x == MAP_WIDTH
        assert heading == pytest.approx(270.0)

    def test_k3_corner_applies_both(self):
        pos, heading = advance(Point(999.0, 1.0), 45.0, 50.0, TICK_DT_S)
        assert pos == Point(MAP_WIDTH, 0.0)
        # 360 − 45 = 315, then 180 − 315 = −135 → 225
        assert heading == pytest.approx(225.0)

    def test_k3_inside_bounds_untouched(self):
        x, y, h = reflect_off_bounds(10.0, 990.0, 123.0)
        assert (x, y, h) == (10.0, 990.0, 123.0)

    def test_k3_bottom_and_left_edges(self):
        x, y, h = reflect_off_bounds(-3.0, 1004.0, 200.0)
        assert (x, y) == (0.0, MAP_HEIGHT)
        assert h == pytest.approx(normalize_heading(180.0 - (360.0 - 200.0)))


# ---------------------------------------------------------------------------
# K4 — sensor noise
# ---------------------------------------------------------------------------

def test_k4_sensor_noise_bounded():
    rng = np.random.default_rng(seed=3)
    alt, sig = ALTITUDE_MAX_M, SIGNAL_MIN_DBM
    for _ in range(5000):
        new_alt, new_sig = perturb_sensors(alt, sig, rng)
        assert ALTITUDE_MIN_M <= new_alt <= ALTITUDE_MAX_M
        assert SIGNAL_MIN_DBM <= new_sig <= SIGNAL_MAX_DBM
        assert abs(new_alt - alt) <= 0.5 + 1e-12
        assert abs(new_sig - sig) <= 1.0 + 1e-12
        alt, sig = new_alt, new_sig


def test_k4_sensor_noise_deterministic_with_seed():
    a = perturb_sensors(100.0, -60.0, np.random.default_rng(seed=5))
    b = perturb_sensors(100.0, -60.0, np.random.default_rng(seed=5))
    assert a == b


# ---------------------------------------------------------------------------
# K5 — bearing away from a point
# ---------------------------------------------------------------------------

class TestK5HeadingAway:
    def test_k5_east_of_centre_points_east(self):
        assert heading_away_from(Point(600.0, 500.0), Point(500.0, 500.0)) == pytest.approx(90.0)

    def test_k5_north_of_centre_points_north(self):
        assert heading_away_from(Point(500.0, 400.0), Point(500.0, 500.0)) == pytest.approx(0.0)

    def test_k5_west_and_south(self):
        assert heading_away_from(Point(400.0, 500.0), Point(500.0, 500.0)) == pytest.approx(270.0)
        assert heading_away_from(Point(500.0, 600.0), Point(500.0, 500.0)) == pytest.approx(180.0)

    def test_k5_coincident_is_undefined(self):
        assert heading_away_from(Point(500.0, 500.0), Point(500.0, 500.0)) is None

    def test_k5_following_bearing_increases_distance(self):
        centre = Point(500.0, 500.0)
        start  = Point(530.0, 470.0)
        heading = heading_away_from(start, centre)
        pos, _ = advance(start, heading, 20.0, TICK_DT_S)
        assert distance(pos, centre) > distance(start, centre)


# ---------------------------------------------------------------------------
# B1 / B2 — battery
# ---------------------------------------------------------------------------

class TestB1Drain:
    def test_b1_primary_rate(self):
        step = drain(100.0, PRIMARY_DRAIN_PER_TICK, 1.0)
        assert step.battery_pct == pytest.approx(99.95)
        assert not step.depleted_now

    def test_b1_rate_scales_with_multiplier(self):
        assert drain(100.0, PRIMARY_DRAIN_PER_TICK, 5.0).battery_pct == pytest.approx(99.75)

    def test_b1_floor_and_edge(self):
        step = drain(0.03, PRIMARY_DRAIN_PER_TICK, 1.0)
        assert step == BatteryStep(0.0, depleted_now=True)

    def test_b1_already_empty_no_second_edge(self):
        step = drain(0.0, PRIMARY_DRAIN_PER_TICK, 1.0)
        assert step.battery_pct == 0.0
        assert not step.depleted_now

    def test_b1_no_battery_model(self):
        assert drain(None, PRIMARY_DRAIN_PER_TICK, 1.0) == BatteryStep(None)

    def test_b1_out_of_range_input_clamped(self):
        assert drain(150.0, PRIMARY_DRAIN_PER_TICK, 1.0).battery_pct == pytest.approx(99.95)

    def test_b1_full_discharge_single_edge(self):
        level, edges, ticks = 100.0, 0, 0
        while level > 0.0 and ticks < 10_000:
            step = drain(level, PRIMARY_DRAIN_PER_TICK, 1.0)
            level = step.battery_pct
            edges += int(step.depleted_now)
            ticks += 1
            assert 0.0 <= level <= 100.0
        assert level == 0.0
        assert edges == 1
        assert 1995 <= ticks <= 2005


class TestB2UsedSpeed:
    def test_b2_flat_battery_grounds_drone(self):
        assert used_speed(25.0, 0.0) == 0.0
        assert is_depleted(0.0)

    def test_b2_any_charge_flies(self):
        assert used_speed(25.0, 0.01) == 25.0

    def test_b2_no_battery_model_flies(self):
        assert used_speed(25.0, None) == 25.0
        assert not is_depleted(None)
