"""
sim/run_geofence_sim.py — Headless Geofence Scenario Runner

Runs one catalog scenario through the scheduler and records the
primary track, friendly tracks, breach timeline and event log.

Usage:
    PYTHONPATH=. python sim/run_geofence_sim.py
    PYTHONPATH=. python sim/run_geofence_sim.py --scenario spoofing --duration 20
    PYTHONPATH=. python sim/run_geofence_sim.py --scenario breach --divert-at 4 --speed 2
    PYTHONPATH=. python sim/run_geofence_sim.py --scenario normal --realtime --duration 5

Outputs (in --out directory, default: sim/):
    geofence_<scenario>_<seed>_track.npy   — (N,2) primary position per tick [m]
    geofence_<scenario>_<seed>_log.csv     — event log, "Timestamp,Type,Message"
    geofence_<scenario>_<seed>_meta.json   — run metadata and summary KPIs
"""
from __future__ import annotations

import argparse
import json
import logging
import math
import pathlib
import sys
import time
from typing import Optional

import numpy as np

from core.constants import SPEED_OPTIONS, TICK_DT_S
from logs.event_log_schema import LogType
from scenarios.geofence.geofence_scenarios import SCENARIOS
from sim.scheduler import ManualClock, MonotonicClock, SimulationScheduler
from sim.telemetry_engine import TelemetryEngine

DIVERT_ACTION = "Divert to Safe Waypoint"


# ---------------------------------------------------------------------------
# Main simulation
# ---------------------------------------------------------------------------

def run_geofence_sim(
    scenario: str = "normal",
    duration_s: float = 30.0,
    speed: float = 1.0,
    seed: int = 42,
    divert_at_s: Optional[float] = None,
    realtime: bool = False,
    verbose: bool = True,
) -> dict:
    """
    Run a scenario for duration_s of simulated time.

    Returns
    -------
    dict with keys:
        track           — (N, 2) ndarray, primary position after each tick
        friendly_tracks — (F, N, 2) ndarray, friendly positions after each tick
        distance        — (N,) ndarray, distance to geofence centre
        breached        — (N,) bool ndarray
        eta             — (N,) ndarray, ETA seconds (NaN where not computable)
        time_s          — (N,) ndarray, simulated time of each sample
        geofence        — Geofence of the scenario
        engine          — the TelemetryEngine (event log, final state)
        kpi             — dict summary
    """
    n_ticks = int(round(duration_s / TICK_DT_S))
    if n_ticks < 1:
        raise ValueError(f"duration_s={duration_s} → n_ticks={n_ticks}, too short")

    t_start = time.perf_counter()

    engine = TelemetryEngine(rng=np.random.default_rng(seed=seed), scenario=scenario)
    clock  = MonotonicClock() if realtime else ManualClock()
    sched  = SimulationScheduler(engine, clock)

    sched.load_scenario(scenario)
    sched.set_speed(speed)
    sched.play()

    n_friendly     = len(engine.friendly_drones)
    track          = np.empty((n_ticks, 2))
    friendly_track = np.empty((n_friendly, n_ticks, 2))
    dist_hist      = np.empty(n_ticks)
    breach_hist    = np.zeros(n_ticks, dtype=bool)
    eta_hist       = np.full(n_ticks, np.nan)
    divert_tick    = None if divert_at_s is None else int(round(divert_at_s / TICK_DT_S))

    k = 0
    while k < n_ticks:
        if divert_tick is not None and k == divert_tick:
            sched.log_mitigation_action(DIVERT_ACTION)
            divert_tick = None

        if not sched.pump():
            clock.sleep(sched.interval_s if not realtime else 0.001)
            continue

        snap = engine.snapshot()
        track[k] = snap.telemetry.position.as_tuple()
        for i, drone in enumerate(snap.friendly_drones):
            friendly_track[i, k] = drone.position.as_tuple()
        dist_hist[k]   = snap.breach_state.distance_m
        breach_hist[k] = snap.breach_state.is_breached
        if snap.breach_state.eta_s is not None:
            eta_hist[k] = snap.breach_state.eta_s
        k += 1

    sched.pause()
    elapsed = time.perf_counter() - t_start

    log = engine.log
    first_breach = np.flatnonzero(breach_hist)
    kpi = {
        "scenario":         engine.scenario.name,
        "seed":             seed,
        "speed":            speed,
        "n_ticks":          n_ticks,
        "duration_s":       round(n_ticks * TICK_DT_S, 1),
        "breached":         bool(breach_hist.any()),
        "first_breach_s":   (round(float(first_breach[0] + 1) * TICK_DT_S, 1)
                             if len(first_breach) else None),
        "min_distance_m":   round(float(dist_hist.min()), 2),
        "final_battery":    engine.telemetry.battery_pct,
        "log_entries":      log.count(),
        "warnings":         len(log.by_type(LogType.WARNING)),
        "gps_jump_s":       [round(e.time_s, 1) for e in engine.clock.history()
                             if e.label == "GPS_JUMP"],
        "ticks_dropped":    sched.ticks_dropped,
        "sim_wall_s":       round(elapsed, 2),
    }

    if verbose:
        mark = "BREACH ⚠" if kpi["breached"] else "clear ✅"
        print(f"[GEOFENCE] {kpi['scenario']:<18} ticks={n_ticks:5d}  "
              f"min_d={kpi['min_distance_m']:7.1f} m  {mark}  "
              f"log={kpi['log_entries']}  wall={elapsed:.2f}s")

    return {
        "track":            track,
        "friendly_tracks":  friendly_track,
        "distance":         dist_hist,
        "breached":         breach_hist,
        "eta":              eta_hist,
        "time_s":           (np.arange(n_ticks) + 1) * TICK_DT_S,
        "geofence":         engine.geofence,
        "engine":           engine,
        "kpi":              kpi,
    }


# ---------------------------------------------------------------------------
# Save outputs
# ---------------------------------------------------------------------------

def save_results(result: dict, out_dir: pathlib.Path, scenario: str) -> dict[str, pathlib.Path]:
    """Save track array, event log CSV and metadata JSON. Returns {key: path}."""
    out_dir.mkdir(parents=True, exist_ok=True)
    stem = f"geofence_{scenario}_{result['kpi']['seed']}"

    track_path = out_dir / f"{stem}_track.npy"
    log_path   = out_dir / f"{stem}_log.csv"
    meta_path  = out_dir / f"{stem}_meta.json"

    np.save(track_path, result["track"])
    result["engine"].log.export_csv(str(log_path))
    meta_path.write_text(json.dumps(result["kpi"], indent=2))

    return {"track": track_path, "log": log_path, "meta": meta_path}


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def _speed_arg(value: str) -> float:
    speed = float(value)
    if not math.isfinite(speed) or speed <= 0:
        raise argparse.ArgumentTypeError(f"speed must be > 0, got {value}")
    return speed


def _parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Geofence breach telemetry simulation (headless)",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("--scenario", choices=list(SCENARIOS.keys()), default="normal",
                   help="Catalog scenario key")
    p.add_argument("--duration", type=float, default=30.0,
                   help="Simulated duration in seconds")
    p.add_argument("--speed",    type=_speed_arg, default=1.0,
                   help=f"Speed multiplier (UI offers {', '.join(f'{s:g}' for s in SPEED_OPTIONS)})")
    p.add_argument("--seed",     type=int,   default=42,  help="RNG seed")
    p.add_argument("--divert-at", type=float, default=None,
                   help="Issue 'Divert to Safe Waypoint' at this simulated time (s)")
    p.add_argument("--realtime", action="store_true",
                   help="Pace ticks against the wall clock instead of running flat out")
    p.add_argument("--out",      type=str,   default="sim",
                   help="Output directory for .npy / .csv / .json files")
    p.add_argument("--no-save",  action="store_true",
                   help="Skip saving output files")
    p.add_argument("--verbose",  action="store_true",
                   help="DEBUG-level process logging")
    return p.parse_args(argv)


def main(argv=None):
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    print(f"\n{'='*72}")
    print(f"  GEOFENCE SIM — scenario={args.scenario}  duration={args.duration:.0f}s  "
          f"speed=x{args.speed:g}  seed={args.seed}")
    print(f"{'='*72}")

    result = run_geofence_sim(
        scenario    = args.scenario,
        duration_s  = args.duration,
        speed       = args.speed,
        seed        = args.seed,
        divert_at_s = args.divert_at,
        realtime    = args.realtime,
        verbose     = True,
    )

    for entry in result["engine"].log.entries():
        print(f"  t={entry.sim_time_s:6.1f}s  {entry.log_type.value:<7}  {entry.message}")

    if not args.no_save:
        save_results(result, pathlib.Path(args.out), args.scenario)
        print(f"  Outputs → {args.out}/")
    print(f"{'='*72}\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
