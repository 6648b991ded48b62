"""
dashboard/geofence_dashboard.py
Geofence Telemetry Simulator — Run Dashboard

Generates a 2-panel static figure from a run_geofence_sim() result:

  Panel 1 (left) : Map — geofence, approach band, primary + friendly tracks
  Panel 2 (right): Distance to geofence centre vs time, with radius and
                   approach-band lines, breach shading and WARNING markers

Read-only consumer of the recorded run; never touches engine state.

Run:
    PYTHONPATH=. python dashboard/geofence_dashboard.py --scenario spoofing --duration 20
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.patches as mpatches
import matplotlib.pyplot as plt
import numpy as np

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.constants import APPROACH_BAND_FACTOR, MAP_HEIGHT, MAP_WIDTH
from logs.event_log_schema import LogType
from scenarios.geofence.geofence_scenarios import SCENARIOS
from sim.run_geofence_sim import run_geofence_sim

# ---------------------------------------------------------------------------
# Colour palette
# ---------------------------------------------------------------------------

CLR_PRIMARY  = "#E85D04"   # orange — threat drone
CLR_FRIENDLY = "#0077B6"   # blue — friendly pool
CLR_ZONE     = "#D62828"   # red — restricted zone
CLR_BAND     = "#F4A416"   # amber — approach band
CLR_WARN     = "#FFBE0B"   # WARNING markers
CLR_BG       = "#0D1117"


def build_dashboard(result: dict, output_dir: str = ".", show: bool = False) -> str:
    """Build the dashboard PNG and return its path."""
    track    = result["track"]
    friendly = result["friendly_tracks"]
    dist     = result["distance"]
    breached = result["breached"]
    time_s   = result["time_s"]
    fence    = result["geofence"]
    engine   = result["engine"]
    kpi      = result["kpi"]

    fig, (ax_map, ax_dist) = plt.subplots(
        1, 2, figsize=(16, 7), dpi=120, facecolor=CLR_BG,
        gridspec_kw={"width_ratios": [1, 1.4]},
    )
    fig.suptitle(
        f"Geofence Simulator  ·  {kpi['scenario']}  ·  seed {kpi['seed']}  ·  x{kpi['speed']:g}",
        fontsize=14, color="white", fontweight="bold",
    )
    for ax in (ax_map, ax_dist):
        ax.set_facecolor("#161B22")
        ax.tick_params(colors="#C9D1D9")
        for spine in ax.spines.values():
            spine.set_color("#30363D")

    # ------------------------------------------------------------------
    # Panel 1 — Map (y grows downward, North is up)
    # ------------------------------------------------------------------
    centre = fence.center.as_tuple()
    ax_map.add_patch(mpatches.Circle(centre, fence.radius_m, color=CLR_ZONE, alpha=0.25))
    ax_map.add_patch(mpatches.Circle(
        centre, fence.radius_m * APPROACH_BAND_FACTOR,
        fill=False, linestyle="--", edgecolor=CLR_BAND, linewidth=1.2,
    ))
    for i in range(friendly.shape[0]):
        ax_map.plot(friendly[i, :, 0], friendly[i, :, 1], color=CLR_FRIENDLY,
                    linewidth=1.0, alpha=0.7, label="Friendly" if i == 0 else None)
    ax_map.plot(track[:, 0], track[:, 1], color=CLR_PRIMARY, linewidth=1.8,
                label=engine.telemetry.drone_id)
    ax_map.scatter(*track[0], color=CLR_PRIMARY, marker="o", zorder=5)
    ax_map.scatter(*track[-1], color=CLR_PRIMARY, marker="X", s=60, zorder=5)
    ax_map.set_xlim(0, MAP_WIDTH)
    ax_map.set_ylim(MAP_HEIGHT, 0)
    ax_map.set_aspect("equal")
    ax_map.set_xlabel("x [m]", color="#C9D1D9")
    ax_map.set_ylabel("y [m]", color="#C9D1D9")
    ax_map.legend(loc="upper right", fontsize=8)

    # ------------------------------------------------------------------
    # Panel 2 — Distance timeline
    # ------------------------------------------------------------------
    ax_dist.plot(time_s, dist, color=CLR_PRIMARY, linewidth=1.6, label="distance")
    ax_dist.axhline(fence.radius_m, color=CLR_ZONE, linestyle="-", linewidth=1.0, label="radius")
    ax_dist.axhline(fence.radius_m * APPROACH_BAND_FACTOR, color=CLR_BAND,
                    linestyle="--", linewidth=1.0, label="approach band")
    if breached.any():
        ax_dist.fill_between(time_s, 0, dist.max(), where=breached,
                             color=CLR_ZONE, alpha=0.15, step="mid")
    for entry in engine.log.by_type(LogType.WARNING):
        ax_dist.axvline(entry.sim_time_s, color=CLR_WARN, linewidth=0.8, alpha=0.8)
        ax_dist.annotate(entry.message[:28], (entry.sim_time_s, float(np.nanmax(dist))),
                         rotation=90, fontsize=7, color=CLR_WARN, va="top", ha="right")
    ax_dist.set_xlabel("simulated time [s]", color="#C9D1D9")
    ax_dist.set_ylabel("distance to centre [m]", color="#C9D1D9")
    ax_dist.legend(loc="upper right", fontsize=8)

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    png_path = out / f"geofence_dashboard_{kpi['seed']}.png"
    fig.savefig(png_path, facecolor=fig.get_facecolor())
    if show:
        plt.show()
    plt.close(fig)
    return str(png_path)


def main(argv=None):
    p = argparse.ArgumentParser(description="Geofence run dashboard")
    p.add_argument("--scenario", choices=list(SCENARIOS.keys()), default="spoofing")
    p.add_argument("--duration", type=float, default=20.0)
    p.add_argument("--seed",     type=int,   default=42)
    p.add_argument("--out",      type=str,   default="dashboard")
    args = p.parse_args(argv)

    result = run_geofence_sim(args.scenario, args.duration, seed=args.seed, verbose=True)
    path = build_dashboard(result, args.out)
    print(f"  Dashboard → {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
