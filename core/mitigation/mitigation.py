"""
core/mitigation/mitigation.py
Geofence Telemetry Simulator — Mitigation Controller

Interprets operator mitigation actions. Every action is logged as an
ACTION entry. Only diversion commands change state: the primary
drone's heading is set to point directly away from the geofence centre.
Position, speed and battery are never touched.

No real-world effect: actions mutate simulated in-memory state only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from core.kinematics.kinematics import heading_away_from
from core.telemetry.telemetry_types import DroneTelemetry, Geofence
from logs.event_log_schema import LogType

logger = logging.getLogger("MITIGATION")

MITIGATION_ACTIONS: Tuple[str, ...] = (
    "Notify Operator",
    "Trigger Audio Warning",
    "Broadcast Warning Message",
    "Divert to Safe Waypoint",
)

DIVERT_PREFIX = "divert"
CENTER_FALLBACK_HEADING = 0.0   # North


def is_divert_command(action: str) -> bool:
    return action.strip().lower().startswith(DIVERT_PREFIX)


@dataclass
class MitigationResult:
    heading_deg:    Optional[float]             # None = heading unchanged
    notifications:  List[Tuple[LogType, str]] = field(default_factory=list)


class MitigationController:

    def apply(self, action: str, telemetry: DroneTelemetry, geofence: Geofence) -> MitigationResult:
        notes: List[Tuple[LogType, str]] = [
            (LogType.ACTION, f"Mitigation action taken: {action}"),
        ]
        if not is_divert_command(action):
            if action not in MITIGATION_ACTIONS:
                logger.debug(f"MITIGATION: unrecognised action {action!r} — logged only")
            return MitigationResult(None, notes)

        heading = heading_away_from(telemetry.position, geofence.center)
        if heading is None:
            notes.append((LogType.INFO, "Drone at geofence center, diverting North."))
            return MitigationResult(CENTER_FALLBACK_HEADING, notes)

        notes.append((
            LogType.INFO,
            f"Diverting drone {telemetry.drone_id} to new heading {heading:.0f}° "
            f"to exit restricted zone.",
        ))
        logger.info(f"MITIGATION: {telemetry.drone_id} heading "
                    f"{telemetry.heading_deg:.1f}° → {heading:.1f}°")
        return MitigationResult(heading, notes)
