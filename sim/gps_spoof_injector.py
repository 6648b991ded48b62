"""
sim/gps_spoof_injector.py
Geofence Telemetry Simulator — GPS Spoof Injector

Scripted GPS anomalies for scenario demos. The only attack type in
use is a step position jump: when scenario elapsed time first enters
the half-open window (activation_ms, activation_ms + window_ms], the
reported primary position is overridden with a fixed coordinate for
that tick and a WARNING is raised.

Each profile is latched: it fires exactly once per scenario run, no
matter how many ticks fall inside the window. clear_latches() re-arms
all profiles on scenario load.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Set

from core.telemetry.telemetry_types import Point

logger = logging.getLogger("SCENARIO")


class AttackType(str, Enum):
    CLEAN          = "CLEAN"            # no attack — baseline
    POSITION_JUMP  = "POSITION_JUMP"    # reported position teleports


@dataclass(frozen=True)
class PositionJump:
    """
    activation_ms:  window opens strictly after this elapsed time.
    window_ms:      window closes (inclusive) at activation_ms + window_ms.
    target:         coordinate the reported position jumps to.
    """
    activation_ms:  int
    window_ms:      int
    target:         Point
    message:        str = "Anomalous GPS jump detected!"
    attack_type:    AttackType = AttackType.POSITION_JUMP
    label:          str = ""

    def in_window(self, elapsed_ms: int) -> bool:
        return self.activation_ms < elapsed_ms <= self.activation_ms + self.window_ms


class GPSSpoofInjector:
    """
    Usage:
        injector = GPSSpoofInjector()
        injector.add_attack(PositionJump(5000, 200, Point(350, 350)))

        for tick in run:
            jump = injector.check(clock.elapsed_ms())
            if jump:
                telemetry.position = jump.target
    """

    def __init__(self, attacks: Optional[List[PositionJump]] = None):
        self._attacks: List[PositionJump] = list(attacks or [])
        self._fired:   Set[int] = set()

    def add_attack(self, profile: PositionJump) -> None:
        self._attacks.append(profile)

    def clear_attacks(self) -> None:
        self._attacks.clear()
        self._fired.clear()

    def clear_latches(self) -> None:
        self._fired.clear()

    def check(self, elapsed_ms: int) -> Optional[PositionJump]:
        """Return the first un-fired profile whose window contains elapsed_ms."""
        for idx, attack in enumerate(self._attacks):
            if idx in self._fired or not attack.in_window(elapsed_ms):
                continue
            self._fired.add(idx)
            logger.info(f"SPOOF: {attack.label or attack.attack_type.value} fired "
                        f"at t={elapsed_ms} ms → ({attack.target.x:.0f}, {attack.target.y:.0f})")
            return attack
        return None

    def fired_count(self) -> int:
        return len(self._fired)

    def __repr__(self) -> str:
        return f"GPSSpoofInjector(attacks={len(self._attacks)}, fired={len(self._fired)})"
