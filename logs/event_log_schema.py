"""
logs/event_log_schema.py
Geofence Telemetry Simulator — Event Log Schema

Operator-facing event log. Append-only during a scenario run:
insertion order is chronological order, entries are never reordered
or pruned. Cleared only when a scenario is (re)loaded.

Entry types:
  INFO     — simulation control, approach notifications, diversion notes
  WARNING  — geofence breach, battery depletion, GPS anomaly
  ACTION   — operator mitigation commands

Export formats:
  CSV   — "Timestamp,Type,Message"; ISO-8601 UTC timestamp; message
          always double-quoted with embedded quotes doubled
  JSON  — full entry records
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List


class LogType(str, Enum):
    INFO    = "INFO"
    WARNING = "WARNING"
    ACTION  = "ACTION"


@dataclass(frozen=True)
class LogEntry:
    """Single event log entry."""
    timestamp_s:    float           # wall-clock epoch seconds at append time
    message:        str
    log_type:       LogType = LogType.INFO
    tick:           int     = 0     # SimClock.tick() at append time
    sim_time_s:     float   = 0.0   # SimClock.elapsed() at append time

    def iso_timestamp(self) -> str:
        dt = datetime.fromtimestamp(self.timestamp_s, tz=timezone.utc)
        return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def to_csv_row(self) -> str:
        quoted = '"' + self.message.replace('"', '""') + '"'
        return ",".join([self.iso_timestamp(), self.log_type.value, quoted])

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["log_type"] = self.log_type.value
        return d


CSV_HEADER = "Timestamp,Type,Message"


class EventLog:
    """
    In-memory append-only event log.

    Usage:
        log = EventLog()
        log.append(LogEntry(timestamp_s=time.time(), message="Simulation started."))
        log.export_csv("drone-sim-log.csv")
    """

    def __init__(self):
        self._entries: List[LogEntry] = []

    def append(self, entry: LogEntry) -> None:
        if not isinstance(entry, LogEntry):
            raise TypeError(f"EventLog accepts LogEntry, got {type(entry).__name__}")
        self._entries.append(entry)

    def clear(self) -> None:
        """Only called on scenario load."""
        self._entries.clear()

    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def by_type(self, log_type: LogType) -> List[LogEntry]:
        return [e for e in self._entries if e.log_type == log_type]

    def messages(self) -> List[str]:
        return [e.message for e in self._entries]

    def count(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def last(self) -> LogEntry:
        return self._entries[-1]

    def copy(self) -> "EventLog":
        """Detached log holding the same (immutable) entries."""
        clone = EventLog()
        clone._entries = list(self._entries)
        return clone

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_csv(self) -> str:
        rows = [e.to_csv_row() for e in self._entries]
        return CSV_HEADER + "\n" + "\n".join(rows)

    def export_csv(self, path: str) -> None:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(self.to_csv())

    def export_json(self, path: str) -> None:
        payload = {
            "entry_count":  self.count(),
            "entries":      [e.to_dict() for e in self._entries],
        }
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)

    def __repr__(self) -> str:
        return f"EventLog(entries={self.count()})"
