"""
Metric Domain Models

Rules:
- No DB
- No formatting
- Frozen data containers, built once per request
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional


TEAM_ALL = "all"
TEAM_CHOICES = (TEAM_ALL, "1", "2", "3")

MODE_RAW = "raw"          # every non-null reading, zeros included
MODE_RUNNING = "running"  # only readings > 0
MODE_CHOICES = (MODE_RAW, MODE_RUNNING)


# ------------------------------------------------------------
# Caller filters (validated before reaching the engine)
# ------------------------------------------------------------
@dataclass(frozen=True)
class FilterSpec:
    start_date: date
    end_date: date
    team: str = TEAM_ALL
    machine_id: Optional[int] = None
    mode: str = MODE_RAW

    @property
    def team_id(self) -> Optional[int]:
        return None if self.team == TEAM_ALL else int(self.team)

    def __repr__(self):
        return (
            f"FilterSpec({self.start_date} to {self.end_date}, team={self.team}, "
            f"machine={self.machine_id}, mode={self.mode})"
        )


# ------------------------------------------------------------
# Time series
# ------------------------------------------------------------
@dataclass(frozen=True)
class TimeseriesPoint:
    date: str     # YYYY-MM-DD
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "value": self.value}


@dataclass(frozen=True)
class TimeseriesResult:
    unit: str
    points: List[TimeseriesPoint] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"unit": self.unit, "points": [p.to_dict() for p in self.points]}


# ------------------------------------------------------------
# Summaries (KPI cards)
# ------------------------------------------------------------
@dataclass(frozen=True)
class FootageSummary:
    start_date: date
    end_date: date
    team: str
    machine_id: Optional[int]
    mode: str
    total_m: int
    days_count: int
    daily_avg_m: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "team": self.team,
            "machineId": self.machine_id,
            "mode": self.mode,
            "metrageTotalM": self.total_m,
            "daysCount": self.days_count,
            "metrageDailyAvgM": self.daily_avg_m,
        }


@dataclass(frozen=True)
class SpeedSummary:
    start_date: date
    end_date: date
    team: str
    machine_id: Optional[int]
    mode: str
    avg_speed_mpm: float
    max_speed_mpm: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "team": self.team,
            "machineId": self.machine_id,
            "mode": self.mode,
            "avgSpeedMpm": self.avg_speed_mpm,
            "maxSpeedMpm": self.max_speed_mpm,
        }
