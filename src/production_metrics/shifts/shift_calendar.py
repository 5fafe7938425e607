"""
Shift Calendar

Three fixed 8-hour shifts per day, local wall clock:

    shift  start   end     minutes since midnight
    1      06:00   14:00   360  <= m < 840
    2      14:00   22:00   840  <= m < 1320
    3      22:00   06:00   everything else (crosses midnight)

Shift workday rule:
- workday = DATE(ts - 6 hours)
- 00:00-05:59 belongs to the PREVIOUS calendar day's workday
- a new workday begins exactly at the shift 1 start

SHIFT_TABLE is the single source for these thresholds. The SQL
expressions in production_metrics.query.aggregation_query are rendered
from it, so the in-process rule and the database rule cannot drift.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Tuple


@dataclass(frozen=True)
class ShiftWindow:
    shift_id: int
    start_minute: int
    end_minute: int
    label: str

    @property
    def crosses_midnight(self) -> bool:
        return self.end_minute <= self.start_minute

    def contains(self, minute_of_day: int) -> bool:
        if self.crosses_midnight:
            return minute_of_day >= self.start_minute or minute_of_day < self.end_minute
        return self.start_minute <= minute_of_day < self.end_minute


SHIFT_TABLE: Tuple[ShiftWindow, ...] = (
    ShiftWindow(1, 6 * 60, 14 * 60, "Team 1"),
    ShiftWindow(2, 14 * 60, 22 * 60, "Team 2"),
    ShiftWindow(3, 22 * 60, 6 * 60, "Team 3"),
)

# The workday rolls over at the start of shift 1
WORKDAY_OFFSET_MINUTES = SHIFT_TABLE[0].start_minute

# Shift assigned when no bounded window matches
FALLBACK_SHIFT_ID = next(w.shift_id for w in SHIFT_TABLE if w.crosses_midnight)


@dataclass(frozen=True)
class ShiftInfo:
    shift_id: int
    shift_workday: date


def format_minute(minute_of_day: int) -> str:
    """360 -> '06:00'."""
    return f"{minute_of_day // 60:02d}:{minute_of_day % 60:02d}"


def _window(shift_id: int) -> ShiftWindow:
    for window in SHIFT_TABLE:
        if window.shift_id == shift_id:
            return window
    raise ValueError(f"Unknown shift_id {shift_id!r}. Use 1-3.")


def minute_of_day(ts: datetime) -> int:
    # Seconds and sub-second precision are truncated before classification
    return ts.hour * 60 + ts.minute


def shift_id(ts: datetime) -> int:
    m = minute_of_day(ts)
    for window in SHIFT_TABLE:
        if not window.crosses_midnight and window.contains(m):
            return window.shift_id
    return FALLBACK_SHIFT_ID


def shift_workday(ts: datetime) -> date:
    """Logical workday of a timestamp; early-morning hours roll back a day."""
    return (ts - timedelta(minutes=WORKDAY_OFFSET_MINUTES)).date()


def shift_info(ts: datetime) -> ShiftInfo:
    return ShiftInfo(shift_id=shift_id(ts), shift_workday=shift_workday(ts))


def shift_name(shift_id: int) -> str:
    """'Team 3 (22:00–06:00)'"""
    window = _window(shift_id)
    return (
        f"{window.label} "
        f"({format_minute(window.start_minute)}–{format_minute(window.end_minute)})"
    )


def shift_time_range(shift_id: int) -> Tuple[str, str, bool]:
    """
    Start hour, end hour and whether the shift crosses midnight.

    Shift 3 runs 22:00 -> 06:00 next morning.
    """
    window = _window(shift_id)
    return (
        format_minute(window.start_minute),
        format_minute(window.end_minute),
        window.crosses_midnight,
    )
