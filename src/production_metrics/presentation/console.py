from __future__ import annotations

import io
from typing import List, Sequence

from production_metrics.metrics.metric_models import (
    TEAM_ALL,
    FootageSummary,
    SpeedSummary,
    TimeseriesResult,
)
from production_metrics.shifts.shift_calendar import shift_name


def _format_table(rows: Sequence[Sequence[object]], headers: List[str]) -> str:
    output = io.StringIO()
    rows = list(rows)

    widths = [len(h) for h in headers]
    for row in rows:
        for i, v in enumerate(row):
            widths[i] = max(widths[i], len(str(v)))

    def fmt(r):
        return " ".join(str(r[i]).ljust(widths[i]) for i in range(len(headers)))

    print(fmt(headers), file=output)
    print(" ".join("-" * w for w in widths), file=output)
    for row in rows:
        print(fmt(row), file=output)

    return output.getvalue()


def _team_label(team: str) -> str:
    return "All teams" if team == TEAM_ALL else shift_name(int(team))


def _filters_block(summary: FootageSummary | SpeedSummary, out: io.StringIO) -> None:
    print(f"Period:  {summary.start_date.isoformat()} to {summary.end_date.isoformat()}", file=out)
    print(f"Team:    {_team_label(summary.team)}", file=out)
    print(f"Machine: {summary.machine_id or 'All machines'}", file=out)
    print(f"Mode:    {summary.mode}", file=out)


def render_footage_summary(summary: FootageSummary) -> str:
    out = io.StringIO()

    print("=" * 60, file=out)
    print("FOOTAGE SUMMARY", file=out)
    print("=" * 60, file=out)
    _filters_block(summary, out)
    print(file=out)
    print(f"Total footage:   {summary.total_m:,} m", file=out)
    print(f"Calendar days:   {summary.days_count}", file=out)
    print(f"Daily average:   {summary.daily_avg_m:,} m", file=out)

    return out.getvalue()


def render_speed_summary(summary: SpeedSummary) -> str:
    out = io.StringIO()

    print("=" * 60, file=out)
    print("LINE SPEED SUMMARY", file=out)
    print("=" * 60, file=out)
    _filters_block(summary, out)
    print(file=out)
    print(f"Average speed:   {summary.avg_speed_mpm:.2f} m/min", file=out)
    print(f"Maximum speed:   {summary.max_speed_mpm:.2f} m/min", file=out)

    return out.getvalue()


def render_timeseries(result: TimeseriesResult, title: str = "DAILY EVOLUTION") -> str:
    out = io.StringIO()

    print("=" * 60, file=out)
    print(title, file=out)
    print("=" * 60, file=out)
    print(
        _format_table(
            [(p.date, f"{p.value:,.2f}") for p in result.points],
            headers=["Workday", f"Value ({result.unit})"],
        ),
        file=out,
        end="",
    )

    return out.getvalue()


def render_summary(summary: FootageSummary | SpeedSummary) -> str:
    if isinstance(summary, FootageSummary):
        return render_footage_summary(summary)
    return render_speed_summary(summary)
