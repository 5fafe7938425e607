"""
Metric Aggregation Use Cases

Purpose:
- Footage (metrage) and speed (vitesse) KPIs over a shift-workday range
- Summary cards and dense daily time series for charting

Rules:
- ONE aggregate query per call, no caching, no retry
- Any executor or row-shape failure aborts the whole call and is
  re-raised as AggregationError (no SQL or driver detail in the message)
- Time series are always dense: one point per calendar day in range
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Sequence

import pandas as pd

from production_metrics.data.samples import execute_query
from production_metrics.metrics.metric_models import (
    FilterSpec,
    FootageSummary,
    SpeedSummary,
    TimeseriesResult,
)
from production_metrics.query.aggregation_query import (
    AggregationQuery,
    AggregationQueryBuilder,
)
from production_metrics.utils.date_range import (
    calculate_days_count,
    fill_missing_days,
    normalize_date_key,
)
from production_metrics.utils.logger import get_logger

logger = get_logger(__name__)

Executor = Callable[[str, Sequence[Any]], List[Mapping[str, Any]]]


class AggregationError(RuntimeError):
    """An aggregate query could not be executed or its rows could not be read."""


def _as_float(value) -> float:
    """NULL / NaN -> 0.0; numeric text and Decimal -> float."""
    if value is None:
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    result = float(value)
    return 0.0 if pd.isna(result) else result


def round_half_up(value: float) -> int:
    """Display rounding to the nearest unit (2.5 -> 3, not banker's 2)."""
    return int(math.floor(value + 0.5))


class MetricAggregator(ABC):
    """
    Shared orchestration: build query -> execute -> shape rows.

    Subclasses pick the metric column, unit and aggregates.
    """

    name = "metric"
    metric_column = ""
    unit = ""
    timeseries_aggregate = "SUM({col})"
    # Whether mode=running drops readings <= 0 before aggregation
    running_filter = True

    def __init__(
        self,
        executor: Executor | None = None,
        table: str | None = None,
        dialect: str | None = None,
    ):
        self.executor = executor or execute_query
        self.builder = AggregationQueryBuilder(
            self.metric_column,
            table=table,
            dialect=dialect,
            running_filter=self.running_filter,
        )

    # ============================================================
    # EXECUTION
    # ============================================================

    def _run(self, operation: str, spec: FilterSpec, query: AggregationQuery, shape: Callable):
        logger.info("%s %s | %r", self.name, operation, spec)
        logger.debug("SQL: %s | params=%s", query.sql, query.params)
        try:
            rows = self.executor(query.sql, list(query.params))
            return shape(rows)
        except Exception as exc:
            logger.exception("%s %s failed | %r", self.name, operation, spec)
            raise AggregationError(f"{self.name} {operation} aggregation failed") from exc

    @staticmethod
    def _first_row(rows: Sequence[Mapping[str, Any]]) -> Mapping[str, Any]:
        # An aggregate without GROUP BY always yields one row; tolerate none
        return rows[0] if rows else {}

    def _value_by_day(self, rows: Sequence[Mapping[str, Any]]) -> Dict[str, float]:
        return {normalize_date_key(r["date"]): self._point_value(r["value"]) for r in rows}

    def _point_value(self, raw) -> float:
        return _as_float(raw)

    # ============================================================
    # PUBLIC OPERATIONS
    # ============================================================

    def get_timeseries(self, spec: FilterSpec) -> TimeseriesResult:
        query = self.builder.build_timeseries_query(spec, self.timeseries_aggregate)

        def shape(rows):
            points = fill_missing_days(self._value_by_day(rows), spec.start_date, spec.end_date)
            return TimeseriesResult(unit=self.unit, points=points)

        return self._run("timeseries", spec, query, shape)

    @abstractmethod
    def get_summary(self, spec: FilterSpec):
        """Single-row KPI result for the whole filtered range."""


class FootageAggregator(MetricAggregator):
    """Linear footage produced (metres)."""

    name = "footage"
    metric_column = "metrage_inc_m"
    unit = "m"
    timeseries_aggregate = "SUM({col})"
    # Increments are summed as recorded; mode is echoed only
    running_filter = False

    def _point_value(self, raw) -> float:
        return round_half_up(_as_float(raw))

    def get_summary(self, spec: FilterSpec) -> FootageSummary:
        query = self.builder.build_summary_query(
            spec, [("metrage_total_m", "COALESCE(SUM({col}), 0)")]
        )
        days_count = calculate_days_count(spec.start_date, spec.end_date)

        def shape(rows):
            total = _as_float(self._first_row(rows).get("metrage_total_m"))
            daily_avg = round_half_up(total / days_count) if days_count > 0 else 0
            return FootageSummary(
                start_date=spec.start_date,
                end_date=spec.end_date,
                team=spec.team,
                machine_id=spec.machine_id or None,
                mode=spec.mode,
                total_m=round_half_up(total),
                days_count=days_count,
                daily_avg_m=daily_avg,
            )

        return self._run("summary", spec, query, shape)


class SpeedAggregator(MetricAggregator):
    """Line speed (m/min); mode decides whether idle readings count."""

    name = "speed"
    metric_column = "speed_mpm"
    unit = "m/min"
    timeseries_aggregate = "AVG({col})"

    def get_summary(self, spec: FilterSpec) -> SpeedSummary:
        query = self.builder.build_summary_query(
            spec, [("avg_speed", "AVG({col})"), ("max_speed", "MAX({col})")]
        )

        def shape(rows):
            row = self._first_row(rows)
            return SpeedSummary(
                start_date=spec.start_date,
                end_date=spec.end_date,
                team=spec.team,
                machine_id=spec.machine_id or None,
                mode=spec.mode,
                avg_speed_mpm=_as_float(row.get("avg_speed")),
                max_speed_mpm=_as_float(row.get("max_speed")),
            )

        return self._run("summary", spec, query, shape)


AGGREGATORS = {
    FootageAggregator.name: FootageAggregator,
    SpeedAggregator.name: SpeedAggregator,
}
