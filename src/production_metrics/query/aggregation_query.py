"""
Aggregation query construction.

Every query reads the raw sample table through one row-selection
subquery that attaches shift_id and shift_workday per row:

    SELECT <metric>, machine_id,
           CASE ... END AS shift_id,          -- from SHIFT_TABLE
           DATE(ts - 6h) AS shift_workday      -- WORKDAY_OFFSET_MINUTES
    FROM <samples>
    WHERE <metric> IS NOT NULL [AND <metric> > 0]

The outer WHERE filters on those derived columns. Predicate and bound
parameter order is fixed:

    1. t.shift_workday BETWEEN ? AND ?     (start, end)
    2. t.shift_id = ?                      (team, only when not 'all')
    3. t.machine_id = ?                    (machine, only when set)

Caller values are always bound, never written into the SQL text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from production_metrics.metrics.metric_models import MODE_RUNNING, FilterSpec
from production_metrics.shifts.shift_calendar import (
    FALLBACK_SHIFT_ID,
    SHIFT_TABLE,
    WORKDAY_OFFSET_MINUTES,
    format_minute,
)
from production_metrics.utils.config import SUPPORTED_DIALECTS, config

# Date arithmetic is the only dialect-specific piece
_WORKDAY_TEMPLATES = {
    "mysql": "DATE({ts} - INTERVAL {minutes} MINUTE)",
    "sqlite": "DATE({ts}, '-{minutes} minutes')",
}

SUBQUERY_ALIAS = "t"


@dataclass(frozen=True)
class AggregationQuery:
    sql: str
    params: Tuple[object, ...]


def shift_id_sql(ts_column: str) -> str:
    """CASE expression equivalent to shift_calendar.shift_id()."""
    lines = ["CASE"]
    for window in SHIFT_TABLE:
        if window.crosses_midnight:
            continue
        lines.append(
            f"    WHEN TIME({ts_column}) >= '{format_minute(window.start_minute)}:00' "
            f"AND TIME({ts_column}) < '{format_minute(window.end_minute)}:00' "
            f"THEN {window.shift_id}"
        )
    lines.append(f"    ELSE {FALLBACK_SHIFT_ID}")
    lines.append("END")
    return "\n".join(lines)


def shift_workday_sql(ts_column: str, dialect: str = "mysql") -> str:
    """Date expression equivalent to shift_calendar.shift_workday()."""
    if dialect not in _WORKDAY_TEMPLATES:
        raise ValueError(f"Unsupported SQL dialect {dialect!r}. Use one of {SUPPORTED_DIALECTS}.")
    return _WORKDAY_TEMPLATES[dialect].format(ts=ts_column, minutes=WORKDAY_OFFSET_MINUTES)


class AggregationQueryBuilder:
    """
    Builds (sql, params) for one metric column of the sample table.

    Stateless apart from the table name and dialect. running_filter=False
    makes the running mode a no-op for metrics where it has no meaning.
    """

    def __init__(
        self,
        metric_column: str,
        table: str | None = None,
        dialect: str | None = None,
        running_filter: bool = True,
    ):
        self.metric_column = metric_column
        self.running_filter = running_filter
        self.table = table or config.SAMPLES_TABLE
        self.dialect = dialect or config.SQL_DIALECT
        if self.dialect not in _WORKDAY_TEMPLATES:
            raise ValueError(f"Unsupported SQL dialect {self.dialect!r}. Use one of {SUPPORTED_DIALECTS}.")

    # ============================================================
    # ROW SELECTION (before aggregation)
    # ============================================================

    def _row_conditions(self, spec: FilterSpec) -> List[str]:
        conditions = [f"ps.{self.metric_column} IS NOT NULL"]

        # Running mode drops idle readings before AVG/MAX see them
        if self.running_filter and spec.mode == MODE_RUNNING:
            conditions.append(f"ps.{self.metric_column} > 0")

        return conditions

    def _subquery(self, spec: FilterSpec) -> str:
        case_sql = shift_id_sql("ps.ts").replace("\n", "\n" + " " * 16)
        workday_sql = shift_workday_sql("ps.ts", self.dialect)
        return f"""
            SELECT
                ps.{self.metric_column},
                ps.machine_id,
                {case_sql} AS shift_id,
                {workday_sql} AS shift_workday
            FROM {self.table} ps
            WHERE {" AND ".join(self._row_conditions(spec))}
        """

    # ============================================================
    # OUTER FILTERS
    # ============================================================

    def build_where_clause(self, spec: FilterSpec) -> Tuple[str, List[object]]:
        """
        Outer filter predicates plus their bound values, in contract order.
        """
        a = SUBQUERY_ALIAS
        conditions = [f"{a}.shift_workday BETWEEN ? AND ?"]
        params: List[object] = [spec.start_date.isoformat(), spec.end_date.isoformat()]

        if spec.team_id is not None:
            conditions.append(f"{a}.shift_id = ?")
            params.append(spec.team_id)

        if spec.machine_id:
            conditions.append(f"{a}.machine_id = ?")
            params.append(int(spec.machine_id))

        return " AND ".join(conditions), params

    def _build(self, spec: FilterSpec, select: str, tail: str = "") -> AggregationQuery:
        where_clause, params = self.build_where_clause(spec)
        sql = f"""
        SELECT {select}
        FROM ({self._subquery(spec)}) {SUBQUERY_ALIAS}
        WHERE {where_clause}
        {tail}
        """
        return AggregationQuery(sql=sql, params=tuple(params))

    # ============================================================
    # SHAPES
    # ============================================================

    def build_summary_query(
        self,
        spec: FilterSpec,
        aggregates: Sequence[Tuple[str, str]],
    ) -> AggregationQuery:
        """
        Single-row query over the whole filtered set.

        aggregates: (alias, SQL template) pairs where '{col}' stands for the
        metric column, e.g. ("avg_speed", "AVG({col})").
        """
        select = ", ".join(
            f"{template.format(col=f'{SUBQUERY_ALIAS}.{self.metric_column}')} AS {alias}"
            for alias, template in aggregates
        )
        return self._build(spec, select)

    def build_timeseries_query(self, spec: FilterSpec, aggregate: str) -> AggregationQuery:
        """
        One row per shift_workday (columns: date, value), ascending.
        """
        a = SUBQUERY_ALIAS
        value_sql = aggregate.format(col=f"{a}.{self.metric_column}")
        return self._build(
            spec,
            f"{a}.shift_workday AS date, {value_sql} AS value",
            f"GROUP BY {a}.shift_workday ORDER BY {a}.shift_workday ASC",
        )
