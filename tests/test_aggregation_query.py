"""Tests for aggregation query construction and its agreement with the shift calendar."""

import sqlite3
from datetime import date, datetime, timedelta

import pytest

from production_metrics.metrics.metric_models import FilterSpec
from production_metrics.query.aggregation_query import (
    AggregationQueryBuilder,
    shift_id_sql,
    shift_workday_sql,
)
from production_metrics.shifts.shift_calendar import shift_info
from production_metrics.utils.config import config


def _spec(**overrides):
    values = dict(start_date=date(2026, 1, 1), end_date=date(2026, 1, 2))
    values.update(overrides)
    return FilterSpec(**values)


@pytest.fixture
def builder():
    return AggregationQueryBuilder("speed_mpm", table="production_samples", dialect="mysql")


class TestWhereClause:
    def test_date_range_only(self, builder):
        where, params = builder.build_where_clause(_spec())
        assert where == "t.shift_workday BETWEEN ? AND ?"
        assert params == ["2026-01-01", "2026-01-02"]

    def test_team_filter_parsed_to_int(self, builder):
        where, params = builder.build_where_clause(_spec(team="3"))
        assert where == "t.shift_workday BETWEEN ? AND ? AND t.shift_id = ?"
        assert params == ["2026-01-01", "2026-01-02", 3]

    def test_machine_filter(self, builder):
        where, params = builder.build_where_clause(_spec(machine_id=7))
        assert where.endswith("t.machine_id = ?")
        assert params == ["2026-01-01", "2026-01-02", 7]

    def test_parameter_order_date_team_machine(self, builder):
        _, params = builder.build_where_clause(_spec(team="2", machine_id=4))
        assert params == ["2026-01-01", "2026-01-02", 2, 4]

    def test_machine_zero_or_none_is_ignored(self, builder):
        for machine in (None, 0):
            where, params = builder.build_where_clause(_spec(machine_id=machine))
            assert "machine_id" not in where
            assert params == ["2026-01-01", "2026-01-02"]


class TestSummaryQuery:
    def test_running_mode_filters_rows_before_aggregation(self, builder):
        query = builder.build_summary_query(
            _spec(team="3", mode="running"),
            [("avg_speed", "AVG({col})"), ("max_speed", "MAX({col})")],
        )

        assert query.params == ("2026-01-01", "2026-01-02", 3)
        assert "ps.speed_mpm > 0" in query.sql
        assert "t.shift_id = ?" in query.sql
        assert "AVG(t.speed_mpm) AS avg_speed" in query.sql
        assert "MAX(t.speed_mpm) AS max_speed" in query.sql

        # Mode predicate lives in the inner row selection, not the outer WHERE
        inner, outer = query.sql.rsplit(") t", 1)
        assert "> 0" in inner
        assert "> 0" not in outer

    def test_raw_mode_keeps_zero_readings(self, builder):
        query = builder.build_summary_query(_spec(mode="raw"), [("avg_speed", "AVG({col})")])
        assert "ps.speed_mpm IS NOT NULL" in query.sql
        assert "> 0" not in query.sql

    def test_caller_values_are_never_in_sql_text(self, builder):
        query = builder.build_summary_query(
            _spec(start_date=date(2031, 7, 19), end_date=date(2031, 7, 23), team="2", machine_id=98765),
            [("total", "SUM({col})")],
        )
        assert "2031" not in query.sql
        assert "98765" not in query.sql
        assert query.params == ("2031-07-19", "2031-07-23", 2, 98765)

    def test_shift_expressions_embedded(self, builder):
        query = builder.build_summary_query(_spec(), [("total", "SUM({col})")])
        assert "DATE(ps.ts - INTERVAL 360 MINUTE) AS shift_workday" in query.sql
        assert "THEN 1" in query.sql and "THEN 2" in query.sql and "ELSE 3" in query.sql
        assert "FROM production_samples ps" in query.sql


class TestTimeseriesQuery:
    def test_grouped_and_ordered_by_workday(self, builder):
        query = builder.build_timeseries_query(_spec(machine_id=2), "AVG({col})")
        assert "t.shift_workday AS date, AVG(t.speed_mpm) AS value" in query.sql
        assert "GROUP BY t.shift_workday ORDER BY t.shift_workday ASC" in query.sql
        assert query.params == ("2026-01-01", "2026-01-02", 2)


def test_unknown_dialect_rejected():
    with pytest.raises(ValueError):
        AggregationQueryBuilder("speed_mpm", dialect="oracle")
    with pytest.raises(ValueError):
        shift_workday_sql("ts", dialect="oracle")


def test_unknown_configured_dialect_is_not_silently_replaced(monkeypatch):
    monkeypatch.setattr(config, "SQL_DIALECT", "postgres")
    with pytest.raises(ValueError):
        AggregationQueryBuilder("speed_mpm")


def test_running_filter_can_be_disabled():
    builder = AggregationQueryBuilder("metrage_inc_m", dialect="mysql", running_filter=False)
    query = builder.build_summary_query(_spec(mode="running"), [("metrage_total_m", "SUM({col})")])
    assert "> 0" not in query.sql


def test_mysql_shift_case_thresholds():
    sql = shift_id_sql("ps.ts")
    assert "WHEN TIME(ps.ts) >= '06:00:00' AND TIME(ps.ts) < '14:00:00' THEN 1" in sql
    assert "WHEN TIME(ps.ts) >= '14:00:00' AND TIME(ps.ts) < '22:00:00' THEN 2" in sql
    assert sql.strip().endswith("END")


def test_sql_expressions_agree_with_shift_calendar():
    """
    Evaluate the rendered CASE and workday expressions inside a real SQL
    engine and compare against the in-process rule, minute by minute
    across two days plus sub-minute boundary instants.
    """
    conn = sqlite3.connect(":memory:")
    conn.execute("CREATE TABLE probe (ts TEXT)")

    start = datetime(2026, 1, 10, 0, 0)
    stamps = [start + timedelta(minutes=i) for i in range(2 * 24 * 60)]
    for hh, mm in [(5, 59), (13, 59), (21, 59), (23, 59)]:
        stamps.append(datetime(2026, 1, 11, hh, mm, 59, 999000))
    stamps.append(datetime(2026, 12, 31, 23, 30))
    stamps.append(datetime(2027, 1, 1, 0, 0))

    conn.executemany(
        "INSERT INTO probe (ts) VALUES (?)",
        [(ts.isoformat(sep=" ", timespec="milliseconds" if ts.microsecond else "seconds"),) for ts in stamps],
    )

    rows = conn.execute(
        f"SELECT ts, {shift_id_sql('ts')} AS shift_id, "
        f"{shift_workday_sql('ts', dialect='sqlite')} AS shift_workday FROM probe"
    ).fetchall()
    conn.close()

    assert len(rows) == len(stamps)
    for ts_text, sql_shift, sql_workday in rows:
        info = shift_info(datetime.fromisoformat(ts_text))
        assert (sql_shift, sql_workday) == (info.shift_id, info.shift_workday.isoformat()), ts_text
