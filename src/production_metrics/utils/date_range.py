import logging
from datetime import date, datetime
from typing import List, Mapping

import pandas as pd

from production_metrics.metrics.metric_models import TimeseriesPoint

logger = logging.getLogger(__name__)

DATE_FMT = "%Y-%m-%d"


def _as_date(value: str | date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value).strip()[:10], DATE_FMT).date()


def normalize_date_key(value) -> str:
    """
    Normalize a date-ish value into 'YYYY-MM-DD'.

    Drivers return shift_workday as a native date, a datetime, a pandas
    Timestamp or plain text depending on the backend.
    """
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return value.strftime(DATE_FMT)
    return pd.Timestamp(str(value).strip()).strftime(DATE_FMT)


def calculate_days_count(start: str | date, end: str | date) -> int:
    """
    Calendar days between start and end, both inclusive.
    """
    return (_as_date(end) - _as_date(start)).days + 1


def generate_date_range(start: str | date, end: str | date) -> List[str]:
    """
    Every calendar day from start to end (inclusive), ascending, as 'YYYY-MM-DD'.
    """
    start_d = _as_date(start)
    end_d = _as_date(end)
    if start_d > end_d:
        raise ValueError(f"start ({start_d}) must be on or before end ({end_d})")

    return [d.strftime(DATE_FMT) for d in pd.date_range(start_d, end_d, freq="D")]


def fill_missing_days(
    sparse: Mapping[str | date, float],
    start: str | date,
    end: str | date,
) -> List[TimeseriesPoint]:
    """
    Dense per-day points over [start, end]; days absent from `sparse` get 0.

    Output order is always the generated range order, regardless of the
    key order of `sparse`. Keys may be dates or date text; keys outside
    the range are dropped.
    """
    days = generate_date_range(start, end)
    by_day = {normalize_date_key(k): v for k, v in sparse.items()}
    series = pd.Series(by_day, dtype="float64").reindex(days, fill_value=0.0)
    series = series.fillna(0.0)

    missing = len(days) - sum(1 for d in days if d in by_day)
    if missing:
        logger.debug("Filled %s of %s days with 0 (%s to %s)", missing, len(days), days[0], days[-1])

    return [TimeseriesPoint(date=d, value=float(v)) for d, v in series.items()]
