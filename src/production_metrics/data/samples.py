# src/production_metrics/data/samples.py
"""
Sample-table query executor.

One process-wide pooled engine; every call borrows a connection,
runs one read-only statement and returns plain dict rows.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List, Sequence

import pandas as pd
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from production_metrics.utils.config import config
from production_metrics.utils.logger import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Lazily built, pooled engine shared by all requests."""
    logger.info("Creating database engine | %r", config)
    return create_engine(config.SQLALCHEMY_DATABASE_URI, pool_pre_ping=True)


def execute_query(sql: str, params: Sequence[Any]) -> List[Dict[str, Any]]:
    """
    Run a qmark-parameterized statement and return rows as
    {column alias: value} dicts, in result order.
    """
    with get_engine().connect() as conn:
        df = pd.read_sql(sql, conn, params=tuple(params))

    logger.debug("Fetched %s rows", len(df))
    return df.to_dict(orient="records")
