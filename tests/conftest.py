import sqlite3

import pytest


SAMPLES_DDL = """
    CREATE TABLE production_samples (
        ts TEXT NOT NULL,
        machine_id INTEGER NOT NULL,
        metrage_inc_m REAL,
        speed_mpm REAL
    )
"""


@pytest.fixture
def sample_db():
    """In-memory stand-in for the production_samples table."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute(SAMPLES_DDL)
    yield conn
    conn.close()


@pytest.fixture
def insert_samples(sample_db):
    def insert(rows):
        # rows: (ts 'YYYY-MM-DD HH:MM:SS', machine_id, metrage_inc_m, speed_mpm)
        sample_db.executemany(
            "INSERT INTO production_samples (ts, machine_id, metrage_inc_m, speed_mpm) VALUES (?, ?, ?, ?)",
            rows,
        )
        sample_db.commit()

    return insert


@pytest.fixture
def sqlite_executor(sample_db):
    """execute_query contract over the sqlite fixture; records every call."""
    calls = []

    def execute(sql, params):
        calls.append((sql, list(params)))
        return [dict(r) for r in sample_db.execute(sql, list(params)).fetchall()]

    execute.calls = calls
    return execute


class FakeExecutor:
    """Returns canned rows (or raises) and remembers what it was asked."""

    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error
        self.calls = []

    def __call__(self, sql, params):
        self.calls.append((sql, list(params)))
        if self.error is not None:
            raise self.error
        return self.rows


@pytest.fixture
def fake_executor():
    return FakeExecutor
