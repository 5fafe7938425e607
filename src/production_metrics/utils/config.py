# src/production_metrics/utils/config.py
"""
Environment-driven settings for the production metrics reports.

Values come from the process environment, with a project-root .env
loaded first. Nothing here opens a connection.
"""

import os
from pathlib import Path
from urllib.parse import quote_plus

from dotenv import load_dotenv

# Load .env from project root
BASE_DIR = Path(__file__).resolve().parents[3]
load_dotenv(BASE_DIR / ".env")


SUPPORTED_DIALECTS = ("mysql", "sqlite")


class Config:
    DB_DRIVER = os.getenv("DB_DRIVER", "{MySQL ODBC 8.0 Unicode Driver}")
    DB_SERVER = os.getenv("DB_SERVER", "localhost").strip()
    DB_PORT = int(os.getenv("DB_PORT", "3306"))
    DB_DATABASE = os.getenv("DB_DATABASE", "production").strip()
    DB_USER = os.getenv("DB_USER", "").strip()
    DB_PASSWORD = os.getenv("DB_PASSWORD", "").strip()

    # Full SQLAlchemy URL, wins over the DB_* pieces when set
    DB_URL = os.getenv("DB_URL", "").strip()

    # Checked by AggregationQueryBuilder; an unknown value raises there
    SQL_DIALECT = os.getenv("SQL_DIALECT", "mysql").strip().lower()

    # Raw sample stream (ts, machine_id, metrage_inc_m, speed_mpm)
    SAMPLES_TABLE = os.getenv("SAMPLES_TABLE", "production_samples").strip()

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FILE = os.getenv("LOG_FILE", "").strip()

    @property
    def ODBC_CONNECTION_STRING(self) -> str:
        parts = [
            f"DRIVER={self.DB_DRIVER}",
            f"SERVER={self.DB_SERVER}",
            f"PORT={self.DB_PORT}",
            f"DATABASE={self.DB_DATABASE}",
        ]
        if self.DB_USER:
            parts.append(f"UID={self.DB_USER}")
        if self.DB_PASSWORD:
            parts.append(f"PWD={self.DB_PASSWORD}")
        return ";".join(parts) + ";"

    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        if self.DB_URL:
            return self.DB_URL
        return "mysql+pyodbc:///?odbc_connect=" + quote_plus(self.ODBC_CONNECTION_STRING)

    def __repr__(self):
        return (
            f"<Config server={self.DB_SERVER} db={self.DB_DATABASE} "
            f"dialect={self.SQL_DIALECT}>"
        )


# Singleton
config = Config()
