"""Database connection and schema management."""

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".local" / "share" / "parking-invoices" / "parking.db"

SCHEMA = """
-- Parking facilities
CREATE TABLE IF NOT EXISTS facilities (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    timezone TEXT
);

-- Hour bands of each facility's tariff schedule
CREATE TABLE IF NOT EXISTS rate_bands (
    id INTEGER PRIMARY KEY,
    facility_id TEXT NOT NULL,
    day_class TEXT NOT NULL CHECK (day_class IN ('weekday', 'weekend')),
    start_hour INTEGER NOT NULL,
    end_hour INTEGER NOT NULL,
    price_per_hour TEXT NOT NULL,  -- decimal string, keeps exact precision
    FOREIGN KEY (facility_id) REFERENCES facilities(id)
);

-- Parking sessions
CREATE TABLE IF NOT EXISTS sessions (
    id INTEGER PRIMARY KEY,
    customer_id TEXT NOT NULL,
    facility_id TEXT NOT NULL,
    start_time TEXT NOT NULL,
    end_time TEXT NOT NULL,
    UNIQUE(customer_id, facility_id, start_time)
);

-- Customers (used to enrich invoice reports)
CREATE TABLE IF NOT EXISTS customers (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT
);

CREATE INDEX IF NOT EXISTS idx_bands_facility ON rate_bands(facility_id, day_class);
CREATE INDEX IF NOT EXISTS idx_sessions_facility ON sessions(facility_id, customer_id);
"""


def get_db_path() -> Path:
    """Get the database path, creating parent directories if needed.

    PARKING_DB_PATH overrides the default location.
    """
    db_path = Path(os.environ.get("PARKING_DB_PATH") or DEFAULT_DB_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return db_path


@contextmanager
def get_connection(db_path: Path | None = None) -> Iterator[sqlite3.Connection]:
    """Get a database connection with row factory enabled."""
    path = db_path or get_db_path()
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: Path | None = None) -> None:
    """Initialize the database schema."""
    with get_connection(db_path) as conn:
        conn.executescript(SCHEMA)
        conn.commit()
    logger.debug("Database schema applied to %s", db_path or get_db_path())


def get_stats(db_path: Path | None = None) -> dict:
    """Get database statistics."""
    with get_connection(db_path) as conn:
        stats = {}

        row = conn.execute("SELECT COUNT(*) as count FROM facilities").fetchone()
        stats["facilities"] = {"count": row["count"]}

        row = conn.execute("SELECT COUNT(*) as count FROM rate_bands").fetchone()
        stats["rate_bands"] = {"count": row["count"]}

        row = conn.execute(
            "SELECT COUNT(*) as count, MIN(start_time) as earliest, MAX(start_time) as latest FROM sessions"
        ).fetchone()
        stats["sessions"] = {
            "count": row["count"],
            "earliest": row["earliest"],
            "latest": row["latest"],
        }

        # By facility
        rows = conn.execute(
            "SELECT facility_id, COUNT(*) as count FROM sessions GROUP BY facility_id ORDER BY facility_id"
        ).fetchall()
        stats["sessions_by_facility"] = {row["facility_id"]: row["count"] for row in rows}

        row = conn.execute("SELECT COUNT(*) as count FROM customers").fetchone()
        stats["customers"] = {"count": row["count"]}

        return stats
