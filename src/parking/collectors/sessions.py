"""Parking session importer.

Imports sessions from CSV exports of the barrier/camera system.
CSV format: customer_id, facility_id, start_time, end_time
"""

import csv
import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from ..db import get_connection
from ..models import Session

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("customer_id", "facility_id", "start_time", "end_time")


def parse_csv(csv_path: Path) -> list[Session]:
    """Parse a sessions CSV file.

    Raises ValueError naming the line of the first malformed row.
    """
    sessions = []
    with open(csv_path, newline="") as f:
        reader = csv.DictReader(f)
        missing = [c for c in REQUIRED_COLUMNS if c not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"{csv_path.name}: missing columns {', '.join(missing)}")

        for line_no, row in enumerate(reader, start=2):
            try:
                sessions.append(
                    Session(
                        customer_id=row["customer_id"].strip(),
                        facility_id=row["facility_id"].strip(),
                        start_time=datetime.fromisoformat(row["start_time"].strip()),
                        end_time=datetime.fromisoformat(row["end_time"].strip()),
                    )
                )
            except (AttributeError, ValueError) as e:
                raise ValueError(f"{csv_path.name} line {line_no}: {e}") from e
    return sessions


def import_from_csv(csv_path: Path, db_path: Path | None = None) -> dict:
    """Import sessions from a CSV file.

    Returns dict with 'imported' and 'skipped' counts.
    """
    sessions = parse_csv(csv_path)
    return save_sessions(sessions, db_path)


def save_sessions(sessions: list[Session], db_path: Path | None = None) -> dict:
    """Save sessions to the database.

    Returns dict with 'imported' and 'skipped' counts.
    """
    imported = 0
    skipped = 0

    with get_connection(db_path) as conn:
        for session in sessions:
            try:
                conn.execute(
                    """INSERT INTO sessions
                       (customer_id, facility_id, start_time, end_time)
                       VALUES (?, ?, ?, ?)""",
                    (
                        session.customer_id,
                        session.facility_id,
                        session.start_time.isoformat(),
                        session.end_time.isoformat(),
                    ),
                )
                imported += 1
            except sqlite3.IntegrityError:
                # Same customer, facility and start time already stored
                skipped += 1

        conn.commit()

    logger.debug("Saved %d sessions, skipped %d duplicates", imported, skipped)
    return {"imported": imported, "skipped": skipped}


def get_sessions_for_facility(facility_id: str, db_path: Path | None = None) -> list[Session]:
    """Get all sessions recorded at a facility."""
    with get_connection(db_path) as conn:
        rows = conn.execute(
            """SELECT customer_id, facility_id, start_time, end_time
               FROM sessions WHERE facility_id = ?
               ORDER BY start_time""",
            (facility_id,),
        ).fetchall()

    return [
        Session(
            customer_id=row["customer_id"],
            facility_id=row["facility_id"],
            start_time=datetime.fromisoformat(row["start_time"]),
            end_time=datetime.fromisoformat(row["end_time"]),
        )
        for row in rows
    ]
