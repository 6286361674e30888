"""Customer importer.

CSV format: customer_id, name, email (email optional)
"""

import csv
from pathlib import Path

from ..db import get_connection
from ..models import Customer


def parse_csv(csv_path: Path) -> list[Customer]:
    """Parse a customers CSV file."""
    customers = []
    with open(csv_path, newline="") as f:
        reader = csv.DictReader(f)
        for line_no, row in enumerate(reader, start=2):
            customer_id = (row.get("customer_id") or "").strip()
            if not customer_id:
                raise ValueError(f"{csv_path.name} line {line_no}: missing customer_id")
            customers.append(
                Customer(
                    customer_id=customer_id,
                    name=(row.get("name") or customer_id).strip(),
                    email=(row.get("email") or "").strip() or None,
                )
            )
    return customers


def import_from_csv(csv_path: Path, db_path: Path | None = None) -> dict:
    """Import customers from a CSV file. Existing customers are updated.

    Returns dict with 'imported' and 'updated' counts.
    """
    return save_customers(parse_csv(csv_path), db_path)


def save_customers(customers: list[Customer], db_path: Path | None = None) -> dict:
    imported = 0
    updated = 0

    with get_connection(db_path) as conn:
        for customer in customers:
            exists = conn.execute(
                "SELECT 1 FROM customers WHERE id = ?", (customer.customer_id,)
            ).fetchone()
            conn.execute(
                "INSERT OR REPLACE INTO customers (id, name, email) VALUES (?, ?, ?)",
                (customer.customer_id, customer.name, customer.email),
            )
            if exists:
                updated += 1
            else:
                imported += 1
        conn.commit()

    return {"imported": imported, "updated": updated}


def get_customer(customer_id: str, db_path: Path | None = None) -> Customer | None:
    """Get a customer by id."""
    with get_connection(db_path) as conn:
        row = conn.execute(
            "SELECT id, name, email FROM customers WHERE id = ?", (customer_id,)
        ).fetchone()
        if not row:
            return None
        return Customer(customer_id=row["id"], name=row["name"], email=row["email"])
