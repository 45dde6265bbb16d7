"""Helper utilities for tests."""

from datetime import date
from pathlib import Path
import sqlite3


def run_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> None:
    """Run all SQL migrations in order.

    Args:
        conn: SQLite connection to run migrations against.
        migrations_dir: Path to directory containing .sql migration files.
    """
    for migration_file in sorted(migrations_dir.glob("*.sql")):
        conn.executescript(migration_file.read_text())


def expense_attrs(category_id, amount="10.00", **overrides) -> dict:
    """Valid expense attributes for category_id, with optional overrides."""
    attrs = {
        "description": "Lunch",
        "amount": amount,
        "date": date.today().isoformat(),
        "notes": "Test expense",
        "category_id": category_id,
    }
    attrs.update(overrides)
    return attrs
