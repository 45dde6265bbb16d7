"""Database manager for SQLite connections, transactions and path management."""

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from config import Config, get_migrations_dir
from errors import StorageError, ValidationError
from logger import get_logger

logger = get_logger()


def configure_connection(conn: sqlite3.Connection) -> sqlite3.Connection:
    """Apply per-connection settings every Spendwatch connection needs.

    Transactions are controlled explicitly (see transaction()), so the
    connection runs with isolation_level=None and foreign keys switched on.
    """
    conn.isolation_level = None
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def write_transaction(conn: sqlite3.Connection):
    """Run a block inside BEGIN IMMEDIATE ... COMMIT on conn.

    BEGIN IMMEDIATE takes SQLite's write lock up front, so reads made inside
    the block (budget totals, category existence) cannot be invalidated by
    another writer before the block commits. Any exception rolls back.
    """
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    else:
        conn.commit()


class DatabaseManager:
    """Manages database connections and paths.

    Args:
        config: Application configuration object.
    """

    def __init__(self, config: Config):
        self.config = config

    @contextmanager
    def connect(self):
        """Get a database connection with automatic cleanup.

        Each call opens its own connection, so concurrent callers (threads,
        worker processes) never share one.

        Yields:
            sqlite3.Connection: Database connection in autocommit mode.
        """
        db_path = self.config.db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(db_path, timeout=self.config.db_timeout)
        try:
            yield configure_connection(conn)
        finally:
            conn.close()

    @contextmanager
    def transaction(self):
        """Open a connection and run the block in a single write transaction.

        Yields:
            sqlite3.Connection: Connection with an open transaction.
        """
        with self.connect() as conn:
            with write_transaction(conn):
                yield conn

    def get_db_path(self):
        """Get the current database path.

        Returns:
            Path: Path to the database file.
        """
        return self.config.db_path

    def get_migrations_dir(self):
        """Get the migrations directory path.

        Returns:
            Path: Path to the migrations directory.
        """
        return get_migrations_dir()


def utc_now() -> datetime:
    """Timestamp for inserted_at / updated_at columns."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored timestamp (ISO format or SQLite CURRENT_TIMESTAMP)."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@contextmanager
def translate_errors(integrity_fields: Optional[Dict[str, Tuple[str, str]]] = None):
    """Turn sqlite3 errors raised in the block into domain errors.

    Wrap this around a transaction() block so the rollback has already
    happened by the time the error is translated.

    Args:
        integrity_fields: Maps a fragment of an IntegrityError message
            (e.g. "categories.name") to the (field, message) reported in a
            ValidationError. Unmatched integrity errors become StorageError.

    Raises:
        ValidationError: For anticipated constraint violations.
        StorageError: For everything else sqlite3 raises.
    """
    try:
        yield
    except sqlite3.IntegrityError as e:
        for fragment, (field, message) in (integrity_fields or {}).items():
            if fragment in str(e):
                raise ValidationError({field: [message]}) from e
        logger.error(f"Unexpected constraint violation: {e}")
        raise StorageError(f"Constraint violation: {e}") from e
    except sqlite3.Error as e:
        logger.error(f"Database error: {e}")
        raise StorageError(f"Database error: {e}") from e
