"""Shared pytest fixtures for all tests."""

import sqlite3
import pytest
from contextlib import contextmanager
from pathlib import Path

from cli.migrate import apply_pending_migrations
from config import Config, get_migrations_dir
from db.manager import DatabaseManager, configure_connection, write_transaction
from services.base import Services
from tests.helpers import run_migrations


@pytest.fixture
def test_db():
    """Create an in-memory SQLite database for testing.

    Yields:
        sqlite3.Connection: Connection to in-memory database, configured the
        same way as the application's connections.
    """
    conn = configure_connection(sqlite3.connect(":memory:"))
    yield conn
    conn.close()


@pytest.fixture
def test_config(tmp_path):
    """Create a test configuration pointing to a temporary database.

    Args:
        tmp_path: pytest tmp_path fixture for temporary directory.

    Returns:
        Config: Test configuration object.
    """
    return Config(
        base_dir=tmp_path / "spendwatch",
        db_data_dir=tmp_path / "spendwatch" / "db",
        db_filename="test.db",
        log_level="DEBUG",
        log_dir=tmp_path / "spendwatch" / "logs",
        receipts_dir=tmp_path / "spendwatch" / "receipts",
        receipt_max_attempts=3,
        default_category_budget="500.00",
        db_timeout=10.0,
        llm_enabled=False,
        llm_provider="openai",
        llm_openai_api_key="",
        llm_openai_model="gpt-4o-mini",
    )


@pytest.fixture
def db_manager_with_schema(test_db):
    """Create a DatabaseManager with schema already set up.

    This fixture provides a DatabaseManager that uses an in-memory database
    with all migrations already applied.

    Args:
        test_db: In-memory database connection fixture.

    Returns:
        DatabaseManager: Database manager with schema ready.
    """
    run_migrations(test_db, get_migrations_dir())

    class TestDatabaseManager:
        """Test database manager that shares one in-memory connection."""

        def __init__(self, conn):
            self.conn = conn

        @contextmanager
        def connect(self):
            # Don't close the connection - let the fixture handle it
            yield self.conn

        @contextmanager
        def transaction(self):
            with write_transaction(self.conn):
                yield self.conn

        def get_db_path(self):
            """Return a fake path for the test database."""
            return Path(":memory:")

        def get_migrations_dir(self):
            """Get the migrations directory path."""
            return get_migrations_dir()

    return TestDatabaseManager(test_db)


@pytest.fixture
def services(test_config, db_manager_with_schema):
    """Create a Services container with test database.

    This fixture provides access to all services with a clean test database.

    Args:
        test_config: Test configuration fixture.
        db_manager_with_schema: Database manager with schema set up.

    Yields:
        Services: Services container for testing.
    """
    with Services(test_config, db_manager=db_manager_with_schema) as services:
        yield services


@pytest.fixture
def file_db_manager(test_config):
    """A real DatabaseManager on a migrated file database.

    Needed wherever several threads open their own connections.
    """
    db_manager = DatabaseManager(test_config)
    apply_pending_migrations(db_manager)
    return db_manager


@pytest.fixture
def file_services(test_config, file_db_manager):
    """Services container backed by the file database."""
    with Services(test_config, db_manager=file_db_manager) as services:
        yield services


@pytest.fixture
def category(services):
    """A category with a 100.00 budget."""
    return services.categories.create(
        {"name": "Food", "description": "Groceries and eating out", "monthly_budget": "100.00"}
    )
