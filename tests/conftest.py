"""
Pytest configuration for recordkit.

Provides fixtures for:
- An in-memory recording backend for unit tests
- Database connection management and alerts table setup for integration tests
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Sequence

import psycopg
import pytest

from recordkit.config import Settings


class RecordingBackend:
    """
    StorageBackend double: records every statement and replays canned rows.

    ``responses`` is consumed in order, one list of rows per execute call;
    once exhausted every call returns no rows.
    """

    def __init__(self, responses: Optional[Sequence[List[Dict[str, Any]]]] = None) -> None:
        self.calls: List[tuple[str, List[Any]]] = []
        self._responses = list(responses or [])

    def execute(self, statement: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        self.calls.append((statement, list(params)))
        if self._responses:
            return self._responses.pop(0)
        return []

    @property
    def last(self) -> tuple[str, List[Any]]:
        return self.calls[-1]


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def make_backend():
    """Factory for recording backends preloaded with responses."""
    return RecordingBackend


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "recordkit"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """
    Ensure the alerts table exists by running db/init.sql.
    """
    init_sql_path = Path(__file__).parent.parent / "db" / "init.sql"
    with db_connection.cursor() as cur:
        cur.execute(init_sql_path.read_text(encoding="utf-8"))
    db_connection.commit()
    return True


@pytest.fixture(scope="function")
def clean_alerts_table(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """
    Empty the alerts table before and after each test function.
    """
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.alerts RESTART IDENTITY;")
    db_connection.commit()
    yield
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.alerts RESTART IDENTITY;")
    db_connection.commit()
