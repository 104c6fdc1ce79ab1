"""
Pytest configuration for the failover probe.

Provides fixtures for:
- A fake database with scripted insert outcomes (unit tests)
- A controllable clock whose sleeps advance time instantly
- Settings and database availability for integration tests
"""

from __future__ import annotations

import os

import psycopg
import pytest

from failover_probe.config import Settings
from failover_probe.infrastructure.connection import ConnectionManager, build_dsn
from tests.fakes import TEST_DSN, FakeClock, FakeDatabase


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def connections(fake_db: FakeDatabase, clock: FakeClock) -> ConnectionManager:
    """A connected manager backed by `fake_db`."""
    manager = ConnectionManager(
        TEST_DSN, connect_attempts=1, connector=fake_db.connect, sleep=clock.sleep
    )
    manager.connect()
    return manager


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        _env_file=None,
        db_dsn=os.getenv("DB_DSN"),
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "busy_db"),
        db_connect_attempts=1,
        log_level="DEBUG",
        probe_max_retry=3,
        probe_delay_retry=0.1,
    )


@pytest.fixture(scope="session")
def db_connection_available(test_settings: Settings) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(build_dsn(test_settings), connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False
