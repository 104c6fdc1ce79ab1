"""
Integration tests for the failover probe.

These tests run against a real PostgreSQL instance and verify that:
1. The schema bootstrap is idempotent
2. Burst and rate-limited runs insert the expected number of rows
3. A forced read-only transaction triggers a reconnect and the write recovers

Run with: RUN_INTEGRATION_TESTS=1 pytest tests/integration/
"""

from __future__ import annotations

import os

import psycopg
import pytest

from failover_probe.config import Settings
from failover_probe.controller import RunController, RunMode
from failover_probe.domain.models import Record
from failover_probe.generator import RecordGenerator
from failover_probe.infrastructure.connection import ConnectionManager, build_dsn
from failover_probe.infrastructure.schema import TABLE_NAME, ensure_schema
from failover_probe.writer import WriteRetryLoop

DEFAULT_RECORDS = 5
DEFAULT_RPS = 50

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION_TESTS", "0") != "1",
    reason="Integration tests require RUN_INTEGRATION_TESTS=1 and reachable Postgres",
)


@pytest.fixture
def live_connections(test_settings: Settings, db_connection_available: bool):
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")
    with ConnectionManager.from_settings(test_settings) as manager:
        ensure_schema(manager)
        yield manager


def _row_count(dsn: str) -> int:
    with psycopg.connect(dsn) as conn:
        with conn.cursor() as cur:
            cur.execute(f"SELECT COUNT(*) FROM {TABLE_NAME}")
            return cur.fetchone()[0]


def test_schema_bootstrap_is_idempotent(live_connections) -> None:
    ensure_schema(live_connections)
    ensure_schema(live_connections)


@pytest.mark.parametrize("mode", [RunMode.BURST, RunMode.RATE_LIMITED])
def test_run_inserts_expected_rows(live_connections, test_settings: Settings, mode: RunMode) -> None:
    dsn = build_dsn(test_settings)
    before = _row_count(dsn)
    run_config = test_settings.run_config().model_copy(
        update={"test_run": DEFAULT_RECORDS, "rps": DEFAULT_RPS}
    )
    controller = RunController(
        WriteRetryLoop.from_config(live_connections, run_config),
        RecordGenerator(seed=1),
        run_config,
    )

    summary = controller.run(mode)

    assert summary.records == DEFAULT_RECORDS
    assert _row_count(dsn) == before + DEFAULT_RECORDS


def test_read_only_session_is_reset_and_write_recovers(live_connections) -> None:
    poisoned = live_connections.connection
    with poisoned.cursor() as cur:
        cur.execute("SET SESSION CHARACTERISTICS AS TRANSACTION READ ONLY")
    writer = WriteRetryLoop(live_connections, max_retry=3, delay_retry=0.1)

    outcome = writer.write(Record(description="integration@probe.invalid"))

    assert outcome.attempts == 2
    assert outcome.downtime_ms is not None
    assert poisoned.closed is True
    assert live_connections.connection is not poisoned
